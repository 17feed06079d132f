"""Built-in criteria presets, in the same JSON shape load_criteria accepts."""
from __future__ import annotations

CONVERSATIONAL = "Conversational Stereo"

DEFAULT_PRESETS: dict[str, dict] = {
    "auditions-character-recordings": {
        "name": "Auditions: Character Recordings",
        "file_types": ["wav"],
        "sample_rates": [48000],
        "bit_depths": [24],
        "channel_counts": [1],
        "min_duration_seconds": 120,
    },
    "auditions-studio-ai": {
        "name": "Auditions: Studio AI",
        "file_types": ["wav"],
        "sample_rates": [48000],
        "bit_depths": [24],
        "channel_counts": [1],
        "min_duration_seconds": 120,
    },
    "auditions-bilingual-partner": {
        "name": "Auditions: Bilingual Partner",
        "file_types": ["wav"],
        "sample_rates": [48000],
        "bit_depths": [24],
        "channel_counts": [1],
        "min_duration_seconds": 150,
    },
    "auditions-emotional-voice": {
        "name": "Auditions: Emotional Voice",
        "file_types": ["wav"],
        "sample_rates": [48000],
        "bit_depths": [16, 24],
        "channel_counts": [1, 2],
        "min_duration_seconds": 5,
    },
    "character-recordings": {
        "name": "Character Recordings",
        "file_types": ["wav"],
        "sample_rates": [48000],
        "bit_depths": [24],
        "channel_counts": [1],
    },
    "p2b2-pairs-mono": {
        "name": "P2B2 Pairs (Mono)",
        "file_types": ["wav"],
        "sample_rates": [44100, 48000],
        "bit_depths": [16, 24],
        "channel_counts": [1],
    },
    "p2b2-pairs-stereo": {
        "name": "P2B2 Pairs (Stereo)",
        "file_types": ["wav"],
        "sample_rates": [44100, 48000],
        "bit_depths": [16, 24],
        "channel_counts": [2],
        "stereo_types": [CONVERSATIONAL],
        "overlap": {"warning_pct": 3, "fail_pct": 8, "segment_warning_seconds": 2, "segment_fail_seconds": 5},
    },
    "p2b2-pairs-mixed": {
        "name": "P2B2 Pairs (Mixed)",
        "file_types": ["wav"],
        "sample_rates": [44100, 48000],
        "bit_depths": [16, 24],
        "channel_counts": [1, 2],
        # stereo type is only checked on two-channel files
        "stereo_types": [CONVERSATIONAL],
        "overlap": {"warning_pct": 3, "fail_pct": 8, "segment_warning_seconds": 2, "segment_fail_seconds": 5},
    },
    "three-hour": {
        "name": "Three Hour",
        "file_types": ["wav"],
        "sample_rates": [48000],
        "bit_depths": [24],
        "channel_counts": [1],
    },
    "bilingual-conversational": {
        "name": "Bilingual Conversational",
        "file_types": ["wav"],
        "sample_rates": [48000],
        "bit_depths": [16, 24],
        "channel_counts": [2],
        "stereo_types": [CONVERSATIONAL],
        "overlap": {"warning_pct": 5, "fail_pct": 10, "segment_warning_seconds": 2, "segment_fail_seconds": 5},
    },
    "custom": {
        "name": "Custom",
    },
}
