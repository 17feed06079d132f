"""audioqc CLI - Audio Quality Control Tool."""
from __future__ import annotations
import argparse
import json
import logging
import signal
import sys
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable

from audioqc.version import __version__
from audioqc.batch.processor import DEFAULT_CONCURRENCY, BatchProcessor, FileResult
from audioqc.errors import CriteriaError, DecodeError
from audioqc.io.audio import SUPPORTED_AUDIO_EXTS
from audioqc.pipeline import analyze_file, filename_status, make_per_file
from audioqc.profiles.loader import get_preset, load_criteria
from audioqc.profiles.presets import DEFAULT_PRESETS
from audioqc.reporting.batch_summary import build_batch_summary, render_markdown_summary
from audioqc.reporting.report import build_file_report_dict
from audioqc.types import Criteria, Status, worst_status
from audioqc.utils.canonical_json import json_safe

logger = logging.getLogger(__name__)

EXIT_PASS = 0
EXIT_WARN = 10
EXIT_FAIL = 20
EXIT_BAD_ARGS = 2
EXIT_DECODE_ERROR = 3
EXIT_PROFILE_ERROR = 4
EXIT_INTERNAL_ERROR = 5
EXIT_CANCELLED = 130


def _exit_code_for_status(status: Status) -> int:
    """Map Status enum to exit code."""
    if status == Status.PASS:
        return EXIT_PASS
    if status == Status.WARNING:
        return EXIT_WARN
    if status == Status.FAIL:
        return EXIT_FAIL
    return EXIT_INTERNAL_ERROR


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _resolve_criteria(args) -> Criteria:
    if getattr(args, "criteria", None):
        return load_criteria(args.criteria)
    if getattr(args, "preset", None):
        return get_preset(args.preset)
    return Criteria()


def _iter_audio_files(folder: Path, recursive: bool) -> list[Path]:
    """Collect supported audio files from a folder, sorted by path."""
    if not folder.exists():
        raise ValueError(f"Folder not found: {folder}")
    files: Iterable[Path]
    files = folder.rglob("*") if recursive else folder.glob("*")
    return sorted(p for p in files if p.is_file() and p.suffix.lower() in SUPPORTED_AUDIO_EXTS)


@contextmanager
def _cancel_on_interrupt(processor: BatchProcessor):
    """Turn Ctrl-C into a cooperative cancel: in-flight files finish, no new ones start."""
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def _handler(signum, frame):
        logger.info("Received signal %d, cancelling batch", signum)
        print("Cancelling: waiting for files in progress...", file=sys.stderr)
        processor.cancel()

    previous = signal.signal(signal.SIGINT, _handler)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


def _analyze_one(args):
    criteria = _resolve_criteria(args)
    fn_result = filename_status(args.audio_path, args.filename_pattern) if args.filename_pattern else None
    return analyze_file(
        args.audio_path, criteria, filename_result=fn_result, header_only=getattr(args, "header_only", False)
    )


def _run_single(args, handler) -> int:
    try:
        report = _analyze_one(args)
        return handler(report)
    except CriteriaError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_PROFILE_ERROR
    except FileNotFoundError as e:
        print(f"Error: Criteria file not found - {e}", file=sys.stderr)
        return EXIT_PROFILE_ERROR
    except DecodeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_DECODE_ERROR
    except Exception as e:
        logger.debug("internal error", exc_info=True)
        print(f"Internal error: {e}", file=sys.stderr)
        return EXIT_INTERNAL_ERROR


def cmd_analyze(args) -> int:
    """Handle analyze command."""
    def _emit(report) -> int:
        output_json = json.dumps(build_file_report_dict(report), indent=2)
        if args.out:
            Path(args.out).write_text(output_json, encoding="utf-8")
            print(f"Report written to: {args.out}", file=sys.stderr)
        else:
            print(output_json)
        return _exit_code_for_status(report.status)

    return _run_single(args, _emit)


def cmd_validate(args) -> int:
    """Handle validate command."""
    def _emit(report) -> int:
        validation = report.validation
        print(f"File: {report.path}")
        print(f"Status: {validation.overall_status.value.upper()}")
        for name, verdict in validation.fields.items():
            if verdict.status != Status.PASS or args.all_fields:
                detail = f" ({verdict.message})" if verdict.message else ""
                print(f"  {name}: {verdict.status.value}{detail}")
        if args.fail_on == "warn" and validation.overall_status == Status.WARNING:
            return EXIT_FAIL
        return _exit_code_for_status(validation.overall_status)

    return _run_single(args, _emit)


def cmd_presets(args) -> int:
    """Handle presets command."""
    if args.show:
        preset = DEFAULT_PRESETS.get(args.show)
        if preset is None:
            print(f"Error: Unknown preset '{args.show}'", file=sys.stderr)
            return EXIT_PROFILE_ERROR
        print(json.dumps(preset, indent=2))
        return EXIT_PASS
    for preset_id, preset in DEFAULT_PRESETS.items():
        print(f"{preset_id}: {preset['name']}")
    return EXIT_PASS


def cmd_batch(args) -> int:
    """Handle batch command."""
    try:
        criteria = _resolve_criteria(args)
    except (CriteriaError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_PROFILE_ERROR
    try:
        audio_paths = _iter_audio_files(Path(args.folder), args.recursive)
        if not audio_paths:
            print("Error: No input files found.", file=sys.stderr)
            return EXIT_BAD_ARGS
        if args.workers < 1:
            print("Error: --workers must be at least 1.", file=sys.stderr)
            return EXIT_BAD_ARGS
        out_dir = Path(args.out_dir) if args.out_dir else None
        if out_dir:
            out_dir.mkdir(parents=True, exist_ok=True)

        def _on_complete(result: FileResult) -> None:
            if result.error:
                print(f"[ERROR] {result.file_ref}: {result.error}", file=sys.stderr)
                return
            print(f"[OK] {result.file_ref}: {result.status.value}")
            if out_dir:
                out_path = out_dir / (Path(result.file_ref).stem + ".audioqc.json")
                out_path.write_text(
                    json.dumps(build_file_report_dict(result.result), indent=2), encoding="utf-8"
                )

        processor = BatchProcessor()
        with _cancel_on_interrupt(processor):
            job = processor.run(
                [str(p) for p in audio_paths],
                make_per_file(criteria, filename_pattern=args.filename_pattern, header_only=args.header_only),
                concurrency=args.workers,
                on_file_complete=_on_complete,
            )

        summary = build_batch_summary(job)
        if out_dir:
            (out_dir / args.summary_json).write_text(
                json.dumps(json_safe(summary), indent=2), encoding="utf-8"
            )
            (out_dir / args.summary_md).write_text(render_markdown_summary(summary), encoding="utf-8")
        else:
            print(json.dumps(json_safe(summary), indent=2))

        if job.was_cancelled:
            print(f"Batch cancelled: {job.completed} of {job.total} files processed.", file=sys.stderr)
            return EXIT_CANCELLED
        if job.error_count:
            return EXIT_INTERNAL_ERROR
        return _exit_code_for_status(worst_status(r.status for r in job.results))

    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_BAD_ARGS
    except Exception as e:
        logger.debug("internal error", exc_info=True)
        print(f"Internal error: {e}", file=sys.stderr)
        return EXIT_INTERNAL_ERROR


def _add_criteria_args(p: argparse.ArgumentParser) -> None:
    group = p.add_mutually_exclusive_group()
    group.add_argument(
        "--preset", "-p",
        choices=sorted(DEFAULT_PRESETS),
        help="Built-in criteria preset"
    )
    group.add_argument(
        "--criteria", "-c",
        help="Path to criteria JSON"
    )
    p.add_argument(
        "--filename-pattern",
        help="Regular expression the file name (without extension) must match"
    )


def _add_header_only_arg(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--header-only",
        action="store_true",
        help="Validate header properties and filename only, without decoding samples"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="audioqc",
        description="audioqc - Audio Quality Control Tool"
    )
    parser.add_argument(
        "--version", action="version",
        version=f"audioqc {__version__}"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Analyze an audio file and write a JSON report"
    )
    analyze_parser.add_argument("audio_path", help="Path to audio file")
    _add_criteria_args(analyze_parser)
    analyze_parser.add_argument("--out", "-o", help="Output path for report JSON")
    analyze_parser.set_defaults(func=cmd_analyze)

    validate_parser = subparsers.add_parser(
        "validate",
        help="Validate an audio file (simple pass/warning/fail output)"
    )
    validate_parser.add_argument("audio_path", help="Path to audio file")
    _add_criteria_args(validate_parser)
    validate_parser.add_argument(
        "--fail-on",
        choices=["fail", "warn"],
        default="fail",
        help="When to return the fail exit code (default: fail)"
    )
    validate_parser.add_argument(
        "--all-fields",
        action="store_true",
        help="List passing fields too"
    )
    _add_header_only_arg(validate_parser)
    validate_parser.set_defaults(func=cmd_validate)

    batch_parser = subparsers.add_parser(
        "batch",
        help="Analyze and validate every audio file in a folder"
    )
    batch_parser.add_argument("--folder", required=True, help="Folder containing audio files")
    _add_criteria_args(batch_parser)
    batch_parser.add_argument(
        "--recursive",
        action="store_true",
        help="Recurse into subfolders"
    )
    batch_parser.add_argument(
        "--workers",
        type=int,
        default=DEFAULT_CONCURRENCY,
        help=f"Files analyzed concurrently (default: {DEFAULT_CONCURRENCY})"
    )
    batch_parser.add_argument("--out-dir", help="Output directory for per-file reports and summaries")
    batch_parser.add_argument(
        "--summary-json",
        default="batch-summary.json",
        help="Batch summary JSON filename inside --out-dir"
    )
    batch_parser.add_argument(
        "--summary-md",
        default="batch-summary.md",
        help="Batch summary Markdown filename inside --out-dir"
    )
    _add_header_only_arg(batch_parser)
    batch_parser.set_defaults(func=cmd_batch)

    presets_parser = subparsers.add_parser("presets", help="List built-in criteria presets")
    presets_parser.add_argument("--show", help="Print one preset as JSON")
    presets_parser.set_defaults(func=cmd_presets)
    return parser


def main(argv: list[str] | None = None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    if hasattr(args, "func"):
        sys.exit(args.func(args))
    else:
        parser.print_help()
        sys.exit(EXIT_BAD_ARGS)


if __name__ == "__main__":
    main()
