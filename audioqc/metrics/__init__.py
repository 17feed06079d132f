"""Signal metrics computed from decoded sample buffers."""
