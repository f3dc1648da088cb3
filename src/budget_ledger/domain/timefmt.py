def format_duration(seconds: float) -> str:
    """Short human-readable duration for agent round-trip log lines."""
    if seconds < 0.001:
        return "<1 ms"
    if seconds < 1:
        return f"{seconds * 1000:.0f} ms"
    return f"{seconds:.2f} s"
