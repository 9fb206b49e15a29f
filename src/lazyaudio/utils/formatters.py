"""Duration formatting for session displays."""


def format_duration_seconds(total_seconds: int, pad_minutes: bool = True) -> str:
    """
    Format a duration as ``HH:MM:SS`` when it spans hours, else ``MM:SS``.

    With ``pad_minutes`` False the short form drops the leading zero (``3:07``).
    """
    total_seconds = max(0, int(total_seconds))
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)

    if hours > 0:
        return f"{hours:02d}:{minutes:02d}:{seconds:02d}"
    if pad_minutes:
        return f"{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"


def format_duration_ms(duration_ms: int) -> str:
    return format_duration_seconds(int(duration_ms) // 1000)
