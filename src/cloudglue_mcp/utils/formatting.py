"""
Text formatting utilities.
"""


def format_clock(seconds: float) -> str:
    """Format seconds as MM:SS, or HH:MM:SS once past an hour.

    Args:
        seconds: Time in seconds

    Returns:
        Formatted timestamp string (e.g., "01:30" or "01:05:30")
    """
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = int(seconds % 60)
    if hours > 0:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


def format_duration(seconds: float | None) -> str | None:
    """Format seconds as human-readable duration string.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted duration string (e.g., "1:30" or "1:05:30"), or None
    """
    if seconds is None:
        return None

    seconds = int(round(seconds))
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    secs = seconds % 60

    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def format_file_size(num_bytes: int) -> str:
    """Format a byte count with a binary unit (e.g., "1.50 MB")."""
    units = ["B", "KB", "MB", "GB", "TB"]
    size = float(num_bytes)
    unit = 0
    while size >= 1024 and unit < len(units) - 1:
        size /= 1024
        unit += 1
    return f"{size:.2f} {units[unit]}"
