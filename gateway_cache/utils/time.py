from datetime import datetime, timezone


def utcnow() -> datetime:
    """Return timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def unix_now() -> int:
    """Return the current wall-clock time as whole Unix seconds."""
    return int(utcnow().timestamp())


def format_unix(value: int) -> str:
    """Format Unix seconds for display, or "never" for the zero value."""
    if not value:
        return "never"
    return datetime.fromtimestamp(value, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
