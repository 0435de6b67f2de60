"""Display helpers for durations."""

from datetime import timedelta


def fmt_duration(duration: timedelta) -> str:
    """Format a duration as '2h 5m', or '5m 30s' below an hour.

    Negative durations are treated as rounding noise and shown as zero.
    """
    seconds = max(int(duration.total_seconds()), 0)
    hours, rest = divmod(seconds, 3600)
    minutes, seconds = divmod(rest, 60)
    if hours > 0:
        return f'{hours}h {minutes}m'
    return f'{minutes}m {seconds}s'
