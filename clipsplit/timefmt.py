"""Conversions between seconds and display strings."""

import math


class TimeFormatError(ValueError):
    """Raised when a time string cannot be parsed."""
    pass


def format_time(seconds: float, show_milliseconds: bool = False) -> str:
    """Format seconds as ``M:SS`` / ``H:MM:SS``.

    With ``show_milliseconds`` the fraction is appended in hundredths
    (truncated), and values under one minute drop the minute field
    entirely (``30.50``). Negative and non-finite input is shown as zero.
    """
    if not math.isfinite(seconds) or seconds < 0:
        seconds = 0.0

    total = int(math.floor(seconds))
    hours = total // 3600
    minutes = (total % 3600) // 60
    secs = total % 60

    if show_milliseconds:
        hundredths = int(math.floor((seconds - total) * 100))
        if hours > 0:
            return f"{hours}:{minutes:02d}:{secs:02d}.{hundredths:02d}"
        if total < 60:
            return f"{secs}.{hundredths:02d}"
        return f"{minutes}:{secs:02d}.{hundredths:02d}"

    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def parse_time(text: str) -> float:
    """Parse ``S``, ``M:S`` or ``H:M:S`` into seconds."""
    text = text.strip()
    if not text:
        raise TimeFormatError("Empty time string")

    parts = text.split(":")
    if len(parts) > 3:
        raise TimeFormatError(f"Invalid time format: {text!r}")

    try:
        values = [float(p) for p in parts]
    except ValueError:
        raise TimeFormatError(f"Invalid time format: {text!r}") from None

    if not all(math.isfinite(v) for v in values):
        raise TimeFormatError(f"Invalid time format: {text!r}")

    seconds = 0.0
    for v in values:
        seconds = seconds * 60 + v
    return seconds


def format_bitrate(bps: int) -> str:
    if bps == 0:
        return "unknown"
    if bps < 1000:
        return f"{bps} bps"
    if bps < 1_000_000:
        return f"{bps / 1000:.2f} kbps"
    return f"{bps / 1_000_000:.2f} Mbps"


def to_seconds(value: float | int | str) -> float:
    """Accept either a number of seconds or a string for :func:`parse_time`."""
    if isinstance(value, str):
        return parse_time(value)
    return float(value)
