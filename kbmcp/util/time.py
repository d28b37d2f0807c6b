"""Time-related helpers for kbmcp."""

from __future__ import annotations

import datetime


def utc_now_iso() -> str:
    """Return current UTC time in ISO format without sub-second precision."""
    return datetime.datetime.now(datetime.UTC).isoformat(timespec="seconds")


def parse_timestamp(value: str | None) -> datetime.datetime | None:
    """Parse an RFC 3339 timestamp as returned by the Drive API.

    Naive values are assumed to be UTC. Empty or malformed input yields
    ``None``.
    """

    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=datetime.UTC)
    return parsed.astimezone(datetime.UTC)


def format_human_timestamp(value: str | None) -> str:
    """Render ``value`` as ``YYYY-MM-DD HH:MM UTC`` or ``unknown``."""

    parsed = parse_timestamp(value)
    if parsed is None:
        return "unknown"
    return parsed.strftime("%Y-%m-%d %H:%M UTC")


def format_human_date(value: str | None) -> str:
    """Render only the calendar date of ``value``."""

    parsed = parse_timestamp(value)
    if parsed is None:
        return "unknown"
    return parsed.strftime("%Y-%m-%d")
