"""Timestamp formatting utilities."""

from datetime import datetime, timezone


def now_exact() -> str:
    """Current UTC time as an ISO 8601 string (matches Drive's modifiedTime style)."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(iso_timestamp: str) -> datetime:
    """
    Parse an ISO 8601 timestamp, accepting the trailing "Z" used by Google APIs.

    Naive timestamps are assumed to be UTC.
    """
    text = iso_timestamp.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def format_timestamp(iso_timestamp: str) -> str:
    """
    Format ISO 8601 timestamp as local time for tables.

    Example:
        format_timestamp("2025-11-13T18:45:40.572Z")
        # "2025-11-13 18:45:40" (in the local timezone)

    Unparseable input is returned unchanged.
    """
    try:
        return parse_timestamp(iso_timestamp).astimezone().strftime("%Y-%m-%d %H:%M:%S")
    except (ValueError, AttributeError):
        return iso_timestamp
