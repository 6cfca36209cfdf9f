"""Shared text helpers for tool responses."""

import re
from datetime import datetime, timezone
from typing import Optional

_TAG_RE = re.compile(r"<[^>]*>")
_ENTITY_RE = re.compile(r"&[^;\s]+;")


def format_file_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    if size < 1024 * 1024 * 1024:
        return f"{size / (1024 * 1024):.1f} MB"
    return f"{size / (1024 * 1024 * 1024):.1f} GB"


def truncate(text: str, max_chars: int, suffix: str = "...") -> str:
    if len(text) <= max_chars:
        return text
    return f"{text[:max_chars]}{suffix}"


def iso_timestamp(epoch: Optional[float] = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix."""
    if epoch is None:
        moment = datetime.now(timezone.utc)
    else:
        moment = datetime.fromtimestamp(epoch, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def display_time(value: Optional[str]) -> str:
    """Render an ISO-8601 string in local time; unparseable input is returned as-is."""
    if not value:
        return ""
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    return parsed.astimezone().strftime("%Y-%m-%d %H:%M:%S")


def slack_ts_to_display(ts: str) -> str:
    """Slack message timestamps are ``<epoch seconds>.<sequence>`` strings."""
    try:
        seconds = int(str(ts).split(".")[0])
    except ValueError:
        return str(ts)
    return datetime.fromtimestamp(seconds).strftime("%Y-%m-%d %H:%M:%S")


def strip_html(value: str) -> str:
    """Drop tags and entities from an HTML summary and trim whitespace."""
    text = _TAG_RE.sub("", value or "")
    text = _ENTITY_RE.sub(" ", text)
    return text.strip()
