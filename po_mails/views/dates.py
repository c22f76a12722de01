"""Timestamp helpers shared by the grouping and support views.

All calendar fields are taken in UTC so that bucketing does not depend on
the machine's local timezone.
"""

import re
from datetime import datetime, timezone

UNKNOWN_MONTH = "Unknown Month"
UNKNOWN_SORT_KEY = "0000-00"

_MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

_PREVIEW_LIMIT = 120
_PREVIEW_CUTOFF = re.compile(r"^(.*?)(?=\s+Name of Candidate:|$)", re.IGNORECASE)


def parse_received(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp into an aware UTC datetime, or None."""
    if not value:
        return None
    text = str(value).strip()
    if text[-1:] in ("Z", "z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def timestamp(value: str | None) -> float:
    """Seconds since the epoch; missing or malformed values compare as 0."""
    parsed = parse_received(value)
    return parsed.timestamp() if parsed else 0.0


def year_month(value: str | None) -> tuple[str, str] | None:
    """Return ("YYYY", "MM") for a parseable timestamp, else None."""
    parsed = parse_received(value)
    if parsed is None:
        return None
    return f"{parsed.year:04d}", f"{parsed.month:02d}"


def month_label(value: str | None) -> str:
    parsed = parse_received(value)
    if parsed is None:
        return UNKNOWN_MONTH
    return f"{_MONTH_NAMES[parsed.month - 1]} {parsed.year}"


def month_sort_key(value: str | None) -> str:
    parsed = parse_received(value)
    if parsed is None:
        return UNKNOWN_SORT_KEY
    return f"{parsed.year:04d}-{parsed.month:02d}"


def month_name(month: str) -> str:
    """Display name for a two-digit month filter value ("All" → "All Months")."""
    if month == "All":
        return "All Months"
    try:
        index = int(month)
    except ValueError:
        return month
    if not 1 <= index <= 12:
        return month
    return _MONTH_NAMES[index - 1]


# ── Display ────────────────────────────────────────────────────────────────────


def format_date(value: str | None) -> str:
    if not value:
        return ""
    parsed = parse_received(value)
    if parsed is None:
        return str(value)
    return parsed.strftime("%Y-%m-%d %H:%M")


def short_preview(text: str | None) -> str:
    """First line of a body preview, cut before the PO field block."""
    if not text:
        return ""
    collapsed = re.sub(r"\s+", " ", str(text)).strip()
    match = _PREVIEW_CUTOFF.match(collapsed)
    base = match.group(1).strip() if match else collapsed
    if len(base) <= _PREVIEW_LIMIT:
        return base
    return f"{base[:_PREVIEW_LIMIT - 3].strip()}..."
