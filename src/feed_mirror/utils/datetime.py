"""Datetime utilities."""

from datetime import datetime, timedelta, timezone

from dateutil.parser import parse as parse_date

# Timezone abbreviations for feed date parsing
TZINFOS = {
    "EST": timezone(timedelta(hours=-5)),
    "EDT": timezone(timedelta(hours=-4)),
    "CST": timezone(timedelta(hours=-6)),
    "CDT": timezone(timedelta(hours=-5)),
    "MST": timezone(timedelta(hours=-7)),
    "MDT": timezone(timedelta(hours=-6)),
    "PST": timezone(timedelta(hours=-8)),
    "PDT": timezone(timedelta(hours=-7)),
    "GMT": timezone.utc,
    "UTC": timezone.utc,
    "BST": timezone(timedelta(hours=1)),
    "BRT": timezone(timedelta(hours=-3)),
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_datetime(value) -> datetime:
    """Parse datetime from ISO string or return as-is if already datetime."""
    if value is None:
        return utcnow()
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def parse_feed_date(value: str | None) -> datetime | None:
    """Parse an RFC 822 / ISO 8601 feed date. Returns None when unparseable."""
    if not value or not value.strip():
        return None

    try:
        dt = parse_date(value.strip(), tzinfos=TZINFOS)
    except (ValueError, OverflowError):
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def normalize_published_at(value: str | None, now: datetime | None = None) -> str:
    """ISO timestamp for a raw feed date, falling back to ingestion time."""
    dt = parse_feed_date(value)
    if dt is None:
        dt = now or utcnow()
    return dt.astimezone(timezone.utc).isoformat()
