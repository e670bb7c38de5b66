from datetime import datetime, timezone
from dateutil import parser


def utcnow():
    return datetime.now(timezone.utc)


def as_utc(value):
    """Return ``value`` as an aware UTC datetime.

    SQLite hands back naive datetimes even for timezone columns; those are
    stored in UTC, so they are tagged rather than converted.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_datetime(value):
    if isinstance(value, datetime):
        return as_utc(value)
    return as_utc(parser.isoparse(value))


def isoformat(value):
    value = as_utc(value)
    return value.isoformat().replace("+00:00", "Z") if value else None
