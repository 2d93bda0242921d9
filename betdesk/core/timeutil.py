import pytz
from datetime import datetime, timezone

from betdesk.core.config import settings

TZ = pytz.timezone(settings.TZ)

def utcnow() -> datetime:
    """Naive UTC, the representation every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)

def to_naive_utc(dt: datetime) -> datetime:
    # naive input is wall-clock time in the configured zone
    if dt.tzinfo is None:
        dt = TZ.localize(dt)
    return dt.astimezone(pytz.utc).replace(tzinfo=None)

def fmt(dt: datetime | None) -> str:
    return dt.strftime("%Y-%m-%d %H:%M:%S") if dt else ""
