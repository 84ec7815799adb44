"""Time helpers shared by every component that keys data by calendar day."""
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

DEFAULT_TIMEZONE = "UTC"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(moment: datetime) -> str:
    return as_utc(moment).isoformat()


def from_iso(value: str | None) -> datetime | None:
    if not value:
        return None
    return as_utc(datetime.fromisoformat(value))


def as_utc(moment: datetime) -> datetime:
    """Naive datetimes are taken to already be UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def zone(tz: str):
    if tz.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(tz)


def day_key(moment: datetime | None = None, tz: str = DEFAULT_TIMEZONE) -> str:
    """Return the YYYY-MM-DD calendar day of ``moment`` in time zone ``tz``."""
    moment = as_utc(moment or utc_now())
    return moment.astimezone(zone(tz)).date().isoformat()


def previous_day(key: str) -> str:
    return (date.fromisoformat(key) - timedelta(days=1)).isoformat()


def days_between(earlier: datetime, later: datetime, tz: str = DEFAULT_TIMEZONE) -> int:
    """Number of calendar days from ``earlier`` to ``later`` (0 on the same day)."""
    start = date.fromisoformat(day_key(earlier, tz))
    end = date.fromisoformat(day_key(later, tz))
    return (end - start).days
