from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

DAY_NAMES = {
    "monday": 0,
    "tuesday": 1,
    "wednesday": 2,
    "thursday": 3,
    "friday": 4,
    "saturday": 5,
    "sunday": 6,
}

COMPACT_FORMAT = "%Y%m%dT%H%M"


def resolve_weekday(text: str, reference_date: date) -> date | None:
    """Next occurrence of the named weekday, counting today. None if not a weekday."""
    normalized = text.lower().strip()
    day_num = DAY_NAMES.get(normalized)
    if day_num is None:
        return None
    days_ahead = (day_num - reference_date.weekday()) % 7
    return reference_date + timedelta(days=days_ahead)


def local_day_bounds(day: date, tz: ZoneInfo) -> tuple[datetime, datetime]:
    """[midnight, next midnight) of ``day`` in ``tz``, as UTC instants."""
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def end_of_local_day(reference: datetime, tz: ZoneInfo) -> datetime:
    _, end = local_day_bounds(reference.astimezone(tz).date(), tz)
    return end


def parse_compact_datetime(text: str, tz: ZoneInfo) -> datetime | None:
    """Parse ``yyyyMMddTHHmm`` as local time in ``tz``. Returns UTC or None."""
    try:
        parsed = datetime.strptime(text.strip(), COMPACT_FORMAT)
    except ValueError:
        return None
    return parsed.replace(tzinfo=tz).astimezone(timezone.utc)


def format_clock(value: datetime, tz: ZoneInfo) -> str:
    """``h:mm AM`` in local time, without a leading zero."""
    local = value.astimezone(tz)
    hour = local.hour % 12 or 12
    return f"{hour}:{local.minute:02d} {'AM' if local.hour < 12 else 'PM'}"
