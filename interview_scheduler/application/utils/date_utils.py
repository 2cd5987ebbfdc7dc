from __future__ import annotations

import calendar
import re
from datetime import date, datetime, timezone

from interview_scheduler.application.exceptions import ValidationError


_HHMM = re.compile(r"^([0-1]?[0-9]|2[0-3]):([0-5][0-9])$")
_MONTH = re.compile(r"^(\d{4})-(\d{1,2})$")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_hhmm(value: str, field: str = "time") -> str:
    """Validate a 24h "H:MM"/"HH:MM" string and return it zero-padded."""
    match = _HHMM.match((value or "").strip())
    if not match:
        raise ValidationError(f"{field} must be in HH:MM format (24-hour)")
    return f"{int(match.group(1)):02d}:{match.group(2)}"


def minutes_between(start: str, end: str) -> int:
    sh, sm = (int(p) for p in start.split(":"))
    eh, em = (int(p) for p in end.split(":"))
    return (eh * 60 + em) - (sh * 60 + sm)


def month_range(month: str | None, today: date) -> tuple[date, date]:
    """
    Resolve "YYYY-MM" to the first and last day of that month.
    Falls back to the month containing ``today``.
    """
    if month:
        match = _MONTH.match(month.strip())
        if not match:
            raise ValidationError("month must be in YYYY-MM format")
        year, mon = int(match.group(1)), int(match.group(2))
        if year < 1 or not 1 <= mon <= 12:
            raise ValidationError("month must be in YYYY-MM format")
    else:
        year, mon = today.year, today.month
    last_day = calendar.monthrange(year, mon)[1]
    return date(year, mon, 1), date(year, mon, last_day)
