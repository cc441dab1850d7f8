"""Local calendar helpers (dates, month arithmetic, strict date parsing)."""

import calendar
import re
from datetime import date, datetime
from typing import Optional

import pytz
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

from finboard.config.settings import get_settings
from finboard.core.exceptions import ValidationError

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def local_tz() -> pytz.BaseTzInfo:
    """Return the configured local timezone."""
    return pytz.timezone(get_settings().timezone)


def now_local() -> datetime:
    """Return current time in the local timezone."""
    return datetime.now(local_tz())


def today_local() -> date:
    """Return today's calendar date in the local timezone."""
    return now_local().date()


def to_local(dt: datetime) -> datetime:
    """Convert a datetime to the local timezone."""
    tz = local_tz()
    if dt.tzinfo is None:
        # Assume naive datetime is already local
        return tz.localize(dt)
    return dt.astimezone(tz)


def parse_date(value: str, field: Optional[str] = "date") -> date:
    """
    Parse a strict YYYY-MM-DD calendar date.

    Rejects other layouts and impossible dates such as 2024-02-30.
    """
    value = (value or "").strip()
    if not _ISO_DATE.match(value):
        raise ValidationError(f"Invalid date '{value}', expected YYYY-MM-DD", field=field)
    try:
        parsed = date_parser.isoparse(value).date()
    except ValueError:
        raise ValidationError(f"Invalid date '{value}'", field=field)
    if parsed.isoformat() != value:
        raise ValidationError(f"Invalid date '{value}'", field=field)
    return parsed


def month_start(d: date) -> date:
    """First day of the month containing d."""
    return d.replace(day=1)


def month_end(d: date) -> date:
    """Last day of the month containing d."""
    return d.replace(day=calendar.monthrange(d.year, d.month)[1])


def add_months(d: date, months: int) -> date:
    """Shift d by a number of months, clamping the day to the target month."""
    return d + relativedelta(months=months)


def utc_now() -> datetime:
    """Current time as naive UTC, the form timestamps are persisted in."""
    return datetime.now(pytz.utc).replace(tzinfo=None)
