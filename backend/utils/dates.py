"""
Date helpers shared by logs, reports and sync.

Calendar dates ("YYYY-MM-DD") and report months ("YYYY-MM") are parsed here so
malformed input surfaces as ValidationError everywhere.
"""

import logging
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from exceptions import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "UTC"
MIN_YEAR = 2000
MAX_YEAR = 2100


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def today_for(tz_name: str | None) -> date:
    """Current calendar date in the user's timezone."""
    try:
        tz = ZoneInfo(tz_name or DEFAULT_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown timezone '{tz_name}', using {DEFAULT_TIMEZONE}")
        tz = ZoneInfo(DEFAULT_TIMEZONE)
    return datetime.now(tz).date()


def parse_date(value: str | date, field: str = "date") -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise ValidationError("Expected a date formatted YYYY-MM-DD", field=field, value=value)


def validate_month(year: int, month: int) -> date:
    """Return the first day of the month, rejecting out-of-range input."""
    if not isinstance(year, int) or not MIN_YEAR <= year <= MAX_YEAR:
        raise ValidationError(f"Year must be between {MIN_YEAR} and {MAX_YEAR}", field="year", value=year)
    if not isinstance(month, int) or not 1 <= month <= 12:
        raise ValidationError("Month must be between 1 and 12", field="month", value=month)
    return date(year, month, 1)


def parse_month(value: str) -> date:
    try:
        parsed = datetime.strptime(value, "%Y-%m")
    except (TypeError, ValueError):
        raise ValidationError("Expected a month formatted YYYY-MM", field="month", value=value)
    return validate_month(parsed.year, parsed.month)


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First day of the month and first day of the following month."""
    start = validate_month(year, month)
    end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    return start, end


def lookback(days: int) -> datetime:
    return now_utc() - timedelta(days=days)
