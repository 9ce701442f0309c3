"""Date parsing utilities."""

from datetime import date, datetime, time, timedelta, UTC
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Supports absolute dates ("2024-01-31", "January 31, 2024") and a few
    relative forms used when closing a statement period: "today",
    "yesterday", "end of last month", "start of last month",
    "start of this month".

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = date.today()
    first_of_month = today.replace(day=1)

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "start of this month": first_of_month,
        "start of last month": first_of_month - relativedelta(months=1),
        "end of last month": first_of_month - timedelta(days=1),
    }
    if date_str in relative_dates:
        return relative_dates[date_str]

    try:
        return date_parser.parse(date_str).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def get_date_range(period: str) -> tuple[date, date]:
    """Get start and end dates for a named reconciliation period.

    Args:
        period: One of this-month, last-month, last-quarter

    Raises:
        ValueError: If period string is not recognized
    """
    period = period.strip().lower()
    today = date.today()
    first_of_month = today.replace(day=1)

    if period == "this-month":
        return first_of_month, today

    elif period == "last-month":
        end_date = first_of_month - timedelta(days=1)
        return end_date.replace(day=1), end_date

    elif period == "last-quarter":
        quarter_start_month = 3 * ((today.month - 1) // 3) + 1
        this_quarter = today.replace(month=quarter_start_month, day=1)
        start_date = this_quarter - relativedelta(months=3)
        return start_date, this_quarter - timedelta(days=1)

    raise ValueError(
        f"Unknown period: '{period}'. Supported periods: this-month, last-month, last-quarter"
    )


def start_of_day(day: date) -> datetime:
    """Return the first instant of ``day`` in UTC."""
    return datetime.combine(day, time.min, tzinfo=UTC)


def end_of_day(day: date) -> datetime:
    """Return the last instant of ``day`` in UTC."""
    return datetime.combine(day, time.max, tzinfo=UTC)
