"""Date parsing utilities."""

import re
from datetime import date, timedelta
from typing import Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

from walletwise.domain.entities import WeekStart

WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

_DAYS_AGO = re.compile(r"^(\d+) days? ago$")


def start_of_week(day: date, week_start: WeekStart = WeekStart.MONDAY) -> date:
    """Return the first day of the week containing ``day``."""
    offset = day.weekday() if WeekStart(week_start) == WeekStart.MONDAY else (day.weekday() + 1) % 7
    return day - timedelta(days=offset)


def parse_date(
    date_str: str,
    today: Optional[date] = None,
    week_start: WeekStart = WeekStart.MONDAY,
) -> date:
    """Parse a date string into a date object.

    Supports various formats including relative dates:
    - Absolute dates: "2024-01-15", "15/01/2024", "January 15, 2024", etc.
    - Relative dates: "today", "yesterday", "3 days ago", "last month",
      "this week", "last friday", etc.

    Day-first is assumed for ambiguous numeric dates ("05/01/2024" is
    5 January).

    Args:
        date_str: Date string in various formats
        today: Reference date for relative dates (defaults to today)
        week_start: First day of the week for "this/last/next week"

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = today or date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }
    if date_str in relative_dates:
        return relative_dates[date_str]

    match = _DAYS_AGO.match(date_str)
    if match:
        return today - timedelta(days=int(match.group(1)))

    if date_str.startswith(("last ", "this ", "next ")):
        direction, period = date_str.split(" ", 1)
        step = {"last": -1, "this": 0, "next": 1}[direction]

        if period == "month":
            return (today + relativedelta(months=step)).replace(day=1)
        if period == "year":
            return today.replace(month=1, day=1) + relativedelta(years=step)
        if period == "week":
            return start_of_week(today, week_start) + timedelta(weeks=step)
        if period in WEEKDAYS and direction == "last":
            days_ago = (today.weekday() - WEEKDAYS.index(period)) % 7 or 7
            return today - timedelta(days=days_ago)

    try:
        return date.fromisoformat(date_str)
    except ValueError:
        pass

    try:
        return date_parser.parse(date_str, dayfirst=True).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")
