"""Quick date ranges for the dashboard and report filters."""

import calendar
from datetime import date, timedelta
from typing import Optional, Tuple

QUICK_PRESETS = ("today", "7days", "week", "month", "year")


def month_bounds(anchor: date) -> Tuple[date, date]:
    """First and last day of the month containing ``anchor``."""
    last_day = calendar.monthrange(anchor.year, anchor.month)[1]
    return date(anchor.year, anchor.month, 1), date(anchor.year, anchor.month, last_day)


def quick_range(preset: str, today: Optional[date] = None) -> Tuple[date, date]:
    """
    Resolve a quick filter button to an inclusive date range.
    "7days" covers the last seven days plus today; "week" is the calendar
    week around today, Monday to Sunday.
    """
    today = today or date.today()
    if preset == "today":
        return today, today
    elif preset == "7days":
        return today - timedelta(days=7), today
    elif preset == "week":
        monday = today - timedelta(days=today.weekday())
        return monday, monday + timedelta(days=6)
    elif preset == "month":
        return month_bounds(today)
    elif preset == "year":
        return date(today.year, 1, 1), date(today.year, 12, 31)
    else:
        raise ValueError(f"Unknown period preset: {preset}")


def shift_month(anchor: date, step: int) -> Tuple[date, date]:
    """Bounds of the month ``step`` months away from ``anchor`` (negative goes back)."""
    month_index = anchor.year * 12 + (anchor.month - 1) + step
    year, month = divmod(month_index, 12)
    return month_bounds(date(year, month + 1, 1))
