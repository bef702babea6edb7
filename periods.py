from dataclasses import dataclass
from datetime import date
from typing import Optional

from filters import DEFAULT_END_DATE, DEFAULT_START_DATE


@dataclass(frozen=True)
class Period:
    slug: str
    start: date
    end: date


def month_period(year: int, month: int) -> Period:
    first = date(year, month, 1)
    if month == 12:
        next_month = date(year + 1, 1, 1)
    else:
        next_month = date(year, month + 1, 1)
    return Period(f"{year:04d}-{month:02d}", first, next_month - date.resolution)


def year_period(year: int) -> Period:
    return Period(f"{year:04d}", date(year, 1, 1), date(year, 12, 31))


def resolve_period(
    period: Optional[str],
    start: Optional[str],
    end: Optional[str],
    *,
    today: Optional[date] = None,
) -> Period:
    today = today or date.today()
    if period == "custom":
        if not start and not end:
            raise ValueError("Custom period requires a start or end date")
        start_date = date.fromisoformat(start) if start else DEFAULT_START_DATE
        end_date = date.fromisoformat(end) if end else DEFAULT_END_DATE
        return Period("custom", start_date, end_date)
    if not period or period == "all":
        return Period("all", DEFAULT_START_DATE, DEFAULT_END_DATE)
    if period == "this_month":
        return month_period(today.year, today.month)
    if period == "last_month":
        last_month_end = today.replace(day=1) - date.resolution
        return month_period(last_month_end.year, last_month_end.month)
    if period == "this_year":
        return year_period(today.year)
    raise ValueError(f"Unknown period: {period}")
