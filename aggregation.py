from __future__ import annotations

from typing import Iterable, Sequence

from entities import MONTHS_PER_YEAR, CategoryYear, Record


def category_year(
    category_id: int, year: int, records: Iterable[Record]
) -> CategoryYear:
    """Sum one category's record amounts into calendar-month slots.

    Records of other categories or dated outside ``year`` are ignored. Months
    without records stay at zero.
    """
    sums = [0] * MONTHS_PER_YEAR
    for rec in records:
        if rec.category_id != category_id or rec.date.year != year:
            continue
        sums[rec.date.month - 1] += rec.amount_cents
    return CategoryYear(category_id=category_id, month_sums=tuple(sums))


def year_summary(
    year: int, records: Iterable[Record], category_ids: Sequence[int]
) -> list[CategoryYear]:
    """One CategoryYear per id in ``category_ids``, in that order."""
    sums: dict[int, list[int]] = {
        category_id: [0] * MONTHS_PER_YEAR for category_id in category_ids
    }
    for rec in records:
        slots = sums.get(rec.category_id)
        if slots is None or rec.date.year != year:
            continue
        slots[rec.date.month - 1] += rec.amount_cents
    return [
        CategoryYear(category_id=category_id, month_sums=tuple(sums[category_id]))
        for category_id in category_ids
    ]


def year_totals(summaries: Iterable[CategoryYear]) -> tuple[int, ...]:
    totals = [0] * MONTHS_PER_YEAR
    for summary in summaries:
        for idx, cents in enumerate(summary.month_sums):
            totals[idx] += cents
    return tuple(totals)
