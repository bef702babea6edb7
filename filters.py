from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from decimal import ROUND_HALF_EVEN, Decimal
from typing import Iterable

DEFAULT_MIN_COST = -100000.0
DEFAULT_MAX_COST = 100000.0
DEFAULT_START_DATE = date(2000, 1, 1)
DEFAULT_END_DATE = date(3000, 1, 1)


@dataclass(frozen=True)
class FilterOpts:
    """Shape of a ledger query.

    Costs are inclusive bounds in major currency units, dates are inclusive.
    An empty ``cat_ids`` or ``code`` places no restriction, so ``FilterOpts()``
    matches every row.

    The ``with_*`` modifiers return a new value and never validate: bounds may
    be inverted (``min_cost > max_cost`` or ``start_date > end_date``), in which
    case the query built from them returns no rows.
    """

    min_cost: float = DEFAULT_MIN_COST
    max_cost: float = DEFAULT_MAX_COST
    start_date: date = DEFAULT_START_DATE
    end_date: date = DEFAULT_END_DATE
    cat_ids: tuple[int, ...] = ()
    code: str = ""

    def with_min_cost(self, value: float) -> FilterOpts:
        return replace(self, min_cost=value)

    def with_max_cost(self, value: float) -> FilterOpts:
        return replace(self, max_cost=value)

    def with_start_date(self, value: date) -> FilterOpts:
        return replace(self, start_date=value)

    def with_end_date(self, value: date) -> FilterOpts:
        return replace(self, end_date=value)

    def with_cat_ids(self, value: Iterable[int]) -> FilterOpts:
        return replace(self, cat_ids=tuple(value))

    def with_code(self, value: str) -> FilterOpts:
        return replace(self, code=value)

    def with_date_range(self, start: date, end: date) -> FilterOpts:
        return replace(self, start_date=start, end_date=end)

    def cost_bounds_cents(self) -> tuple[int, int]:
        return _to_cents(self.min_cost), _to_cents(self.max_cost)

    @property
    def is_inverted(self) -> bool:
        return self.min_cost > self.max_cost or self.start_date > self.end_date


def new_filter_opts() -> FilterOpts:
    return FilterOpts()


def _to_cents(value: float) -> int:
    cents = Decimal(repr(value)) * 100
    return int(cents.quantize(Decimal("1"), rounding=ROUND_HALF_EVEN))
