"""
Ledger value types.

Records, categories and investments are read back from the store as frozen
dataclasses; CategoryYear is computed from records and never stored. All four
satisfy :class:`DataRow`, so a table renderer only ever needs ``headers`` and
``spread_to_strings``.

Money is kept in integer cents everywhere and only turned into a decimal
string for display.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_EVEN, Decimal
from typing import ClassVar, Optional, Protocol, Sequence, runtime_checkable

from lookup import EMPTY_LOOKUP, CategoryLookup

INCOME_LABEL = "Income"
EXPENDITURE_LABEL = "Expenditure"

_CENT = Decimal("0.01")


@runtime_checkable
class DataRow(Protocol):
    headers: ClassVar[tuple[str, ...]]

    def spread_to_strings(self, lookup: Optional[CategoryLookup] = None) -> list[str]:
        ...


def format_money(amount: Decimal) -> str:
    return f"${amount.quantize(_CENT, rounding=ROUND_HALF_EVEN)}"


def format_cents(cents: int) -> str:
    """Format integer cents as dollars, e.g. 1234 -> '$12.34', -150 -> '$-1.50'."""
    return format_money(Decimal(cents) / 100)


def format_date(value: date) -> str:
    return value.isoformat()


def _columns(row: Sequence[object], expected: int) -> tuple[object, ...]:
    values = tuple(row)
    if len(values) != expected:
        raise ValueError(f"Expected {expected} columns, got {len(values)}")
    return values


def _to_int(value: object, field: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"Invalid integer for {field}: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError as exc:
            raise ValueError(f"Invalid integer for {field}: {value!r}") from exc
    raise ValueError(f"Invalid integer for {field}: {value!r}")


def _to_float(value: object, field: str) -> float:
    if isinstance(value, bool):
        raise ValueError(f"Invalid number for {field}: {value!r}")
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError as exc:
            raise ValueError(f"Invalid number for {field}: {value!r}") from exc
    else:
        raise ValueError(f"Invalid number for {field}: {value!r}")
    if not math.isfinite(number):
        raise ValueError(f"Invalid number for {field}: {value!r}")
    return number


def _to_date(value: object, field: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            try:
                return datetime.fromisoformat(text).date()
            except ValueError as exc:
                raise ValueError(f"Invalid date for {field}: {value!r}") from exc
    raise ValueError(f"Invalid date for {field}: {value!r}")


def _to_bool(value: object, field: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in {"1", "true", "t", "yes"}:
            return True
        if text in {"0", "false", "f", "no"}:
            return False
    raise ValueError(f"Invalid boolean for {field}: {value!r}")


def _to_str(value: object, field: str, *, nullable: bool = False) -> str:
    if value is None and nullable:
        return ""
    if isinstance(value, str):
        return value
    raise ValueError(f"Invalid text for {field}: {value!r}")


@dataclass(frozen=True)
class Record:
    id: int
    date: date
    category_id: int
    description: str
    amount_cents: int

    headers: ClassVar[tuple[str, ...]] = (
        "ID",
        "Date",
        "Category",
        "Description",
        "Amount",
    )

    @classmethod
    def from_row(cls, row: Sequence[object]) -> Record:
        id_, day, category_id, description, amount = _columns(row, 5)
        return cls(
            id=_to_int(id_, "id"),
            date=_to_date(day, "date"),
            category_id=_to_int(category_id, "category_id"),
            description=_to_str(description, "description", nullable=True),
            amount_cents=_to_int(amount, "amount_cents"),
        )

    def spread_to_strings(self, lookup: Optional[CategoryLookup] = None) -> list[str]:
        lookup = lookup or EMPTY_LOOKUP
        return [
            str(self.id),
            format_date(self.date),
            lookup.name_for(self.category_id),
            self.description,
            format_cents(self.amount_cents),
        ]


@dataclass(frozen=True)
class Category:
    id: int
    name: str
    is_income: bool
    description: str

    headers: ClassVar[tuple[str, ...]] = ("ID", "Name", "Type", "Description")

    @classmethod
    def from_row(cls, row: Sequence[object]) -> Category:
        id_, name, is_income, description = _columns(row, 4)
        return cls(
            id=_to_int(id_, "id"),
            name=_to_str(name, "name"),
            is_income=_to_bool(is_income, "is_income"),
            description=_to_str(description, "description", nullable=True),
        )

    @property
    def kind_label(self) -> str:
        return INCOME_LABEL if self.is_income else EXPENDITURE_LABEL

    def spread_to_strings(self, lookup: Optional[CategoryLookup] = None) -> list[str]:
        return [str(self.id), self.name, self.kind_label, self.description]


@dataclass(frozen=True)
class Investment:
    id: int
    date: date
    code: str
    unit_price_cents: int
    qty: float

    headers: ClassVar[tuple[str, ...]] = (
        "ID",
        "Date",
        "Code",
        "Unit Price",
        "Qty",
        "Value",
    )

    @classmethod
    def from_row(cls, row: Sequence[object]) -> Investment:
        id_, day, code, unit_price, qty = _columns(row, 5)
        return cls(
            id=_to_int(id_, "id"),
            date=_to_date(day, "date"),
            code=_to_str(code, "code"),
            unit_price_cents=_to_int(unit_price, "unit_price_cents"),
            qty=_to_float(qty, "qty"),
        )

    @property
    def value(self) -> Decimal:
        """Position value in major units: unit price / 100 * qty."""
        # repr() keeps the quantity as entered instead of its binary expansion
        return Decimal(self.unit_price_cents) * Decimal(repr(self.qty)) / 100

    def spread_to_strings(self, lookup: Optional[CategoryLookup] = None) -> list[str]:
        return [
            str(self.id),
            format_date(self.date),
            self.code,
            format_cents(self.unit_price_cents),
            f"{self.qty:.1f}",
            format_money(self.value),
        ]


MONTHS_PER_YEAR = 12
MONTH_ABBREVIATIONS = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)


@dataclass(frozen=True)
class CategoryYear:
    category_id: int
    month_sums: tuple[int, ...] = (0,) * MONTHS_PER_YEAR

    headers: ClassVar[tuple[str, ...]] = ("Category",) + MONTH_ABBREVIATIONS

    def __post_init__(self) -> None:
        sums = tuple(self.month_sums)
        if len(sums) != MONTHS_PER_YEAR:
            raise ValueError(
                f"CategoryYear needs {MONTHS_PER_YEAR} month sums, got {len(sums)}"
            )
        object.__setattr__(self, "month_sums", sums)

    def spread_to_strings(self, lookup: Optional[CategoryLookup] = None) -> list[str]:
        lookup = lookup or EMPTY_LOOKUP
        return [lookup.name_for(self.category_id)] + [
            format_cents(cents) for cents in self.month_sums
        ]
