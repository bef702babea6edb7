from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import Select, delete, func, insert, select, update
from sqlalchemy.orm import Session

from aggregation import category_year, year_summary
from entities import Category, CategoryYear, Investment, Record
from filters import FilterOpts
from lookup import CategoryLookup
from models import (
    CATEGORY_COLUMNS,
    INVESTMENT_COLUMNS,
    RECORD_COLUMNS,
    categories,
    investments,
    records,
)
from periods import year_period
from row_mapper import rows_to_categories, rows_to_investments, rows_to_records
from schemas import CategoryIn, InvestmentIn, RecordIn

logger = logging.getLogger(__name__)


class NotFoundError(ValueError):
    pass


def apply_record_filters(stmt: Select, opts: FilterOpts) -> Select:
    min_cents, max_cents = opts.cost_bounds_cents()
    stmt = stmt.where(
        records.c.amount_cents.between(min_cents, max_cents),
        records.c.date.between(opts.start_date, opts.end_date),
    )
    if opts.cat_ids:
        stmt = stmt.where(records.c.category_id.in_(opts.cat_ids))
    return stmt


def apply_investment_filters(stmt: Select, opts: FilterOpts) -> Select:
    min_cents, max_cents = opts.cost_bounds_cents()
    stmt = stmt.where(
        investments.c.unit_price_cents.between(min_cents, max_cents),
        investments.c.date.between(opts.start_date, opts.end_date),
    )
    if opts.code:
        stmt = stmt.where(investments.c.code == opts.code)
    return stmt


class CategoryService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list_all(self) -> list[Category]:
        stmt = select(*CATEGORY_COLUMNS).order_by(categories.c.id)
        return rows_to_categories(self.session.execute(stmt))

    def lookup(self) -> CategoryLookup:
        return CategoryLookup.from_categories(self.list_all())

    def get(self, category_id: int) -> Category:
        stmt = select(*CATEGORY_COLUMNS).where(categories.c.id == category_id)
        found = rows_to_categories(self.session.execute(stmt))
        if not found:
            raise NotFoundError("Category not found")
        return found[0]

    def _ensure_unique_name(self, name: str, exclude_id: Optional[int] = None) -> None:
        stmt = select(categories.c.id).where(
            func.lower(categories.c.name) == name.lower()
        )
        if exclude_id is not None:
            stmt = stmt.where(categories.c.id != exclude_id)
        if self.session.execute(stmt).first():
            raise ValueError("Category with this name already exists")

    def create(self, data: CategoryIn) -> Category:
        self._ensure_unique_name(data.name)
        result = self.session.execute(
            insert(categories).values(
                name=data.name,
                is_income=data.is_income,
                description=data.description,
            )
        )
        self.session.commit()
        category_id = result.inserted_primary_key[0]
        logger.info(f"category_created: id={category_id} name={data.name!r}")
        return self.get(category_id)

    def update(self, category_id: int, data: CategoryIn) -> Category:
        self.get(category_id)
        self._ensure_unique_name(data.name, exclude_id=category_id)
        self.session.execute(
            update(categories)
            .where(categories.c.id == category_id)
            .values(
                name=data.name,
                is_income=data.is_income,
                description=data.description,
            )
        )
        self.session.commit()
        logger.info(f"category_updated: id={category_id}")
        return self.get(category_id)

    def delete(self, category_id: int) -> None:
        self.get(category_id)
        in_use = self.session.execute(
            select(func.count(records.c.id)).where(
                records.c.category_id == category_id
            )
        ).scalar_one()
        if in_use:
            raise ValueError(f"Category is used by {in_use} record(s)")
        self.session.execute(delete(categories).where(categories.c.id == category_id))
        self.session.commit()
        logger.info(f"category_deleted: id={category_id}")


class RecordService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list(self, opts: Optional[FilterOpts] = None) -> list[Record]:
        opts = opts or FilterOpts()
        if opts.is_inverted:
            logger.debug(f"inverted_filter: entity=Record opts={opts}")
            return []
        stmt = apply_record_filters(select(*RECORD_COLUMNS), opts)
        stmt = stmt.order_by(records.c.date.desc(), records.c.id.desc())
        return rows_to_records(self.session.execute(stmt))

    def get(self, record_id: int) -> Record:
        stmt = select(*RECORD_COLUMNS).where(records.c.id == record_id)
        found = rows_to_records(self.session.execute(stmt))
        if not found:
            raise NotFoundError("Record not found")
        return found[0]

    def _values(self, data: RecordIn) -> dict[str, object]:
        return {
            "date": data.date,
            "category_id": data.category_id,
            "description": data.description,
            "amount_cents": data.amount_cents,
        }

    def create(self, data: RecordIn) -> Record:
        result = self.session.execute(insert(records).values(**self._values(data)))
        self.session.commit()
        record_id = result.inserted_primary_key[0]
        logger.info(
            f"record_created: id={record_id} date={data.date.isoformat()} "
            f"category_id={data.category_id} amount_cents={data.amount_cents}"
        )
        return self.get(record_id)

    def update(self, record_id: int, data: RecordIn) -> Record:
        self.get(record_id)
        self.session.execute(
            update(records)
            .where(records.c.id == record_id)
            .values(**self._values(data))
        )
        self.session.commit()
        logger.info(f"record_updated: id={record_id}")
        return self.get(record_id)

    def delete(self, record_id: int) -> None:
        self.get(record_id)
        self.session.execute(delete(records).where(records.c.id == record_id))
        self.session.commit()
        logger.info(f"record_deleted: id={record_id}")


class InvestmentService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list(self, opts: Optional[FilterOpts] = None) -> list[Investment]:
        opts = opts or FilterOpts()
        if opts.is_inverted:
            logger.debug(f"inverted_filter: entity=Investment opts={opts}")
            return []
        stmt = apply_investment_filters(
            select(*INVESTMENT_COLUMNS), opts
        )
        stmt = stmt.order_by(investments.c.date.desc(), investments.c.id.desc())
        return rows_to_investments(self.session.execute(stmt))

    def get(self, investment_id: int) -> Investment:
        stmt = select(*INVESTMENT_COLUMNS).where(investments.c.id == investment_id)
        found = rows_to_investments(self.session.execute(stmt))
        if not found:
            raise NotFoundError("Investment not found")
        return found[0]

    def codes(self) -> list[str]:
        stmt = select(investments.c.code).distinct().order_by(investments.c.code)
        return list(self.session.scalars(stmt))

    def _values(self, data: InvestmentIn) -> dict[str, object]:
        return {
            "date": data.date,
            "code": data.code,
            "unit_price_cents": data.unit_price_cents,
            "qty": data.qty,
        }

    def create(self, data: InvestmentIn) -> Investment:
        result = self.session.execute(
            insert(investments).values(**self._values(data))
        )
        self.session.commit()
        investment_id = result.inserted_primary_key[0]
        logger.info(f"investment_created: id={investment_id} code={data.code}")
        return self.get(investment_id)

    def update(self, investment_id: int, data: InvestmentIn) -> Investment:
        self.get(investment_id)
        self.session.execute(
            update(investments)
            .where(investments.c.id == investment_id)
            .values(**self._values(data))
        )
        self.session.commit()
        logger.info(f"investment_updated: id={investment_id}")
        return self.get(investment_id)

    def delete(self, investment_id: int) -> None:
        self.get(investment_id)
        self.session.execute(
            delete(investments).where(investments.c.id == investment_id)
        )
        self.session.commit()
        logger.info(f"investment_deleted: id={investment_id}")


class SummaryService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def _year_records(self, year: int, opts: FilterOpts) -> list[Record]:
        period = year_period(year)
        return RecordService(self.session).list(
            opts.with_date_range(period.start, period.end)
        )

    def category_year(self, category_id: int, year: int) -> CategoryYear:
        opts = FilterOpts().with_cat_ids([category_id])
        return category_year(category_id, year, self._year_records(year, opts))

    def year_summary(self, year: int) -> list[CategoryYear]:
        category_ids = [cat.id for cat in CategoryService(self.session).list_all()]
        return year_summary(year, self._year_records(year, FilterOpts()), category_ids)
