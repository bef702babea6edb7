"""Storage layout of the ledger tables.

The tables are declared with SQLAlchemy Core rather than as mapped classes:
queries select their columns in a fixed order and the rows are turned into
domain values by :mod:`row_mapper`. ``RECORD_COLUMNS`` and friends are that
order and must stay in sync with the ``from_row`` decoders in :mod:`entities`.
"""

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    Float,
    Index,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
)

from database import Base


categories = Table(
    "categories",
    Base.metadata,
    Column("id", Integer, primary_key=True),
    Column("name", String(100), nullable=False),
    Column("is_income", Boolean, nullable=False, default=False),
    Column("description", Text, nullable=False, default=""),
    UniqueConstraint("name", name="uq_category_name"),
)


# category_id is not a foreign key: an unknown id renders as a blank
# category name.
records = Table(
    "records",
    Base.metadata,
    Column("id", Integer, primary_key=True),
    Column("date", Date, nullable=False),
    Column("category_id", Integer, nullable=False),
    Column("description", Text, nullable=False, default=""),
    Column("amount_cents", Integer, nullable=False),
    Index("ix_records_date", "date"),
    Index("ix_records_category_date", "category_id", "date"),
)


investments = Table(
    "investments",
    Base.metadata,
    Column("id", Integer, primary_key=True),
    Column("date", Date, nullable=False),
    Column("code", String(20), nullable=False),
    Column("unit_price_cents", Integer, nullable=False),
    Column("qty", Float, nullable=False),
    Index("ix_investments_code_date", "code", "date"),
)


CATEGORY_COLUMNS = (
    categories.c.id,
    categories.c.name,
    categories.c.is_income,
    categories.c.description,
)

RECORD_COLUMNS = (
    records.c.id,
    records.c.date,
    records.c.category_id,
    records.c.description,
    records.c.amount_cents,
)

INVESTMENT_COLUMNS = (
    investments.c.id,
    investments.c.date,
    investments.c.code,
    investments.c.unit_price_cents,
    investments.c.qty,
)
