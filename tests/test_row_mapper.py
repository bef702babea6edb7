import sqlite3
from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

from entities import Category, CategoryYear, Investment, Record
from row_mapper import (
    RowDecodeError,
    RowSourceError,
    map_rows,
    rows_to_categories,
    rows_to_investments,
    rows_to_records,
)


def test_empty_row_source_maps_to_empty_list() -> None:
    assert rows_to_records([]) == []
    assert rows_to_categories(iter(())) == []
    assert rows_to_investments([]) == []


def test_rows_map_in_order() -> None:
    rows = [
        (1, date(2024, 3, 10), 2, "Shop", -500),
        (2, date(2024, 3, 11), 2, "Shop", -300),
    ]

    records = rows_to_records(rows)

    assert [r.id for r in records] == [1, 2]
    assert records[0] == Record(
        id=1,
        date=date(2024, 3, 10),
        category_id=2,
        description="Shop",
        amount_cents=-500,
    )


def test_decode_failure_aborts_whole_mapping() -> None:
    rows = [
        (1, "Groceries", False, ""),
        (2, "Salary", "maybe", ""),
        (3, "Rent", False, ""),
    ]

    with pytest.raises(RowDecodeError) as excinfo:
        map_rows(rows, Category)

    assert excinfo.value.index == 1
    assert excinfo.value.entity_name == "Category"
    assert "Invalid boolean" in str(excinfo.value)


def test_row_source_error_aborts_whole_mapping() -> None:
    def failing_rows():
        yield (1, "2024-01-02", "VAS", 9000, 1.5)
        raise sqlite3.OperationalError("disk I/O error")

    with pytest.raises(RowSourceError) as excinfo:
        map_rows(failing_rows(), Investment)

    assert excinfo.value.rows_read == 1
    assert isinstance(excinfo.value.__cause__, sqlite3.OperationalError)


def test_sqlalchemy_errors_from_source_are_wrapped() -> None:
    def failing_rows():
        raise OperationalError("select 1", {}, Exception("database is locked"))
        yield  # pragma: no cover

    with pytest.raises(RowSourceError, match="Record"):
        rows_to_records(failing_rows())


def test_category_year_is_not_a_row_entity() -> None:
    with pytest.raises(TypeError):
        map_rows([], CategoryYear)  # type: ignore[type-var]


def test_maps_a_raw_sqlite_cursor() -> None:
    con = sqlite3.connect(":memory:")
    try:
        con.execute(
            "create table records (id integer primary key, date text, "
            "category_id integer, description text, amount_cents integer)"
        )
        con.executemany(
            "insert into records values (?, ?, ?, ?, ?)",
            [(1, "2024-03-10", 1, "Shop", 500), (2, "2024-07-01", 1, None, -100)],
        )
        cur = con.execute(
            "select id, date, category_id, description, amount_cents "
            "from records order by id"
        )

        records = rows_to_records(cur)
    finally:
        con.close()

    assert [r.date for r in records] == [date(2024, 3, 10), date(2024, 7, 1)]
    assert records[1].description == ""
    assert records[1].amount_cents == -100
