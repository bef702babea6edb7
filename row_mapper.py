from __future__ import annotations

import logging
import sqlite3
from typing import Iterable, Sequence, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from entities import Category, CategoryYear, Investment, Record

logger = logging.getLogger(__name__)

E = TypeVar("E", Record, Category, Investment)


class RowDecodeError(ValueError):
    def __init__(self, entity_name: str, index: int, reason: str) -> None:
        super().__init__(f"Cannot decode {entity_name} row {index}: {reason}")
        self.entity_name = entity_name
        self.index = index
        self.reason = reason


class RowSourceError(RuntimeError):
    def __init__(self, entity_name: str, rows_read: int, cause: Exception) -> None:
        super().__init__(
            f"Row source failed while reading {entity_name} rows "
            f"after {rows_read} row(s): {cause}"
        )
        self.entity_name = entity_name
        self.rows_read = rows_read


def map_rows(rows: Iterable[Sequence[object]], entity_type: type[E]) -> list[E]:
    """Decode every row of ``rows`` into ``entity_type``.

    The source is read to exhaustion. The first undecodable row raises
    RowDecodeError and a database error raised by the source while iterating
    raises RowSourceError; in both cases nothing is returned.
    """
    if entity_type is CategoryYear:
        raise TypeError("CategoryYear is computed, not read from rows")
    name = entity_type.__name__
    entities: list[E] = []
    try:
        for index, row in enumerate(rows):
            try:
                entities.append(entity_type.from_row(row))
            except (TypeError, ValueError) as exc:
                logger.warning(f"row_decode_failed: entity={name} index={index}")
                raise RowDecodeError(name, index, str(exc)) from exc
    except (SQLAlchemyError, sqlite3.Error) as exc:
        logger.warning(f"row_source_failed: entity={name} rows_read={len(entities)}")
        raise RowSourceError(name, len(entities), exc) from exc
    return entities


def rows_to_records(rows: Iterable[Sequence[object]]) -> list[Record]:
    return map_rows(rows, Record)


def rows_to_categories(rows: Iterable[Sequence[object]]) -> list[Category]:
    return map_rows(rows, Category)


def rows_to_investments(rows: Iterable[Sequence[object]]) -> list[Investment]:
    return map_rows(rows, Investment)
