from __future__ import annotations

from types import MappingProxyType
from typing import TYPE_CHECKING, Iterable, Mapping, Optional

if TYPE_CHECKING:  # pragma: no cover
    from entities import Category


class CategoryLookup:
    """Read-only category id -> name table.

    Built once from the full category set and passed to whatever needs to show
    a category name. Unknown ids resolve to an empty string.
    """

    def __init__(self, names: Mapping[int, str]) -> None:
        self._names = MappingProxyType(dict(names))

    @classmethod
    def from_categories(cls, categories: Iterable[Category]) -> CategoryLookup:
        return cls({cat.id: cat.name for cat in categories})

    @classmethod
    def empty(cls) -> CategoryLookup:
        return cls({})

    def name_for(self, category_id: int) -> str:
        return self._names.get(category_id, "")

    def id_for_name(self, name: str) -> Optional[int]:
        wanted = name.strip().lower()
        for category_id, candidate in self._names.items():
            if candidate.lower() == wanted:
                return category_id
        return None

    def names(self) -> list[str]:
        return sorted(self._names.values(), key=str.lower)

    def __contains__(self, category_id: object) -> bool:
        return category_id in self._names

    def __len__(self) -> int:
        return len(self._names)

    def __repr__(self) -> str:
        return f"CategoryLookup({dict(self._names)!r})"


EMPTY_LOOKUP = CategoryLookup.empty()
