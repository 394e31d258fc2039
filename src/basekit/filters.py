from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Eq:
    column: str
    value: Any

    def apply(self, query: Any) -> Any:
        return query.eq(self.column, self.value)


@dataclass(frozen=True)
class In:
    column: str
    values: tuple[Any, ...]

    def apply(self, query: Any) -> Any:
        return query.in_(self.column, list(self.values))


@dataclass(frozen=True)
class Order:
    column: str
    ascending: bool = True

    def apply(self, query: Any) -> Any:
        return query.order(self.column, desc=not self.ascending)


@dataclass(frozen=True)
class Limit:
    count: int

    def apply(self, query: Any) -> Any:
        return query.limit(self.count)


Predicate = Eq | In | Order | Limit

_ROW_PREDICATES = (Eq, In)


def _check_column(column: str) -> str:
    if not column:
        raise ValueError("column must be non-empty")
    return column


@dataclass(frozen=True)
class QueryFilter:
    """Ordered list of predicates folded onto a postgrest query builder.

    Predicates apply in the order they were added.
    """

    predicates: tuple[Predicate, ...] = ()

    def eq(self, column: str, value: Any) -> QueryFilter:
        return self._with(Eq(_check_column(column), value))

    def in_(self, column: str, values: Iterable[Any]) -> QueryFilter:
        return self._with(In(_check_column(column), tuple(values)))

    def order(self, column: str, ascending: bool = True) -> QueryFilter:
        return self._with(Order(_check_column(column), ascending))

    def limit(self, count: int) -> QueryFilter:
        if count < 0:
            raise ValueError("limit must be non-negative")
        return self._with(Limit(count))

    def extend(self, other: QueryFilter) -> QueryFilter:
        return QueryFilter(self.predicates + other.predicates)

    @property
    def row_only(self) -> bool:
        return all(isinstance(p, _ROW_PREDICATES) for p in self.predicates)

    def apply(self, query: Any) -> Any:
        for predicate in self.predicates:
            query = predicate.apply(query)
        return query

    def _with(self, predicate: Predicate) -> QueryFilter:
        return QueryFilter(self.predicates + (predicate,))

    def __bool__(self) -> bool:
        return bool(self.predicates)

    def __len__(self) -> int:
        return len(self.predicates)

    @classmethod
    def from_mapping(
        cls,
        eq: Mapping[str, Any] | None = None,
        in_filter: Mapping[str, Sequence[Any]] | None = None,
        order_by: str | None = None,
        ascending: bool = True,
        limit: int | None = None,
    ) -> QueryFilter:
        built = cls()
        for column, value in (eq or {}).items():
            built = built.eq(column, value)
        for column, values in (in_filter or {}).items():
            built = built.in_(column, values)
        if order_by is not None:
            built = built.order(order_by, ascending=ascending)
        if limit is not None:
            built = built.limit(limit)
        return built
