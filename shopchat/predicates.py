"""Filter predicates the search cascade hands to catalog stores.

Stores either evaluate them in process (:meth:`Predicate.matches`) or translate
them to their own query language (see :mod:`shopchat.es_stores`).
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional, Protocol, Sequence, Tuple

from .models import CatalogItem

TEXT_FIELDS: Tuple[str, ...] = ("name", "brand", "model", "engine", "description")

# (field, descending)
SortSpec = Sequence[Tuple[str, bool]]
STOCK_THEN_NAME: SortSpec = (("stock", True), ("name", False))


class Predicate(Protocol):
    def matches(self, item: CatalogItem) -> bool: ...


def _text(item: CatalogItem, field: str) -> str:
    value = getattr(item, field, None)
    return "" if value is None else str(value).lower()


@dataclass(frozen=True)
class MatchAll:
    def matches(self, item: CatalogItem) -> bool:
        return True


@dataclass(frozen=True)
class Contains:
    """Case-insensitive substring match against any of ``fields``."""

    value: str
    fields: Tuple[str, ...] = TEXT_FIELDS

    def matches(self, item: CatalogItem) -> bool:
        needle = self.value.lower()
        return any(needle in _text(item, field) for field in self.fields)


@dataclass(frozen=True)
class Equals:
    field: str
    value: Any

    def matches(self, item: CatalogItem) -> bool:
        return _text(item, self.field) == str(self.value).lower()


@dataclass(frozen=True)
class Between:
    """Inclusive numeric bounds; either side may be open."""

    field: str
    gte: Optional[float] = None
    lte: Optional[float] = None

    def matches(self, item: CatalogItem) -> bool:
        value = getattr(item, self.field, None)
        if value is None:
            return False
        number = Decimal(str(value))
        if self.gte is not None and number < Decimal(str(self.gte)):
            return False
        if self.lte is not None and number > Decimal(str(self.lte)):
            return False
        return True


@dataclass(frozen=True)
class AllOf:
    clauses: Tuple[Predicate, ...]

    def matches(self, item: CatalogItem) -> bool:
        return all(clause.matches(item) for clause in self.clauses)


@dataclass(frozen=True)
class AnyOf:
    clauses: Tuple[Predicate, ...]

    def matches(self, item: CatalogItem) -> bool:
        return any(clause.matches(item) for clause in self.clauses)


def all_of(clauses: Sequence[Predicate]) -> Predicate:
    if not clauses:
        return MatchAll()
    if len(clauses) == 1:
        return clauses[0]
    return AllOf(tuple(clauses))


def any_of(clauses: Sequence[Predicate]) -> Predicate:
    if len(clauses) == 1:
        return clauses[0]
    return AnyOf(tuple(clauses))


def _sort_key(field: str):
    def key(item: CatalogItem) -> Tuple[bool, Any]:
        value = getattr(item, field, None)
        return (value is not None, value)

    return key


def sort_items(items: Sequence[CatalogItem], order: SortSpec) -> list[CatalogItem]:
    ordered = list(items)
    # stable sorts, least significant key first
    for field, descending in reversed(order):
        ordered.sort(key=_sort_key(field), reverse=descending)
    return ordered
