"""Catalog search as a cascade of progressively looser strategies.

Each strategy builds one filter predicate and asks the catalog store for it.
The first strategy that returns anything wins; results are never merged
across strategies:

    1) ``strict``         every token AND every grade, all filters, stock filter
    2) ``relaxed_stock``  same as strict without the stock filter
    3) ``loose``          any token or grade, brand/price filters kept
    4) ``grade_only``     any grade variant, nothing else (skipped w/o grades)

Every strategy orders by stock (desc) then name (asc). A failing store is
logged and yields an empty result, so the chat always answers.
"""
from __future__ import annotations

import logging
import re
from typing import Callable, List, Optional, Sequence, Tuple

from .config import settings
from .errors import StoreError
from .intents import SearchCriteria
from .models import CatalogItem, ProductRating
from .normalization import MAX_GRADE_TOKENS, MAX_TOKENS
from .predicates import (
    STOCK_THEN_NAME,
    Between,
    Contains,
    Equals,
    Predicate,
    all_of,
    any_of,
)
from .stores import CatalogStore

logger = logging.getLogger(__name__)

_GRADE_RE = re.compile(r"^(\d{1,2})w(\d{2})$", re.IGNORECASE)


def grade_variants(grade: str) -> List[str]:
    """Spellings of a grade as catalogs tend to write it (``5w40``, ``5W-40``...)."""

    match = _GRADE_RE.match(grade.strip())
    if not match:
        return [grade.lower()]
    cold, hot = match.groups()
    return [
        f"{cold}w{hot}",
        f"{cold}w-{hot}",
        f"{cold} w {hot}",
        f"{cold} w-{hot}",
        f"{cold}w {hot}",
    ]


def _grade_clause(grade: str) -> Predicate:
    return any_of([Contains(variant) for variant in grade_variants(grade)])


def _tokens(criteria: SearchCriteria) -> List[str]:
    return [token.lower() for token in criteria.tokens[:MAX_TOKENS]]


def _grades(criteria: SearchCriteria) -> List[str]:
    return list(criteria.grade_tokens[:MAX_GRADE_TOKENS])


def _common_filters(criteria: SearchCriteria, *, with_stock: bool) -> List[Predicate]:
    filters: List[Predicate] = []
    if criteria.brand:
        filters.append(Contains(criteria.brand, ("brand",)))
    if criteria.model:
        filters.append(Contains(criteria.model, ("model",)))
    if criteria.engine:
        filters.append(Contains(criteria.engine, ("engine",)))
    if criteria.year is not None:
        filters.append(Equals("year", criteria.year))
    if criteria.price_min is not None or criteria.price_max is not None:
        filters.append(Between("price", gte=criteria.price_min, lte=criteria.price_max))
    if with_stock and criteria.in_stock is not None:
        if criteria.in_stock:
            filters.append(Between("stock", gte=1))
        else:
            filters.append(Between("stock", lte=0))
    return filters


def _every_term_filter(criteria: SearchCriteria, *, with_stock: bool) -> Predicate:
    clauses: List[Predicate] = [Contains(token) for token in _tokens(criteria)]
    clauses.extend(_grade_clause(grade) for grade in _grades(criteria))
    clauses.extend(_common_filters(criteria, with_stock=with_stock))
    return all_of(clauses)


def strict_filter(criteria: SearchCriteria) -> Predicate:
    return _every_term_filter(criteria, with_stock=True)


def relaxed_stock_filter(criteria: SearchCriteria) -> Predicate:
    return _every_term_filter(criteria, with_stock=False)


def loose_filter(criteria: SearchCriteria) -> Predicate:
    hits: List[Predicate] = [Contains(token) for token in _tokens(criteria)]
    for grade in _grades(criteria):
        hits.extend(Contains(variant) for variant in grade_variants(grade))
    clauses: List[Predicate] = [any_of(hits)] if hits else []
    clauses.extend(_common_filters(criteria, with_stock=False))
    return all_of(clauses)


def grade_only_filter(criteria: SearchCriteria) -> Optional[Predicate]:
    grades = _grades(criteria)
    if not grades:
        return None
    return any_of([Contains(variant) for grade in grades for variant in grade_variants(grade)])


STRATEGIES: Sequence[Tuple[str, Callable[[SearchCriteria], Optional[Predicate]]]] = (
    ("strict", strict_filter),
    ("relaxed_stock", relaxed_stock_filter),
    ("loose", loose_filter),
    ("grade_only", grade_only_filter),
)


class CatalogSearch:
    """Runs the strategy cascade against a :class:`CatalogStore`."""

    def __init__(
        self,
        store: CatalogStore,
        default_limit: int | None = None,
        max_limit: int | None = None,
    ) -> None:
        self.store = store
        self.default_limit = default_limit or settings.search_default_limit
        self.max_limit = max_limit or settings.search_max_limit

    def effective_limit(self, criteria: SearchCriteria) -> int:
        requested = criteria.limit if criteria.limit and criteria.limit > 0 else self.default_limit
        return min(requested, self.max_limit)

    async def _run(self, predicate: Predicate, limit: int) -> List[CatalogItem]:
        return await self.store.query_products(predicate, STOCK_THEN_NAME, limit)

    async def search(self, criteria: SearchCriteria) -> List[CatalogItem]:
        limit = self.effective_limit(criteria)
        try:
            for name, build in STRATEGIES:
                predicate = build(criteria)
                if predicate is None:
                    logger.debug("search strategy=%s skipped", name)
                    continue
                rows = await self._run(predicate, limit)
                logger.debug("search strategy=%s hits=%s", name, len(rows))
                if rows:
                    logger.info(
                        "search strategy=%s hits=%s tokens=%s grades=%s brand=%r",
                        name,
                        len(rows),
                        criteria.tokens,
                        criteria.grade_tokens,
                        criteria.brand,
                    )
                    return rows
        except StoreError as exc:
            logger.error("search failed: %s details=%s", exc.message, exc.details)
            return []
        logger.info("search exhausted strategies tokens=%s grades=%s", criteria.tokens, criteria.grade_tokens)
        return []

    async def rating(self, product_id: str) -> Optional[ProductRating]:
        try:
            product = await self.store.get_product_by_id(product_id)
        except StoreError as exc:
            logger.error("rating lookup failed: %s details=%s", exc.message, exc.details)
            return None
        if product is None:
            return None
        return ProductRating(
            product_id=product.id,
            name=product.name,
            average_rating=product.average_rating,
            review_count=product.review_count,
        )
