"""Elasticsearch-backed catalog and order stores.

The rest of the code works against the official synchronous client. Blocking
calls are wrapped via ``asyncio.to_thread`` here, and transport/API failures
are re-raised as :class:`~shopchat.errors.StoreError`.
"""
from __future__ import annotations

import asyncio
import logging
import re
from functools import lru_cache
from typing import List, Optional

from elasticsearch import ApiError, Elasticsearch, NotFoundError, TransportError

from .config import settings
from .errors import StoreError
from .models import CatalogItem, Order, UserRef
from .predicates import AllOf, AnyOf, Between, Contains, Equals, MatchAll, Predicate, SortSpec

logger = logging.getLogger(__name__)

SORT_FIELDS = {"name": "name.sort"}
_WILDCARD_SPECIALS_RE = re.compile(r"([\\*?])")


@lru_cache(maxsize=1)
def get_client() -> Elasticsearch:
    logger.info("Connecting to Elasticsearch at %s", settings.es_host)
    return Elasticsearch(settings.es_host)


def _wildcard(field: str, value: str) -> dict:
    escaped = _WILDCARD_SPECIALS_RE.sub(r"\\\1", value.lower())
    return {"wildcard": {field: {"value": f"*{escaped}*", "case_insensitive": True}}}


def to_es_query(predicate: Predicate) -> dict:
    """Translate a search predicate into an Elasticsearch query clause."""

    if isinstance(predicate, MatchAll):
        return {"match_all": {}}
    if isinstance(predicate, Contains):
        return {
            "bool": {
                "should": [_wildcard(field, predicate.value) for field in predicate.fields],
                "minimum_should_match": 1,
            }
        }
    if isinstance(predicate, Equals):
        return {"term": {predicate.field: {"value": str(predicate.value), "case_insensitive": True}}}
    if isinstance(predicate, Between):
        bounds = {}
        if predicate.gte is not None:
            bounds["gte"] = predicate.gte
        if predicate.lte is not None:
            bounds["lte"] = predicate.lte
        return {"range": {predicate.field: bounds}}
    if isinstance(predicate, AllOf):
        return {"bool": {"filter": [to_es_query(clause) for clause in predicate.clauses]}}
    if isinstance(predicate, AnyOf):
        return {
            "bool": {
                "should": [to_es_query(clause) for clause in predicate.clauses],
                "minimum_should_match": 1,
            }
        }
    raise TypeError(f"Unsupported predicate: {predicate!r}")


def to_es_sort(order: SortSpec) -> List[dict]:
    return [{SORT_FIELDS.get(field, field): {"order": "desc" if descending else "asc"}} for field, descending in order]


def _hits(response) -> List[dict]:
    return [hit.get("_source", {}) for hit in response.get("hits", {}).get("hits", [])]


class ElasticsearchCatalogStore:
    def __init__(self, es: Elasticsearch, index: str | None = None) -> None:
        self._es = es
        self._index = index or settings.products_index

    async def query_products(self, predicate: Predicate, order: SortSpec, limit: int) -> List[CatalogItem]:
        query = to_es_query(predicate)
        logger.debug("ES catalog query index=%s query=%s limit=%s", self._index, query, limit)
        try:
            response = await asyncio.to_thread(
                self._es.search, index=self._index, query=query, sort=to_es_sort(order), size=limit
            )
        except (ApiError, TransportError) as exc:
            raise StoreError("Catalog query failed", {"index": self._index, "error": str(exc)}) from exc
        return [CatalogItem(**source) for source in _hits(response)]

    async def get_product_by_id(self, product_id: str) -> Optional[CatalogItem]:
        try:
            response = await asyncio.to_thread(self._es.get, index=self._index, id=product_id)
        except NotFoundError:
            return None
        except (ApiError, TransportError) as exc:
            raise StoreError("Product lookup failed", {"id": product_id, "error": str(exc)}) from exc
        return CatalogItem(**response["_source"])


class ElasticsearchOrderStore:
    def __init__(self, es: Elasticsearch, orders_index: str | None = None, users_index: str | None = None) -> None:
        self._es = es
        self._orders_index = orders_index or settings.orders_index
        self._users_index = users_index or settings.users_index

    async def get_order_with_items(self, order_id: str) -> Optional[Order]:
        try:
            response = await asyncio.to_thread(self._es.get, index=self._orders_index, id=order_id)
        except NotFoundError:
            return None
        except (ApiError, TransportError) as exc:
            raise StoreError("Order lookup failed", {"id": order_id, "error": str(exc)}) from exc
        return Order(**response["_source"])

    async def list_orders_for_user(self, user_id: str, limit: int) -> List[Order]:
        try:
            response = await asyncio.to_thread(
                self._es.search,
                index=self._orders_index,
                query={"term": {"user_id": user_id}},
                sort=[{"date": {"order": "desc"}}],
                size=limit,
            )
        except (ApiError, TransportError) as exc:
            raise StoreError("Order listing failed", {"user_id": user_id, "error": str(exc)}) from exc
        return [Order(**source) for source in _hits(response)]

    async def find_user_by_email(self, email: str) -> Optional[UserRef]:
        try:
            response = await asyncio.to_thread(
                self._es.search,
                index=self._users_index,
                query={"term": {"email": {"value": email, "case_insensitive": True}}},
                size=1,
            )
        except (ApiError, TransportError) as exc:
            raise StoreError("User lookup failed", {"error": str(exc)}) from exc
        sources = _hits(response)
        return UserRef(**sources[0]) if sources else None
