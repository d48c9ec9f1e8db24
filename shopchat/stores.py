"""Catalog and order store interfaces plus in-memory implementations."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol, Tuple

from .importer import load_seed, prepare_order, prepare_product, prepare_user
from .models import CatalogItem, Order, UserRef
from .predicates import Predicate, SortSpec, sort_items

logger = logging.getLogger(__name__)


class CatalogStore(Protocol):
    async def query_products(self, predicate: Predicate, order: SortSpec, limit: int) -> List[CatalogItem]: ...

    async def get_product_by_id(self, product_id: str) -> Optional[CatalogItem]: ...


class OrderStore(Protocol):
    async def get_order_with_items(self, order_id: str) -> Optional[Order]: ...

    async def list_orders_for_user(self, user_id: str, limit: int) -> List[Order]: ...

    async def find_user_by_email(self, email: str) -> Optional[UserRef]: ...


class InMemoryCatalogStore:
    def __init__(self, items: Iterable[CatalogItem] = ()) -> None:
        self._items: Dict[str, CatalogItem] = {item.id: item for item in items}

    def __len__(self) -> int:
        return len(self._items)

    async def query_products(self, predicate: Predicate, order: SortSpec, limit: int) -> List[CatalogItem]:
        matched = [item for item in self._items.values() if predicate.matches(item)]
        return sort_items(matched, order)[:limit]

    async def get_product_by_id(self, product_id: str) -> Optional[CatalogItem]:
        return self._items.get(product_id)


_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _order_date(order: Order) -> datetime:
    if order.date is None:
        return _EPOCH
    if order.date.tzinfo is None:
        return order.date.replace(tzinfo=timezone.utc)
    return order.date


class InMemoryOrderStore:
    def __init__(self, orders: Iterable[Order] = (), users: Iterable[UserRef] = ()) -> None:
        self._orders: Dict[str, Order] = {order.id: order for order in orders}
        self._users_by_email: Dict[str, UserRef] = {user.email.lower(): user for user in users}

    async def get_order_with_items(self, order_id: str) -> Optional[Order]:
        return self._orders.get(order_id)

    async def list_orders_for_user(self, user_id: str, limit: int) -> List[Order]:
        owned = [order for order in self._orders.values() if order.user_id == user_id]
        owned.sort(key=_order_date, reverse=True)
        return owned[:limit]

    async def find_user_by_email(self, email: str) -> Optional[UserRef]:
        return self._users_by_email.get(email.strip().lower())


def memory_stores_from_seed(path: str | Path) -> Tuple[InMemoryCatalogStore, InMemoryOrderStore]:
    seed = load_seed(Path(path))
    catalog = InMemoryCatalogStore(prepare_product(raw) for raw in seed.get("products", []))
    orders = InMemoryOrderStore(
        orders=(prepare_order(raw) for raw in seed.get("orders", [])),
        users=(prepare_user(raw) for raw in seed.get("users", [])),
    )
    logger.info("Loaded in-memory stores from %s with %s products", path, len(catalog))
    return catalog, orders
