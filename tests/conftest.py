"""Shared fixtures: a small parts catalog and order history held in memory."""
from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from shopchat.chat import ChatService
from shopchat.errors import StoreError
from shopchat.models import CatalogItem, Order, OrderItem, UserRef
from shopchat.orders import OrderLookup
from shopchat.search import CatalogSearch
from shopchat.stores import InMemoryCatalogStore, InMemoryOrderStore

OWNED_ORDER_ID = "7c9e6679-7425-40de-944b-e07fc1f90ae7"
OLDER_ORDER_ID = "0b7f1a52-1111-4c2e-9d33-5a6b7c8d9e0f"
OTHER_ORDER_ID = "16fd2706-8baf-433b-82eb-8c7fada847da"


def make_products() -> list[CatalogItem]:
    return [
        CatalogItem(
            id="p-castrol-5w40",
            name="Aceite Castrol Edge 5W-40",
            brand="Castrol",
            description="Lubricante sintetico",
            price=Decimal("42500"),
            stock=12,
            average_rating=4.6,
            review_count=31,
        ),
        CatalogItem(
            id="p-shell-10w40",
            name="Aceite Shell Helix 10W40",
            brand="Shell",
            description="Lubricante semisintetico",
            price=Decimal("31900"),
            stock=0,
        ),
        CatalogItem(
            id="p-motul-5w40",
            name="Aceite Motul 8100 5w40",
            brand="Motul",
            price=Decimal("55000"),
            stock=0,
        ),
        CatalogItem(
            id="p-mann-w712",
            name="Filtro de aceite Mann W712",
            brand="Mann",
            model="Gol",
            engine="1.6",
            year="2012",
            price=Decimal("8900"),
            stock=25,
        ),
        CatalogItem(
            id="p-ngk-bkr6e",
            name="Bujia NGK BKR6E",
            brand="NGK",
            price=Decimal("4500"),
            stock=40,
            average_rating=4.8,
            review_count=52,
        ),
        CatalogItem(
            id="p-bosch-pads",
            name="Pastillas de freno Bosch",
            brand="Bosch",
            model="Corsa",
            price=Decimal("15600"),
            stock=3,
        ),
        CatalogItem(
            id="p-ypf-5w40",
            name="Aceite YPF Elaion 5 W 40",
            brand="YPF",
            price=Decimal("28000"),
            stock=5,
        ),
    ]


def make_orders() -> list[Order]:
    return [
        Order(
            id=OWNED_ORDER_ID,
            date=datetime(2026, 9, 14, 10, 20, tzinfo=timezone.utc),
            status="shipped",
            payment_status="paid",
            user_id="u-ana",
            items=[OrderItem(product_id="p-castrol-5w40", name="Aceite Castrol", quantity=2, unit_price=Decimal("42500"))],
        ),
        Order(
            id=OLDER_ORDER_ID,
            date=datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc),
            status="delivered",
            payment_status="paid",
            user_id="u-ana",
            items=[OrderItem(product_id="p-ngk-bkr6e", name="Bujia NGK", quantity=4, unit_price=Decimal("4500"))],
        ),
        Order(
            id=OTHER_ORDER_ID,
            date=datetime(2026, 10, 1, 15, 0, tzinfo=timezone.utc),
            status="pending",
            payment_status="pending",
            user_id="u-bruno",
        ),
    ]


def make_users() -> list[UserRef]:
    return [UserRef(id="u-ana", email="ana@example.com"), UserRef(id="u-bruno", email="bruno@example.com")]


class RecordingCatalogStore(InMemoryCatalogStore):
    """Remembers every predicate it was asked to evaluate."""

    def __init__(self, items) -> None:
        super().__init__(items)
        self.calls: list = []

    async def query_products(self, predicate, order, limit):
        self.calls.append(predicate)
        return await super().query_products(predicate, order, limit)


class FailingCatalogStore:
    def __init__(self, exc: Exception | None = None) -> None:
        self.exc = exc or StoreError("catalog down", {"host": "es-1"})

    async def query_products(self, predicate, order, limit):
        raise self.exc

    async def get_product_by_id(self, product_id):
        raise self.exc


class FailingOrderStore:
    async def get_order_with_items(self, order_id):
        raise StoreError("orders down")

    async def list_orders_for_user(self, user_id, limit):
        raise StoreError("orders down")

    async def find_user_by_email(self, email):
        raise StoreError("orders down")


@pytest.fixture
def products() -> list[CatalogItem]:
    return make_products()


@pytest.fixture
def catalog_store(products) -> RecordingCatalogStore:
    return RecordingCatalogStore(products)


@pytest.fixture
def order_store() -> InMemoryOrderStore:
    return InMemoryOrderStore(make_orders(), make_users())


@pytest.fixture
def catalog_search(catalog_store) -> CatalogSearch:
    return CatalogSearch(catalog_store, default_limit=8, max_limit=30)


@pytest.fixture
def order_lookup(order_store) -> OrderLookup:
    return OrderLookup(order_store, recent_limit=5, recent_max=20)


@pytest.fixture
def chat_service(catalog_search, order_lookup) -> ChatService:
    return ChatService(catalog_search, order_lookup)
