"""Tests for seed loading into records and in-memory stores."""

import asyncio
import json
from decimal import Decimal

from shopchat.importer import load_seed, prepare_order, prepare_product
from shopchat.stores import memory_stores_from_seed

SEED = {
    "products": [
        {
            "productId": "p-fram-ph5949",
            "title": "Filtro Fram PH5949",
            "manufacturer": "Fram",
            "price": 6100,
            "stock": -3,
            "averageRating": 4.1,
            "totalReviews": 9,
            "imgUrl": "https://cdn.example.com/ph5949.jpg",
        }
    ],
    "orders": [
        {
            "id": "o-1",
            "date": "2026-05-01T12:00:00Z",
            "status": "delivered",
            "paymentStatus": "paid",
            "userId": "u-1",
            "items": [{"productId": "p-fram-ph5949", "productName": "Filtro Fram", "quantity": 2, "unitPrice": 6100}],
        }
    ],
    "users": [{"id": "u-1", "email": "Cliente@Example.com"}],
}


def test_prepare_product_accepts_camel_case():
    item = prepare_product(SEED["products"][0])

    assert item.id == "p-fram-ph5949"
    assert item.name == "Filtro Fram PH5949"
    assert item.brand == "Fram"
    assert item.stock == 0
    assert item.review_count == 9
    assert item.image_url == "https://cdn.example.com/ph5949.jpg"


def test_prepare_order_computes_total():
    order = prepare_order(SEED["orders"][0])

    assert order.payment_status == "paid"
    assert order.user_id == "u-1"
    assert order.total == Decimal("12200")


def test_load_seed_missing_file(tmp_path):
    assert load_seed(tmp_path / "nope.json") == {}


def test_memory_stores_from_seed(tmp_path):
    path = tmp_path / "seed.json"
    path.write_text(json.dumps(SEED), encoding="utf-8")

    catalog, orders = memory_stores_from_seed(path)

    assert len(catalog) == 1
    assert asyncio.run(catalog.get_product_by_id("p-fram-ph5949")).brand == "Fram"
    user = asyncio.run(orders.find_user_by_email("cliente@example.com"))
    assert user.id == "u-1"
    assert [o.id for o in asyncio.run(orders.list_orders_for_user("u-1", 5))] == ["o-1"]
