"""Seed data importer for the catalog, order and user indices."""
from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Iterable

from elasticsearch import Elasticsearch, helpers

from .config import settings
from .models import CatalogItem, Order, OrderItem, UserRef

logger = logging.getLogger(__name__)


def _first(raw: dict, *keys: str, default=None):
    for key in keys:
        if raw.get(key) is not None:
            return raw[key]
    return default


def load_seed(path: Path) -> dict:
    """Read ``{"products": [...], "orders": [...], "users": [...]}`` from disk."""

    if not path.exists():
        logger.warning("Seed file %s is missing", path)
        return {}
    with path.open("r", encoding="utf-8") as fh:
        return json.load(fh)


def prepare_product(raw: dict) -> CatalogItem:
    return CatalogItem(
        id=str(_first(raw, "id", "productId", "product_id")),
        name=_first(raw, "name", "title", default=""),
        brand=_first(raw, "brand", "manufacturer"),
        model=raw.get("model"),
        engine=raw.get("engine"),
        year=raw.get("year"),
        description=raw.get("description"),
        price=_first(raw, "price", default=0),
        stock=max(0, int(_first(raw, "stock", default=0))),
        average_rating=_first(raw, "averageRating", "average_rating", default=0.0),
        review_count=_first(raw, "totalReviews", "reviewCount", "review_count", default=0),
        image_url=_first(raw, "imgUrl", "imageUrl", "image_url"),
    )


def prepare_order(raw: dict) -> Order:
    items = [
        OrderItem(
            product_id=_first(item, "productId", "product_id"),
            name=_first(item, "productName", "name"),
            quantity=_first(item, "quantity", default=1),
            unit_price=_first(item, "unitPrice", "unit_price", default=0),
        )
        for item in _first(raw, "items", default=[])
    ]
    return Order(
        id=str(raw["id"]),
        date=raw.get("date"),
        status=_first(raw, "status", default="pending"),
        payment_status=_first(raw, "paymentStatus", "payment_status", default="pending"),
        user_id=_first(raw, "userId", "user_id"),
        items=items,
        total=_first(raw, "total"),
    )


def prepare_user(raw: dict) -> UserRef:
    return UserRef(id=str(raw["id"]), email=str(raw["email"]).lower())


def _iter_actions(index: str, documents: Iterable[dict]) -> Iterable[dict]:
    for document in documents:
        yield {
            "_index": index,
            "_id": document["id"],
            "_source": document,
        }


async def import_seed(es: Elasticsearch, path: str | Path | None = None) -> int:
    seed = load_seed(Path(path or settings.seed_path))
    if not seed:
        return 0
    products = [prepare_product(raw).model_dump(mode="json") for raw in seed.get("products", [])]
    orders = [prepare_order(raw).model_dump(mode="json") for raw in seed.get("orders", [])]
    users = [prepare_user(raw).model_dump(mode="json") for raw in seed.get("users", [])]
    actions = [
        *_iter_actions(settings.products_index, products),
        *_iter_actions(settings.orders_index, orders),
        *_iter_actions(settings.users_index, users),
    ]
    if actions:
        await asyncio.to_thread(helpers.bulk, es, actions, refresh=True)
    logger.info("Imported %s products, %s orders, %s users", len(products), len(orders), len(users))
    return len(products)


async def import_if_empty(es: Elasticsearch) -> int:
    stats = await asyncio.to_thread(es.count, index=settings.products_index)
    if stats.get("count", 0) > 0:
        return 0
    return await import_seed(es)


async def reindex_data(es: Elasticsearch) -> int:
    from .indexing import drop_indices, ensure_indices

    await drop_indices(es)
    await ensure_indices(es)
    return await import_seed(es)
