"""Index creation and maintenance helpers."""
from __future__ import annotations

import asyncio
import logging
from typing import Dict

from elasticsearch import Elasticsearch
from elasticsearch.exceptions import BadRequestError, NotFoundError

from .config import settings

logger = logging.getLogger(__name__)

# ``wildcard`` fields keep substring lookups (``*5w-40*``) cheap; ``name.sort``
# backs the name ordering of search results.
PRODUCT_MAPPING: Dict[str, dict] = {
    "mappings": {
        "properties": {
            "id": {"type": "keyword"},
            "name": {"type": "wildcard", "fields": {"sort": {"type": "keyword"}}},
            "brand": {"type": "wildcard"},
            "model": {"type": "wildcard"},
            "engine": {"type": "wildcard"},
            "year": {"type": "keyword"},
            "description": {"type": "wildcard"},
            "price": {"type": "scaled_float", "scaling_factor": 100},
            "stock": {"type": "integer"},
            "average_rating": {"type": "float"},
            "review_count": {"type": "integer"},
            "image_url": {"type": "keyword", "index": False},
        }
    }
}

ORDER_MAPPING: Dict[str, dict] = {
    "mappings": {
        "properties": {
            "id": {"type": "keyword"},
            "date": {"type": "date"},
            "status": {"type": "keyword"},
            "payment_status": {"type": "keyword"},
            "user_id": {"type": "keyword"},
            "total": {"type": "scaled_float", "scaling_factor": 100},
            "items": {
                "properties": {
                    "product_id": {"type": "keyword"},
                    "name": {"type": "text"},
                    "quantity": {"type": "integer"},
                    "unit_price": {"type": "scaled_float", "scaling_factor": 100},
                }
            },
        }
    }
}

USER_MAPPING: Dict[str, dict] = {
    "mappings": {
        "properties": {
            "id": {"type": "keyword"},
            "email": {"type": "keyword"},
        }
    }
}


def _index_bodies() -> Dict[str, dict]:
    return {
        settings.products_index: PRODUCT_MAPPING,
        settings.orders_index: ORDER_MAPPING,
        settings.users_index: USER_MAPPING,
    }


async def ensure_indices(es: Elasticsearch) -> None:
    """Create the product, order and user indices if they are missing."""

    for index, body in _index_bodies().items():
        exists = await asyncio.to_thread(es.indices.exists, index=index)
        if exists:
            continue
        logger.info("Creating index %s", index)
        try:
            await asyncio.to_thread(es.indices.create, index=index, mappings=body["mappings"])
        except BadRequestError as exc:
            if getattr(exc, "error", "") == "resource_already_exists_exception":
                logger.info("Index %s already exists", index)
                continue
            logger.exception("Failed to create index %s: %s", index, exc)
            raise


async def drop_indices(es: Elasticsearch) -> None:
    for index in _index_bodies():
        try:
            await asyncio.to_thread(es.indices.delete, index=index)
        except NotFoundError:
            continue


async def index_is_empty(es: Elasticsearch) -> bool:
    try:
        stats = await asyncio.to_thread(es.count, index=settings.products_index)
        return stats.get("count", 0) == 0
    except NotFoundError:
        return True
