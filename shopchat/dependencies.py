"""Store and service construction shared by the API and the CLI."""
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Tuple

from .chat import ChatService
from .config import settings
from .es_stores import ElasticsearchCatalogStore, ElasticsearchOrderStore, get_client
from .orders import OrderLookup
from .search import CatalogSearch
from .stores import CatalogStore, OrderStore, memory_stores_from_seed

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_stores() -> Tuple[CatalogStore, OrderStore]:
    if settings.store_backend == "memory":
        return memory_stores_from_seed(settings.seed_path)
    es = get_client()
    return ElasticsearchCatalogStore(es), ElasticsearchOrderStore(es)


def build_chat_service(catalog: CatalogStore, orders: OrderStore) -> ChatService:
    return ChatService(CatalogSearch(catalog), OrderLookup(orders))


@lru_cache(maxsize=1)
def get_chat_service() -> ChatService:
    catalog, orders = get_stores()
    logger.info("Chat service using %s stores", settings.store_backend)
    return build_chat_service(catalog, orders)
