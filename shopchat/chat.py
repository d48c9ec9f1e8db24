"""Chat dispatcher: classify a message, run the matching lookup, render a reply."""
from __future__ import annotations

import logging

from . import replies
from .errors import ForbiddenError
from .intents import (
    Intent,
    OrderByEmail,
    OrderById,
    OrderMine,
    ProductRatingQuery,
    ProductSearch,
    classify,
)
from .orders import CallerContext, OrderLookup
from .search import CatalogSearch

logger = logging.getLogger(__name__)


class ChatService:
    def __init__(self, search: CatalogSearch, orders: OrderLookup) -> None:
        self.search = search
        self.orders = orders

    async def respond(self, message: str, caller: CallerContext | None = None) -> str:
        """Answer ``message``; failures become reply text, never exceptions."""

        caller = caller or CallerContext()
        intent_type = "unclassified"
        try:
            intent = classify(message)
            intent_type = intent.type
            return await self._dispatch(intent, caller)
        except ForbiddenError as exc:
            return exc.message
        except Exception:
            logger.exception("chat failed intent=%s", intent_type)
            return replies.GENERIC_ERROR

    async def _dispatch(self, intent: Intent, caller: CallerContext) -> str:
        if isinstance(intent, ProductSearch):
            rows = await self.search.search(intent.criteria)
            return replies.product_lines(rows) if rows else replies.NO_PRODUCTS

        if isinstance(intent, OrderById):
            order = await self.orders.get_order(intent.id, caller)
            return replies.order_summary(order) if order else replies.order_not_found(intent.id)

        if isinstance(intent, OrderMine):
            if not caller.user_id:
                return replies.LOGIN_REQUIRED
            rows = await self.orders.recent_orders(caller.user_id, intent.limit)
            return replies.order_lines(rows) if rows else replies.NO_RECENT_ORDERS

        if isinstance(intent, OrderByEmail):
            rows = await self.orders.orders_by_email(intent.email, caller)
            return replies.order_lines(rows) if rows else replies.no_orders_for_email(intent.email)

        if isinstance(intent, ProductRatingQuery):
            rating = await self.search.rating(intent.product_id)
            return replies.rating_line(rating) if rating else replies.PRODUCT_NOT_FOUND

        return replies.SMALLTALK
