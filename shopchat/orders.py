"""Order lookups with ownership checks.

A caller sees an order only when it is an admin or owns the order; listing by
email is admin-only. Authorization failures raise :class:`ForbiddenError`,
store failures degrade to "nothing found".
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from .config import settings
from .errors import ForbiddenError, StoreError
from .models import Order
from .stores import OrderStore

logger = logging.getLogger(__name__)

ORDER_FORBIDDEN_MESSAGE = "No tenés permiso para ver esta orden."
EMAIL_FORBIDDEN_MESSAGE = "Solo un administrador puede buscar órdenes por email."
EMAIL_LOOKUP_LIMIT = 5


@dataclass(frozen=True)
class CallerContext:
    user_id: Optional[str] = None
    is_admin: bool = False

    def can_view(self, order: Order) -> bool:
        if self.is_admin:
            return True
        return self.user_id is not None and order.user_id == self.user_id


class OrderLookup:
    def __init__(self, store: OrderStore, recent_limit: int | None = None, recent_max: int | None = None) -> None:
        self.store = store
        self.recent_limit = recent_limit or settings.recent_orders_limit
        self.recent_max = recent_max or settings.recent_orders_max

    async def get_order(self, order_id: str, caller: CallerContext) -> Optional[Order]:
        try:
            order = await self.store.get_order_with_items(order_id)
        except StoreError as exc:
            logger.error("order lookup failed id=%s: %s", order_id, exc.message)
            return None
        if order is None:
            return None
        if not caller.can_view(order):
            logger.warning("order access denied id=%s user=%s", order_id, caller.user_id)
            raise ForbiddenError(ORDER_FORBIDDEN_MESSAGE, {"order_id": order_id, "user_id": caller.user_id})
        return order

    async def recent_orders(self, user_id: str, limit: int | None = None) -> List[Order]:
        take = min(limit or self.recent_limit, self.recent_max)
        try:
            return await self.store.list_orders_for_user(user_id, take)
        except StoreError as exc:
            logger.error("recent orders failed user=%s: %s", user_id, exc.message)
            return []

    async def orders_by_email(self, email: str, caller: CallerContext) -> List[Order]:
        if not caller.is_admin:
            logger.warning("email order lookup denied user=%s", caller.user_id)
            raise ForbiddenError(EMAIL_FORBIDDEN_MESSAGE, {"user_id": caller.user_id})
        try:
            user = await self.store.find_user_by_email(email)
            if user is None:
                return []
            return await self.store.list_orders_for_user(user.id, EMAIL_LOOKUP_LIMIT)
        except StoreError as exc:
            logger.error("email order lookup failed: %s", exc.message)
            return []
