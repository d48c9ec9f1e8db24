"""Plain-text reply rendering for chat answers."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional

from .models import CatalogItem, Order, ProductRating

GENERIC_ERROR = "Ocurrió un error procesando tu solicitud."
RATE_LIMITED = "Demasiadas solicitudes, intentá más tarde."
SMALLTALK = (
    "Puedo buscar productos o ver el estado de tus órdenes. "
    "Probá: “¿Tenés aceite 5W40?” o “Mis últimas compras”."
)
NO_PRODUCTS = "No encontré productos para esa búsqueda."
LOGIN_REQUIRED = "Para ver tus compras necesitás iniciar sesión."
NO_RECENT_ORDERS = "No encontré compras asociadas a tu cuenta."
PRODUCT_NOT_FOUND = "Producto no encontrado."


def _money(value: object) -> str:
    try:
        return f"{Decimal(str(value)):.2f}"
    except (InvalidOperation, ValueError):
        return str(value)


def _day(value: Optional[datetime]) -> str:
    return value.date().isoformat() if value else ""


def order_not_found(order_id: str) -> str:
    return f"No encontré la orden {order_id}."


def no_orders_for_email(email: str) -> str:
    return f"No encontré órdenes para {email}."


def product_lines(items: Iterable[CatalogItem]) -> str:
    lines = []
    for item in items:
        brand = f" ({item.brand})" if item.brand else ""
        lines.append(f"• {item.name}{brand} — ${_money(item.price)} — stock: {item.stock}")
    return "\n".join(lines)


def order_summary(order: Order) -> str:
    return "\n".join(
        [
            f"Orden {order.id}",
            f"Estado: {order.status}",
            f"Pago: {order.payment_status}",
            f"Fecha: {_day(order.date)}",
            f"Total: ${_money(order.total or 0)}",
        ]
    )


def order_lines(orders: Iterable[Order]) -> str:
    return "\n".join(f"• {order.id} — {order.status} — {_day(order.date)}" for order in orders)


def rating_line(rating: ProductRating) -> str:
    return f"⭐ {rating.average_rating:.1f} ({rating.review_count} reseñas) — {rating.name}"
