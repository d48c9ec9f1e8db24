"""End-to-end tests for the chat dispatcher over in-memory stores."""

import asyncio

from conftest import OTHER_ORDER_ID, OWNED_ORDER_ID, FailingCatalogStore
from shopchat import replies
from shopchat.chat import ChatService
from shopchat.orders import EMAIL_FORBIDDEN_MESSAGE, ORDER_FORBIDDEN_MESSAGE, CallerContext
from shopchat.search import CatalogSearch

ANA = CallerContext(user_id="u-ana")
ADMIN = CallerContext(user_id="u-staff", is_admin=True)


def ask(service, message, caller=None):
    return asyncio.run(service.respond(message, caller))


def test_product_search_reply(chat_service):
    reply = ask(chat_service, "¿Tenés aceite castrol?")

    assert reply == "• Aceite Castrol Edge 5W-40 (Castrol) — $42500.00 — stock: 12"


def test_product_search_lists_one_line_per_item(chat_service):
    reply = ask(chat_service, "busco bujia o pastillas")

    assert reply.splitlines() == [
        "• Bujia NGK BKR6E (NGK) — $4500.00 — stock: 40",
        "• Pastillas de freno Bosch (Bosch) — $15600.00 — stock: 3",
    ]


def test_no_products_reply(chat_service):
    assert ask(chat_service, "busco repuesto inexistente") == replies.NO_PRODUCTS


def test_order_summary_for_owner(chat_service):
    reply = ask(chat_service, f"estado de la orden {OWNED_ORDER_ID}", ANA)

    assert reply.splitlines() == [
        f"Orden {OWNED_ORDER_ID}",
        "Estado: shipped",
        "Pago: paid",
        "Fecha: 2026-09-14",
        "Total: $85000.00",
    ]


def test_forbidden_differs_from_not_found(chat_service):
    """A foreign order is refused with its own message."""

    forbidden = ask(chat_service, f"estado de la orden {OTHER_ORDER_ID}", ANA)
    missing = ask(chat_service, "estado de la orden ffffffff-0000-4000-8000-000000000000", ANA)

    assert forbidden == ORDER_FORBIDDEN_MESSAGE
    assert missing == "No encontré la orden ffffffff-0000-4000-8000-000000000000."
    assert ask(chat_service, f"estado de la orden {OTHER_ORDER_ID}", ADMIN).startswith("Orden ")


def test_my_orders_requires_a_user(chat_service):
    assert ask(chat_service, "mis últimas compras") == replies.LOGIN_REQUIRED


def test_my_orders_lists_recent(chat_service):
    reply = ask(chat_service, "mis ultimas 1 compras", ANA)

    assert reply == f"• {OWNED_ORDER_ID} — shipped — 2026-09-14"
    assert ask(chat_service, "mis compras", CallerContext(user_id="u-nadie")) == replies.NO_RECENT_ORDERS


def test_orders_by_email(chat_service):
    assert ask(chat_service, "ordenes de bruno@example.com", ANA) == EMAIL_FORBIDDEN_MESSAGE
    assert ask(chat_service, "ordenes de bruno@example.com", ADMIN) == f"• {OTHER_ORDER_ID} — pending — 2026-10-01"
    assert ask(chat_service, "ordenes de nadie@example.com", ADMIN) == "No encontré órdenes para nadie@example.com."


def test_rating_reply(chat_service):
    assert ask(chat_service, "¿qué rating tiene el producto p-ngk-bkr6e?") == "⭐ 4.8 (52 reseñas) — Bujia NGK BKR6E"
    assert ask(chat_service, "rating del producto p-inexistente9") == replies.PRODUCT_NOT_FOUND


def test_smalltalk_reply(chat_service):
    assert ask(chat_service, "hola, ¿cómo estás?") == replies.SMALLTALK


def test_catalog_outage_reads_as_no_results(order_lookup):
    service = ChatService(CatalogSearch(FailingCatalogStore(), 8, 30), order_lookup)

    assert ask(service, "¿Tenés aceite castrol?") == replies.NO_PRODUCTS


def test_unexpected_failure_becomes_generic_reply(order_lookup):
    """Bugs below the dispatcher never escape as exceptions."""

    service = ChatService(CatalogSearch(FailingCatalogStore(RuntimeError("bug")), 8, 30), order_lookup)

    assert ask(service, "¿Tenés aceite castrol?") == replies.GENERIC_ERROR
