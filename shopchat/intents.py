"""Rule-based intent classification for chat messages.

:func:`classify` is total: it tries the rules below in a fixed order and the
first one that matches decides the intent. Lower rules never see a message a
higher rule accepted.

    1. ``order.byId``      order/status keyword + identifier-looking token
    2. ``order.mine``      "mis (ultimas) compras/ordenes/pedidos"
    3. ``order.byEmail``   orders "de/por" an email address
    4. ``product.rating``  rating keyword + product identifier
    5. ``product.search``  commerce keyword, known brand or viscosity grade
    6. ``smalltalk``       everything else
"""
from __future__ import annotations

import logging
import re
from dataclasses import asdict, dataclass, field
from typing import ClassVar, List, Optional, Union

from .brands import detect_brand
from .normalization import GRADE_RE, fold_accents, normalize, tokenize
from .pricing import parse_price_range

logger = logging.getLogger(__name__)

_ORDER_KEYWORD_RE = re.compile(r"orden|pedido|order|estado")
_UUID_RE = re.compile(r"\b[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}\b", re.IGNORECASE)
_LONG_TOKEN_RE = re.compile(r"(?<!\w)[0-9a-z]{10,}(?!\w)", re.IGNORECASE)
_MY_ORDERS_RE = re.compile(r"\bmis\b(?:\s+ultim[ao]s)?(?:\s+(\d{1,2}))?\s+(?:compras|ordenes|pedidos)\b")
_MY_ORDERS_LOOSE_RE = re.compile(r"(?:\bmis\b|\bultim[ao]s\b).*\b(?:compras|ordenes|pedidos)\b")
_EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
_ORDERS_OF_EMAIL_RE = re.compile(r"(?:ordenes|pedidos|compras).*\b(?:de|por)\b.*@")
_RATING_KEYWORD_RE = re.compile(r"rating|promedio|calificacion|puntuacion|valoracion|resenas|reviews|opiniones")
# The id follows the last "prod"/"producto" prefix and carries a digit.
_PREFIXED_PRODUCT_ID_RE = re.compile(
    r"\bprod(?:ucto)?[:\s#-]*(?!prod)((?=[0-9a-z-]*\d)[0-9a-z][0-9a-z-]{9,})", re.IGNORECASE
)
_BARE_PRODUCT_ID_RE = re.compile(r"(?<![\w-])(?=[0-9a-z-]*\d)[0-9a-z-]{10,}(?![\w-])", re.IGNORECASE)
_SEARCH_KEYWORD_RE = re.compile(
    r"\b(?:tenes|tienes|hay|buscar|busca|busco|precios?|stock|conseguis|vendes|venden|"
    r"productos?|cuesta|cuestan|sale|salen|disponibles?|"
    r"filtros?|aceites?|lubricantes?|bujias?|pastillas?|frenos?|repuestos?)\b"
)
_IN_STOCK_RE = re.compile(r"\b(?:en\s+stock|con\s+stock|disponibles?)\b")


@dataclass
class SearchCriteria:
    tokens: List[str] = field(default_factory=list)
    grade_tokens: List[str] = field(default_factory=list)
    brand: Optional[str] = None
    model: Optional[str] = None
    engine: Optional[str] = None
    year: Optional[str] = None
    price_min: Optional[float] = None
    price_max: Optional[float] = None
    in_stock: Optional[bool] = None
    limit: Optional[int] = None


@dataclass(frozen=True)
class ProductSearch:
    type: ClassVar[str] = "product.search"
    criteria: SearchCriteria


@dataclass(frozen=True)
class OrderById:
    type: ClassVar[str] = "order.byId"
    id: str


@dataclass(frozen=True)
class OrderMine:
    type: ClassVar[str] = "order.mine"
    limit: Optional[int] = None


@dataclass(frozen=True)
class OrderByEmail:
    type: ClassVar[str] = "order.byEmail"
    email: str


@dataclass(frozen=True)
class ProductRatingQuery:
    type: ClassVar[str] = "product.rating"
    product_id: str


@dataclass(frozen=True)
class Smalltalk:
    type: ClassVar[str] = "smalltalk"


Intent = Union[ProductSearch, OrderById, OrderMine, OrderByEmail, ProductRatingQuery, Smalltalk]


def _find_identifier(raw: str) -> Optional[str]:
    uuid = _UUID_RE.search(raw)
    if uuid:
        return uuid.group(0)
    candidates = _LONG_TOKEN_RE.findall(raw)
    for candidate in candidates:
        if any(ch.isdigit() for ch in candidate):
            return candidate
    return candidates[0] if candidates else None


def match_order_by_id(raw: str, normalized: str) -> Optional[OrderById]:
    if not _ORDER_KEYWORD_RE.search(normalized):
        return None
    identifier = _find_identifier(_EMAIL_RE.sub(" ", raw))
    return OrderById(id=identifier) if identifier else None


def match_my_orders(raw: str, normalized: str) -> Optional[OrderMine]:
    strict = _MY_ORDERS_RE.search(normalized)
    if strict:
        return OrderMine(limit=int(strict.group(1)) if strict.group(1) else None)
    if _MY_ORDERS_LOOSE_RE.search(normalized):
        return OrderMine()
    return None


def match_orders_by_email(raw: str, normalized: str) -> Optional[OrderByEmail]:
    folded = fold_accents(raw)
    email = _EMAIL_RE.search(folded)
    if email and _ORDERS_OF_EMAIL_RE.search(folded):
        return OrderByEmail(email=email.group(0).strip(".,;:!?"))
    return None


def match_product_rating(raw: str, normalized: str) -> Optional[ProductRatingQuery]:
    if not _RATING_KEYWORD_RE.search(normalized):
        return None
    prefixed = _PREFIXED_PRODUCT_ID_RE.search(raw)
    if prefixed:
        return ProductRatingQuery(product_id=prefixed.group(1))
    bare = _BARE_PRODUCT_ID_RE.search(raw)
    if bare:
        return ProductRatingQuery(product_id=bare.group(0))
    return None


def build_search_criteria(raw: str, normalized: str) -> SearchCriteria:
    tokens, grades = tokenize(raw)
    price = parse_price_range(raw)
    if not price.is_empty():
        # price figures ("hasta 30000") are not catalog words
        tokens = [token for token in tokens if not token.isdigit()]
    return SearchCriteria(
        tokens=tokens,
        grade_tokens=grades,
        brand=detect_brand(raw),
        price_min=price.min,
        price_max=price.max,
        in_stock=True if _IN_STOCK_RE.search(normalized) else None,
    )


def match_product_search(raw: str, normalized: str) -> Optional[ProductSearch]:
    if not (
        _SEARCH_KEYWORD_RE.search(normalized)
        or GRADE_RE.search(normalized)
        or detect_brand(raw) is not None
    ):
        return None
    return ProductSearch(criteria=build_search_criteria(raw, normalized))


RULES = (
    match_order_by_id,
    match_my_orders,
    match_orders_by_email,
    match_product_rating,
    match_product_search,
)


def classify(message: str | None) -> Intent:
    raw = (message or "").strip()
    normalized = normalize(raw)
    for rule in RULES:
        intent = rule(raw, normalized)
        if intent is not None:
            logger.info("classified intent=%s args=%s", intent.type, asdict(intent))
            return intent
    logger.info("classified intent=%s", Smalltalk.type)
    return Smalltalk()
