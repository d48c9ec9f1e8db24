"""Brand detection against the fixed vocabulary the catalog carries."""
from __future__ import annotations

import logging
from typing import Dict, Optional, Sequence

from .normalization import normalize

logger = logging.getLogger(__name__)

# Scanned in this order; the first contained entry wins.
BRANDS: Sequence[str] = (
    "shell",
    "total",
    "castrol",
    "ypf",
    "bosch",
    "ngk",
    "mann",
    "mann-filter",
    "fram",
    "wix",
    "mobil",
    "elf",
    "liqui",
    "liqui moly",
    "motul",
    "acdelco",
    "champion",
    "valvoline",
)

# The catalog stores these brands under the shorter name.
BRAND_ALIASES: Dict[str, str] = {
    "liqui moly": "liqui",
    "mann-filter": "mann",
}


def canonical_brand(brand: str) -> str:
    return BRAND_ALIASES.get(brand, brand)


def detect_brand(text: str | None, vocabulary: Sequence[str] = BRANDS) -> Optional[str]:
    """Return the first vocabulary brand contained in ``text``, or ``None``."""

    normalized = normalize(text)
    if not normalized:
        return None
    for brand in vocabulary:
        if brand in normalized:
            canonical = canonical_brand(brand)
            logger.debug("detect_brand text=%r brand=%r canonical=%r", text, brand, canonical)
            return canonical
    return None
