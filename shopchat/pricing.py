"""Price range extraction from free text.

Understands ``"entre 20 y 40"``, ``"hasta 30"``, ``"menor a 50"``,
``"mayor a 100"``, ``"<=200"`` and ``">= 50"``. Thousands separators are
folded first (``"10.000"`` -> ``10000``) and viscosity grades are ignored so
``"aceite 5w40 hasta 30000"`` reads ``30000`` rather than ``5``.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional

from .normalization import fold_accents, strip_grades

_THOUSANDS_RE = re.compile(r"(?<=\d)[.,](?=\d{3}(?!\d))")
_NUMBER_RE = re.compile(r"\d+(?:[.,]\d+)?")
_BETWEEN_RE = re.compile(r"\bentre\s+\$?\s*(\d+(?:[.,]\d+)?)\s+(?:y|e|a)\s+\$?\s*(\d+(?:[.,]\d+)?)")
_UPPER_CUE_RE = re.compile(r"\b(?:hasta|menor|menos|maximo|max)\b|<=?|≤")
_LOWER_CUE_RE = re.compile(r"\b(?:mayor|desde|minimo|min|arriba)\b|\bmas\s+de\b|>=?|≥")
# Negated or "at least" phrasing reverses the bare cue word inside it.
_AT_MOST_RE = re.compile(r"\bno\s+(?:\w+\s+){0,2}mas\s+de\b")
_AT_LEAST_RE = re.compile(r"\b(?:al|por\s+lo)\s+menos\b")


@dataclass(frozen=True)
class PriceRange:
    min: Optional[float] = None
    max: Optional[float] = None

    def is_empty(self) -> bool:
        return self.min is None and self.max is None


def _to_number(literal: str) -> float:
    return float(literal.replace(",", "."))


def parse_price_range(text: str | None) -> PriceRange:
    folded = strip_grades(fold_accents(text))
    folded = _THOUSANDS_RE.sub("", folded)
    numbers: List[float] = [_to_number(n) for n in _NUMBER_RE.findall(folded)]

    between = _BETWEEN_RE.search(folded)
    if between:
        a, b = _to_number(between.group(1)), _to_number(between.group(2))
        return PriceRange(min=min(a, b), max=max(a, b))

    if numbers and _AT_MOST_RE.search(folded):
        return PriceRange(max=numbers[0])

    if numbers and _AT_LEAST_RE.search(folded):
        return PriceRange(min=numbers[0])

    if numbers and _UPPER_CUE_RE.search(folded):
        return PriceRange(max=numbers[0])

    if numbers and _LOWER_CUE_RE.search(folded):
        return PriceRange(min=numbers[0])

    return PriceRange()
