"""Text normalization and search-token extraction for chat messages.

Messages arrive as informal Spanish: accents may or may not be typed, grades
come as ``5W-40``, ``5 w 30`` or ``0w20`` and punctuation is mostly noise. The
helpers here turn such a message into the pieces the search cascade needs:

    1) :func:`normalize` folds accents, drops punctuation (hyphens survive),
       collapses whitespace and lowercases.
    2) :func:`extract_grades` finds oil viscosity grades and canonicalizes them
       to ``"5w40"``.
    3) :func:`tokenize` keeps the meaningful words, expands them through the
       synonym table and splits grades into their own list.
"""
from __future__ import annotations

import logging
import re
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple

from unidecode import unidecode

from .config import settings

logger = logging.getLogger(__name__)

MAX_TOKENS = 8
MAX_GRADE_TOKENS = 3

# Anything that is not a letter, digit, whitespace or hyphen. ``\w`` also
# accepts the underscore, so it is listed explicitly.
_NOISE_RE = re.compile(r"[^\w\s-]|_")
_WHITESPACE_RE = re.compile(r"\s+")
GRADE_RE = re.compile(r"(?<!\d)(\d{1,2})[\s-]*w[\s-]*(\d{2})(?!\d)", re.IGNORECASE)

STOP_WORDS = frozenset(
    {
        "tenes",
        "tienes",
        "hay",
        "buscar",
        "busca",
        "busco",
        "precio",
        "stock",
        "producto",
        "productos",
        "en",
        "de",
        "la",
        "el",
        "los",
        "las",
        "un",
        "una",
        "mis",
        "ultimas",
        "ultimos",
        "mostrar",
        "conseguis",
        "vendes",
        "por",
        "para",
        "del",
        "al",
        "tengo",
        "me",
        "anda",
        "con",
        "hasta",
        "entre",
        "menor",
        "mayor",
        "igual",
        "mas",
        "menos",
        "hola",
        "buenas",
        "buen",
        "dia",
        "quiero",
        "necesito",
        "que",
        "algun",
        "alguna",
        "disponible",
        "disponibles",
    }
)

# Families of interchangeable catalog words. Any member (or the key itself)
# pulls in the whole family.
DEFAULT_SYNONYMS: Dict[str, Tuple[str, ...]] = {
    "aceite": ("lubricante", "oil"),
    "filtro": ("filtros", "filter"),
    "bujia": ("bujias", "bujía", "bujías", "spark", "sparkplug"),
    "pastilla": ("pastillas", "freno", "frenos"),
}


def fold_accents(text: str | None) -> str:
    """Lowercase and transliterate to ASCII, keeping punctuation."""

    return unidecode(text or "").lower()


def normalize(text: str | None) -> str:
    """Fold a raw message into lowercase, accent-free, punctuation-free text.

    ``"¿Tenés aceite 5W-40?"`` becomes ``"tenes aceite 5w-40"``.
    """

    cleaned = _NOISE_RE.sub(" ", fold_accents(text))
    return _WHITESPACE_RE.sub(" ", cleaned).strip()


def extract_grades(text: str | None) -> List[str]:
    """Return canonical viscosity grades in order of first appearance."""

    grades: List[str] = []
    for match in GRADE_RE.finditer(normalize(text)):
        grade = f"{int(match.group(1))}w{match.group(2)}"
        if grade not in grades:
            grades.append(grade)
    return grades


def strip_grades(text: str) -> str:
    """Remove grade mentions so their digits are not read as words or prices."""

    return GRADE_RE.sub(" ", text)


def load_synonyms(path: str | Path) -> Dict[str, Tuple[str, ...]]:
    """Read ``key: member, member`` lines, ignoring blanks and comments."""

    table: Dict[str, Tuple[str, ...]] = {}
    try:
        with Path(path).open("r", encoding="utf-8") as fh:
            for line in fh:
                line = line.strip()
                if not line or line.startswith("#") or ":" not in line:
                    continue
                key, _, members = line.partition(":")
                key = key.strip().lower()
                if not key:
                    continue
                table[key] = tuple(m.strip().lower() for m in members.split(",") if m.strip())
    except FileNotFoundError:
        logger.warning("Synonyms file %s not found; using built-in table", path)
        return dict(DEFAULT_SYNONYMS)
    return table


@lru_cache(maxsize=1)
def get_synonyms() -> Dict[str, Tuple[str, ...]]:
    table = load_synonyms(settings.synonyms_path)
    logger.info("Loaded %s synonym families", len(table))
    return table


def expand_synonyms(
    tokens: Iterable[str], synonyms: Mapping[str, Sequence[str]] | None = None
) -> List[str]:
    table = get_synonyms() if synonyms is None else synonyms
    expanded: List[str] = []

    def add(token: str) -> None:
        if token not in expanded:
            expanded.append(token)

    for token in tokens:
        add(token)
        for key, members in table.items():
            if token == key or token in members:
                add(key)
                for member in members:
                    add(member)
    return expanded


def tokenize(
    text: str | None, synonyms: Mapping[str, Sequence[str]] | None = None
) -> Tuple[List[str], List[str]]:
    """Split a message into ``(tokens, grade_tokens)`` for catalog search.

    Grade mentions are pulled out first, so ``"aceite 5W-40"`` yields
    ``(["aceite", "lubricante", "oil"], ["5w40"])`` rather than stray ``"5w"``
    and ``"40"`` words. Generic tokens are capped at :data:`MAX_TOKENS` and
    grades at :data:`MAX_GRADE_TOKENS`; the caps are independent.
    """

    grades = extract_grades(text)[:MAX_GRADE_TOKENS]
    words: List[str] = []
    for word in strip_grades(normalize(text)).split():
        word = word.strip("-")
        if len(word) <= 1 or word in STOP_WORDS or word in words:
            continue
        words.append(word)
    tokens = expand_synonyms(words, synonyms)[:MAX_TOKENS]
    logger.debug("tokenize text=%r tokens=%s grades=%s", text, tokens, grades)
    return tokens, grades
