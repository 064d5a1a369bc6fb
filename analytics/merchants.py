"""Merchant brand resolution helpers used during ingestion.

The resolver runs a fixed sequence of stages over a counterparty string:

1. ``match_multiword_brand``: multi-word dictionary keys ("uber eats") win outright.
2. ``looks_like_personal_transfer``: person-shaped names yield ``None`` unless the
   text mentions a known brand (``contains_known_brand``).
3. ``strip_noise``: legal forms, locations, reference numbers and domains removed.
4. ``apply_special_cases``: a handful of brands with unstable spellings.
5. ``match_tokens``: exact token, then substring, then first significant word.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Any, Iterable, Mapping, Optional, Union

import pandas as pd
from rapidfuzz.distance import Levenshtein

from analytics.lexicon import DEFAULT_LEXICON, MerchantLexicon
from core.logging_setup import get_logger
from core.models import MerchantRecord, MerchantResolution

__all__ = [
    "MerchantLike",
    "match_multiword_brand",
    "contains_known_brand",
    "looks_like_personal_transfer",
    "strip_noise",
    "apply_special_cases",
    "tokenize",
    "match_tokens",
    "extract_brand_name",
    "calculate_similarity",
    "as_merchant_record",
    "find_best_merchant_match",
    "resolve_merchant",
    "format_display_name",
]

logger = get_logger("pocketledger.analytics.merchants")

MerchantLike = Union[MerchantRecord, Mapping[str, Any]]

_QUOTES = re.compile(r"[\"'„”“]")
_TOKEN_SPLIT = re.compile(r"[\s\-_.,]+")

_MIN_SUBSTRING_LENGTH = 4
_MIN_FALLBACK_LENGTH = 3


def match_multiword_brand(text: str, lexicon: MerchantLexicon = DEFAULT_LEXICON) -> Optional[str]:
    """Return the brand of the longest multi-word key found inside ``text``."""

    lowered = text.lower()
    for key in lexicon.multiword_keys:
        if key in lowered:
            return lexicon.brand_mappings[key]
    return None


def contains_known_brand(text: str, lexicon: MerchantLexicon = DEFAULT_LEXICON) -> bool:
    lowered = text.lower()
    return any(key in lowered for key in lexicon.brand_mappings)


def looks_like_personal_transfer(text: str, lexicon: MerchantLexicon = DEFAULT_LEXICON) -> bool:
    """Return ``True`` when ``text`` is shaped like a person or a P2P transfer."""

    return any(pattern.search(text) for pattern in lexicon.personal_patterns)


def strip_noise(text: str, lexicon: MerchantLexicon = DEFAULT_LEXICON) -> str:
    """Lower-case ``text`` and apply the ordered cleanup rules once each."""

    normalized = _QUOTES.sub("", text.lower()).strip()
    for pattern in lexicon.cleanup_patterns:
        normalized = pattern.sub("", normalized, count=1).strip()
    return normalized


def apply_special_cases(
    raw: str,
    cleaned: str,
    lexicon: MerchantLexicon = DEFAULT_LEXICON,
) -> Optional[str]:
    if any(pattern.search(raw) for pattern in lexicon.uber_eats_patterns):
        return "uber eats"
    for pattern, brand in lexicon.special_cases:
        if pattern.search(cleaned):
            return brand
    return None


def tokenize(cleaned: str) -> list[str]:
    return [word for word in _TOKEN_SPLIT.split(cleaned) if len(word) >= 2]


def match_tokens(cleaned: str, lexicon: MerchantLexicon = DEFAULT_LEXICON) -> Optional[str]:
    """Pick a brand from the cleaned text, or its first significant word.

    Every token is checked for an exact dictionary hit before any substring
    matching, so "jmp s.a. biedronka" resolves to "biedronka" rather than "jmp".
    Substring matching ignores tokens and keys shorter than four characters.
    """

    mappings = lexicon.brand_mappings
    if cleaned in mappings:
        return mappings[cleaned]
    if cleaned in lexicon.brands:
        return cleaned

    words = tokenize(cleaned)
    for word in words:
        if word in mappings:
            return mappings[word]

    for word in words:
        if len(word) < _MIN_SUBSTRING_LENGTH:
            continue
        for key, brand in mappings.items():
            if len(key) < _MIN_SUBSTRING_LENGTH:
                continue
            if key in word or word in key:
                return brand

    for word in words:
        if word in lexicon.generic_prefixes or len(word) < _MIN_FALLBACK_LENGTH:
            continue
        return word

    return None


@lru_cache(maxsize=4096)
def extract_brand_name(
    counterparty_name: Optional[str],
    lexicon: MerchantLexicon = DEFAULT_LEXICON,
) -> Optional[str]:
    """Return the canonical lower-case brand token for a counterparty string.

    Parameters
    ----------
    counterparty_name:
        Free text as it appears on the bank statement.
    lexicon:
        Curated vocabulary to resolve against.

    Returns
    -------
    str | None
        The brand token, or ``None`` for blank input, person-to-person
        transfers, and text with no usable word left after cleanup.
    """

    if not counterparty_name or not counterparty_name.strip():
        return None

    text = counterparty_name.strip()
    brand = match_multiword_brand(text, lexicon)
    if brand is not None:
        return brand

    if not contains_known_brand(text, lexicon) and looks_like_personal_transfer(text, lexicon):
        logger.debug("Treating %r as a personal transfer", text)
        return None

    cleaned = strip_noise(text, lexicon)
    return apply_special_cases(text, cleaned, lexicon) or match_tokens(cleaned, lexicon)


def calculate_similarity(a: str, b: str) -> float:
    """Return a 0..1 similarity score between two strings.

    Containment scores the length ratio of the shorter string to the longer
    one; anything else uses the normalised Levenshtein distance.
    """

    if a == b:
        return 1.0
    if not a or not b:
        return 0.0
    if b in a:
        return len(b) / len(a)
    if a in b:
        return len(a) / len(b)
    return float(Levenshtein.normalized_similarity(a, b))


def as_merchant_record(merchant: MerchantLike) -> MerchantRecord:
    """Coerce a mapping with ``id``/``name``/``aliases`` keys into a record."""

    if isinstance(merchant, MerchantRecord):
        return merchant

    aliases: set[str] = set()
    raw_aliases = merchant.get("aliases")
    if isinstance(raw_aliases, str) or not isinstance(raw_aliases, Iterable):
        raw_aliases = ()
    for alias in raw_aliases:
        value = alias.get("alias") if isinstance(alias, Mapping) else alias
        if value:
            aliases.add(str(value).lower().strip())

    name = str(merchant["name"])
    return MerchantRecord(
        id=str(merchant["id"]),
        name=name,
        display_name=_optional_text(merchant.get("display_name")) or name,
        aliases=frozenset(aliases),
        category_id=_optional_text(merchant.get("category_id")),
        icon_url=_optional_text(merchant.get("icon_url")),
        website=_optional_text(merchant.get("website")),
    )


def _optional_text(value: Any) -> Optional[str]:
    # rows from DataFrame.to_dict("records") carry NaN for missing cells
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    text = str(value).strip()
    return text or None


def find_best_merchant_match(
    counterparty_name: Optional[str],
    merchants: Iterable[MerchantLike],
    threshold: float = 0.7,
    *,
    lexicon: MerchantLexicon = DEFAULT_LEXICON,
) -> Optional[MerchantRecord]:
    """Return the existing merchant a counterparty string most likely refers to.

    Attempts, in order: exact name, exact alias, containment either way on
    names and aliases, equal extracted brands, and finally the best similarity
    score strictly above ``threshold``. Earlier merchants win ties.
    """

    brand = extract_brand_name(counterparty_name, lexicon)
    if brand is None:
        return None

    records = [as_merchant_record(merchant) for merchant in merchants]
    brand = brand.lower()

    for record in records:
        if record.name.lower() == brand:
            return record

    for record in records:
        if brand in record.match_keys[1:]:
            return record

    for record in records:
        for key in record.match_keys:
            if key and (brand in key or key in brand):
                return record

    for record in records:
        if extract_brand_name(record.name, lexicon) == brand:
            return record

    best_match: Optional[MerchantRecord] = None
    best_score = threshold
    for record in records:
        for key in record.match_keys:
            score = calculate_similarity(brand, key)
            if score > best_score:
                best_score = score
                best_match = record

    return best_match


def resolve_merchant(
    counterparty_name: Optional[str],
    merchants: Iterable[MerchantLike],
    threshold: float = 0.7,
    *,
    lexicon: MerchantLexicon = DEFAULT_LEXICON,
) -> MerchantResolution:
    """Resolve a counterparty to an existing merchant id or a new brand."""

    brand = extract_brand_name(counterparty_name, lexicon)
    if brand is None:
        return MerchantResolution(brand=None, display_name=None, merchant_id=None, is_new=False)

    match = find_best_merchant_match(counterparty_name, merchants, threshold, lexicon=lexicon)
    if match is not None:
        return MerchantResolution(
            brand=brand,
            display_name=match.display_name or format_display_name(brand, lexicon),
            merchant_id=match.id,
            is_new=False,
        )

    return MerchantResolution(
        brand=brand,
        display_name=format_display_name(brand, lexicon),
        merchant_id=None,
        is_new=True,
    )


def format_display_name(brand: str, lexicon: MerchantLexicon = DEFAULT_LEXICON) -> str:
    """Create a display label for a brand token."""

    if brand in lexicon.display_names:
        return lexicon.display_names[brand]
    return brand[:1].upper() + brand[1:]
