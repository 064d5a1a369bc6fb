"""Curated merchant vocabulary used by the brand resolver and detectors.

Everything here is plain immutable data bundled into :class:`MerchantLexicon`.
Functions that consult the vocabulary take a ``lexicon`` argument defaulting to
:data:`DEFAULT_LEXICON`, so callers can substitute their own fixtures or a
localised vocabulary.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import cached_property
from types import MappingProxyType
from typing import Mapping

__all__ = [
    "MerchantLexicon",
    "DEFAULT_LEXICON",
    "BRAND_MAPPINGS",
    "GENERIC_PREFIXES",
    "PERSONAL_PATTERNS",
    "CLEANUP_PATTERNS",
    "KNOWN_SUBSCRIPTIONS",
    "DISPLAY_NAMES",
    "UBER_EATS_PATTERNS",
    "SPECIAL_CASES",
]

BRAND_MAPPINGS: Mapping[str, str] = MappingProxyType(
    {
        # food delivery
        "wolt": "wolt",
        "uber eats": "uber eats",
        "uber": "uber",
        "glovo": "glovo",
        "bolt food": "bolt food",
        "pyszne": "pyszne.pl",
        # groceries
        "lidl": "lidl",
        "biedronka": "biedronka",
        "zabka": "żabka",
        "żabka": "żabka",
        "lewiatan": "lewiatan",
        "carrefour": "carrefour",
        "auchan": "auchan",
        "kaufland": "kaufland",
        "netto": "netto",
        "dino": "dino",
        "stokrotka": "stokrotka",
        "polo market": "polo market",
        # fuel
        "orlen": "orlen",
        "pkn orlen": "orlen",
        "bp": "bp",
        "shell": "shell",
        "circle k": "circle k",
        "mol": "mol",
        "moya": "moya",
        "avia": "avia",
        "lotos": "lotos",
        "total": "total",
        # transport
        "bolt": "bolt",
        "freenow": "freenow",
        "itaxi": "itaxi",
        # streaming
        "netflix": "netflix",
        "spotify": "spotify",
        "hbo": "hbo max",
        "disney": "disney+",
        "canal+": "canal+",
        "canal plus": "canal+",
        "amazon prime": "amazon prime",
        "youtube": "youtube",
        "apple": "apple",
        # e-commerce
        "allegro": "allegro",
        "amazon": "amazon",
        "aliexpress": "aliexpress",
        "shein": "shein",
        "temu": "temu",
        "zalando": "zalando",
        "empik": "empik",
        "mediamarkt": "media markt",
        "media markt": "media markt",
        "rtv euro agd": "rtv euro agd",
        "x-kom": "x-kom",
        "morele": "morele.net",
        # fast food
        "mcdonalds": "mcdonald's",
        "mcdonald": "mcdonald's",
        "kfc": "kfc",
        "burger king": "burger king",
        "subway": "subway",
        "starbucks": "starbucks",
        "costa": "costa coffee",
        "pizza hut": "pizza hut",
        "dominos": "domino's",
        "domino": "domino's",
        # telecoms
        "orange": "orange",
        "play": "play",
        "t-mobile": "t-mobile",
        "plus": "plus",
        "vectra": "vectra",
        "upc": "upc",
        # finance
        "revolut": "revolut",
        "paypal": "paypal",
    }
)

GENERIC_PREFIXES: frozenset[str] = frozenset(
    {
        "sklep", "shop", "store", "market", "super", "mini", "punkt", "salon",
        "restauracja", "restaurant", "bar", "kawiarnia", "cafe", "pizzeria", "kebab",
        "stacja", "station", "apteka", "pharmacy", "kiosk", "stoisko",
    }
)

_UPPER = "A-ZĄĆĘŁŃÓŚŹŻ"
_LOWER = "a-ząćęłńóśźż"

PERSONAL_PATTERNS: tuple[re.Pattern[str], ...] = (
    # "Jan Kowalski"
    re.compile(rf"^[{_UPPER}][{_LOWER}]+\s+[{_UPPER}][{_LOWER}]+$"),
    # "KOWALSKI JAN"
    re.compile(rf"^[{_UPPER}]+\s+[{_UPPER}]+$", re.IGNORECASE),
    # named person offering a personal service
    re.compile(
        rf"^[{_UPPER}][{_LOWER}]+\s+[{_UPPER}][{_LOWER}]+\s+"
        r"(fizjoterapeut|masażyst|lekarz|dentysta|psycholog|terapeut|coach|trener|"
        r"fryzjer|kosmetyczk|pedagog|logoped|physio|therapist|tutor)",
        re.IGNORECASE,
    ),
    re.compile(r"przelew\s+(do|od|na)", re.IGNORECASE),
    re.compile(r"wpłata\s+własna", re.IGNORECASE),
    re.compile(r"wypłata\s+własna", re.IGNORECASE),
    re.compile(r"\btransfer\s+(to|from)\b", re.IGNORECASE),
)

# Applied in order, first occurrence only, to the lower-cased input.
CLEANUP_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(
        r"(?:^|\s+)(?:sp\.?\s*z\.?\s*o\.?\s*o\.?|s\.?\s*a\.?|ltd\.?|gmbh|inc\.?|corp\.?|llc|s\.?\s*c\.?)\.?\s*$",
        re.IGNORECASE,
    ),
    re.compile(r"\s+(?:poland|polska|pol|pl)\s*$", re.IGNORECASE),
    re.compile(
        r"\s+(?:warszawa|warsaw|krakow|kraków|wroclaw|wrocław|poznan|poznań|gdansk|gdańsk|"
        r"lodz|łódź|katowice|lublin|szczecin|bydgoszcz|białystok|bialystok)\s*$",
        re.IGNORECASE,
    ),
    re.compile(
        r"\s+(?:nld|deu|gbr|usa|irl|est|ltu|lva|cze|svk|hun|aut|che|fra|esp|ita|bel)\s*$",
        re.IGNORECASE,
    ),
    # terminal numbers, references and everything after them
    re.compile(r"\s+(?:nr|no|id|terminal|kasa|pos|ref|#)?\s*\.?\s*\d+.*$", re.IGNORECASE),
    # "UBER *EATS"
    re.compile(r"\s+\*\s*\w+.*$", re.IGNORECASE),
    re.compile(r"\s+help\.[a-z]+\.[a-z]+$", re.IGNORECASE),
    re.compile(r"\s+operations?\s*(?:ou|oy|ab|as|bv)?\s*$", re.IGNORECASE),
    re.compile(r"\.(?:com|pl|eu|net|org)\s*$", re.IGNORECASE),
    re.compile(r"\s+fort\s+\w+", re.IGNORECASE),
)

KNOWN_SUBSCRIPTIONS: frozenset[str] = frozenset(
    {
        "netflix", "spotify", "youtube", "hbo", "disney", "amazon prime", "apple",
        "google", "microsoft", "adobe", "dropbox", "notion", "figma", "github",
        "linkedin", "tidal", "audible", "medium", "patreon", "chatgpt", "openai",
        "anthropic",
    }
)

DISPLAY_NAMES: Mapping[str, str] = MappingProxyType(
    {
        "mcdonald's": "McDonald's",
        "domino's": "Domino's",
        "żabka": "Żabka",
        "uber eats": "Uber Eats",
        "canal+": "Canal+",
        "hbo max": "HBO Max",
        "disney+": "Disney+",
        "x-kom": "x-kom",
        "pyszne.pl": "Pyszne.pl",
        "morele.net": "Morele.net",
        "t-mobile": "T-Mobile",
        "rtv euro agd": "RTV Euro AGD",
    }
)

# matched against the raw text, before cleanup
UBER_EATS_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"uber.*eats", re.IGNORECASE),
    re.compile(r"uber\s*\*", re.IGNORECASE),
)

# brands with unstable spellings, matched against the cleaned text
SPECIAL_CASES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"zabka|żabka"), "żabka"),
    (re.compile(r"netflix"), "netflix"),
    (re.compile(r"canal\s*\+|canal\s*plus"), "canal+"),
)


@dataclass(frozen=True, eq=False)
class MerchantLexicon:
    """Immutable bundle of the curated dictionaries.

    Instances compare and hash by identity so they can key result caches.
    """

    brand_mappings: Mapping[str, str] = field(default_factory=lambda: BRAND_MAPPINGS)
    generic_prefixes: frozenset[str] = GENERIC_PREFIXES
    personal_patterns: tuple[re.Pattern[str], ...] = PERSONAL_PATTERNS
    cleanup_patterns: tuple[re.Pattern[str], ...] = CLEANUP_PATTERNS
    known_subscriptions: frozenset[str] = KNOWN_SUBSCRIPTIONS
    subscription_category_markers: tuple[str, ...] = ("subscription", "subskrypcj")
    display_names: Mapping[str, str] = field(default_factory=lambda: DISPLAY_NAMES)
    uber_eats_patterns: tuple[re.Pattern[str], ...] = UBER_EATS_PATTERNS
    special_cases: tuple[tuple[re.Pattern[str], str], ...] = SPECIAL_CASES

    @cached_property
    def brands(self) -> frozenset[str]:
        """Canonical brand tokens (the values of ``brand_mappings``)."""

        return frozenset(self.brand_mappings.values())

    @cached_property
    def multiword_keys(self) -> tuple[str, ...]:
        """Dictionary keys containing a space, longest first."""

        keys = [key for key in self.brand_mappings if " " in key]
        return tuple(sorted(keys, key=len, reverse=True))


DEFAULT_LEXICON = MerchantLexicon()
