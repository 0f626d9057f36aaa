"""
Pattern library for lead qualification.

Named regular-expression and keyword sets for every field the
qualification script asks about. Pure data: the validator and the
extractor read these tables, nothing here holds state.
"""

import re
from enum import Enum
from typing import Dict, List, Pattern


class FieldKind(str, Enum):
    """Semantic shape expected from a reply at a given step."""
    LOCATION = "location"
    PROPERTY_TYPE = "propertyType"
    BUDGET = "budget"
    TIMELINE = "timeline"
    ENGAGEMENT = "engagement"
    FREE_FORM = "general"

    @classmethod
    def parse(cls, value: str) -> "FieldKind":
        """Map a configured field name to a kind; unknown names are free-form."""
        for kind in cls:
            if kind.value.lower() == str(value).strip().lower():
                return kind
        return cls.FREE_FORM


def _compile(patterns: List[str]) -> List[Pattern]:
    return [re.compile(p, re.IGNORECASE) for p in patterns]


# ── Location ──────────────────────────────────────────

MAJOR_CITIES = [
    "mumbai", "delhi", "bangalore", "bengaluru", "chennai", "kolkata",
    "hyderabad", "pune", "ahmedabad", "jaipur", "lucknow", "kanpur",
    "nagpur", "indore", "thane", "bhopal", "visakhapatnam", "patna",
    "vadodara", "ghaziabad", "ludhiana", "agra", "nashik", "faridabad",
    "meerut", "rajkot", "varanasi", "srinagar", "aurangabad", "dhanbad",
    "amritsar", "navi mumbai", "allahabad", "ranchi", "gwalior", "jabalpur",
    "coimbatore", "vijayawada", "jodhpur", "madurai", "raipur", "kota",
    "gurgaon", "gurugram", "noida", "chandigarh", "mysore", "kochi",
]

AREA_SUFFIXES = ["nagar", "area", "road", "sector", "colony", "society"]

LOCATION_VALID = _compile([
    r"\b(?:" + "|".join(re.escape(c) for c in MAJOR_CITIES) + r")\b",
    r"\b[a-z]{3,}\s+(?:" + "|".join(AREA_SUFFIXES) + r")\b",
    r"\bnear\s+[a-z]{3,}",
    r"\b[a-z]{4,}\b.*\b[a-z]{4,}\b",
])

LOCATION_NON_ANSWERS = _compile([
    r"^(?:no|nope|not sure|don'?t know|anywhere|any|idk)$",
    r"^[a-z]{1,2}$",
    r"^\d+$",
])

# Used by scoring to reward locality-level answers
LOCATION_SPECIFIC = re.compile(r"nagar|area|road|sector", re.IGNORECASE)


# ── Property type ─────────────────────────────────────

PROPERTY_TYPE_VALID = re.compile(
    r"\b(?:flat|apartment|villa|house|plot|land|commercial|office|shop)s?\b|\d?\s*bhk\b",
    re.IGNORECASE,
)

# Ordered: the first matching category wins
PROPERTY_TYPE_KEYWORDS: Dict[str, List[Pattern]] = {
    "flat": _compile([r"\b(?:flat|apartment)s?\b", r"\d\s*bhk\b"]),
    "villa": _compile([r"\b(?:villa|house|bungalow|independent)s?\b"]),
    "plot": _compile([r"\b(?:plot|land)s?\b"]),
    "commercial": _compile([r"\b(?:commercial|office|shop|showroom)s?\b"]),
}


# ── Purchase intent ───────────────────────────────────

# Ordered: the first matching intent wins
INTENT_KEYWORDS: Dict[str, List[Pattern]] = {
    "buy": _compile([r"\bbuy(?:ing)?\b", r"\bpurchas(?:e|ing)\b", r"\bown\b"]),
    "rent": _compile([r"\brent(?:al|ing)?\b", r"\blease\b"]),
    "investment": _compile([r"\binvest(?:ment|ing)?\b", r"\bportfolio\b"]),
    "personal": _compile([r"\bpersonal\b", r"\bfamily\b", r"\blive in\b"]),
}


# ── Budget ────────────────────────────────────────────

SCALE_TOKENS = r"(?:lakhs?|lacs?|l|crores?|cr)"

BUDGET_VALID = _compile([
    r"\d+(?:\.\d+)?\s*" + SCALE_TOKENS + r"\b",
    r"\d+\s*-\s*\d+\s*" + SCALE_TOKENS + r"\b",
    r"\b(?:under|below|upto|up to|above|around|about|within)\s+\d+",
])

# Whole-reply phrases that declare no firm number
BROWSING_REPLIES = _compile([
    r"^(?:browsing|just browsing|just looking|not decided|haven'?t decided|send listings)$",
    r"^(?:flexible|open|depends)$",
])

# Looser hints used when extracting from longer replies
BROWSING_HINTS = _compile([
    r"browsing",
    r"haven'?t.*decided",
    r"not.*decided",
    r"not.*sure",
    r"send.*listing",
    r"just looking",
])

CRORE_AMOUNT = re.compile(r"(\d+(?:\.\d+)?)\s*(?:crores?|cr)\b", re.IGNORECASE)
LAKH_AMOUNT = re.compile(r"(\d+(?:\.\d+)?)\s*(?:lakhs?|lacs?|l)\b", re.IGNORECASE)

CRORE = 10_000_000
LAKH = 100_000


# ── Timeline ──────────────────────────────────────────

# Ordered: "within 6 months" must resolve to soon before "6 months" is tried
TIMELINE_KEYWORDS: Dict[str, List[str]] = {
    "urgent": ["urgent", "asap", "immediate", "this week", "this month"],
    "soon": ["3 months", "quarter", "soon", "within 6 months"],
    "flexible": ["6 months", "year", "flexible", "no rush"],
}


# ── Engagement ────────────────────────────────────────

ENGAGEMENT_HIGH = re.compile(
    r"\b(?:yes|yeah|yep|sure|okay|ok|schedule|available|(?<!not )interested)\b",
    re.IGNORECASE,
)
ENGAGEMENT_MEDIUM = re.compile(
    r"\b(?:no|not now|later|maybe|busy|not interested)\b",
    re.IGNORECASE,
)


# ── Gibberish ─────────────────────────────────────────

# Single words long enough to trip the unbroken-run rule but meaningful here
KNOWN_WORDS = frozenset(
    [c for c in MAJOR_CITIES if " " not in c]
    + [
        "apartment", "apartments", "commercial", "bungalow", "independent",
        "showroom", "investment", "investing", "portfolio", "purchase",
        "purchasing", "personal", "browsing", "flexible", "immediate",
        "immediately", "interested", "available", "definitely", "absolutely",
        "tomorrow", "weekend", "anywhere",
    ]
)

LONG_ALPHA_RUN = re.compile(r"^[a-z]{8,}$")

GIBBERISH_PATTERNS = [
    re.compile(r"^\d{8,}$"),
    re.compile(r"^[^\w\s]+$"),
    re.compile(r"([^\d\s])\1{4,}"),
    re.compile(r"^(?:test|dummy|fake|spam|asdf|xyz|abc)(?:\s+user)?$", re.IGNORECASE),
    re.compile(r"^(?:qwerty|asdf|zxcv|qwer|hjkl)", re.IGNORECASE),
    re.compile(r"^[aeiou]{5,}$", re.IGNORECASE),
    re.compile(r"^[b-df-hj-np-tv-z]{5,}$", re.IGNORECASE),
]


def matches_any(patterns: List[Pattern], text: str) -> bool:
    return any(p.search(text) for p in patterns)


def first_category(table: Dict[str, List[Pattern]], text: str):
    """Return the first category in table order with a matching pattern."""
    for category, patterns in table.items():
        if matches_any(patterns, text):
            return category
    return None


def first_keyword_category(table: Dict[str, List[str]], text: str):
    """Return the first category in table order whose keyword is a substring."""
    for category, keywords in table.items():
        if any(k in text for k in keywords):
            return category
    return None


def is_gibberish(text: str) -> bool:
    """True if a cleaned (stripped, lower-cased) reply looks like noise."""
    if LONG_ALPHA_RUN.match(text) and text not in KNOWN_WORDS:
        return True
    return any(p.search(text) for p in GIBBERISH_PATTERNS)
