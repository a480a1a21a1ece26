"""Arrest Map Backend — Region Names

One canonical key per Indian state / union territory, plus the federal
investigative agency (CBI), which has no geography of its own. Store document
ids, boundary-dataset feature names and free-text admin input all resolve
through `canonicalize`.
"""

import logging
import re
from typing import Any, Optional

from config import MAX_NAME_LENGTH

logger = logging.getLogger("arrestmap.regions")

CAPITAL_KEY = "delhi"
FEDERAL_KEY = "cbi"

VALID_REGIONS: frozenset[str] = frozenset({
    "andaman and nicobar", "andhra pradesh", "arunachal pradesh", "assam",
    "bihar", "chandigarh", "chhattisgarh", "dadra and nagar haveli",
    "daman and diu", "delhi", "goa", "gujarat", "haryana", "himachal pradesh",
    "jammu and kashmir", "jharkhand", "karnataka", "kerala", "ladakh",
    "lakshadweep", "madhya pradesh", "maharashtra", "manipur", "meghalaya",
    "mizoram", "nagaland", "odisha", "puducherry", "punjab", "rajasthan",
    "sikkim", "tamil nadu", "telangana", "tripura", "uttar pradesh",
    "uttarakhand", "west bengal", FEDERAL_KEY,
})

# Geographic regions only (what the map and the table enumerate)
GEOGRAPHIC_REGIONS: tuple[str, ...] = tuple(sorted(VALID_REGIONS - {FEDERAL_KEY}))

# Alternate spellings, historical names and boundary-dataset variants.
# Keys are already cleaned (see sanitize_string) and lowercased.
REGION_ALIASES: dict[str, str] = {
    # Admin input
    "andaman & nicobar": "andaman and nicobar",
    "andaman and nicobar islands": "andaman and nicobar",
    "andaman & nicobar islands": "andaman and nicobar",
    "jammu & kashmir": "jammu and kashmir",
    "j&k": "jammu and kashmir",
    "j & k": "jammu and kashmir",
    "nct of delhi": "delhi",
    "new delhi": "delhi",
    "orissa": "odisha",
    "pondicherry": "puducherry",
    "uttaranchal": "uttarakhand",
    "central bureau of investigation": FEDERAL_KEY,
    # Boundary dataset
    "dadra and nagar haveli and daman and diu": "dadra and nagar haveli",
    "dadra & nagar haveli": "dadra and nagar haveli",
    "daman & diu": "daman and diu",
}

_STRIP_CHARS_RE = re.compile(r"[<>\"'`\\]")
_WHITESPACE_RE = re.compile(r"\s+")


def sanitize_string(value: Any) -> str:
    """Remove markup/quote characters, collapse whitespace, trim, cap length."""
    if not isinstance(value, str):
        return ""
    text = _STRIP_CHARS_RE.sub("", value)
    text = _WHITESPACE_RE.sub(" ", text).strip()
    return text[:MAX_NAME_LENGTH]


def canonicalize(value: Any) -> Optional[str]:
    """Map any region name to its canonical key, or None if unrecognised.

    Never raises: non-string input is simply unrecognised.
    """
    cleaned = sanitize_string(value).lower()
    candidate = REGION_ALIASES.get(cleaned, cleaned)
    if candidate in VALID_REGIONS:
        return candidate
    return None


def is_federal(key: str) -> bool:
    return key == FEDERAL_KEY


def display_name(key: str) -> str:
    if is_federal(key):
        return "CBI"
    return " ".join(word.capitalize() for word in key.split(" "))


def get_valid_regions_list() -> list[str]:
    """Sorted canonical keys, federal key included (admin dropdown order)."""
    return sorted(VALID_REGIONS)
