"""
Text Processing Utilities
------------------------
This module contains functions for normalizing recipient names and addresses,
which is a critical step before any similarity comparison.
"""

import re
from typing import Any, List, Pattern, Tuple

# Characters removed by normalize(); apostrophes are kept ("o'brien")
_PUNCTUATION = re.compile(r"[.,/#!$%^&*;:{}=\-_`~()]")
_WHITESPACE = re.compile(r"\s+")
_NON_DIGITS = re.compile(r"[^0-9]")

# --- Address Abbreviation Mapping ---
# Spelled-out form -> abbreviation. Compound directions come before the simple
# directions they share a prefix with.
ADDRESS_ABBR: List[Tuple[str, str]] = [
    ("street", "st"),
    ("avenue", "ave"),
    ("road", "rd"),
    ("drive", "dr"),
    ("lane", "ln"),
    ("court", "ct"),
    ("circle", "cir"),
    ("boulevard", "blvd"),
    ("place", "pl"),
    ("apartment", "apt"),
    ("suite", "ste"),
    ("building", "bldg"),
    ("floor", "fl"),
    ("northwest", "nw"),
    ("northeast", "ne"),
    ("southwest", "sw"),
    ("southeast", "se"),
    ("north", "n"),
    ("south", "s"),
    ("east", "e"),
    ("west", "w"),
]

_ADDRESS_PATTERNS: List[Tuple[Pattern[str], str]] = [
    (re.compile(rf"\b{word}\b"), abbr) for word, abbr in ADDRESS_ABBR
]


def normalize(text: Any) -> str:
    """
    Normalize free text for comparison.

    This function normalizes text by:
    1. Converting to lowercase
    2. Removing punctuation
    3. Collapsing runs of whitespace to a single space and trimming

    Punctuation is removed before whitespace is collapsed so that the result is
    stable under repeated normalization ("a - b" -> "a b").

    Args:
        text: The text to normalize (None is treated as an empty string)

    Returns:
        str: The normalized text
    """
    if text is None:
        return ""

    text = str(text).lower()
    text = _PUNCTUATION.sub("", text)
    text = _WHITESPACE.sub(" ", text)
    return text.strip()


def normalize_address(text: Any) -> str:
    """
    Normalize an address line and abbreviate common street suffixes,
    unit designators and compass directions ("123 Northwest Main Street" ->
    "123 nw main st").

    Args:
        text: The address line to normalize

    Returns:
        str: The normalized address
    """
    address = normalize(text)
    for pattern, abbr in _ADDRESS_PATTERNS:
        address = pattern.sub(abbr, address)
    return address


def normalize_zip(text: Any) -> str:
    """Keep only the digits of a postal code ("62701-1234" -> "627011234")."""
    if text is None:
        return ""
    return _NON_DIGITS.sub("", str(text))
