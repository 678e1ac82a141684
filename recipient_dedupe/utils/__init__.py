"""
Utilities Module
Contains utility functions for text normalization, fuzzy matching and vCard parsing.
"""

from .text_processing import normalize, normalize_address, normalize_zip
from .fuzzy_matching import levenshtein_distance, similarity_score, tiered_score
from .vcard_parser import (
    VCardParseError,
    parse_vcard,
    validate_vcard_contact,
    vcard_to_recipient,
)
