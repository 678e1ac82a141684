"""
vCard Parsing
-------------
This module reads contacts from vCard files exported by Google Contacts,
Apple Contacts, Outlook and similar tools, and converts them to recipients.
Versions 3.0 and 4.0 are supported; common 2.1 exports are tolerated.
"""

import logging
import quopri
import re
from typing import Any, Dict, List, Optional

from recipient_dedupe.models.data_models import InvalidVCardEntry, VCardContact, VCardParseResult

logger = logging.getLogger(__name__)

_ITEM_PREFIX = re.compile(r"^item\d+\.(.+)$", re.IGNORECASE)
_APARTMENT = re.compile(r"^(apt|suite|#|ste|unit|apartment)", re.IGNORECASE)
_UNESCAPED_SEMICOLON = re.compile(r"(?<!\\);")
_ESCAPE = re.compile(r"\\([nN,;\\])")
_PHONE_CHARS = re.compile(r"[^\d+]")
_DIGIT = re.compile(r"\d")

RAW_PREVIEW_LENGTH = 100


class VCardParseError(ValueError):
    """Raised when vCard content cannot be parsed."""


def parse_vcard(content: str) -> VCardParseResult:
    """
    Parse vCard file content into contacts.

    A card without a usable name is reported in `invalid` instead of aborting
    the whole file.

    Args:
        content: Raw vCard file content, possibly holding many cards

    Returns:
        VCardParseResult: Valid contacts, invalid entries and the card count

    Raises:
        VCardParseError: If the content is empty or contains no BEGIN:VCARD
    """
    if not content or not content.strip():
        raise VCardParseError("vCard content is empty")

    if "BEGIN:VCARD" not in content:
        raise VCardParseError("Invalid vCard format: missing BEGIN:VCARD")

    cards = _split_vcards(content)
    result = VCardParseResult(total_contacts=len(cards))

    for index, card in enumerate(cards, start=1):
        try:
            result.valid.append(_parse_single_vcard(card))
        except ValueError as e:
            result.invalid.append(
                InvalidVCardEntry(line=index, error=str(e), raw=card[:RAW_PREVIEW_LENGTH] + "...")
            )

    logger.info(f"Parsed {result.total_contacts} vCards: {len(result.valid)} valid, {len(result.invalid)} invalid")
    return result


def validate_vcard_contact(contact: VCardContact) -> Optional[str]:
    """
    Check that a contact can be imported as a mail recipient.

    City, state and ZIP are optional since they can be added later, but either
    an address or a city must be present.

    Returns:
        Optional[str]: An error message, or None if the contact is valid
    """
    if not contact.name or not contact.name.strip():
        return "Name is required"

    if not contact.address and not contact.city:
        return "Address or city is required for mail recipients"

    return None


def vcard_to_recipient(contact: VCardContact, default_country: str = "US") -> Dict[str, Any]:
    """Convert a contact to recipient fields; missing fields become empty strings."""
    return {
        "name": contact.name,
        "address1": contact.address or "",
        "address2": contact.address2,
        "city": contact.city or "",
        "state": contact.state or "",
        "zip": contact.zip or "",
        "country": contact.country or default_country,
    }


def _split_vcards(content: str) -> List[str]:
    cards: List[str] = []
    current: List[str] = []
    in_card = False

    for line in content.splitlines():
        trimmed = line.strip()
        if trimmed == "BEGIN:VCARD":
            in_card = True
            current = [line]
        elif trimmed == "END:VCARD":
            current.append(line)
            cards.append("\n".join(current))
            current = []
            in_card = False
        elif in_card:
            current.append(line)

    return cards


def _parse_single_vcard(card: str) -> VCardContact:
    fields: Dict[str, Optional[str]] = {}
    current_property = ""
    current_value = ""

    for raw_line in card.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        # Folded line: continues the previous property value
        if raw_line[0] in (" ", "\t"):
            current_value += line
            continue

        if current_property:
            _apply_property(fields, current_property, current_value)

        property_part, sep, value = line.partition(":")
        if not sep:
            current_property = ""
            continue
        current_property, current_value = property_part, value

    if current_property:
        _apply_property(fields, current_property, current_value)

    first_name = fields.get("first_name")
    last_name = fields.get("last_name")
    name = fields.get("name") or " ".join(part for part in (first_name, last_name) if part)
    if not name:
        raise VCardParseError("Missing required field: name")

    fields["name"] = name
    return VCardContact(**fields)


def _apply_property(fields: Dict[str, Optional[str]], prop: str, value: str) -> None:
    # e.g. "ADR;TYPE=HOME" or Apple's "item1.ADR;type=HOME"
    name_part, *params = prop.split(";")
    item_match = _ITEM_PREFIX.match(name_part)
    property_name = (item_match.group(1) if item_match else name_part).upper()

    if _is_quoted_printable(params):
        value = _decode_quoted_printable(value)

    if property_name == "FN":
        fields["name"] = _unescape(value)

    elif property_name == "N":
        # Last;First;Middle;Prefix;Suffix
        parts = _split_components(value)
        last = parts[0] if parts else ""
        first = parts[1] if len(parts) > 1 else ""
        fields["last_name"] = last or None
        fields["first_name"] = first or None
        if not fields.get("name"):
            fields["name"] = " ".join(part for part in (first, last) if part)

    elif property_name == "ADR":
        fields.update(_parse_address(_split_components(value)))

    elif property_name == "EMAIL":
        if not fields.get("email"):
            fields["email"] = _unescape(value)

    elif property_name == "TEL":
        if not fields.get("phone"):
            fields["phone"] = _PHONE_CHARS.sub("", _unescape(value))


def _parse_address(parts: List[str]) -> Dict[str, Optional[str]]:
    # PO Box;Extended;Street;City;State;ZIP;Country
    def part(i: int) -> str:
        return parts[i] if i < len(parts) else ""

    extended, street = part(1), part(2)
    city, state, zip_code, country = part(3), part(4), part(5), part(6)

    # Some exporters put the apartment in its own component: PO;;Street;Apt;City;State;ZIP;Country
    if len(parts) == 8 and _looks_like_apartment(part(3)):
        extended = part(3)
        city, state, zip_code, country = part(4), part(5), part(6), part(7)

    if _looks_like_apartment(street) and _DIGIT.search(extended):
        extended, street = street, extended

    address = " ".join(p for p in (extended, street) if p)

    return {
        "address": address or None,
        "address2": None,
        "city": city or None,
        "state": state or None,
        "zip": zip_code or None,
        "country": country or None,
    }


def _looks_like_apartment(text: str) -> bool:
    return bool(text) and bool(_APARTMENT.match(text))


def _is_quoted_printable(params: List[str]) -> bool:
    for param in params:
        param = param.strip().upper()
        if param in ("ENCODING=QUOTED-PRINTABLE", "QUOTED-PRINTABLE"):
            return True
    return False


def _decode_quoted_printable(value: str) -> str:
    return quopri.decodestring(value.encode("utf-8")).decode("utf-8", errors="replace")


def _split_components(value: str) -> List[str]:
    return [_unescape(component) for component in _UNESCAPED_SEMICOLON.split(value)]


def _unescape(value: str) -> str:
    def replace(match: "re.Match[str]") -> str:
        char = match.group(1)
        return "\n" if char in "nN" else char

    return _ESCAPE.sub(replace, value).strip()
