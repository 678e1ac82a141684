"""
Data Models
-----------
This module contains all Pydantic models used by the duplicate detector and the API.
Recipient records are read-only snapshots supplied by the caller; match results and
groups are derived from them and never persisted.
"""

from enum import Enum
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, field_validator


class RecipientRecord(BaseModel):
    """
    A mail recipient as stored in the user's address book.
    Missing text fields are treated as empty strings so that a malformed record
    can still be scanned.
    """
    id: str = ""
    name: str = ""
    address1: str = ""
    address2: Optional[str] = None
    city: str = ""
    state: str = ""
    zip: str = ""
    country: str = "US"

    @field_validator("id", mode="before")
    @classmethod
    def id_as_string(cls, v: Any) -> str:
        """Accept numeric ids from spreadsheets and JSON clients; a missing id is empty."""
        if v is None:
            return ""
        return str(v)

    @field_validator("name", "address1", "city", "state", "zip", "country", mode="before")
    @classmethod
    def missing_as_empty(cls, v: Any) -> str:
        if v is None:
            return ""
        return str(v)

    @field_validator("address2", mode="before")
    @classmethod
    def optional_as_string(cls, v: Any) -> Optional[str]:
        return None if v is None else str(v)


class MatchType(str, Enum):
    """Ordinal classification of a pairwise match: possible < likely < exact."""
    EXACT = "exact"
    LIKELY = "likely"
    POSSIBLE = "possible"


class MatchResult(BaseModel):
    """
    A pair of recipients that probably refer to the same person or household.
    Confidence is a heuristic ranking value (0-100), not a probability.
    """
    recipient1: RecipientRecord
    recipient2: RecipientRecord
    match_type: MatchType
    match_reasons: List[str]
    confidence: int

    def pair_key(self) -> Tuple[str, str]:
        """Canonical unordered key for the pair of recipient ids."""
        first, second = sorted((self.recipient1.id, self.recipient2.id))
        return first, second


class RecipientColumnMap(BaseModel):
    """
    Maps recipient fields to the column headers of an uploaded spreadsheet.
    Only the name column is mandatory; unmapped fields are read as empty.
    """
    id: Optional[str] = None
    name: Optional[str] = None
    address1: Optional[str] = None
    address2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    country: Optional[str] = None


class DuplicateScanRequest(BaseModel):
    recipients: List[RecipientRecord]


class DuplicateCheckRequest(BaseModel):
    recipient1: RecipientRecord
    recipient2: RecipientRecord


class DuplicateCheckResponse(BaseModel):
    match: Optional[MatchResult] = None


class DuplicateGroupRequest(BaseModel):
    matches: List[MatchResult]


class DuplicateGroupResponse(BaseModel):
    groups: List[List[RecipientRecord]]


class DuplicateScanStats(BaseModel):
    """
    Statistics about a duplicate scan, such as counts of exact, likely and
    possible matches and the number of duplicate groups.
    """
    total_recipients: int
    total_matches: int
    exact_matches: int
    likely_matches: int
    possible_matches: int
    duplicate_groups: int
    recipients_in_groups: int
    processing_time_seconds: float


class DuplicateScanResponse(BaseModel):
    """
    The response model for the duplicate scan endpoints,
    containing the pairwise matches, the duplicate groups and statistics.
    """
    message: str
    stats: DuplicateScanStats
    matches: List[MatchResult]
    groups: List[List[RecipientRecord]]


class VCardContact(BaseModel):
    """A contact read from a vCard (3.0/4.0, with 2.1 exports tolerated)."""
    name: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    address: Optional[str] = None
    address2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    country: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class InvalidVCardEntry(BaseModel):
    line: int
    error: str
    raw: str


class VCardParseResult(BaseModel):
    valid: List[VCardContact] = []
    invalid: List[InvalidVCardEntry] = []
    total_contacts: int = 0


class VCardContactError(BaseModel):
    index: int
    name: str
    error: str


class VCardImportResponse(BaseModel):
    """
    The response model for the vCard import endpoint: parsed contacts, the
    recipients ready to be saved, and duplicates found within the import.
    """
    message: str
    total_contacts: int
    parsed: VCardParseResult
    validation_errors: List[VCardContactError]
    recipients: List[RecipientRecord]
    duplicates: List[MatchResult]
