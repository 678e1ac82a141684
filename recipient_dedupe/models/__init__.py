"""
Data Models Module
Contains Pydantic models for recipients, duplicate matches and API payloads.
"""

from .data_models import (
    RecipientRecord,
    MatchType,
    MatchResult,
    RecipientColumnMap,
    DuplicateScanRequest,
    DuplicateCheckRequest,
    DuplicateCheckResponse,
    DuplicateGroupRequest,
    DuplicateGroupResponse,
    DuplicateScanStats,
    DuplicateScanResponse,
    VCardContact,
    InvalidVCardEntry,
    VCardParseResult,
    VCardContactError,
    VCardImportResponse,
)
