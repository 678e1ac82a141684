"""
Core Deduplication Logic
-----------------------
This module contains the core logic for finding duplicate recipients in an address book.
Every pair of recipients is compared field by field, a heuristic confidence score is
accumulated from the per-field results, and transitively linked matches are grouped.

The functions here are pure: they read the records they are given and never mutate,
persist or raise on them. A missing field is compared as an empty string.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set, Tuple, Union

from recipient_dedupe.models.data_models import (
    DuplicateScanStats,
    MatchResult,
    MatchType,
    RecipientRecord,
)
from recipient_dedupe.utils.fuzzy_matching import ScoreTier, similarity_score, tiered_score
from recipient_dedupe.utils.text_processing import normalize, normalize_address, normalize_zip

logger = logging.getLogger(__name__)

NAME_TIERS: List[ScoreTier] = [
    (90, 30, "Identical names"),
    (70, 20, "Very similar names"),
    (50, 10, "Similar names"),
]

ADDRESS_TIERS: List[ScoreTier] = [
    (90, 40, "Identical addresses"),
    (70, 25, "Very similar addresses"),
    (50, 10, "Similar addresses"),
]

CITY_POINTS = 10
STATE_POINTS = 10
ZIP_POINTS = 10
ZIP_PREFIX_LENGTH = 5

EXACT_THRESHOLD = 80
LIKELY_THRESHOLD = 50
MIN_CONFIDENCE = 40

RecordLike = Union[RecipientRecord, Mapping[str, Any]]


def _as_record(record: RecordLike) -> RecipientRecord:
    if isinstance(record, RecipientRecord):
        return record
    return RecipientRecord.model_validate(dict(record))


def classify_confidence(confidence: int) -> MatchType:
    """Classify a confidence score as exact (>= 80), likely (>= 50) or possible."""
    if confidence >= EXACT_THRESHOLD:
        return MatchType.EXACT
    if confidence >= LIKELY_THRESHOLD:
        return MatchType.LIKELY
    return MatchType.POSSIBLE


def check_duplicate(r1: RecordLike, r2: RecordLike) -> Optional[MatchResult]:
    """
    Compare two recipients and decide whether they are likely duplicates.

    Scoring (first matching tier per field, not cumulative):
    - Name similarity >= 90 / 70 / 50: +30 / +20 / +10
    - Address line 1 similarity >= 90 / 70 / 50: +40 / +25 / +10
    - Same city: +10, same state: +10
    - Same first five ZIP digits: +10

    A field that is empty on either side contributes nothing.

    Args:
        r1: First recipient
        r2: Second recipient

    Returns:
        Optional[MatchResult]: The match, or None when the records share an id,
        the confidence is below 40 or no check contributed
    """
    r1 = _as_record(r1)
    r2 = _as_record(r2)

    # Don't compare a recipient with itself
    if r1.id == r2.id:
        return None

    match_reasons: List[str] = []
    confidence = 0

    name1, name2 = normalize(r1.name), normalize(r2.name)
    addr1, addr2 = normalize_address(r1.address1), normalize_address(r2.address1)
    city1, city2 = normalize(r1.city), normalize(r2.city)
    state1, state2 = normalize(r1.state), normalize(r2.state)
    zip1, zip2 = normalize_zip(r1.zip), normalize_zip(r2.zip)

    for value1, value2, tiers in ((name1, name2, NAME_TIERS), (addr1, addr2, ADDRESS_TIERS)):
        if not value1 or not value2:
            continue
        points, reason = tiered_score(similarity_score(value1, value2), tiers)
        if reason:
            match_reasons.append(reason)
            confidence += points

    if city1 and city1 == city2:
        match_reasons.append("Same city")
        confidence += CITY_POINTS

    if state1 and state1 == state2:
        match_reasons.append("Same state")
        confidence += STATE_POINTS

    zip1_short = zip1[:ZIP_PREFIX_LENGTH]
    zip2_short = zip2[:ZIP_PREFIX_LENGTH]
    if len(zip1_short) == ZIP_PREFIX_LENGTH and zip1_short == zip2_short:
        match_reasons.append("Same ZIP code")
        confidence += ZIP_POINTS

    if confidence < MIN_CONFIDENCE or not match_reasons:
        return None

    return MatchResult(
        recipient1=r1,
        recipient2=r2,
        match_type=classify_confidence(confidence),
        match_reasons=match_reasons,
        confidence=confidence,
    )


def find_duplicates(recipients: Sequence[RecordLike]) -> List[MatchResult]:
    """
    Find all duplicate pairs in a list of recipients.

    Each unordered pair is compared once. The result is sorted by confidence,
    highest first; pairs with equal confidence keep their scan order.

    Args:
        recipients: The address book to scan

    Returns:
        List[MatchResult]: Matches sorted by descending confidence
    """
    records = [_as_record(r) for r in recipients]
    duplicates: List[MatchResult] = []
    seen: Set[Tuple[str, str]] = set()

    for i in range(len(records)):
        for j in range(i + 1, len(records)):
            match = check_duplicate(records[i], records[j])
            if match is None:
                continue

            pair_key = match.pair_key()
            if pair_key in seen:
                continue
            seen.add(pair_key)
            duplicates.append(match)

    logger.debug(f"Compared {len(records)} recipients, found {len(duplicates)} duplicate pairs")

    # sorted() is stable, so ties keep insertion order
    return sorted(duplicates, key=lambda m: m.confidence, reverse=True)


class _UnionFind:
    def __init__(self) -> None:
        self._parent: Dict[str, str] = {}

    def find(self, item: str) -> str:
        self._parent.setdefault(item, item)
        root = item
        while self._parent[root] != root:
            root = self._parent[root]
        # Path compression
        while item != root:
            next_item = self._parent[item]
            self._parent[item] = root
            item = next_item
        return root

    def union(self, left: str, right: str) -> None:
        root_left = self.find(left)
        root_right = self.find(right)
        if root_left != root_right:
            self._parent[root_right] = root_left


def group_duplicates(matches: Sequence[MatchResult]) -> List[List[RecipientRecord]]:
    """
    Group recipients that are transitively linked by matches.

    If A matches B and B matches C, then A, B and C end up in one group even
    though A and C were never matched directly.

    Args:
        matches: Pairwise matches, typically from find_duplicates

    Returns:
        List[List[RecipientRecord]]: Groups of two or more recipients. Groups are
        ordered by the first appearance of a member in the matches, and members
        by their own first appearance.
    """
    uf = _UnionFind()
    records_by_id: Dict[str, RecipientRecord] = {}

    for match in matches:
        for record in (match.recipient1, match.recipient2):
            records_by_id.setdefault(record.id, record)
        uf.union(match.recipient1.id, match.recipient2.id)

    components: Dict[str, List[RecipientRecord]] = {}
    for record_id, record in records_by_id.items():
        components.setdefault(uf.find(record_id), []).append(record)

    return [group for group in components.values() if len(group) > 1]


def summarize_matches(
    matches: Sequence[MatchResult],
    groups: Sequence[Sequence[RecipientRecord]],
    total_recipients: int,
    elapsed_seconds: float,
) -> DuplicateScanStats:
    """Count matches by type and duplicate groups for a scan response."""
    by_type = {match_type: 0 for match_type in MatchType}
    for match in matches:
        by_type[match.match_type] += 1

    return DuplicateScanStats(
        total_recipients=total_recipients,
        total_matches=len(matches),
        exact_matches=by_type[MatchType.EXACT],
        likely_matches=by_type[MatchType.LIKELY],
        possible_matches=by_type[MatchType.POSSIBLE],
        duplicate_groups=len(groups),
        recipients_in_groups=sum(len(group) for group in groups),
        processing_time_seconds=round(elapsed_seconds, 3),
    )
