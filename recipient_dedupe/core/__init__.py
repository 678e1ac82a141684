"""
Core Module
Contains the duplicate detection logic and recipient file ingestion.
"""

from .deduplication import check_duplicate, find_duplicates, group_duplicates, summarize_matches
from .ingestion import RecipientFileError, read_recipient_file, records_from_dataframe
