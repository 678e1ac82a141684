"""
Recipient File Ingestion
------------------------
Reads uploaded CSV/Excel recipient lists into recipient records using a
column mapping supplied by the caller.
"""

import io
import logging
import os
from typing import List

import pandas as pd

from recipient_dedupe.models.data_models import RecipientColumnMap, RecipientRecord

logger = logging.getLogger(__name__)

RECIPIENT_FIELDS = ["name", "address1", "address2", "city", "state", "zip", "country"]


class RecipientFileError(ValueError):
    """Raised when an uploaded recipient file cannot be read."""


def read_recipient_file(content: bytes, filename: str) -> pd.DataFrame:
    """
    Read an uploaded CSV or Excel file into a DataFrame of strings.

    Every cell is read as text so that ZIP codes keep their leading zeros,
    and empty cells become empty strings.

    Args:
        content: Raw bytes of the uploaded file
        filename: Original file name, used to pick the reader by extension

    Returns:
        pd.DataFrame: The file contents with string column names

    Raises:
        RecipientFileError: If the file cannot be parsed as CSV or Excel
    """
    file_obj = io.BytesIO(content)
    file_extension = os.path.splitext(filename or "")[1].lower()

    try:
        if file_extension == ".csv":
            df = pd.read_csv(file_obj, dtype=str, keep_default_na=False)
        elif file_extension in [".xls", ".xlsx"]:
            df = pd.read_excel(file_obj, dtype=str).fillna("")
        else:
            # If we can't determine from extension, try CSV first, then Excel
            try:
                df = pd.read_csv(file_obj, dtype=str, keep_default_na=False)
            except Exception:
                file_obj.seek(0)
                df = pd.read_excel(file_obj, dtype=str).fillna("")
    except Exception as e:
        raise RecipientFileError(f"Error reading file: {str(e)}") from e

    df.columns = df.columns.astype(str)
    logger.info(f"Loaded {len(df)} rows from {filename}")
    return df


def records_from_dataframe(
    df: pd.DataFrame,
    col_map: RecipientColumnMap,
    default_country: str = "US",
) -> List[RecipientRecord]:
    """
    Convert spreadsheet rows to recipient records.

    Rows without a mapped id column are identified by their spreadsheet row
    ("row-2" is the first data row under the header). Rows whose mapped cells
    are all empty are skipped.

    Args:
        df: Recipient rows, typically from read_recipient_file
        col_map: Mapping between recipient fields and the file's column headers
        default_country: Country for rows whose country cell is empty or unmapped

    Returns:
        List[RecipientRecord]: One record per non-empty row

    Raises:
        ValueError: If the name column is not mapped or a mapped column is not in the file
    """
    if not col_map.name:
        raise ValueError("A name column must be mapped")

    mapped_columns = [val for val in col_map.model_dump().values() if val is not None]
    for column in mapped_columns:
        if column not in df.columns:
            raise ValueError(f"Mapped column '{column}' not found in the uploaded file. Available columns: {df.columns.tolist()}")

    records: List[RecipientRecord] = []
    for position, (_, row) in enumerate(df.iterrows()):
        values = {}
        for field in RECIPIENT_FIELDS:
            column = getattr(col_map, field)
            values[field] = _cell_text(row[column]) if column else ""

        if not any(values.values()):
            continue

        record_id = _cell_text(row[col_map.id]) if col_map.id else ""
        if not record_id:
            # +2 for 1-based spreadsheet row and header
            record_id = f"row-{position + 2}"

        if not values["address2"]:
            values["address2"] = None
        if not values["country"]:
            values["country"] = default_country

        records.append(RecipientRecord(id=record_id, **values))

    logger.info(f"Built {len(records)} recipient records from {len(df)} rows")
    return records


def _cell_text(value: object) -> str:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return ""
    return str(value).strip()
