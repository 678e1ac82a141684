"""
FastAPI Main Application
-----------------------
This is the main application file that defines the FastAPI app and endpoints.
It integrates all the modules to provide a RESTful API for finding duplicate
recipients and importing recipients from vCard files.
"""

import time
import traceback
import logging
from typing import List, Optional

from fastapi import FastAPI, UploadFile, File, HTTPException, Form
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware

from recipient_dedupe import config
from recipient_dedupe.models.data_models import (
    DuplicateCheckRequest,
    DuplicateCheckResponse,
    DuplicateGroupRequest,
    DuplicateGroupResponse,
    DuplicateScanRequest,
    DuplicateScanResponse,
    RecipientColumnMap,
    RecipientRecord,
    VCardContactError,
    VCardImportResponse,
)
from recipient_dedupe.core.deduplication import (
    check_duplicate,
    find_duplicates,
    group_duplicates,
    summarize_matches,
)
from recipient_dedupe.core.ingestion import read_recipient_file, records_from_dataframe
from recipient_dedupe.utils.vcard_parser import (
    VCardParseError,
    parse_vcard,
    validate_vcard_contact,
    vcard_to_recipient,
)

# Configure logging
logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler()]
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Recipient Duplicate Detection API",
    description="API for finding duplicate mail recipients and importing address books",
    version=config.API_VERSION
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_allow_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _check_scan_size(count: int) -> None:
    if count > config.MAX_SCAN_RECIPIENTS:
        raise HTTPException(
            status_code=413,
            detail=f"Too many recipients to scan: {count} (maximum {config.MAX_SCAN_RECIPIENTS})"
        )


def _scan(recipients: List[RecipientRecord], start_time: float) -> DuplicateScanResponse:
    matches = find_duplicates(recipients)
    groups = group_duplicates(matches)
    stats = summarize_matches(matches, groups, len(recipients), time.time() - start_time)

    logger.info(f"Found {stats.total_matches} duplicate pairs in {stats.duplicate_groups} groups "
                f"among {stats.total_recipients} recipients")

    return DuplicateScanResponse(
        message="Duplicate scan completed successfully",
        stats=stats,
        matches=matches,
        groups=groups
    )


@app.get("/")
async def root():
    """Root endpoint that returns a simple health check message."""
    return {"message": "Recipient Duplicate Detection API is running!"}


@app.get("/api/health")
async def health_check():
    """Health check endpoint to verify API is running."""
    return {
        "status": "healthy",
        "version": config.API_VERSION,
        "timestamp": time.time()
    }


@app.post("/api/recipients/duplicates", response_model=DuplicateScanResponse)
def scan_recipients(request: DuplicateScanRequest):
    """
    Scan an address book for duplicate recipients.

    Every pair of recipients is compared; matches are returned highest
    confidence first together with the groups of transitively linked recipients.
    """
    start_time = time.time()
    logger.info(f"Received duplicate scan request for {len(request.recipients)} recipients")
    _check_scan_size(len(request.recipients))

    try:
        return _scan(request.recipients, start_time)
    except Exception as e:
        logger.error(f"Error in scan_recipients: {str(e)}\n{traceback.format_exc()}")
        raise HTTPException(
            status_code=500,
            detail=f"Error scanning recipients: {str(e)}"
        )


@app.post("/api/recipients/duplicates/check", response_model=DuplicateCheckResponse)
def check_recipient_pair(request: DuplicateCheckRequest):
    """Compare two recipients; `match` is null when they are not duplicates."""
    return DuplicateCheckResponse(match=check_duplicate(request.recipient1, request.recipient2))


@app.post("/api/recipients/duplicates/groups", response_model=DuplicateGroupResponse)
def group_matches(request: DuplicateGroupRequest):
    """Group recipients that are linked, directly or indirectly, by the given matches."""
    return DuplicateGroupResponse(groups=group_duplicates(request.matches))


@app.post("/api/find-duplicates", response_model=DuplicateScanResponse)
async def find_duplicates_in_file(
    file: UploadFile = File(...),
    name_column: Optional[str] = Form(None),
    address1_column: Optional[str] = Form(None),
    address2_column: Optional[str] = Form(None),
    city_column: Optional[str] = Form(None),
    state_column: Optional[str] = Form(None),
    zip_column: Optional[str] = Form(None),
    country_column: Optional[str] = Form(None),
    id_column: Optional[str] = Form(None)
):
    """
    Process an uploaded recipient list to find duplicate recipients.

    This endpoint accepts CSV or Excel files and maps their columns to recipient
    fields before scanning.

    Args:
        file: The CSV or Excel file to process
        name_column: Column name containing recipient names (required)
        address1_column: Column name containing the first address line
        address2_column: Column name containing the second address line
        city_column: Column name containing cities
        state_column: Column name containing states or provinces
        zip_column: Column name containing ZIP or postal codes
        country_column: Column name containing countries
        id_column: Column name containing recipient ids (defaults to the row number)

    Returns:
        DuplicateScanResponse: Matches, duplicate groups and statistics

    Raises:
        HTTPException: If the file cannot be read, the columns are not found or
            the list is too large to scan
    """
    try:
        start_time = time.time()

        logger.info(f"Received file scan request for {file.filename} with parameters: "
                    f"name_col={name_column}, "
                    f"addr1_col={address1_column}, "
                    f"addr2_col={address2_column}, "
                    f"city_col={city_column}, "
                    f"state_col={state_column}, "
                    f"zip_col={zip_column}, "
                    f"country_col={country_column}, "
                    f"id_col={id_column}")

        if not name_column:
            raise HTTPException(
                status_code=400,
                detail="At least name_column must be provided"
            )

        col_map = RecipientColumnMap(
            id=id_column,
            name=name_column,
            address1=address1_column,
            address2=address2_column,
            city=city_column,
            state=state_column,
            zip=zip_column,
            country=country_column
        )

        file_content = await file.read()

        try:
            df = read_recipient_file(file_content, file.filename)
            recipients = records_from_dataframe(df, col_map, default_country=config.DEFAULT_COUNTRY)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

        _check_scan_size(len(recipients))
        return await run_in_threadpool(_scan, recipients, start_time)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in find_duplicates_in_file: {str(e)}\n{traceback.format_exc()}")
        raise HTTPException(
            status_code=500,
            detail=f"Error processing duplicate scan: {str(e)}"
        )


@app.post("/api/recipients/import/vcard", response_model=VCardImportResponse)
async def import_vcard(file: UploadFile = File(...)):
    """
    Parse an uploaded vCard file into recipients ready to be saved.

    Contacts that cannot be mailed to (no name, or neither address nor city)
    are reported in `validation_errors`. Duplicates among the imported
    recipients are reported so the user can review them before saving.
    """
    try:
        raw = await file.read()
        content = raw.decode("utf-8-sig", errors="replace")

        try:
            parsed = parse_vcard(content)
        except VCardParseError as e:
            raise HTTPException(status_code=400, detail=str(e))

        recipients: List[RecipientRecord] = []
        validation_errors: List[VCardContactError] = []
        for index, contact in enumerate(parsed.valid, start=1):
            error = validate_vcard_contact(contact)
            if error:
                validation_errors.append(VCardContactError(index=index, name=contact.name, error=error))
                continue
            recipients.append(
                RecipientRecord(
                    id=f"vcard-{index}",
                    **vcard_to_recipient(contact, default_country=config.DEFAULT_COUNTRY)
                )
            )

        _check_scan_size(len(recipients))
        duplicates = await run_in_threadpool(find_duplicates, recipients)

        logger.info(f"Imported {len(recipients)} recipients from {file.filename}: "
                    f"{len(parsed.invalid)} unparseable, {len(validation_errors)} incomplete, "
                    f"{len(duplicates)} possible duplicate pairs")

        return VCardImportResponse(
            message="vCard import completed successfully",
            total_contacts=parsed.total_contacts,
            parsed=parsed,
            validation_errors=validation_errors,
            recipients=recipients,
            duplicates=duplicates
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in import_vcard: {str(e)}\n{traceback.format_exc()}")
        raise HTTPException(
            status_code=500,
            detail=f"Error importing vCard file: {str(e)}"
        )


# If this file is run directly, start the server
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("recipient_dedupe.main:app", host=config.HOST, port=config.PORT, reload=True)
