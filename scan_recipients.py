"""
Scan a recipient file for duplicates and print the results as a table.

Usage:
    python scan_recipients.py contacts.vcf
    python scan_recipients.py recipients.csv --name-column Name --address1-column Street --groups
"""
import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional

from tabulate import tabulate

from recipient_dedupe import config
from recipient_dedupe.core.deduplication import find_duplicates, group_duplicates, summarize_matches
from recipient_dedupe.core.ingestion import read_recipient_file, records_from_dataframe
from recipient_dedupe.models.data_models import RecipientColumnMap, RecipientRecord
from recipient_dedupe.utils.vcard_parser import parse_vcard, validate_vcard_contact, vcard_to_recipient

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler()]
)
logger = logging.getLogger(__name__)


def load_recipients(path: Path, col_map: RecipientColumnMap) -> List[RecipientRecord]:
    """Load recipients from a .vcf, CSV or Excel file."""
    if path.suffix.lower() in (".vcf", ".vcard"):
        parsed = parse_vcard(path.read_text(encoding="utf-8-sig", errors="replace"))
        for entry in parsed.invalid:
            logger.warning(f"Skipping vCard {entry.line}: {entry.error}")

        recipients = []
        for index, contact in enumerate(parsed.valid, start=1):
            error = validate_vcard_contact(contact)
            if error:
                logger.warning(f"Skipping contact {contact.name!r}: {error}")
                continue
            recipients.append(
                RecipientRecord(id=f"vcard-{index}", **vcard_to_recipient(contact, config.DEFAULT_COUNTRY))
            )
        return recipients

    df = read_recipient_file(path.read_bytes(), path.name)
    return records_from_dataframe(df, col_map, default_country=config.DEFAULT_COUNTRY)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Find duplicate recipients in a CSV, Excel or vCard file")
    parser.add_argument("file", type=Path)
    parser.add_argument("--id-column", default=None)
    parser.add_argument("--name-column", default="name")
    parser.add_argument("--address1-column", default="address1")
    parser.add_argument("--address2-column", default=None)
    parser.add_argument("--city-column", default="city")
    parser.add_argument("--state-column", default="state")
    parser.add_argument("--zip-column", default="zip")
    parser.add_argument("--country-column", default=None)
    parser.add_argument("--min-confidence", type=int, default=0, help="Only show matches at or above this confidence")
    parser.add_argument("--groups", action="store_true", help="Also print duplicate groups")
    args = parser.parse_args(argv)

    col_map = RecipientColumnMap(
        id=args.id_column,
        name=args.name_column,
        address1=args.address1_column,
        address2=args.address2_column,
        city=args.city_column,
        state=args.state_column,
        zip=args.zip_column,
        country=args.country_column,
    )

    try:
        recipients = load_recipients(args.file, col_map)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    start_time = time.time()
    matches = [m for m in find_duplicates(recipients) if m.confidence >= args.min_confidence]
    groups = group_duplicates(matches)
    stats = summarize_matches(matches, groups, len(recipients), time.time() - start_time)

    rows = [
        [
            m.confidence,
            m.match_type.value,
            f"{m.recipient1.name} ({m.recipient1.id})",
            f"{m.recipient2.name} ({m.recipient2.id})",
            ", ".join(m.match_reasons),
        ]
        for m in matches
    ]
    print(tabulate(rows, headers=["Confidence", "Type", "Recipient 1", "Recipient 2", "Reasons"]))

    if args.groups:
        print()
        group_rows = [
            [i, len(group), "; ".join(f"{r.name} ({r.id})" for r in group)]
            for i, group in enumerate(groups, start=1)
        ]
        print(tabulate(group_rows, headers=["Group", "Size", "Members"]))

    print()
    print(tabulate(stats.model_dump().items(), headers=["Statistic", "Value"]))
    return 0


if __name__ == "__main__":
    sys.exit(main())
