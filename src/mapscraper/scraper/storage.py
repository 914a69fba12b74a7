"""Data persistence utilities for extracted records.

This module handles saving and loading record lists as JSON and
exporting them as CSV.
"""

import csv
import json
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from mapscraper.utils.exceptions import StorageError
from mapscraper.utils.logger import get_logger

from .models import ExtractedRecord

logger = get_logger(__name__)

CSV_FIELDS = ['title', 'address', 'phone']


def save_records(records: list[ExtractedRecord], output_file: Path) -> Path:
    """Write records to a JSON file, replacing any previous content.

    Args:
        records: Records to save
        output_file: Target JSON file

    Returns:
        Path to the written file
    """
    output_file = Path(output_file)
    output_file.parent.mkdir(parents=True, exist_ok=True)

    data = [record.model_dump(mode='json') for record in records]
    with open(output_file, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, ensure_ascii=False)

    logger.info(f"Saved {len(records)} records to {output_file}")
    return output_file


def export_records_to_csv(records: list[ExtractedRecord], output_file: Path) -> Path:
    """Export records to CSV format with a header row.

    Args:
        records: Records to export
        output_file: Path to output CSV file

    Returns:
        Path to the written file
    """
    output_file = Path(output_file)
    output_file.parent.mkdir(parents=True, exist_ok=True)

    with open(output_file, 'w', newline='', encoding='utf-8') as f:
        writer = csv.DictWriter(f, fieldnames=CSV_FIELDS)
        writer.writeheader()
        for record in records:
            writer.writerow(record.model_dump(include=set(CSV_FIELDS)))

    logger.info(f"Exported {len(records)} records to {output_file}")
    return output_file


def load_records(input_file: Path) -> Optional[list[ExtractedRecord]]:
    """Load records saved by ``save_records``.

    Args:
        input_file: Path to JSON file

    Returns:
        List of records, or None if the file does not exist

    Raises:
        StorageError: If the file exists but is not a valid record list
    """
    input_file = Path(input_file)

    try:
        with open(input_file, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except FileNotFoundError:
        logger.debug(f"No stored records at {input_file}")
        return None
    except json.JSONDecodeError as e:
        raise StorageError(f"Malformed JSON: {e}", path=str(input_file)) from e

    if not isinstance(data, list):
        raise StorageError("Expected a JSON list of records", path=str(input_file))

    try:
        records = [ExtractedRecord.model_validate(entry) for entry in data]
    except ValidationError as e:
        raise StorageError(f"Invalid record: {e}", path=str(input_file)) from e

    logger.debug(f"Loaded {len(records)} records from {input_file}")
    return records
