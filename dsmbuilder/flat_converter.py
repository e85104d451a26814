"""
dsmbuilder/flat_converter.py -- CSV -> JSON conversion for leaf tables.

Converts every non-composite sheet (archetypes, weapons, spells, tags, ...)
into a JSON array.  Each row goes through generic cell coercion and
dot-notation nesting; nothing is cross-referenced here.

Usage::

    from dsmbuilder.flat_converter import convert_directory

    written = convert_directory("scripts/input", "scripts/output",
                                exclude=("daemons.csv",))
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from dsmbuilder.coercion import convert_value, expand_dot_notation
from dsmbuilder.sources import list_csv_files, read_csv_rows
from dsmbuilder.utils import safe_write_json

logger = logging.getLogger(__name__)


def convert_row(row: dict[str, Any]) -> dict[str, Any]:
    """Coerce and nest a single CSV row.

    ``aptKey`` / ``aptValue`` column pairs collapse into an ``aptitudes``
    object: both blank gives ``{}``, both filled gives ``{aptKey: aptValue}``,
    a half-filled pair is dropped.  ``description`` is always present and is
    ``""`` when blank.
    """
    coerced = {key: convert_value(value, key) for key, value in row.items()}
    record = expand_dot_notation(coerced)

    if "aptKey" in record or "aptValue" in record:
        apt_key = record.pop("aptKey", None)
        apt_value = record.pop("aptValue", None)
        if apt_key is None and apt_value is None:
            record["aptitudes"] = {}
        elif apt_key is not None and apt_value is not None:
            record["aptitudes"] = {str(apt_key): apt_value}

    if record.get("description") is None:
        record["description"] = ""
    return record


def convert_file(csv_path, json_path) -> int:
    """Convert one CSV file to a JSON table.  Returns the row count."""
    rows = read_csv_rows(csv_path)
    records = [convert_row(row) for row in rows]
    safe_write_json(json_path, records)
    logger.info("Converted %s -> %s (%d rows)", Path(csv_path).name, Path(json_path).name, len(records))
    return len(records)


def convert_directory(input_dir, output_dir, exclude=()) -> list[Path]:
    """Convert every CSV in *input_dir* except *exclude* into *output_dir*.

    Returns the written JSON paths in input order.
    """
    output_dir = Path(output_dir)
    written: list[Path] = []
    for csv_path in list_csv_files(input_dir, exclude=exclude):
        json_path = output_dir / f"{csv_path.stem}.json"
        convert_file(csv_path, json_path)
        written.append(json_path)
    if not written:
        logger.warning("No CSV files to convert in %s", input_dir)
    return written
