"""
dsmbuilder/sources.py -- CSV input.

Reads spreadsheet exports into ordered lists of ``{column: cell}`` dicts.
Every cell is kept as text; type coercion is left to the converters.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd

from dsmbuilder.errors import CsvParseError, MissingInputError

logger = logging.getLogger(__name__)


def read_csv_rows(path) -> list[dict[str, str]]:
    """Parse a header-row CSV file into a list of row dicts.

    Blank lines are skipped, header names are trimmed and every cell is a
    string (empty cells are ``""``).

    Raises
    ------
    MissingInputError
        If *path* does not exist.
    CsvParseError
        If pandas cannot parse the file.
    """
    path = Path(path)
    if not path.is_file():
        raise MissingInputError(path, "CSV file")

    try:
        df = pd.read_csv(
            path,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            encoding="utf-8-sig",
        )
    except pd.errors.EmptyDataError:
        logger.warning("CSV file %s is empty", path.name)
        return []
    except (pd.errors.ParserError, UnicodeDecodeError, ValueError) as exc:
        raise CsvParseError(path, str(exc)) from exc

    df.columns = [str(c).strip() for c in df.columns]
    rows = df.to_dict(orient="records")
    logger.debug("Read %d row(s) from %s", len(rows), path.name)
    return rows


def list_csv_files(directory, exclude=()) -> list[Path]:
    """Return the ``*.csv`` files in *directory*, sorted by name.

    Raises
    ------
    MissingInputError
        If *directory* does not exist.
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise MissingInputError(directory, "input directory")
    excluded = set(exclude)
    return sorted(p for p in directory.glob("*.csv") if p.name not in excluded)
