"""
dsmbuilder/download.py -- Fetch spreadsheet tabs as CSV.

Each sheet of a Google spreadsheet is exported through the gviz CSV endpoint
and saved as ``<sheet>.csv`` in the input directory.  A sheet that fails to
download is logged and skipped; the others still download.
"""

from __future__ import annotations

import logging
import urllib.error
import urllib.parse
import urllib.request
from pathlib import Path
from typing import Iterable

logger = logging.getLogger(__name__)

_EXPORT_URL = "https://docs.google.com/spreadsheets/d/{sheet_id}/gviz/tq?tqx=out:csv&sheet={sheet}"
_TIMEOUT = 30


def sheet_url(spreadsheet_id: str, sheet_name: str) -> str:
    """Return the CSV export URL for one tab."""
    return _EXPORT_URL.format(
        sheet_id=urllib.parse.quote(spreadsheet_id, safe=""),
        sheet=urllib.parse.quote(sheet_name, safe=""),
    )


def fetch_sheet(spreadsheet_id: str, sheet_name: str, timeout: int = _TIMEOUT) -> str:
    """Download one tab and return its CSV text."""
    req = urllib.request.Request(
        sheet_url(spreadsheet_id, sheet_name),
        headers={"Accept": "text/csv"},
    )
    with urllib.request.urlopen(req, timeout=timeout) as resp:
        return resp.read().decode("utf-8")


def download_sheets(spreadsheet_id: str, sheet_names: Iterable[str], input_dir) -> list[Path]:
    """Save every sheet in *sheet_names* to *input_dir*.

    Returns the paths that were written.
    """
    input_dir = Path(input_dir)
    input_dir.mkdir(parents=True, exist_ok=True)

    saved: list[Path] = []
    for name in sheet_names:
        try:
            text = fetch_sheet(spreadsheet_id, name)
        except (urllib.error.URLError, TimeoutError, UnicodeDecodeError) as exc:
            logger.error("Failed to download sheet '%s': %s", name, exc)
            continue
        path = input_dir / f"{name}.csv"
        path.write_text(text, encoding="utf-8")
        logger.info("Saved %s", path)
        saved.append(path)
    return saved
