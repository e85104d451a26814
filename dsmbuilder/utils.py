"""
dsmbuilder/utils.py -- Shared helpers for the dsm build pipeline.

Consolidates the JSON I/O and id helpers used by every pipeline stage.

All JSON writes use atomic temp-file-then-os.replace() so that a crashed
run never leaves a half-written table in the output directory.
"""

import json
import logging
import os
import secrets
import string
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits
_ID_LENGTH = 20


# ---------------------------------------------------------------------------
# JSON I/O (atomic writes)
# ---------------------------------------------------------------------------

def safe_read_json(path, default=None):
    """Load a converted table, manifest or ``dsmbuilder.json``.

    Used where an absent or unreadable file is not fatal by itself: the
    lookup builder reports a missing table as an empty category and
    ``load_config`` treats a missing config file as "no overrides".  Stages
    that need the file to exist check for it before calling this.

    Returns the parsed JSON, or *default* when the file is missing or
    cannot be parsed (the failure is logged at debug level).
    """
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as fh:
            return json.load(fh)
    except FileNotFoundError:
        return default
    except (json.JSONDecodeError, OSError) as exc:
        logger.debug("Could not read %s: %s", path, exc)
        return default


def safe_write_json(path, data, *, indent=2):
    """Write a JSON table into the output directory.

    Every file under the output directory ends up inside the ``.dsm``
    archive, so a run that dies mid-write must not leave a truncated table
    behind: the data goes to a temp file next to *path* and is moved into
    place with ``os.replace``.  No timestamps are written and key order
    follows the input, so converting the same CSV twice gives byte-identical
    files and archives only change when the sheets do.

    Parameters
    ----------
    path : str or pathlib.Path
        Target file; missing parent directories are created.
    data
        JSON-serialisable records.
    indent : int, optional
        Indentation of the pretty-printed output (default 2).
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.stem}-", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=indent, ensure_ascii=False)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


# ---------------------------------------------------------------------------
# Identifiers
# ---------------------------------------------------------------------------

def generate_id(length: int = _ID_LENGTH) -> str:
    """Return a random opaque token of *length* alphanumeric characters.

    With the default length the token space is 62**20, so collisions inside
    a single run are not a practical concern.
    """
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(length))


def is_empty(value) -> bool:
    """True for ``None``, blank strings and empty containers.

    Zero and ``False`` are real values, not empty ones.
    """
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) == 0
    return False
