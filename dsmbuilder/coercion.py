"""
dsmbuilder/coercion.py -- Cell-level type coercion.

Spreadsheet exports deliver every cell as text.  These helpers turn that text
into JSON-friendly values:

    convert_value        generic coercion used by the flat converter
    expand_dot_notation  ``image.src`` style headers -> nested objects
    parse_int / to_int   integer reads with fallbacks, used by the daemon builder
    to_text              trimmed text reads with a fallback
    split_list           comma separated cells -> trimmed list

None of these ever raise on bad cell content; a value that cannot be parsed
falls back to the caller's default.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Any

logger = logging.getLogger(__name__)

_DECIMAL_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")

# Fields whose empty value is "" rather than None.
_EMPTY_AS_STRING = frozenset({"description"})


def convert_value(value: Any, key: str = "") -> Any:
    """Coerce one raw cell.

    - blank -> ``None`` (``""`` for ``description``)
    - ``"true"`` / ``"false"`` in any case -> bool
    - a fully decimal string -> float (unless it overflows to inf)
    - anything else passes through unchanged
    """
    if value is None:
        return "" if key in _EMPTY_AS_STRING else None
    if not isinstance(value, str):
        return value

    text = value.strip()
    if not text:
        return "" if key in _EMPTY_AS_STRING else None

    lowered = text.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False

    if _DECIMAL_RE.match(text):
        number = float(text)
        # "1e999" overflows to inf, which JSON cannot hold
        return number if math.isfinite(number) else value
    return value


def expand_dot_notation(row: dict[str, Any]) -> dict[str, Any]:
    """Nest dotted keys: ``{"apt.f": 1, "apt.i": 2}`` -> ``{"apt": {"f": 1, "i": 2}}``.

    Column order is preserved.  When a plain column and a dotted column
    collide (``image`` and ``image.src``) the nested object wins.
    """
    nested: dict[str, Any] = {}
    for key, value in row.items():
        parts = key.split(".")
        node = nested
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                if child is not None:
                    logger.debug("Column '%s' replaces scalar '%s' with an object", key, part)
                child = {}
                node[part] = child
            node = child
        leaf = parts[-1]
        if isinstance(node.get(leaf), dict) and not isinstance(value, dict):
            continue
        node[leaf] = value
    return nested


def parse_int(value: Any) -> int | None:
    """Parse an integer cell, or return ``None`` if it is blank or garbage.

    Decimal text is truncated toward zero (``"2.7"`` -> 2).  NaN and
    infinities are treated as garbage.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None

    text = str(value).strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        pass
    if not _DECIMAL_RE.match(text):
        return None
    number = float(text)
    return int(number) if math.isfinite(number) else None


def to_int(value: Any, default: int = 0) -> int:
    """Parse an integer cell, returning *default* for blanks and garbage."""
    number = parse_int(value)
    return default if number is None else number


def to_text(value: Any, default: str = "") -> str:
    """Return the trimmed text of a cell, or *default* when it is blank."""
    if value is None:
        return default
    if isinstance(value, float) and math.isnan(value):
        return default
    text = str(value).strip()
    return text if text else default


def split_list(value: Any) -> list[str]:
    """Split a comma separated cell into trimmed, non-blank pieces.

    Order and duplicates are kept; an empty cell gives ``[]``.
    """
    text = to_text(value)
    if not text:
        return []
    return [piece.strip() for piece in text.split(",") if piece.strip()]
