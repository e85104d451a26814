"""
dsmbuilder/daemon_builder.py -- Daemon draft construction.

Builds the unresolved daemon record for one ``daemons.csv`` row.  The fixed
blocks (attributes, stats, aptitudes, resistances) are read from
individually named columns (``pow.base``, ``hp.mod``, ``apt.f``, ``res.p``)
rather than through generic dot-expansion, so the key names below are the
single source of truth for those blocks.

Multi-value columns become reference stubs ``{"id": ..., "category": ...}``
which the resolver later fills from the lookup tables.

Usage::

    from dsmbuilder.daemon_builder import build_draft

    draft = build_draft({"id": "d1", "name": "Imp", "spells": "sp1,sp2"})
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from dsmbuilder.coercion import parse_int, split_list, to_int, to_text
from dsmbuilder.models.categories import Category
from dsmbuilder.utils import generate_id

logger = logging.getLogger(__name__)

DAEMON_TYPE = "daemon"

ATTRIBUTE_KEYS = ("pow", "dex", "will", "sta")
STAT_KEYS = ("hp", "wp", "avoid", "def", "toHit", "toLand", "willStrain")
APTITUDE_KEYS = (
    "f", "i", "el", "w", "ea", "l", "d",
    "dp", "dm", "da", "h",
    "tb", "tt", "tg", "ta",
    "assist",
)
RESISTANCE_KEYS = ("p", "f", "i", "el", "w", "ea", "l", "d")

RESISTANCE_LEVELS = ("normal", "weak", "resist", "nullify", "drain")
DEFAULT_RESISTANCE = "normal"

# Aggregate columns, applied in this order; a later column overwrites an
# earlier one for the same element.
RESISTANCE_OVERLAY_ORDER = ("weak", "resist", "nullify", "drain")

ELEMENT_CODES = {
    "physical": "p",
    "fire": "f",
    "ice": "i",
    "electric": "el",
    "wind": "w",
    "earth": "ea",
    "light": "l",
    "dark": "d",
}

DEFAULT_LEVEL = 1
DEFAULT_MERIT = 0
DEFAULT_ATTRIBUTE_BASE = 3
DEFAULT_MOD = 0
DEFAULT_MULTIPLIER = 1
DEFAULT_APTITUDE = 0

_ABILITY_COLUMNS = (
    ("spells", Category.SPELL),
    ("afflictions", Category.AFFLICTION),
    ("restoratives", Category.RESTORATIVE),
    ("techniques", Category.TECHNIQUE),
)

SPECIAL_ABILITY_COLUMNS = ("special.id", "special.name", "special.cost")
TRANSFORMATION_COLUMNS = ("transform.id", "transform.name", "transform.merit")


# ------------------------------------------------------------------
# Stubs
# ------------------------------------------------------------------

def make_stub(entity_id: str, category: Category, **fields: Any) -> dict[str, Any]:
    """Return a reference stub for *entity_id* in *category*."""
    stub: dict[str, Any] = {"id": entity_id, "category": category.value}
    stub.update(fields)
    return stub


def _stubs(cell: Any, category: Category) -> list[dict[str, Any]]:
    return [make_stub(entity_id, category) for entity_id in split_list(cell)]


# ------------------------------------------------------------------
# Fixed blocks
# ------------------------------------------------------------------

def _attributes(row: Mapping[str, Any]) -> dict[str, dict[str, int]]:
    return {
        key: {
            "base": to_int(row.get(f"{key}.base"), DEFAULT_ATTRIBUTE_BASE),
            "mod": to_int(row.get(f"{key}.mod"), DEFAULT_MOD),
        }
        for key in ATTRIBUTE_KEYS
    }


def _stats(row: Mapping[str, Any]) -> dict[str, dict[str, int]]:
    return {
        key: {
            "mod": to_int(row.get(f"{key}.mod"), DEFAULT_MOD),
            "multiplier": to_int(row.get(f"{key}.multiplier"), DEFAULT_MULTIPLIER),
        }
        for key in STAT_KEYS
    }


def _aptitudes(row: Mapping[str, Any]) -> dict[str, int]:
    return {key: to_int(row.get(f"apt.{key}"), DEFAULT_APTITUDE) for key in APTITUDE_KEYS}


def _resistances(row: Mapping[str, Any]) -> dict[str, str]:
    return {
        key: to_text(row.get(f"res.{key}"), DEFAULT_RESISTANCE).lower()
        for key in RESISTANCE_KEYS
    }


def _special(row: Mapping[str, Any]) -> dict[str, list[dict[str, Any]]]:
    """Special ability / transformation singletons.

    Each is present only when all of its required columns are filled.
    """
    abilities: list[dict[str, Any]] = []
    transformations: list[dict[str, Any]] = []

    if all(to_text(row.get(col)) for col in SPECIAL_ABILITY_COLUMNS):
        abilities.append({
            "id": to_text(row.get("special.id")),
            "name": to_text(row.get("special.name")),
            "category": "specialability",
            "description": to_text(row.get("special.effect")),
            "cost": to_int(row.get("special.cost"), 0),
        })

    if all(to_text(row.get(col)) for col in TRANSFORMATION_COLUMNS):
        transformations.append({
            "id": to_text(row.get("transform.id")),
            "name": to_text(row.get("transform.name")),
            "category": "transformation",
            "cost": to_int(row.get("transform.merit"), 0),
        })

    return {"abilities": abilities, "transformations": transformations}


# ------------------------------------------------------------------
# Overlays
# ------------------------------------------------------------------

def apply_resistance_overlays(resistances: dict[str, str], row: Mapping[str, Any]) -> dict[str, str]:
    """Overwrite per-element resistances from the aggregate level columns.

    Columns ``weak``, ``resist``, ``nullify`` and ``drain`` list element
    *names* (``"Fire, Ice"``).  They are applied in that order, so an element
    named in both ``weak`` and ``drain`` ends up as ``drain``.  Unknown
    element names are ignored.
    """
    for level in RESISTANCE_OVERLAY_ORDER:
        for element in split_list(row.get(level)):
            code = ELEMENT_CODES.get(element.lower())
            if code is None:
                logger.debug("Unknown element '%s' in '%s' column", element, level)
                continue
            resistances[code] = level
    return resistances


def apply_aptitude_overlay(aptitudes: dict[str, int], row: Mapping[str, Any]) -> dict[str, int]:
    """Overwrite aptitudes from the aggregate ``aptitude`` column.

    The column holds ``code-value`` pairs (``"f-2, i-1"``).  Pairs with an
    unknown code or a value that is not an integer leave the aptitude as it
    was.
    """
    for pair in split_list(row.get("aptitude")):
        code, sep, raw_value = pair.partition("-")
        code = code.strip().lower()
        if not sep or not code:
            continue
        if code not in aptitudes:
            logger.debug("Unknown aptitude code '%s' in aggregate column", code)
            continue
        value = parse_int(raw_value)
        if value is None:
            continue
        aptitudes[code] = value
    return aptitudes


# ------------------------------------------------------------------
# Draft
# ------------------------------------------------------------------

def build_draft(row: Mapping[str, Any]) -> dict[str, Any]:
    """Build the unresolved daemon record for one CSV row.

    Never raises on bad cell content: integers fall back to their defaults,
    blank lists become ``[]`` and a missing id is generated.
    """
    source_id = to_text(row.get("id"))
    daemon_id = source_id or generate_id()

    resistances = apply_resistance_overlays(_resistances(row), row)
    aptitudes = apply_aptitude_overlay(_aptitudes(row), row)

    draft: dict[str, Any] = {
        "id": daemon_id,
        "dsid": to_text(row.get("dsid")) or source_id or generate_id(),
        "publishId": "",
        "type": DAEMON_TYPE,
        "name": to_text(row.get("name")),
        "description": to_text(row.get("description")),
        "image": {
            "src": to_text(row.get("image.src")),
            "credit": to_text(row.get("image.credit")),
        },
        "level": to_int(row.get("level"), DEFAULT_LEVEL),
        "merit": to_int(row.get("merit"), DEFAULT_MERIT),
        "archetypes": make_stub(
            to_text(row.get("archetype")), Category.ARCHETYPE,
            **_optional_name(row, "archetype_name"),
        ),
        "subtypes": make_stub(
            to_text(row.get("subtype")), Category.SUBTYPE,
            **_optional_name(row, "subtype_name"),
        ),
        "roles": _stubs(row.get("role"), Category.ROLE),
        "origin": split_list(row.get("origin")),
        "attributes": _attributes(row),
        "stats": _stats(row),
        "aptitudes": aptitudes,
        "resistances": resistances,
        "weapons": _stubs(row.get("weapons"), Category.WEAPON),
        "abilities": {
            key: _stubs(row.get(key), category) for key, category in _ABILITY_COLUMNS
        },
        "tactics": _stubs(row.get("tactics"), Category.TACTIC),
        "special": _special(row),
    }

    if not source_id:
        logger.debug("Row '%s' has no id; generated %s", draft["name"], daemon_id)
    return draft


def _optional_name(row: Mapping[str, Any], column: str) -> dict[str, str]:
    name = to_text(row.get(column))
    return {"name": name} if name else {}
