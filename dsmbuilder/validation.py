"""
dsmbuilder/validation.py -- Daemon and output validation.

Two kinds of checks live here:

    - Row checks (``validate_daemon``, ``validate_special_columns``) run
      against a daemon draft before resolution.  They return human-readable
      findings and never raise or mutate their input; the resolver logs the
      findings as warnings and carries on.
    - Output checks (``validate_json_directory``, ``validate_daemon_records``)
      run against the written JSON tables.  The pipeline treats their
      findings as fatal.

Usage::

    from dsmbuilder.validation import validate_daemon

    findings = validate_daemon(draft, context)
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Iterable, Mapping

import jsonschema

from dsmbuilder.coercion import parse_int, to_text
from dsmbuilder.daemon_builder import (
    ATTRIBUTE_KEYS,
    RESISTANCE_LEVELS,
    SPECIAL_ABILITY_COLUMNS,
    TRANSFORMATION_COLUMNS,
)
from dsmbuilder.lookups import LookupContext
from dsmbuilder.models.categories import ABILITY_CATEGORIES, Category

logger = logging.getLogger(__name__)

ATTRIBUTE_MIN = 1
ATTRIBUTE_MAX = 10

_SPECIAL_REQUIRED = ("id", "name", "cost")


# ------------------------------------------------------------------
# Row checks
# ------------------------------------------------------------------

def validate_daemon(draft: Mapping[str, Any], lookups: LookupContext) -> list[str]:
    """Check a daemon draft for missing fields, bad values and broken references.

    Parameters
    ----------
    draft : dict
        The unresolved daemon record from ``build_draft``.
    lookups : LookupContext
        The lookup tables references are checked against.

    Returns
    -------
    list[str]
        Findings in a stable order; empty if the draft is clean.
    """
    issues: list[str] = []
    label = _label(draft)

    if not to_text(draft.get("id")):
        issues.append(f"{label} has no id.")
    if not to_text(draft.get("name")):
        issues.append(f"{label} has no name.")

    for key, category in (("archetypes", Category.ARCHETYPE), ("subtypes", Category.SUBTYPE)):
        stub = draft.get(key) or {}
        ref_id = to_text(stub.get("id"))
        if not ref_id:
            issues.append(f"{label} has no {category.value}.")
        elif not lookups.has(category, ref_id):
            issues.append(f"{label} references unknown {category.value} '{ref_id}'.")

    level = draft.get("level")
    if not isinstance(level, int) or isinstance(level, bool) or level < 1:
        issues.append(f"{label} has level {level!r}; expected a positive integer.")
    merit = draft.get("merit")
    if not isinstance(merit, int) or isinstance(merit, bool) or merit < 0:
        issues.append(f"{label} has merit {merit!r}; expected a non-negative integer.")

    issues.extend(_check_stub_list(label, "roles", draft.get("roles"), Category.ROLE, lookups))
    issues.extend(_check_stub_list(label, "weapons", draft.get("weapons"), Category.WEAPON, lookups))
    issues.extend(_check_stub_list(label, "tactics", draft.get("tactics"), Category.TACTIC, lookups))
    abilities = draft.get("abilities") or {}
    for category in ABILITY_CATEGORIES:
        field = f"abilities.{category.table}"
        issues.extend(_check_stub_list(label, field, abilities.get(category.table), category, lookups))

    attributes = draft.get("attributes") or {}
    for key in ATTRIBUTE_KEYS:
        base = (attributes.get(key) or {}).get("base")
        if not isinstance(base, (int, float)) or not ATTRIBUTE_MIN <= base <= ATTRIBUTE_MAX:
            issues.append(
                f"{label} has {key}.base {base!r}; expected a value between "
                f"{ATTRIBUTE_MIN} and {ATTRIBUTE_MAX}."
            )

    for code, value in (draft.get("resistances") or {}).items():
        if value not in RESISTANCE_LEVELS:
            issues.append(
                f"{label} has resistance '{value}' for '{code}'; expected one of "
                f"{', '.join(RESISTANCE_LEVELS)}."
            )

    special = draft.get("special") or {}
    for key in ("abilities", "transformations"):
        for i, entry in enumerate(special.get(key) or []):
            missing = [f for f in _SPECIAL_REQUIRED if _blank(entry.get(f))]
            if missing:
                issues.append(
                    f"{label} has an incomplete special.{key}[{i}] "
                    f"(missing {', '.join(missing)})."
                )

    return issues


def validate_special_columns(row: Mapping[str, Any]) -> list[str]:
    """Report special ability / transformation column sets the draft builder
    could not take as written.

    A half-filled set is dropped silently by the draft builder, and a cost
    cell (the last column of each set) that is not an integer is stored as
    0; both are reported here so the sheet author knows why.
    """
    issues: list[str] = []
    label = f"Daemon '{to_text(row.get('name')) or to_text(row.get('id')) or '?'}'"
    for group, columns in (("special ability", SPECIAL_ABILITY_COLUMNS),
                           ("transformation", TRANSFORMATION_COLUMNS)):
        filled = [c for c in columns if to_text(row.get(c))]
        if filled and len(filled) != len(columns):
            missing = [c for c in columns if c not in filled]
            issues.append(
                f"{label} has a partial {group} (missing {', '.join(missing)}); "
                f"it was left out."
            )
        elif filled and parse_int(row.get(columns[-1])) is None:
            issues.append(
                f"{label} has a {group} {columns[-1]} '{to_text(row.get(columns[-1]))}' "
                f"that is not an integer; its cost was stored as 0."
            )
    return issues


def _check_stub_list(label, field, stubs, category: Category, lookups: LookupContext) -> list[str]:
    issues: list[str] = []
    if stubs is None:
        return [f"{label} is missing the '{field}' list."]
    for i, stub in enumerate(stubs):
        ref_id = to_text(stub.get("id"))
        if not lookups.has(category, ref_id):
            issues.append(
                f"{label} references unknown {category.value} '{ref_id}' in '{field}[{i}]'."
            )
    return issues


def _label(draft: Mapping[str, Any]) -> str:
    name = to_text(draft.get("name"))
    daemon_id = to_text(draft.get("id"))
    if name and daemon_id:
        return f"Daemon '{name}' ({daemon_id})"
    return f"Daemon '{name or daemon_id or '?'}'"


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


# ------------------------------------------------------------------
# Output checks
# ------------------------------------------------------------------

def _reject_constant(name: str):
    # json.load accepts NaN and Infinity, which strict JSON readers reject
    raise ValueError(f"non-standard constant {name}")


@lru_cache(maxsize=1)
def load_daemon_schema() -> dict:
    """Return the bundled JSON Schema for resolved daemon records."""
    text = resources.files("dsmbuilder.schemas").joinpath("daemon.schema.json").read_text(encoding="utf-8")
    return json.loads(text)


def validate_daemon_records(records: Iterable[Any]) -> list[str]:
    """Check resolved daemon records against the bundled JSON Schema."""
    validator = jsonschema.Draft202012Validator(load_daemon_schema())
    issues: list[str] = []
    for index, record in enumerate(records):
        for error in sorted(validator.iter_errors(record), key=lambda e: [str(p) for p in e.absolute_path]):
            path = ".".join(str(p) for p in error.absolute_path) or "(root)"
            ident = record.get("id", index) if isinstance(record, Mapping) else index
            issues.append(f"daemon {ident}: {path}: {error.message}")
    return issues


def validate_json_directory(directory, daemon_file: str | None = None) -> list[str]:
    """Return a problem line for every unparseable ``*.json`` in *directory*.

    If *daemon_file* names a file in the directory, its records are also
    checked with :func:`validate_daemon_records`.
    """
    directory = Path(directory)
    problems: list[str] = []
    for path in sorted(directory.glob("*.json")):
        try:
            with open(path, "r", encoding="utf-8") as fh:
                data = json.load(fh, parse_constant=_reject_constant)
        except (json.JSONDecodeError, UnicodeDecodeError, ValueError) as exc:
            problems.append(f"Invalid JSON in {path.name}: {exc}")
            continue
        if daemon_file and path.name == daemon_file:
            if not isinstance(data, list):
                problems.append(f"{path.name} must hold a JSON array of daemons.")
                continue
            problems.extend(f"{path.name}: {issue}" for issue in validate_daemon_records(data))
    return problems
