"""
dsmbuilder/resolver.py -- Daemon reference resolution.

Takes daemon drafts from ``daemon_builder`` and fills every reference stub
from the lookup tables:

    - a stub whose id exists in its category gets the entity's known fields
      wherever the stub's own field is missing or empty; fields already set
      on the stub (its ``category`` tag, an explicit ``name``) are kept;
    - a stub whose id is unknown gets ``name = "Unknown"`` and
      ``description = ""`` and is otherwise left as drafted.

Resolution never raises, so one bad row cannot stop a batch.  Findings from
``validation.validate_daemon`` are logged per row as warnings.

Usage::

    from dsmbuilder.resolver import DaemonResolver

    resolver = DaemonResolver(context)
    result = resolver.resolve_rows(rows)
    result.records          # one record per row, in row order
"""

from __future__ import annotations

import copy
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Mapping

from dsmbuilder.daemon_builder import (
    DEFAULT_RESISTANCE,
    RESISTANCE_LEVELS,
    build_draft,
)
from dsmbuilder.lookups import LookupContext
from dsmbuilder.models.categories import Category, fields_for
from dsmbuilder.sources import read_csv_rows
from dsmbuilder.utils import is_empty, safe_write_json
from dsmbuilder.validation import validate_daemon, validate_special_columns

logger = logging.getLogger(__name__)

FALLBACK_NAME = "Unknown"
FALLBACK_DESCRIPTION = ""


# ------------------------------------------------------------------
# Single references
# ------------------------------------------------------------------

def resolve_reference(stub: Mapping[str, Any], category: Category, lookups: LookupContext) -> dict[str, Any]:
    """Return a resolved copy of *stub*.

    Only the fields of *category*'s model are copied from the lookup entity.
    """
    resolved = dict(stub)
    entity = lookups.get(category, stub.get("id"))

    if entity is None:
        logger.debug("No matching %s found with id '%s'", category.value, stub.get("id"))
        if is_empty(resolved.get("name")):
            resolved["name"] = FALLBACK_NAME
        if is_empty(resolved.get("description")):
            resolved["description"] = FALLBACK_DESCRIPTION
        return resolved

    for name in fields_for(category):
        if name in entity and is_empty(resolved.get(name)):
            resolved[name] = copy.deepcopy(entity[name])
    return resolved


def _slot(category: Category) -> tuple[str, ...]:
    """Path of the draft field that holds *category*'s references."""
    match category:
        case Category.ARCHETYPE:
            return ("archetypes",)
        case Category.SUBTYPE:
            return ("subtypes",)
        case Category.ROLE:
            return ("roles",)
        case Category.WEAPON:
            return ("weapons",)
        case Category.TACTIC:
            return ("tactics",)
        case Category.SPELL | Category.AFFLICTION | Category.RESTORATIVE | Category.TECHNIQUE:
            return ("abilities", category.table)
    raise ValueError(f"No daemon field holds {category!r} references")


# ------------------------------------------------------------------
# Whole daemons
# ------------------------------------------------------------------

def resolve_daemon(draft: Mapping[str, Any], lookups: LookupContext) -> dict[str, Any]:
    """Return a fully resolved copy of *draft*.  The draft is not modified."""
    record = copy.deepcopy(dict(draft))

    for category in Category:
        *parents, leaf = _slot(category)
        container = record
        for key in parents:
            container = container.setdefault(key, {})
        value = container.get(leaf)
        if isinstance(value, list):
            container[leaf] = [resolve_reference(stub, category, lookups) for stub in value]
        elif isinstance(value, Mapping):
            container[leaf] = resolve_reference(value, category, lookups)
        elif category in (Category.ARCHETYPE, Category.SUBTYPE):
            container[leaf] = resolve_reference({"id": "", "category": category.value}, category, lookups)
        else:
            container[leaf] = []

    resistances = record.get("resistances") or {}
    for code, level in resistances.items():
        if level not in RESISTANCE_LEVELS:
            resistances[code] = DEFAULT_RESISTANCE
    return record


@dataclass
class ResolutionResult:
    """Resolved records plus the validation findings for each row."""

    records: list[dict[str, Any]] = field(default_factory=list)
    findings: list[list[str]] = field(default_factory=list)

    @property
    def finding_count(self) -> int:
        return sum(len(f) for f in self.findings)

    @property
    def rows_with_findings(self) -> int:
        return sum(1 for f in self.findings if f)


class DaemonResolver:
    """Turns ``daemons.csv`` rows into resolved daemon records.

    Parameters
    ----------
    lookups : LookupContext
        Read-only lookup tables; shared between worker threads.
    workers : int, optional
        Number of threads used by :meth:`resolve_rows` (default 1).  Output
        order always matches input order.
    """

    def __init__(self, lookups: LookupContext, workers: int = 1):
        self.lookups = lookups
        self.workers = max(1, int(workers))

    def process_row(self, row: Mapping[str, Any]) -> tuple[dict[str, Any], list[str]]:
        """Build, validate and resolve one row.  Returns ``(record, findings)``."""
        draft = build_draft(row)
        findings = validate_special_columns(row) + validate_daemon(draft, self.lookups)
        return resolve_daemon(draft, self.lookups), findings

    def resolve_rows(self, rows: Iterable[Mapping[str, Any]]) -> ResolutionResult:
        """Resolve every row; findings are logged as warnings per row."""
        rows = list(rows)
        if self.workers > 1 and len(rows) > 1:
            with ThreadPoolExecutor(max_workers=self.workers) as pool:
                outcomes = list(pool.map(self.process_row, rows))
        else:
            outcomes = [self.process_row(row) for row in rows]

        result = ResolutionResult()
        for index, (record, findings) in enumerate(outcomes, start=1):
            for finding in findings:
                logger.warning("Row %d: %s", index, finding)
            result.records.append(record)
            result.findings.append(findings)
        return result

    def resolve_file(self, csv_path, json_path) -> ResolutionResult:
        """Resolve a composite CSV file and write the records to *json_path*."""
        rows = read_csv_rows(csv_path)
        result = self.resolve_rows(rows)
        safe_write_json(json_path, result.records)
        logger.info(
            "Resolved %d daemon(s) from %s -> %s (%d finding(s) in %d row(s))",
            len(result.records), Path(csv_path).name, json_path,
            result.finding_count, result.rows_with_findings,
        )
        return result
