"""
dsmbuilder/lookups.py -- Lookup tables for reference resolution.

Turns the converted leaf tables into an immutable ``LookupContext``
(category -> id -> entity).  The context is built once per run and passed
explicitly into the resolver; nothing here is module-level state.

Usage::

    from dsmbuilder.lookups import build_lookups, load_tables

    context = build_lookups(load_tables("scripts/output"))
    context.get(Category.SPELL, "sp1")
"""

from __future__ import annotations

import logging
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterable, Mapping

from pydantic import ValidationError

from dsmbuilder.errors import MissingLookupError
from dsmbuilder.models.categories import Category, model_for, normalize_id
from dsmbuilder.utils import safe_read_json

logger = logging.getLogger(__name__)

_MISSING = object()


class LookupContext:
    """Read-only id -> entity mappings, one per :class:`Category`.

    Safe to share between threads: nothing mutates it after construction.
    """

    __slots__ = ("_tables",)

    def __init__(self, tables: Mapping[Category, Mapping[str, Mapping[str, Any]]]):
        frozen = {
            category: MappingProxyType({
                entity_id: MappingProxyType(dict(entity))
                for entity_id, entity in tables.get(category, {}).items()
            })
            for category in Category
        }
        self._tables = MappingProxyType(frozen)

    def table(self, category: Category) -> Mapping[str, Mapping[str, Any]]:
        """Return the id -> entity mapping for *category* (possibly empty)."""
        return self._tables[category]

    def get(self, category: Category, entity_id: Any) -> Mapping[str, Any] | None:
        """Return the entity with *entity_id* in *category*, or ``None``."""
        key = normalize_id(entity_id)
        if not key:
            return None
        return self._tables[category].get(key)

    def has(self, category: Category, entity_id: Any) -> bool:
        return self.get(category, entity_id) is not None

    def is_empty(self, category: Category) -> bool:
        return not self._tables[category]

    def counts(self) -> dict[str, int]:
        """Entity count per table name, for logging."""
        return {category.table: len(table) for category, table in self._tables.items()}


# ------------------------------------------------------------------
# Construction
# ------------------------------------------------------------------

def build_lookups(tables: Mapping[str, Any]) -> LookupContext:
    """Build a :class:`LookupContext` from converted entity tables.

    Parameters
    ----------
    tables : mapping
        Table name (``"spells"``, ``"weapons"``, ...) -> sequence of entity
        dicts.  Tables that are absent or not a sequence produce an empty
        category and a warning.  Entities without an ``id`` are skipped with
        a warning.

    Returns
    -------
    LookupContext
    """
    built: dict[Category, dict[str, dict[str, Any]]] = {}

    for category in Category:
        entities = tables.get(category.table, _MISSING)
        lookup: dict[str, dict[str, Any]] = {}
        built[category] = lookup

        if entities is _MISSING or entities is None:
            logger.warning("Data for '%s' is missing; every reference to it will fall back to defaults", category.table)
            continue
        if not isinstance(entities, (list, tuple)):
            logger.warning("Data for '%s' is not an array; every reference to it will fall back to defaults", category.table)
            continue

        model = model_for(category)
        for index, item in enumerate(entities):
            if not isinstance(item, Mapping):
                logger.warning("Skipping non-object entry #%d in '%s'", index, category.table)
                continue
            entity_id = normalize_id(item.get("id"))
            if not entity_id:
                logger.warning("Item missing 'id' in '%s' (entry #%d, name=%r)", category.table, index, item.get("name"))
                continue
            try:
                entity = model.model_validate(dict(item)).model_dump()
            except ValidationError as exc:
                logger.warning("Skipping '%s' entry '%s': %s", category.table, entity_id, exc)
                continue
            if entity_id in lookup:
                logger.debug("Duplicate id '%s' in '%s'; the later entry wins", entity_id, category.table)
            lookup[entity_id] = entity

    for name in tables:
        try:
            Category.from_table(name)
        except ValueError:
            logger.debug("Table '%s' is not a lookup category; ignored", name)

    return LookupContext(built)


def load_tables(directory, names: Iterable[str] | None = None) -> dict[str, Any]:
    """Read converted ``<name>.json`` tables from *directory*.

    Missing files are left out of the result so that :func:`build_lookups`
    reports them; unreadable files map to ``None``.
    """
    directory = Path(directory)
    if names is None:
        names = [category.table for category in Category]

    tables: dict[str, Any] = {}
    for name in names:
        path = directory / f"{name}.json"
        if not path.is_file():
            logger.debug("No table file %s", path)
            continue
        tables[name] = safe_read_json(path)
    return tables


def require_categories(context: LookupContext, required: Iterable[Any]) -> None:
    """Raise :class:`MissingLookupError` for required categories with no entities.

    *required* items may be :class:`Category` members or table names.
    """
    missing: list[str] = []
    for item in required:
        category = item if isinstance(item, Category) else Category.from_table(str(item))
        if context.is_empty(category):
            missing.append(category.table)
    if missing:
        raise MissingLookupError(missing)
