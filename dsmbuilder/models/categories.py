"""
dsmbuilder/models/categories.py -- Pydantic v2 models for lookup entities.

Each category a daemon can reference has an explicit model.  The model's
field set is the contract for resolution: when a reference stub is resolved
only these fields are copied from the lookup entity, so a new spreadsheet
column never leaks into daemon records by accident.

Usage::

    from dsmbuilder.models.categories import Category, model_for

    weapon = model_for(Category.WEAPON).model_validate(row)
    Category.WEAPON.table      # "weapons"
"""

from __future__ import annotations

import logging
import math
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)


class Category(str, Enum):
    """Entity categories a daemon record can reference.

    The value is the tag written into a stub's ``category`` field.
    """

    ARCHETYPE = "archetype"
    SUBTYPE = "subtype"
    ROLE = "role"
    WEAPON = "weapon"
    TACTIC = "tactic"
    SPELL = "spell"
    AFFLICTION = "affliction"
    RESTORATIVE = "restorative"
    TECHNIQUE = "technique"

    @property
    def table(self) -> str:
        """Name of the converted JSON table (and lookup key) for this category."""
        return f"{self.value}s"

    @classmethod
    def from_table(cls, table: str) -> "Category":
        for category in cls:
            if category.table == table:
                return category
        raise ValueError(f"Unknown entity table '{table}'")


ABILITY_CATEGORIES = (
    Category.SPELL,
    Category.AFFLICTION,
    Category.RESTORATIVE,
    Category.TECHNIQUE,
)


def normalize_id(value: Any) -> str:
    """Return the canonical string form of an entity id.

    The flat converter turns numeric-looking ids into floats (``"101"`` ->
    101.0); lookups and stubs both go through this so they agree.
    """
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, float):
        if not math.isfinite(value):
            return ""
        if value.is_integer():
            return str(int(value))
    return str(value).strip()


# ------------------------------------------------------------------
# Models
# ------------------------------------------------------------------

class EntityModel(BaseModel):
    """Fields shared by every lookup entity."""

    model_config = ConfigDict(extra="ignore")

    id: str = ""
    name: str = ""
    category: str = ""
    description: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str:
        return normalize_id(value)

    @field_validator("name", "category", "description", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        return str(value)


class ArchetypeModel(EntityModel):
    benefits: Any = ""


class SubtypeModel(EntityModel):
    pass


class RoleModel(EntityModel):
    pass


class WeaponModel(EntityModel):
    range: Any = None
    damage: Any = None
    toHit: Any = None
    cost: Any = None
    tags: Any = Field(default_factory=list)


class TacticModel(EntityModel):
    govern: Any = None
    damage: Any = None
    toLand: Any = None
    isInfinity: Any = None
    cost: Any = None


class AbilityModel(EntityModel):
    """Spells, afflictions, restoratives and techniques share one shape."""

    aptitudes: Any = Field(default_factory=dict)


def model_for(category: Category) -> type[EntityModel]:
    """Return the model class that defines *category*'s field set."""
    match category:
        case Category.ARCHETYPE:
            return ArchetypeModel
        case Category.SUBTYPE:
            return SubtypeModel
        case Category.ROLE:
            return RoleModel
        case Category.WEAPON:
            return WeaponModel
        case Category.TACTIC:
            return TacticModel
        case Category.SPELL | Category.AFFLICTION | Category.RESTORATIVE | Category.TECHNIQUE:
            return AbilityModel
    raise ValueError(f"No model registered for category {category!r}")


def fields_for(category: Category) -> tuple[str, ...]:
    """Names of the fields resolution may copy for *category*."""
    return tuple(model_for(category).model_fields)
