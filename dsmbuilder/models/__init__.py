"""
dsmbuilder/models/ -- Pydantic v2 models for the dsm build pipeline.

Submodules:
    categories  Category enum and per-category entity models.
"""

from dsmbuilder.models.categories import (
    ABILITY_CATEGORIES,
    Category,
    EntityModel,
    fields_for,
    model_for,
    normalize_id,
)

__all__ = [
    "ABILITY_CATEGORIES",
    "Category",
    "EntityModel",
    "fields_for",
    "model_for",
    "normalize_id",
]
