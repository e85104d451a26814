"""
Shared pytest fixtures for the dsmbuilder test suite.

Provides:
    - lookup_tables: converted leaf tables, one small table per category
    - lookups: a LookupContext built from lookup_tables
    - imp_row: a daemons.csv row referencing known and unknown entities
    - temp_project: a temporary project root with input CSVs for every stage
"""

import sys
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Ensure dsmbuilder/ is importable regardless of where pytest is invoked
# ---------------------------------------------------------------------------

PROJECT_ROOT = Path(__file__).resolve().parent.parent

if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from dsmbuilder.lookups import build_lookups  # noqa: E402


# ---------------------------------------------------------------------------
# Sample data
# ---------------------------------------------------------------------------

INPUT_CSVS = {
    "manifest.csv": (
        "id,version,name\n"
        "core,1.2.0,Core Daemons\n"
    ),
    "archetypes.csv": (
        "id,name,description,benefits\n"
        "arch1,Brute,Hits things hard,+1 pow\n"
        "arch2,Trickster,Lies,+1 dex\n"
    ),
    "subtypes.csv": (
        "id,name,description\n"
        "sub1,Fiend,Born of flame\n"
    ),
    "roles.csv": (
        "id,name,description\n"
        "role1,Striker,Deals damage\n"
        "role2,Guardian,Protects allies\n"
    ),
    "weapons.csv": (
        "id,name,category,range,damage,toHit,cost,tags,description\n"
        "w1,Claw,weapon,melee,4,1,0,sharp,Natural weapon\n"
    ),
    "tactics.csv": (
        "id,name,govern,damage,toLand,isInfinity,cost,description\n"
        "t1,Ambush,dex,2,1,false,3,Strike first\n"
    ),
    "spells.csv": (
        "id,name,description,aptKey,aptValue\n"
        "sp1,Fireball,A ball of fire,f,2\n"
    ),
    "afflictions.csv": (
        "id,name,description,aptKey,aptValue\n"
        "af1,Poison,Slow damage,,\n"
    ),
    "restoratives.csv": (
        "id,name,description\n"
        "r1,Mend,Heals wounds\n"
    ),
    "techniques.csv": (
        "id,name,description\n"
        "te1,Parry,Blocks a blow\n"
    ),
    "tags.csv": (
        "id,name,description\n"
        "sharp,Sharp,\n"
    ),
    "daemons.csv": (
        "id,name,archetype,subtype,role,weapons,tactics,spells,level,merit,pow.base,weak,drain,aptitude,apt.f\n"
        "d1,Imp,arch1,sub1,role1,w1,t1,\"sp1,sp2\",2,5,4,Fire,,f-5,2\n"
        ",Nameless,arch9,sub1,,,,,abc,,7,,,,\n"
    ),
}


@pytest.fixture
def lookup_tables():
    """Return converted leaf tables keyed by table name."""
    return {
        "archetypes": [
            {"id": "arch1", "name": "Brute", "description": "Hits things hard", "benefits": "+1 pow"},
            {"id": "arch2", "name": "Trickster", "description": "Lies", "benefits": "+1 dex"},
        ],
        "subtypes": [
            {"id": "sub1", "name": "Fiend", "description": "Born of flame"},
        ],
        "roles": [
            {"id": "role1", "name": "Striker", "description": "Deals damage"},
            {"id": "role2", "name": "Guardian", "description": "Protects allies"},
        ],
        "weapons": [
            {"id": "w1", "name": "Claw", "category": "weapon", "range": "melee",
             "damage": 4.0, "toHit": 1.0, "cost": 0.0, "tags": "sharp",
             "description": "Natural weapon"},
        ],
        "tactics": [
            {"id": "t1", "name": "Ambush", "govern": "dex", "damage": 2.0, "toLand": 1.0,
             "isInfinity": False, "cost": 3.0, "description": "Strike first"},
        ],
        "spells": [
            {"id": "sp1", "name": "Fireball", "description": "A ball of fire", "aptitudes": {"f": 2.0}},
        ],
        "afflictions": [
            {"id": "af1", "name": "Poison", "description": "Slow damage", "aptitudes": {}},
        ],
        "restoratives": [
            {"id": "r1", "name": "Mend", "description": "Heals wounds"},
        ],
        "techniques": [
            {"id": "te1", "name": "Parry", "description": "Blocks a blow"},
        ],
    }


@pytest.fixture
def lookups(lookup_tables):
    """Return a LookupContext built from lookup_tables."""
    return build_lookups(lookup_tables)


@pytest.fixture
def imp_row():
    """Return a daemons.csv row as read by sources.read_csv_rows."""
    return {
        "id": "d1",
        "name": "Imp",
        "archetype": "arch1",
        "subtype": "sub1",
        "role": "role1, role2",
        "weapons": "w1",
        "tactics": "t1",
        "spells": "sp1,sp2",
        "afflictions": "",
        "restoratives": "r1",
        "techniques": "",
        "level": "2",
        "merit": "5",
        "pow.base": "4",
        "pow.mod": "1",
        "image.src": "imp.png",
        "image.credit": "Someone",
    }


@pytest.fixture
def temp_project(tmp_path):
    """Create a project root whose input/ holds one CSV per sheet.

    Returns the project root as a Path.
    """
    root = tmp_path / "project"
    input_dir = root / "input"
    input_dir.mkdir(parents=True)
    for filename, text in INPUT_CSVS.items():
        (input_dir / filename).write_text(text, encoding="utf-8")
    return root
