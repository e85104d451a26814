"""
Tests for dsmbuilder/daemon_builder.py -- daemon draft construction.

Validates:
    - Identity, scalar fields and generated ids
    - Reference stubs for every multi-value column
    - Fixed blocks and their defaults
    - Resistance and aptitude overlays
    - Special ability / transformation singletons
"""

from dsmbuilder.daemon_builder import (
    APTITUDE_KEYS,
    ATTRIBUTE_KEYS,
    RESISTANCE_KEYS,
    STAT_KEYS,
    apply_aptitude_overlay,
    apply_resistance_overlays,
    build_draft,
)


class TestIdentity:
    """Tests for ids and scalar fields."""

    def test_source_id_is_kept(self, imp_row):
        draft = build_draft(imp_row)
        assert draft["id"] == "d1"
        assert draft["dsid"] == "d1"
        assert draft["type"] == "daemon"
        assert draft["publishId"] == ""

    def test_missing_id_is_generated(self):
        draft = build_draft({"name": "Nameless"})
        assert len(draft["id"]) == 20
        assert draft["id"].isalnum()
        assert draft["dsid"]

    def test_generated_ids_do_not_collide(self):
        ids = {build_draft({})["id"] for _ in range(500)}
        assert len(ids) == 500

    def test_explicit_dsid(self):
        assert build_draft({"id": "d1", "dsid": "DS-1"})["dsid"] == "DS-1"

    def test_scalars(self, imp_row):
        draft = build_draft(imp_row)
        assert draft["name"] == "Imp"
        assert draft["level"] == 2
        assert draft["merit"] == 5
        assert draft["image"] == {"src": "imp.png", "credit": "Someone"}
        assert draft["description"] == ""

    def test_malformed_level_falls_back_to_one(self):
        assert build_draft({"level": "abc"})["level"] == 1

    def test_malformed_merit_falls_back_to_zero(self):
        assert build_draft({"merit": "lots"})["merit"] == 0


class TestStubs:
    """Tests for reference stubs."""

    def test_single_references(self, imp_row):
        draft = build_draft(imp_row)
        assert draft["archetypes"] == {"id": "arch1", "category": "archetype"}
        assert draft["subtypes"] == {"id": "sub1", "category": "subtype"}

    def test_explicit_reference_name(self):
        draft = build_draft({"archetype": "arch1", "archetype_name": "Bruiser"})
        assert draft["archetypes"]["name"] == "Bruiser"

    def test_lists_keep_order(self, imp_row):
        draft = build_draft(imp_row)
        assert [s["id"] for s in draft["roles"]] == ["role1", "role2"]
        assert [s["id"] for s in draft["abilities"]["spells"]] == ["sp1", "sp2"]
        assert all(s["category"] == "spell" for s in draft["abilities"]["spells"])
        assert draft["weapons"] == [{"id": "w1", "category": "weapon"}]
        assert draft["tactics"] == [{"id": "t1", "category": "tactic"}]

    def test_duplicates_are_kept(self):
        draft = build_draft({"weapons": "w1,w1"})
        assert len(draft["weapons"]) == 2

    def test_empty_cells_give_empty_lists(self, imp_row):
        draft = build_draft(imp_row)
        assert draft["abilities"]["afflictions"] == []
        assert draft["abilities"]["techniques"] == []
        assert draft["origin"] == []

    def test_origin_is_plain_text(self):
        assert build_draft({"origin": "Hell, Limbo"})["origin"] == ["Hell", "Limbo"]


class TestBlocks:
    """Tests for attributes, stats, aptitudes and resistances."""

    def test_every_key_present_with_defaults(self):
        draft = build_draft({})
        assert set(draft["attributes"]) == set(ATTRIBUTE_KEYS)
        assert draft["attributes"]["dex"] == {"base": 3, "mod": 0}
        assert set(draft["stats"]) == set(STAT_KEYS)
        assert draft["stats"]["hp"] == {"mod": 0, "multiplier": 1}
        assert draft["aptitudes"] == {key: 0 for key in APTITUDE_KEYS}
        assert draft["resistances"] == {key: "normal" for key in RESISTANCE_KEYS}

    def test_columns_fill_blocks(self, imp_row):
        row = dict(imp_row, **{"hp.mod": "2", "hp.multiplier": "3", "res.i": "Resist", "apt.h": "4"})
        draft = build_draft(row)
        assert draft["attributes"]["pow"] == {"base": 4, "mod": 1}
        assert draft["stats"]["hp"] == {"mod": 2, "multiplier": 3}
        assert draft["resistances"]["i"] == "resist"
        assert draft["aptitudes"]["h"] == 4


class TestOverlays:
    """Tests for aggregate resistance and aptitude columns."""

    def test_aggregate_overrides_per_element(self):
        draft = build_draft({"res.f": "normal", "weak": "fire"})
        assert draft["resistances"]["f"] == "weak"

    def test_drain_beats_weak(self):
        draft = build_draft({"weak": "Fire, Ice", "drain": "fire"})
        assert draft["resistances"]["f"] == "drain"
        assert draft["resistances"]["i"] == "weak"

    def test_unknown_element_ignored(self):
        resistances = apply_resistance_overlays({"f": "normal"}, {"weak": "plasma"})
        assert resistances == {"f": "normal"}

    def test_aptitude_aggregate_overrides_column(self):
        draft = build_draft({"apt.f": "2", "aptitude": "f-5"})
        assert draft["aptitudes"]["f"] == 5

    def test_aptitude_aggregate_several_pairs(self):
        draft = build_draft({"aptitude": "F-2, i-1"})
        assert draft["aptitudes"]["f"] == 2
        assert draft["aptitudes"]["i"] == 1

    def test_aptitude_bad_values_ignored(self):
        aptitudes = apply_aptitude_overlay({"f": 2, "i": 1}, {"aptitude": "f-x, i, zz-3"})
        assert aptitudes == {"f": 2, "i": 1}


class TestSpecial:
    """Tests for the special block."""

    def test_complete_special_ability(self):
        row = {"special.id": "sa1", "special.name": "Hellfire", "special.cost": "3", "special.effect": "Burns"}
        special = build_draft(row)["special"]
        assert special["abilities"] == [{
            "id": "sa1", "name": "Hellfire", "category": "specialability",
            "description": "Burns", "cost": 3,
        }]
        assert special["transformations"] == []

    def test_partial_special_ability_is_dropped(self):
        special = build_draft({"special.id": "sa1", "special.name": "Hellfire"})["special"]
        assert special["abilities"] == []

    def test_transformation_uses_merit_as_cost(self):
        row = {"transform.id": "tr1", "transform.name": "Archfiend", "transform.merit": "10"}
        transformations = build_draft(row)["special"]["transformations"]
        assert transformations == [{"id": "tr1", "name": "Archfiend", "category": "transformation", "cost": 10}]
