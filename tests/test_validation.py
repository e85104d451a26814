"""
Tests for dsmbuilder/validation.py -- row findings and output checks.
"""

import copy
import json

from dsmbuilder.daemon_builder import build_draft
from dsmbuilder.resolver import resolve_daemon
from dsmbuilder.validation import (
    load_daemon_schema,
    validate_daemon,
    validate_daemon_records,
    validate_json_directory,
    validate_special_columns,
)


class TestValidateDaemon:
    """Tests for per-draft findings."""

    def test_clean_draft_has_no_findings(self, lookups, imp_row):
        row = dict(imp_row, spells="sp1")
        assert validate_daemon(build_draft(row), lookups) == []

    def test_unknown_reference_is_reported_with_field(self, lookups, imp_row):
        findings = validate_daemon(build_draft(imp_row), lookups)
        assert findings == [
            "Daemon 'Imp' (d1) references unknown spell 'sp2' in 'abilities.spells[1]'."
        ]

    def test_missing_and_bad_values(self, lookups):
        draft = build_draft({"id": "d2", "archetype": "arch9", "level": "0", "pow.base": "12"})
        findings = validate_daemon(draft, lookups)
        text = "\n".join(findings)
        assert "has no name." in text
        assert "references unknown archetype 'arch9'." in text
        assert "has no subtype." in text
        assert "has level 0; expected a positive integer." in text
        assert "has pow.base 12; expected a value between 1 and 10." in text

    def test_bad_resistance_is_reported(self, lookups, imp_row):
        draft = build_draft(dict(imp_row, spells="sp1", **{"res.f": "immune"}))
        findings = validate_daemon(draft, lookups)
        assert len(findings) == 1
        assert "resistance 'immune' for 'f'" in findings[0]

    def test_negative_merit(self, lookups, imp_row):
        draft = build_draft(dict(imp_row, spells="sp1", merit="-3"))
        assert validate_daemon(draft, lookups) == [
            "Daemon 'Imp' (d1) has merit -3; expected a non-negative integer."
        ]

    def test_missing_list_is_reported(self, lookups, imp_row):
        draft = build_draft(dict(imp_row, spells="sp1"))
        del draft["weapons"]
        assert "missing the 'weapons' list" in validate_daemon(draft, lookups)[0]

    def test_draft_is_not_mutated(self, lookups, imp_row):
        draft = build_draft(imp_row)
        before = copy.deepcopy(draft)
        validate_daemon(draft, lookups)
        assert draft == before


class TestSpecialColumns:
    """Tests for partially filled special column groups."""

    def test_partial_special_ability(self):
        findings = validate_special_columns({"name": "Imp", "special.id": "sa1"})
        assert findings == [
            "Daemon 'Imp' has a partial special ability "
            "(missing special.name, special.cost); it was left out."
        ]

    def test_complete_or_empty_groups_are_fine(self):
        row = {"transform.id": "tr1", "transform.name": "Archfiend", "transform.merit": "10"}
        assert validate_special_columns(row) == []
        assert validate_special_columns({}) == []

    def test_non_integer_cost_is_reported(self):
        row = {"name": "Imp", "special.id": "sa1", "special.name": "Hellfire", "special.cost": "x"}
        assert validate_special_columns(row) == [
            "Daemon 'Imp' has a special ability special.cost 'x' "
            "that is not an integer; its cost was stored as 0."
        ]

    def test_non_integer_transform_merit_is_reported(self):
        row = {"name": "Imp", "transform.id": "tr1", "transform.name": "Archfiend", "transform.merit": "lots"}
        findings = validate_special_columns(row)
        assert len(findings) == 1
        assert "transform.merit 'lots'" in findings[0]


class TestOutputChecks:
    """Tests for JSON directory and schema checks."""

    def test_schema_is_bundled(self):
        schema = load_daemon_schema()
        assert "resistances" in schema["required"]

    def test_resolved_record_matches_schema(self, lookups, imp_row):
        record = resolve_daemon(build_draft(imp_row), lookups)
        assert validate_daemon_records([record]) == []

    def test_schema_violation_is_reported(self, lookups, imp_row):
        record = resolve_daemon(build_draft(imp_row), lookups)
        record["level"] = "two"
        del record["tactics"]
        issues = validate_daemon_records([record])
        assert len(issues) == 2
        assert all(issue.startswith("daemon d1:") for issue in issues)

    def test_invalid_json_file_is_reported(self, tmp_path):
        (tmp_path / "good.json").write_text("[]", encoding="utf-8")
        (tmp_path / "bad.json").write_text("[{", encoding="utf-8")
        problems = validate_json_directory(tmp_path)
        assert len(problems) == 1
        assert problems[0].startswith("Invalid JSON in bad.json")

    def test_daemon_file_must_be_array(self, tmp_path):
        (tmp_path / "daemons.json").write_text(json.dumps({"id": "d1"}), encoding="utf-8")
        problems = validate_json_directory(tmp_path, daemon_file="daemons.json")
        assert problems == ["daemons.json must hold a JSON array of daemons."]

    def test_non_standard_constants_are_reported(self, tmp_path):
        (tmp_path / "spells.json").write_text('[{"id": "sp1", "cost": Infinity}]', encoding="utf-8")
        (tmp_path / "tags.json").write_text('[{"id": "t", "weight": NaN}]', encoding="utf-8")
        problems = validate_json_directory(tmp_path)
        assert len(problems) == 2
        assert problems[0].startswith("Invalid JSON in spells.json")
        assert "Infinity" in problems[0]
        assert problems[1].startswith("Invalid JSON in tags.json")
