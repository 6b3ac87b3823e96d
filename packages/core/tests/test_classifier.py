"""Tests for finding classification"""

import pytest

from specgate.models.finding import Location, Severity
from specgate.models.tool_output import TOOL_BREAKING_CHANGE, TOOL_LINT, TOOL_MODEL_VALIDATION
from specgate.triage.classifier import (
    classify,
    classify_all,
    dedupe_findings,
    normalize_spec_path,
)


class TestSeverityResolution:
    """type/level mapping"""

    def test_type_names_the_severity(self):
        finding = classify({"type": "Error", "id": "1001", "message": "m"}, TOOL_BREAKING_CHANGE)
        assert finding.severity is Severity.ERROR

    def test_level_used_when_type_is_a_record_kind(self):
        raw = {"type": "Result", "level": "Warning", "code": "X", "message": "m"}
        assert classify(raw, TOOL_MODEL_VALIDATION).severity is Severity.WARNING

    def test_type_wins_over_level(self):
        raw = {"type": "Info", "level": "Error", "message": "m"}
        assert classify(raw, TOOL_LINT).severity is Severity.INFO

    @pytest.mark.parametrize("raw", [{"message": "m"}, {"type": "Result"}, {"type": "Bogus", "level": 3}])
    def test_unrecognised_severity_is_unknown(self, raw):
        finding = classify(raw, TOOL_LINT)
        assert finding.severity is Severity.UNKNOWN
        assert not finding.is_error
        assert not finding.is_warning

    def test_case_insensitive_and_aliases(self):
        assert classify({"type": "error"}, TOOL_LINT).severity is Severity.ERROR
        assert classify({"type": "Information"}, TOOL_LINT).severity is Severity.INFO
        assert classify({"level": "fatal"}, TOOL_LINT).severity is Severity.ERROR

    def test_raw_record_is_not_mutated(self):
        raw = {"type": "Result", "level": "Error", "details": {"message": "from details"}}
        snapshot = {"type": "Result", "level": "Error", "details": {"message": "from details"}}

        finding = classify(raw, TOOL_MODEL_VALIDATION)

        assert raw == snapshot
        assert finding.message == "from details"


class TestRuleIdentifier:
    def test_id_and_code_are_combined(self):
        finding = classify({"type": "Warning", "id": "R2001", "code": "AvoidNesting"}, TOOL_LINT)
        assert finding.rule_id == "R2001 - AvoidNesting"

    def test_id_only(self):
        assert classify({"id": "1001"}, TOOL_BREAKING_CHANGE).rule_id == "1001"

    def test_code_only(self):
        assert classify({"code": "OBJECT_MISSING"}, TOOL_MODEL_VALIDATION).rule_id == "OBJECT_MISSING"

    def test_neither(self):
        assert classify({"message": "m"}, TOOL_LINT).rule_id == ""

    def test_doc_url_from_rule(self):
        finding = classify({"type": "Error", "id": "1005"}, TOOL_BREAKING_CHANGE)
        assert finding.doc_url is not None
        assert finding.doc_url.endswith("/1005.md")

    def test_no_doc_url_without_rule(self):
        assert classify({"type": "Error"}, TOOL_BREAKING_CHANGE).doc_url is None


class TestLocations:
    def test_diff_record_new_and_old(self):
        raw = {
            "type": "Error",
            "id": "1006",
            "new": {"location": "file:///work/repo/specification/a/new.json:12:5"},
            "old": {"location": "file:///tmp/x/specification/a/old.json:10:5"},
        }

        finding = classify(raw, TOOL_BREAKING_CHANGE)

        assert finding.locations == (
            Location(tag="New", path="specification/a/new.json", line=12),
            Location(tag="Old", path="specification/a/old.json", line=10),
        )

    def test_location_without_line_is_dropped(self):
        raw = {
            "type": "Error",
            "new": {"location": "specification/a/new.json"},
            "old": {"location": "specification/a/old.json:7"},
        }

        finding = classify(raw, TOOL_BREAKING_CHANGE)

        assert finding.locations == (Location(tag="Old", path="specification/a/old.json", line=7),)

    def test_linter_source_uses_first_entry(self):
        raw = {
            "type": "Warning",
            "code": "R1",
            "source": [
                {"document": "specification/a/a.json", "Position": {"line": 3, "column": 1}},
                {"document": "specification/a/b.json", "position": {"line": 9}},
            ],
        }

        finding = classify(raw, TOOL_LINT)

        assert finding.locations == (Location(tag="Source", path="specification/a/a.json", line=3),)

    def test_linter_source_without_position_has_no_location(self):
        raw = {"type": "Warning", "source": [{"document": "specification/a/a.json"}]}
        assert classify(raw, TOOL_LINT).locations == ()

    def test_model_validation_details(self):
        raw = {
            "type": "Result",
            "level": "Error",
            "code": "OBJECT_MISSING_REQUIRED_PROPERTY",
            "message": "Missing required property: name",
            "details": {
                "url": "specification/a/a.json",
                "position": {"line": 40, "column": 3},
                "jsonUrl": "specification/a/examples/get.json",
                "jsonPosition": {"line": 2},
            },
        }

        finding = classify(raw, TOOL_MODEL_VALIDATION)

        assert finding.locations == (
            Location(tag="Url", path="specification/a/a.json", line=40),
            Location(tag="JsonUrl", path="specification/a/examples/get.json", line=2),
        )
        assert finding.doc_url.endswith("#OBJECT_MISSING_REQUIRED_PROPERTY")

    def test_model_validation_flat_paths(self):
        raw = {
            "type": "Result",
            "level": "Error",
            "code": "X",
            "paths": [{"tag": "Url", "path": "specification/a/a.json#L5"}, {"tag": "JsonUrl"}],
        }

        assert classify(raw, TOOL_MODEL_VALIDATION).locations == (
            Location(tag="Url", path="specification/a/a.json", line=5),
        )

    def test_model_validation_blob_url_paths(self):
        raw = {
            "type": "Result",
            "level": "Warning",
            "code": "X",
            "paths": [
                {"tag": "Url", "path": "https://github.com/o/r/blob/abc/specification/x/a.json#L12"}
            ],
        }

        assert classify(raw, TOOL_MODEL_VALIDATION).locations == (
            Location(tag="Url", path="specification/x/a.json", line=12),
        )

    def test_non_object_record_becomes_message(self):
        finding = classify("plain text", TOOL_LINT)
        assert finding.message == "plain text"
        assert finding.severity is Severity.UNKNOWN


class TestNormalizeSpecPath:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("specification/a/a.json", "specification/a/a.json"),
            ("file:///home/ci/repo/specification/a/a.json", "specification/a/a.json"),
            ("C:\\repo\\specification\\a\\a.json", "specification/a/a.json"),
            (
                "https://github.com/o/r/blob/abc/specification/x/a.json",
                "specification/x/a.json",
            ),
            ("https://example.org/docs/a.json", "https://example.org/docs/a.json"),
            ("other/place.json", "other/place.json"),
        ],
    )
    def test_normalization(self, raw, expected):
        assert normalize_spec_path(raw) == expected


class TestDedupe:
    def test_exact_duplicates_keep_first(self, make_finding):
        first = make_finding(message="a")
        second = make_finding(message="b")

        assert dedupe_findings([first, second, first]) == [first, second]

    def test_same_message_different_line_is_kept(self, make_finding):
        findings = [make_finding(line=1), make_finding(line=2)]
        assert dedupe_findings(findings) == findings

    def test_classify_all_preserves_order(self):
        records = [{"type": "Error", "id": "2"}, {"type": "Info", "id": "1"}]
        assert [f.rule_id for f in classify_all(records, TOOL_BREAKING_CHANGE)] == ["2", "1"]
