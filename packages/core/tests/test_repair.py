"""Tests for tool output stream repair"""

import json

import pytest

from specgate.errors import MalformedOutput
from specgate.parsing.repair import repair_stream


class TestRepairStream:
    """Concatenated JSON objects become an ordered array"""

    def test_two_objects_keep_stream_order(self):
        raw = '{"type":"Error","id":"1"}\n{"type":"Warning","id":"2"}'

        records = repair_stream(raw)

        assert records == [{"type": "Error", "id": "1"}, {"type": "Warning", "id": "2"}]

    def test_objects_separated_by_mixed_whitespace(self):
        raw = '{"id":"1"} \r\n\t {"id":"2"}   {"id":"3"}'

        assert [r["id"] for r in repair_stream(raw)] == ["1", "2", "3"]

    def test_single_object(self):
        assert repair_stream('{"id":"1"}') == [{"id": "1"}]

    def test_existing_array_is_returned_unchanged(self):
        records = [{"id": "1"}, {"id": "2"}]
        raw = json.dumps(records)

        assert repair_stream(raw) == records

    def test_repairing_serialized_output_is_idempotent(self):
        raw = '{"id":"1"}\n{"id":"2"}'
        once = repair_stream(raw)

        assert repair_stream(json.dumps(once)) == once

    @pytest.mark.parametrize("raw", ["", None, "no json here", "[]\n", "INFORMATION: done"])
    def test_output_without_brace_yields_empty_list(self, raw):
        assert repair_stream(raw) == []

    def test_leading_text_is_dropped(self):
        raw = 'AutoRest code generation utility\nLoading...\n{"type":"Warning","code":"X"}'

        assert repair_stream(raw) == [{"type": "Warning", "code": "X"}]

    def test_noise_lines_are_removed(self):
        raw = (
            'Processing batch task - {"tag":"package-2020"} .\n'
            '{"type":"Error","code":"A"}\n'
            'Processing batch task - {"tag":"package-2021"} .\n'
            '{"type":"Warning","code":"B"}\n'
        )

        records = repair_stream(raw)

        assert [r["code"] for r in records] == ["A", "B"]

    def test_nested_objects_survive(self):
        raw = '{"id":"1","old":{"location":"a.json:3"}}\n{"id":"2","new":{"location":"b.json:4"}}'

        records = repair_stream(raw)

        assert records[0]["old"] == {"location": "a.json:3"}
        assert records[1]["new"] == {"location": "b.json:4"}


class TestMalformedOutput:
    """Unrepairable output raises with context"""

    def test_truncated_object_raises(self):
        with pytest.raises(MalformedOutput) as exc_info:
            repair_stream('{"id":"1"}\n{"id":', path="specification/a.json")

        assert exc_info.value.path == "specification/a.json"
        assert "specification/a.json" in str(exc_info.value)
        assert exc_info.value.excerpt.startswith("[")

    def test_excerpt_is_truncated(self):
        raw = '{"message":"' + "x" * 500 + '"'

        with pytest.raises(MalformedOutput) as exc_info:
            repair_stream(raw)

        assert "truncated" in exc_info.value.excerpt
        assert len(exc_info.value.excerpt) < 300

    def test_unrepairable_text_between_objects(self):
        with pytest.raises(MalformedOutput):
            repair_stream('{"id":"1"} garbage {"id":"2"}')
