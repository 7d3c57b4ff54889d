# Test suite for the model response interpreter

import json

from vibey.agent.logic.parsers import parse_llm_response
from vibey.utils.json_parser import extract_anchored_json, find_json_payload, load_json
from vibey.utils.exceptions import JsonParsingError


class TestParseLlmResponse:
    """Plain text, structured and empty replies"""

    def test_plain_text(self):
        parsed = parse_llm_response("4")
        assert parsed.text == "4"
        assert parsed.thought is None
        assert parsed.tool_calls == []
        assert not parsed.is_empty_response
        assert not parsed.is_structured

    def test_empty_and_whitespace_are_sentinel(self):
        for raw in ("", "   \n\t", None):
            parsed = parse_llm_response(raw)
            assert parsed.is_empty_response
            assert parsed.tool_calls == []

    def test_bare_object_with_nested_braces_in_strings(self):
        raw = (
            'Sure: {"thought":"x","tool_calls":[{"id":"1","name":"write_file",'
            '"parameters":{"path":"a","content":"}{\\"q\\""}}]} trailing'
        )
        parsed = parse_llm_response(raw)

        assert parsed.extraction_method == "bracket"
        assert parsed.thought == "x"
        assert len(parsed.tool_calls) == 1
        call = parsed.tool_calls[0]
        assert call.id == "1"
        assert call.name == "write_file"
        assert call.parameters == {"path": "a", "content": '}{"q"'}

    def test_fenced_block(self):
        payload = {
            "thought": "read it",
            "tool_calls": [{"id": "c1", "name": "read_file", "parameters": {"path": "x.py"}}],
        }
        raw = "Let me look.\n```json\n" + json.dumps(payload, indent=2) + "\n```\nDone."
        parsed = parse_llm_response(raw)

        assert parsed.extraction_method == "fenced"
        assert parsed.thought == payload["thought"]
        assert [c.model_dump() for c in parsed.tool_calls] == payload["tool_calls"]

    def test_fence_label_is_case_insensitive_and_doubled_tag_stripped(self):
        raw = '```JSON\njson\n{"thought": "hmm", "tool_calls": []}\n```'
        parsed = parse_llm_response(raw)
        assert parsed.thought == "hmm"
        assert parsed.extraction_method == "fenced"

    def test_invalid_json_falls_back_to_plain_text(self):
        raw = '```json\n{"thought": "oops",}\n```'
        parsed = parse_llm_response(raw)
        assert parsed.text == raw
        assert not parsed.is_structured
        assert not parsed.is_empty_response

    def test_unrelated_object_is_plain_text(self):
        raw = '```json\n{"name": "John", "age": 30}\n```'
        parsed = parse_llm_response(raw)
        assert parsed.text == raw
        assert parsed.thought is None
        assert not parsed.has_tool_calls

    def test_unbalanced_object_is_plain_text(self):
        raw = '{"thought": "never closed", "tool_calls": [{"name": "x"'
        parsed = parse_llm_response(raw)
        assert parsed.text == raw
        assert not parsed.is_structured

    def test_bad_tool_call_entries_are_dropped(self):
        raw = json.dumps(
            {
                "thought": "mixed",
                "tool_calls": ["nope", {"parameters": {}}, {"name": "scan_project"}],
            }
        )
        parsed = parse_llm_response(raw)
        assert [c.name for c in parsed.tool_calls] == ["scan_project"]
        assert parsed.tool_calls[0].parameters == {}
        assert parsed.tool_calls[0].id.startswith("call_")

    def test_string_encoded_parameters_are_decoded(self):
        raw = json.dumps(
            {"tool_calls": [{"name": "read_file", "parameters": json.dumps({"path": "a"})}]}
        )
        parsed = parse_llm_response(raw)
        assert parsed.tool_calls[0].parameters == {"path": "a"}

    def test_thought_only(self):
        parsed = parse_llm_response('{"thought": "All done."}')
        assert parsed.thought == "All done."
        assert not parsed.has_tool_calls
        assert parsed.is_structured


class TestJsonHelpers:
    """Low-level extraction helpers"""

    def test_anchor_skips_unrelated_leading_objects(self):
        text = 'config {"a": 1} then {"tool_calls": []}'
        assert extract_anchored_json(text) == '{"tool_calls": []}'

    def test_find_json_payload_reports_method(self):
        assert find_json_payload("no json here") == (None, None)
        assert find_json_payload('{"thought": "t"}') == ('{"thought": "t"}', "bracket")

    def test_load_json_returns_error_object(self):
        value, error = load_json("{broken")
        assert value is None
        assert isinstance(error, JsonParsingError)
        assert error.partial_data == "{broken"
