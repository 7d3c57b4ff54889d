"""
Model Response Interpreter.

Decides whether raw model text is a plain answer, a thought with tool
calls, or an empty reply. Malformed output is expected from small local
models, so nothing here raises: anything that cannot be read as a tool
call payload is returned as plain text.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from vibey.agent.structs import ParsedResponse, ToolCall
from vibey.utils.json_parser import find_json_payload, load_json

logger = logging.getLogger("ResponseParser")


def parse_llm_response(raw: Optional[str]) -> ParsedResponse:
    """Interpret one model reply."""
    text = raw or ""

    candidate, method = find_json_payload(text)
    if candidate is None:
        if not text.strip():
            return ParsedResponse(text=text, is_empty_response=True)
        return ParsedResponse(text=text)

    payload, error = load_json(candidate)
    if error is not None:
        logger.debug("Falling back to plain text: %s", error.message)
        return ParsedResponse(text=text)

    if not isinstance(payload, dict):
        return ParsedResponse(text=text)

    raw_calls = payload.get("tool_calls")
    has_calls = isinstance(raw_calls, list)
    has_thought = "thought" in payload
    if not has_calls and not has_thought:
        return ParsedResponse(text=text)

    thought = payload.get("thought")
    if thought is not None and not isinstance(thought, str):
        thought = json.dumps(thought)

    return ParsedResponse(
        text=text,
        thought=thought,
        tool_calls=_coerce_tool_calls(raw_calls) if has_calls else [],
        extraction_method=method,
    )


def _coerce_tool_calls(raw_calls: List[Any]) -> List[ToolCall]:
    """Build ToolCall objects, skipping entries the model got wrong."""
    calls: List[ToolCall] = []
    for index, entry in enumerate(raw_calls):
        if not isinstance(entry, dict):
            logger.warning("Skipping tool call %d: not an object", index)
            continue

        name = entry.get("name")
        if not isinstance(name, str) or not name.strip():
            logger.warning("Skipping tool call %d: missing name", index)
            continue

        fields: Dict[str, Any] = {
            "name": name.strip(),
            "parameters": _coerce_parameters(entry.get("parameters")),
        }
        call_id = entry.get("id")
        if call_id is not None and str(call_id).strip():
            fields["id"] = str(call_id)

        calls.append(ToolCall(**fields))
    return calls


def _coerce_parameters(value: Any) -> Dict[str, Any]:
    if isinstance(value, dict):
        return value
    if isinstance(value, str):
        # Some models double-encode the parameters object.
        decoded, error = load_json(value)
        if error is None and isinstance(decoded, dict):
            return decoded
    if value is not None:
        logger.warning("Ignoring non-object tool parameters: %r", value)
    return {}
