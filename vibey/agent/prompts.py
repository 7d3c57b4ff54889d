"""
Prompt text used by the agent loop.
"""

import json
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

DEFAULT_INSTRUCTIONS = """You are Vibey, an expert coding agent.
You are running inside the user's editor, with the workspace rooted at {workspace}.

ALWAYS use the tools below to perform actions.
When you need to use a tool, output a JSON block matching the tool schema.
Response format:
```json
{{
  "thought": "Reasoning...",
  "tool_calls": [
    {{
      "id": "unique_id",
      "name": "tool_name",
      "parameters": {{ ... }}
    }}
  ]
}}
```
Do not write normal text if you are using a tool. Output ONLY the JSON block.
When the task is complete, answer in plain text without a JSON block."""

MAX_TURNS_SUMMARY_PROMPT = (
    "You have reached the maximum number of turns. Please provide a concise summary "
    "of what you have accomplished so far, what issues you encountered, and what "
    "steps should be taken next to complete the task."
)

MAX_TURNS_FALLBACK_SUMMARY = (
    "The turn limit was reached before the task finished, and no summary could be "
    "produced. Review the conversation above and send a follow-up message to continue."
)

CONDENSE_CONTEXT_PROMPT = """Condense the following context so it can be used to answer the task below.
Keep file paths, function and class signatures, and every detail relevant to the task.
Drop boilerplate and unrelated code. Reply with the condensed context only.

Task:
{task}

Context:
{context}"""

EMPTY_RESPONSE_MESSAGE = "The model returned an empty response. Please try again."


def format_tool_catalog(tool_definitions: Iterable[Dict[str, Any]]) -> str:
    """One ``## name`` section per tool with its JSON parameter schema."""
    sections = []
    for definition in tool_definitions:
        sections.append(
            f"## {definition['name']}\n"
            f"{definition.get('description', '')}\n"
            f"Parameters: {json.dumps(definition.get('parameters', {}))}"
        )
    return "\n\n".join(sections)


def build_system_prompt(
    tool_definitions: Iterable[Dict[str, Any]],
    workspace: Path,
    instructions: Optional[str] = None,
) -> str:
    """
    Render the system prompt.

    ``instructions`` (from a custom prompt file) replaces the built-in
    instructions; the tool catalog is appended either way.
    """
    header = instructions or DEFAULT_INSTRUCTIONS.format(workspace=workspace)
    catalog = format_tool_catalog(tool_definitions)
    if not catalog:
        return header
    return f"{header}\n\nYou have access to the following tools:\n\n{catalog}\n"


def build_condensation_prompt(task: str, context: str) -> str:
    return CONDENSE_CONTEXT_PROMPT.format(task=task, context=context)
