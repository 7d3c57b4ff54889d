# Test suite for prompt rendering

from pathlib import Path

from vibey.agent.prompts import build_condensation_prompt, build_system_prompt

TOOLS = [
    {
        "name": "read_file",
        "description": "Read a file.",
        "parameters": {"type": "object", "properties": {"path": {"type": "string"}}},
    }
]


class TestSystemPrompt:
    """System prompt assembly"""

    def test_default_instructions_name_workspace(self):
        prompt = build_system_prompt([], Path("/work/project"))
        assert "/work/project" in prompt
        assert '"tool_calls": [' in prompt
        assert "You have access to the following tools" not in prompt

    def test_catalog_is_appended(self):
        prompt = build_system_prompt(TOOLS, Path("/w"))
        assert prompt.endswith(
            "You have access to the following tools:\n\n"
            "## read_file\nRead a file.\n"
            'Parameters: {"type": "object", "properties": {"path": {"type": "string"}}}\n'
        )

    def test_custom_instructions_replace_defaults(self):
        prompt = build_system_prompt(TOOLS, Path("/w"), instructions="Only answer in haiku.")
        assert prompt.startswith("Only answer in haiku.\n\n")
        assert "Vibey" not in prompt
        assert "## read_file" in prompt


def test_condensation_prompt_carries_task_and_context():
    prompt = build_condensation_prompt("fix the bug", "<context>...</context>")
    assert "Task:\nfix the bug" in prompt
    assert prompt.endswith("Context:\n<context>...</context>")
