#!/usr/bin/env python3
"""
Apply Patch Tool - Edit an existing file with a unified diff.

Hunks are located by their context and removed lines, not by the line
numbers in the ``@@`` header, so a patch written against a slightly stale
view of the file still applies. The header position is only used to pick
between several identical matches.
"""

import re
from typing import List, Optional, Tuple

from pydantic import Field

from vibey.tools.base import BaseTool, ToolParams, ToolResult

HUNK_HEADER = re.compile(r"^@@ -(\d+)(?:,\d+)? \+\d+(?:,\d+)? @@")
FILE_HEADER_PREFIXES = ("--- ", "+++ ", "diff ", "index ")


class PatchError(ValueError):
    """The patch is malformed or does not match the file."""


class Hunk:
    def __init__(self, old_start: Optional[int]):
        self.old_start = old_start
        self.lines: List[str] = []

    @property
    def before(self) -> List[str]:
        return [line[1:] for line in self.lines if line[:1] in (" ", "-")]

    @property
    def after(self) -> List[str]:
        return [line[1:] for line in self.lines if line[:1] in (" ", "+")]


def parse_hunks(patch: str) -> List[Hunk]:
    """Split unified diff text into hunks. File headers are skipped."""
    hunks: List[Hunk] = []
    current: Optional[Hunk] = None

    for line in patch.splitlines():
        if line.startswith("@@"):
            match = HUNK_HEADER.match(line)
            current = Hunk(int(match.group(1)) if match else None)
            hunks.append(current)
            continue
        if current is None:
            if line.startswith(FILE_HEADER_PREFIXES) or not line.strip():
                continue
            raise PatchError(f"Unexpected line before the first hunk: {line!r}")
        if line.startswith("\\"):
            # "\ No newline at end of file"
            continue
        if line == "":
            current.lines.append(" ")
        elif line[:1] in (" ", "+", "-"):
            current.lines.append(line)
        else:
            raise PatchError(f"Invalid patch line: {line!r}")

    hunks = [hunk for hunk in hunks if hunk.lines]
    if not hunks:
        raise PatchError("No hunks found. Use unified diff format with @@ headers.")
    return hunks


def _find_block(lines: List[str], block: List[str], start: int) -> List[int]:
    size = len(block)
    return [
        i for i in range(start, len(lines) - size + 1) if lines[i : i + size] == block
    ]


def apply_hunks(lines: List[str], hunks: List[Hunk]) -> Tuple[List[str], int]:
    """
    Apply hunks in order and return the new lines and the line delta.

    Raises:
        PatchError: A hunk has no anchor lines or its lines are not found.
    """
    result = list(lines)
    cursor = 0
    for number, hunk in enumerate(hunks, 1):
        before, after = hunk.before, hunk.after
        if not before:
            if hunk.old_start is None:
                raise PatchError(f"Hunk {number} has no context lines to anchor it")
            # Pure insertion: "@@ -N,0" inserts after line N.
            position = min(max(hunk.old_start, cursor), len(result))
        else:
            matches = _find_block(result, before, cursor)
            if not matches:
                raise PatchError(
                    f"Hunk {number} does not match the file. "
                    "Read the file again and regenerate the patch."
                )
            position = matches[0]
            if hunk.old_start is not None and len(matches) > 1:
                position = min(matches, key=lambda i: abs(i + 1 - hunk.old_start))

        result[position : position + len(before)] = after
        cursor = position + len(after)
    return result, len(result) - len(lines)


class ApplyPatchParams(ToolParams):
    path: str = Field(description="File path, relative to the workspace root")
    patch: str = Field(description="Unified diff with @@ hunks for this one file")


class ApplyPatchTool(BaseTool):
    """Edits a file in place from a unified diff. All hunks apply or none do."""

    name = "apply_patch"
    description = (
        "Apply a unified diff (@@ hunks with ' ', '-' and '+' lines) to an existing "
        "file. Prefer this over write_file for small edits to large files."
    )
    Params = ApplyPatchParams

    def execute(self, params: ApplyPatchParams) -> ToolResult:
        reason = self.policy.check_path_access(params.path, "write")
        if reason:
            return ToolResult.error_result(f"Security Blocked: {reason}")

        full_path = self.policy.resolve(params.path)
        if not full_path.is_file():
            return ToolResult.error_result(f"File not found: {params.path}")

        try:
            original = full_path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            return ToolResult.error_result(f"Encoding error: {e}. File may be binary.")
        except OSError as e:
            self.logger.error("File system error reading %s: %s", params.path, e)
            return ToolResult.error_result(f"File system error: {e}")

        try:
            hunks = parse_hunks(params.patch)
            lines, delta = apply_hunks(original.splitlines(), hunks)
        except PatchError as e:
            return ToolResult.error_result(f"Patch failed for {params.path}: {e}")

        content = "\n".join(lines)
        if lines and original.endswith("\n"):
            content += "\n"

        try:
            full_path.write_text(content, encoding="utf-8")
        except OSError as e:
            self.logger.error("File system error writing %s: %s", params.path, e)
            return ToolResult.error_result(f"File system error: {e}")

        relative = str(full_path.relative_to(self.working_dir))
        return ToolResult.success_result(
            f"Applied {len(hunks)} hunk(s) to {relative} ({delta:+d} lines)",
            data={"file_path": relative, "content": content},
        )
