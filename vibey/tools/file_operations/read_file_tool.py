#!/usr/bin/env python3
"""
Read File Tool - Tool for reading a file, optionally a line range of it.
"""

from typing import Optional

from pydantic import Field

from vibey.tools.base import BaseTool, ToolParams, ToolResult


class ReadFileParams(ToolParams):
    path: str = Field(description="File path, relative to the workspace root")
    start_line: Optional[int] = Field(
        default=None, ge=1, description="First line to return (1-based, optional)"
    )
    end_line: Optional[int] = Field(
        default=None, ge=1, description="Last line to return (1-based, inclusive, optional)"
    )


class ReadFileTool(BaseTool):
    """Tool for reading file contents."""

    name = "read_file"
    description = (
        "Read file content. Relative paths are resolved against the workspace root."
    )
    Params = ReadFileParams

    MAX_FILE_SIZE_BYTES: int = 1 * 1024 * 1024  # 1 MB limit

    def execute(self, params: ReadFileParams) -> ToolResult:
        reason = self.policy.check_path_access(params.path, "read")
        if reason:
            return ToolResult.error_result(f"Security Blocked: {reason}")

        full_path = self.policy.resolve(params.path)
        if not full_path.is_file():
            return ToolResult.error_result(f"File not found: {params.path}")

        if full_path.stat().st_size > self.MAX_FILE_SIZE_BYTES:
            size_kb = self.MAX_FILE_SIZE_BYTES / 1024
            return ToolResult.error_result(f"File too large (> {size_kb:.0f} KB): {params.path}")

        try:
            content = full_path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            return ToolResult.error_result(f"Encoding error: {e}. File may be binary.")
        except OSError as e:
            self.logger.error("File system error reading %s: %s", params.path, e)
            return ToolResult.error_result(f"File system error: {e}")

        relative = str(full_path.relative_to(self.working_dir))
        if params.start_line is None and params.end_line is None:
            return ToolResult.success_result(
                content, data={"file_path": relative, "content": content}
            )

        lines = content.splitlines()
        start = (params.start_line or 1) - 1
        end = min(len(lines), params.end_line or len(lines))
        if start >= len(lines) or start >= end:
            return ToolResult.error_result(
                f"Line range {params.start_line}-{params.end_line} is outside "
                f"the file ({len(lines)} lines)"
            )

        # A partial read must not replace the whole file in the master context.
        excerpt = "\n".join(lines[start:end])
        return ToolResult.success_result(
            excerpt, data={"range": [start + 1, end], "path": relative}
        )
