#!/usr/bin/env python3
"""
Write File Tool - Create or overwrite a file inside the workspace.
"""

from pydantic import Field

from vibey.tools.base import BaseTool, ToolParams, ToolResult


class WriteFileParams(ToolParams):
    path: str = Field(description="File path, relative to the workspace root")
    content: str = Field(description="Full new content of the file")


class WriteFileTool(BaseTool):
    """Writes full file content, creating parent directories as needed."""

    name = "write_file"
    description = (
        "Write file content. Relative paths are resolved against the workspace root."
    )
    Params = WriteFileParams

    def execute(self, params: WriteFileParams) -> ToolResult:
        reason = self.policy.check_path_access(params.path, "write")
        if reason:
            return ToolResult.error_result(f"Security Blocked: {reason}")

        full_path = self.policy.resolve(params.path)
        if full_path.is_dir():
            return ToolResult.error_result(f"Path is a directory: {params.path}")

        existed = full_path.exists()
        try:
            full_path.parent.mkdir(parents=True, exist_ok=True)
            full_path.write_text(params.content, encoding="utf-8")
        except OSError as e:
            self.logger.error("File system error writing %s: %s", params.path, e)
            return ToolResult.error_result(f"File system error: {e}")

        relative = str(full_path.relative_to(self.working_dir))
        verb = "Updated" if existed else "Created"
        return ToolResult.success_result(
            f"{verb} {relative} ({len(params.content)} characters)",
            data={"file_path": relative, "content": params.content},
        )
