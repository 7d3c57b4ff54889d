#!/usr/bin/env python3
"""
Scan Project Tool - List workspace files for orientation.
"""

import os

from pydantic import Field

from vibey.tools.base import BaseTool, ToolParams, ToolResult

IGNORED_DIRS = {
    ".git",
    "node_modules",
    "__pycache__",
    ".venv",
    "venv",
    ".mypy_cache",
    ".pytest_cache",
    "dist",
    "build",
    "out",
}


class ScanProjectParams(ToolParams):
    path: str = Field(default=".", description="Directory to scan, relative to the workspace")
    max_files: int = Field(default=500, ge=1, le=5000, description="Maximum paths to list")


class ScanProjectTool(BaseTool):
    """Lists files under a directory, skipping VCS and dependency folders."""

    name = "scan_project"
    description = (
        "List all files in the workspace (excluding .git, node_modules, etc). "
        "Useful for understanding project structure."
    )
    Params = ScanProjectParams

    def execute(self, params: ScanProjectParams) -> ToolResult:
        reason = self.policy.check_path_access(params.path, "read")
        if reason:
            return ToolResult.error_result(f"Security Blocked: {reason}")

        root = self.policy.resolve(params.path)
        if not root.is_dir():
            return ToolResult.error_result(f"Not a directory: {params.path}")

        files = []
        truncated = False
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames[:] = sorted(d for d in dirnames if d not in IGNORED_DIRS)
            for filename in sorted(filenames):
                rel = os.path.relpath(os.path.join(dirpath, filename), self.working_dir)
                files.append(rel.replace(os.sep, "/"))
                if len(files) >= params.max_files:
                    truncated = True
                    break
            if truncated:
                break

        if not files:
            return ToolResult.success_result("No files found.", data={"files": []})

        output = "\n".join(files)
        if truncated:
            output += f"\n... (listing stopped at {params.max_files} files)"
        return ToolResult.success_result(output, data={"files": files})
