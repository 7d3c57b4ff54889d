#!/usr/bin/env python3
"""
Execute Command Tool - run a shell command in the workspace.
"""

import asyncio

from pydantic import Field

from vibey.tools.base import BaseTool, ToolParams, ToolResult

MAX_OUTPUT_CHARS = 20000


class ExecuteCommandParams(ToolParams):
    command: str = Field(min_length=1, description="The shell command to execute")
    timeout: float = Field(default=30, gt=0, le=600, description="Timeout in seconds")


class ExecuteCommandTool(BaseTool):
    """Tool for executing shell commands."""

    name = "execute_command"
    description = (
        "Execute a shell command in the workspace root and return its exit code, "
        "stdout and stderr."
    )
    Params = ExecuteCommandParams

    async def execute(self, params: ExecuteCommandParams) -> ToolResult:
        command = params.command.strip()
        if not command:
            return ToolResult.error_result("Command cannot be empty")

        reason = self.policy.check_command(command)
        if reason:
            return ToolResult.error_result(f"Security Blocked: {reason}")

        process = await asyncio.create_subprocess_shell(
            command,
            cwd=str(self.working_dir),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=params.timeout
            )
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            return ToolResult.error_result(
                f"Command timed out after {params.timeout:g}s", data={"exit_code": -1}
            )
        except asyncio.CancelledError:
            process.kill()
            await process.wait()
            raise

        return self._format_result(
            command,
            process.returncode,
            stdout.decode("utf-8", errors="replace"),
            stderr.decode("utf-8", errors="replace"),
        )

    def _format_result(
        self, command: str, returncode: int, stdout: str, stderr: str
    ) -> ToolResult:
        output_parts = [f"Command: {command}", f"Exit Code: {returncode}"]

        if stdout:
            output_parts.append(f"\nSTDOUT:\n{_clip(stdout)}")
        if stderr:
            output_parts.append(f"\nSTDERR:\n{_clip(stderr)}")

        output_str = "\n".join(output_parts)

        if returncode == 0:
            return ToolResult.success_result(output_str, data={"exit_code": 0})

        return ToolResult.error_result(
            f"Command exited with status {returncode}",
            output=output_str,
            data={"exit_code": returncode},
        )


def _clip(text: str) -> str:
    if len(text) <= MAX_OUTPUT_CHARS:
        return text
    return text[:MAX_OUTPUT_CHARS] + "\n... (output truncated)"
