"""Default runtime tool registration."""

from typing import Iterable

from vibey.agent.task_manager import TaskManager
from vibey.config.settings import Settings
from vibey.tools.base import BaseTool
from vibey.tools.file_operations.apply_patch_tool import ApplyPatchTool
from vibey.tools.file_operations.read_file_tool import ReadFileTool
from vibey.tools.file_operations.scan_project_tool import ScanProjectTool
from vibey.tools.file_operations.write_file_tool import WriteFileTool
from vibey.tools.policy import PolicyEngine
from vibey.tools.registry import ToolRegistry
from vibey.tools.shell_operations.execute_command_tool import ExecuteCommandTool
from vibey.tools.task_operations.manage_task_tool import ManageTaskTool


def iter_default_tools(settings: Settings, task_manager: TaskManager) -> Iterable[BaseTool]:
    """Build the default runtime tool set."""
    policy = PolicyEngine(settings.workspace)
    tools = [
        ReadFileTool(settings.workspace, policy),
        WriteFileTool(settings.workspace, policy),
        ApplyPatchTool(settings.workspace, policy),
        ScanProjectTool(settings.workspace, policy),
        ManageTaskTool(settings.workspace, task_manager, policy),
    ]
    if settings.allow_shell:
        tools.append(ExecuteCommandTool(settings.workspace, policy))
    return tools


def register_default_tools(
    registry: ToolRegistry, settings: Settings, task_manager: TaskManager
) -> None:
    """Register all runtime tools in deterministic order."""
    for tool in iter_default_tools(settings, task_manager):
        registry.register(tool)
