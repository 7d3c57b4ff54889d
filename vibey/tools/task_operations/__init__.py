"""Task tracking tools."""

from .manage_task_tool import ManageTaskTool

__all__ = ["ManageTaskTool"]
