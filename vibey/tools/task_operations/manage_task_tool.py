#!/usr/bin/env python3
"""
Manage Task Tool - lets the model keep a task list for long requests.
"""

from pathlib import Path
from typing import List, Literal, Optional

from pydantic import Field

from vibey.agent.task_manager import TaskManager, format_task
from vibey.tools.base import BaseTool, ToolParams, ToolResult
from vibey.tools.policy import PolicyEngine

TaskStatus = Literal["pending", "in_progress", "completed", "failed"]


class ManageTaskParams(ToolParams):
    action: Literal["create", "update_status", "update_step", "list"] = Field(
        description="The action to perform"
    )
    title: Optional[str] = Field(default=None, description="Title for a new task")
    steps: Optional[List[str]] = Field(
        default=None, description="Step descriptions for a new task"
    )
    task_id: Optional[str] = Field(default=None, description="ID of the task to update")
    status: Optional[TaskStatus] = Field(
        default=None, description="New status for the task or step"
    )
    step_index: Optional[int] = Field(
        default=None, ge=0, description="Index of the step to update (0-based)"
    )


class ManageTaskTool(BaseTool):
    """Create, update and list tasks held by a TaskManager."""

    name = "manage_task"
    description = (
        "Create, update, or list tasks to track complex goals. "
        "Use this to break down large user requests into steps."
    )
    Params = ManageTaskParams

    def __init__(
        self,
        working_dir: Path,
        task_manager: TaskManager,
        policy: Optional[PolicyEngine] = None,
    ):
        super().__init__(working_dir, policy)
        self.task_manager = task_manager

    def execute(self, params: ManageTaskParams) -> ToolResult:
        try:
            if params.action == "create":
                if not params.title:
                    return ToolResult.error_result("'title' is required to create a task")
                task = self.task_manager.create_task(params.title, params.steps)
                return ToolResult.success_result(
                    f"Created task:\n{format_task(task)}", data={"task_id": task.id}
                )

            if params.action == "list":
                tasks = self.task_manager.list_tasks()
                if not tasks:
                    return ToolResult.success_result("No tasks.")
                return ToolResult.success_result("\n".join(format_task(t) for t in tasks))

            if not params.task_id or not params.status:
                return ToolResult.error_result(
                    f"'task_id' and 'status' are required for {params.action}"
                )

            if params.action == "update_status":
                task = self.task_manager.update_task_status(params.task_id, params.status)
            else:
                if params.step_index is None:
                    return ToolResult.error_result("'step_index' is required for update_step")
                task = self.task_manager.update_step_status(
                    params.task_id, params.step_index, params.status
                )
            return ToolResult.success_result(f"Updated task:\n{format_task(task)}")

        except (KeyError, IndexError, ValueError) as e:
            message = e.args[0] if e.args else str(e)
            return ToolResult.error_result(str(message))
