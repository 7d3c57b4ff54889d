import logging
import time
import uuid
from typing import Dict, List, Optional

from vibey.agent.structs import Task, TaskStep

TASK_STATUSES = ("pending", "in_progress", "completed", "failed")

logger = logging.getLogger("TaskManager")


class TaskManager:
    """In-memory task list the model uses to track multi-step work."""

    def __init__(self):
        self._tasks: Dict[str, Task] = {}

    def create_task(self, title: str, steps: Optional[List[str]] = None) -> Task:
        task = Task(
            id=f"task_{uuid.uuid4().hex[:8]}",
            title=title,
            steps=[TaskStep(description=s) for s in (steps or [])],
        )
        self._tasks[task.id] = task
        logger.info("Created task %s: %s", task.id, title)
        return task

    def get_task(self, task_id: str) -> Optional[Task]:
        return self._tasks.get(task_id)

    def list_tasks(self) -> List[Task]:
        return list(self._tasks.values())

    def update_task_status(self, task_id: str, status: str) -> Task:
        task = self._require(task_id)
        _check_status(status)
        task.status = status
        task.updated_at = time.time()
        return task

    def update_step_status(self, task_id: str, step_index: int, status: str) -> Task:
        task = self._require(task_id)
        _check_status(status)
        if not 0 <= step_index < len(task.steps):
            raise IndexError(
                f"Step {step_index} out of range for task {task_id} "
                f"({len(task.steps)} steps)"
            )
        task.steps[step_index].status = status
        task.updated_at = time.time()

        # A task whose steps are all done is done.
        if task.steps and all(s.status == "completed" for s in task.steps):
            task.status = "completed"
        elif status == "in_progress" and task.status == "pending":
            task.status = "in_progress"
        return task

    def clear(self) -> None:
        self._tasks.clear()

    def _require(self, task_id: str) -> Task:
        task = self._tasks.get(task_id)
        if task is None:
            raise KeyError(f"Task not found: {task_id}")
        return task


def _check_status(status: str) -> None:
    if status not in TASK_STATUSES:
        raise ValueError(f"Invalid status '{status}'. Expected one of {TASK_STATUSES}")


def format_task(task: Task) -> str:
    lines = [f"[{task.status}] {task.title} ({task.id})"]
    for index, step in enumerate(task.steps):
        lines.append(f"  {index}. [{step.status}] {step.description}")
    return "\n".join(lines)
