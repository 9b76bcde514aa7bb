from dataclasses import replace
from typing import Dict, FrozenSet

from disasters.models import Task, TaskStatus

class TaskStateException(Exception):
    """Raised when an invalid task status change is attempted."""
    pass

# COMPLETED and CANCELLED are terminal; an in-progress task can be reopened.
ALLOWED_TRANSITIONS: Dict[TaskStatus, FrozenSet[TaskStatus]] = {
    TaskStatus.OPEN: frozenset({TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED, TaskStatus.CANCELLED}),
    TaskStatus.IN_PROGRESS: frozenset({TaskStatus.OPEN, TaskStatus.COMPLETED, TaskStatus.CANCELLED}),
    TaskStatus.COMPLETED: frozenset(),
    TaskStatus.CANCELLED: frozenset(),
}

def parse_task_status(value) -> TaskStatus:
    try:
        return TaskStatus(value)
    except ValueError:
        raise TaskStateException(f"Invalid status: {value!r}")

def transition_task(task: Task, new_status: TaskStatus) -> Task:
    """
    Admin status change. Setting the current status again is a no-op.
    """
    if new_status == task.status:
        return task

    if new_status not in ALLOWED_TRANSITIONS[task.status]:
        raise TaskStateException(
            f"Cannot move task {task.id} from {task.status.value} to {new_status.value}"
        )

    return replace(task, status=new_status)
