#Lifecycle rules for assignments and tasks.
#Pure functions: take a record, return the transitioned copy or raise.

from .assignment_state import AssignmentStateException, parse_assignment_status, transition_assignment
from .task_state import TaskStateException, parse_task_status, transition_task

__all__ = [
    "AssignmentStateException",
    "parse_assignment_status",
    "transition_assignment",
    "TaskStateException",
    "parse_task_status",
    "transition_task",
]
