"""
Disasters domain package.

Public API:
- Domain models: Disaster, Task, Assignment
- Enums: Urgency, TaskPriority, TaskStatus, AssignmentStatus
"""
from .models import Disaster, Task, Assignment, Urgency, TaskPriority, TaskStatus, AssignmentStatus

__all__ = ["Disaster",
           "Task",
             "Assignment",
               "Urgency",
               "TaskPriority",
               "TaskStatus",
               "AssignmentStatus",
               ]
