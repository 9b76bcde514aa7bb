#Expose the high-level pipeline pieces:
#Record store contract (in-memory implementation)
#Assignment workflow (suggest / auto-assign / manual assign / status changes)
#The ranking itself lives in volunteers.selection

from .store import InMemoryRecordStore, RecordNotFound
from .assignment_service import (
    AssignmentService, #the main object to call to rank and assign volunteers for a task
    AssignmentError,
    TaskNotFoundError,
    DisasterNotFoundError,
    NoVolunteersError,
    AssignmentNotFoundError,
    RankingSuggestion,
    AutoAssignResult,
)

__all__ = [
    "InMemoryRecordStore",
    "RecordNotFound",
    "AssignmentService",
    "AssignmentError",
    "TaskNotFoundError",
    "DisasterNotFoundError",
    "NoVolunteersError",
    "AssignmentNotFoundError",
    "RankingSuggestion",
    "AutoAssignResult",
]
