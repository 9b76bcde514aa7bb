from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, FrozenSet

from disasters.models import Assignment, AssignmentStatus

class AssignmentStateException(Exception):
    """Raised when an invalid assignment transition is attempted."""
    pass

# Volunteer-driven lifecycle: PENDING -> ACCEPTED -> COMPLETED, DECLINED from either open state.
ALLOWED_TRANSITIONS: Dict[AssignmentStatus, FrozenSet[AssignmentStatus]] = {
    AssignmentStatus.PENDING: frozenset({AssignmentStatus.ACCEPTED, AssignmentStatus.DECLINED}),
    AssignmentStatus.ACCEPTED: frozenset({AssignmentStatus.COMPLETED, AssignmentStatus.DECLINED}),
    AssignmentStatus.DECLINED: frozenset(),
    AssignmentStatus.COMPLETED: frozenset(),
}

def parse_assignment_status(value) -> AssignmentStatus:
    """
    Volunteers can only ask for accepted / declined / completed.
    """
    try:
        status = AssignmentStatus(value)
    except ValueError:
        raise AssignmentStateException(f"Invalid status: {value!r}")

    if status == AssignmentStatus.PENDING:
        raise AssignmentStateException("Assignments cannot be moved back to pending")
    return status

def transition_assignment(assignment: Assignment, new_status: AssignmentStatus) -> Assignment:
    """
    Returns a copy of the assignment in its new state, stamped with updated_at.
    """
    if new_status not in ALLOWED_TRANSITIONS[assignment.status]:
        raise AssignmentStateException(
            f"Cannot move assignment {assignment.id} from {assignment.status.value} to {new_status.value}"
        )

    return replace(assignment, status=new_status, updated_at=datetime.now(timezone.utc))
