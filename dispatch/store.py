"""
Purpose: The record-store contract the assignment workflow talks to, plus an in-memory implementation.
What it does:
- Documents the duck-typed store interface (any object with these methods works):
   - get_task(task_id) / get_disaster(disaster_id) / get_volunteer(volunteer_id)
   - list_volunteers(availability=None)
   - insert_assignments(assignments) / get_assignment(assignment_id) / save_assignment(assignment)
   - save_task(task)
   - increment_assigned_tasks(volunteer_id) / increment_completed_tasks(volunteer_id)
   - adjust_reliability(volunteer_id, delta)
- InMemoryRecordStore keeps everything in dicts (tests, simulations, local dev).
- backend/relief/store.py adapts the Django ORM to the same interface.

Rule: Store owns persistence, the workflow owns decisions.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional

from disasters.models import Assignment, Disaster, Task
from volunteers.models import AvailabilityStatus, Volunteer


class RecordNotFound(LookupError):
    """Raised by store mutations that target a record which does not exist."""
    pass


@dataclass
class InMemoryRecordStore:
    """
    In-memory record store.
    Volunteer/Task/Disaster snapshots are frozen, so updates swap in a new copy.
    """
    _disasters: Dict[str, Disaster] = field(default_factory=dict)
    _tasks: Dict[str, Task] = field(default_factory=dict)
    _volunteers: Dict[str, Volunteer] = field(default_factory=dict)  # insertion order = candidate order
    _assignments: Dict[str, Assignment] = field(default_factory=dict)

    # --- Seeding ---

    def add_disaster(self, disaster: Disaster) -> Disaster:
        self._disasters[disaster.id] = disaster
        return disaster

    def add_task(self, task: Task) -> Task:
        self._tasks[task.id] = task
        return task

    def add_volunteer(self, volunteer: Volunteer) -> Volunteer:
        self._volunteers[volunteer.id] = volunteer
        return volunteer

    # --- Reads ---

    def get_disaster(self, disaster_id: str) -> Optional[Disaster]:
        return self._disasters.get(str(disaster_id))

    def get_task(self, task_id: str) -> Optional[Task]:
        return self._tasks.get(str(task_id))

    def get_volunteer(self, volunteer_id: str) -> Optional[Volunteer]:
        return self._volunteers.get(str(volunteer_id))

    def list_volunteers(self, availability: Optional[AvailabilityStatus] = None) -> List[Volunteer]:
        volunteers = list(self._volunteers.values())
        if availability is None:
            return volunteers
        return [volunteer for volunteer in volunteers if volunteer.availability == availability]

    def get_assignment(self, assignment_id: str) -> Optional[Assignment]:
        return self._assignments.get(str(assignment_id))

    def assignments_for_task(self, task_id: str) -> List[Assignment]:
        return [a for a in self._assignments.values() if a.task_id == str(task_id)]

    # --- Writes ---

    def insert_assignments(self, assignments: List[Assignment]) -> List[Assignment]:
        for assignment in assignments:
            self._assignments[assignment.id] = assignment
        return list(assignments)

    def save_assignment(self, assignment: Assignment) -> Assignment:
        if assignment.id not in self._assignments:
            raise RecordNotFound(f"assignment {assignment.id} does not exist")
        self._assignments[assignment.id] = assignment
        return assignment

    def save_task(self, task: Task) -> Task:
        if task.id not in self._tasks:
            raise RecordNotFound(f"task {task.id} does not exist")
        self._tasks[task.id] = task
        return task

    def increment_assigned_tasks(self, volunteer_id: str) -> None:
        volunteer = self._require_volunteer(volunteer_id)
        self._volunteers[volunteer.id] = replace(volunteer, total_assigned_tasks=volunteer.total_assigned_tasks + 1)

    def increment_completed_tasks(self, volunteer_id: str) -> None:
        volunteer = self._require_volunteer(volunteer_id)
        self._volunteers[volunteer.id] = replace(volunteer, total_completed_tasks=volunteer.total_completed_tasks + 1)

    def adjust_reliability(self, volunteer_id: str, delta: float) -> None:
        volunteer = self._require_volunteer(volunteer_id)
        current = 100.0 if volunteer.reliability_score is None else volunteer.reliability_score
        # stored value is not clamped; ranking clamps on read
        self._volunteers[volunteer.id] = replace(volunteer, reliability_score=current + delta)

    def _require_volunteer(self, volunteer_id: str) -> Volunteer:
        volunteer = self._volunteers.get(str(volunteer_id))
        if volunteer is None:
            raise RecordNotFound(f"volunteer {volunteer_id} does not exist")
        return volunteer
