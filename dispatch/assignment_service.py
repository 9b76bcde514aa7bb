"""
Purpose: Orchestrator / decision pipeline (the "glue") between the record store and the ranker.
What it does:
Loads a Task, its Disaster and the candidate volunteers from the store, runs the
ranking engine, and either hands the ranking back for human review or persists the
top volunteers as pending assignments.

Ranking always finishes before any write happens. Workload counters are
best-effort: the assignment rows are the source of truth.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from disasters.models import Assignment, AssignmentStatus, Disaster, Task
from routing.geodesic import LatLon
from volunteers.models import AvailabilityStatus
from volunteers.policy import RankingPolicy, default_ranking_policy
from volunteers.selection import RankedVolunteer, get_top_volunteers

from .state_machines import (
    parse_assignment_status,
    parse_task_status,
    transition_assignment,
    transition_task,
)

logger = logging.getLogger(__name__)

# Reliability bump a volunteer earns for each completed assignment
COMPLETION_RELIABILITY_BONUS = 5


class AssignmentError(Exception):
    """Base class for workflow errors the HTTP layer maps to responses."""
    pass


class TaskNotFoundError(AssignmentError):
    pass


class DisasterNotFoundError(AssignmentError):
    pass


class NoVolunteersError(AssignmentError):
    pass


class AssignmentNotFoundError(AssignmentError):
    pass


@dataclass(frozen=True)
class RankingSuggestion:
    """
    Ranking returned for human review (nothing persisted).
    """
    task: Task
    disaster: Disaster
    ranked_volunteers: List[RankedVolunteer]
    total_volunteers: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "task_id": self.task.id,
            "task_title": self.task.title,
            "disaster": {
                "name": self.disaster.name,
                "urgency": self.disaster.urgency.value,
            },
            "ranked_volunteers": [result.to_dict() for result in self.ranked_volunteers],
            "total_volunteers": self.total_volunteers,
        }


@dataclass(frozen=True)
class AutoAssignResult:
    task: Task
    assigned_volunteers: List[RankedVolunteer]
    assignments: List[Assignment]
    # volunteer ids whose workload counter could not be bumped
    counter_failures: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "task_id": self.task.id,
            "assigned_volunteers": [result.to_dict() for result in self.assigned_volunteers],
            "assignments": [assignment.to_dict() for assignment in self.assignments],
        }


class AssignmentService:
    """
    Coordinates ranking and assignment for one task at a time.

    store: any object implementing the record-store interface in dispatch/store.py
    """
    def __init__(self, store, policy: Optional[RankingPolicy] = None):
        self.store = store
        self.policy = policy or default_ranking_policy()

    # --- Loading ---

    def load_task_context(self, task_id: str) -> Tuple[Task, Disaster, Optional[LatLon]]:
        """
        Fetch the task + owning disaster and work out where distance is measured from
        (task location first, disaster location otherwise).
        """
        task = self.store.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(f"Task {task_id} not found")

        disaster = self.store.get_disaster(task.disaster_id) if task.disaster_id is not None else None
        if disaster is None:
            raise DisasterNotFoundError(f"Disaster information not found for task {task_id}")

        target = task.location if task.location is not None else disaster.location
        if target is None:
            # Still rank; every distance falls back to the unknown-distance sentinel
            logger.warning("Task %s has no location data (neither task nor disaster specific)", task_id)

        return task, disaster, target

    # --- Ranking for review ---

    def suggest_volunteers(self, task_id: str, top_n: Optional[int] = None) -> RankingSuggestion:
        """
        Rank every volunteer in the store for a task and return the top_n for review.
        """
        task, disaster, target = self.load_task_context(task_id)
        volunteers = self.store.list_volunteers()

        if not volunteers:
            logger.info("No volunteers available to rank for task %s", task.id)

        ranked = get_top_volunteers(
            volunteers,
            task,
            disaster,
            top_n=top_n,
            target_location=target,
            policy=self.policy,
        )
        return RankingSuggestion(
            task=task,
            disaster=disaster,
            ranked_volunteers=ranked,
            total_volunteers=len(volunteers),
        )

    # --- Automatic assignment ---

    def auto_assign(self, task_id: str, number_of_volunteers: int = 3) -> AutoAssignResult:
        """
        Rank the currently available volunteers and persist the best ones
        as PENDING assignments carrying their final score.
        """
        task, disaster, target = self.load_task_context(task_id)

        volunteers = self.store.list_volunteers(availability=AvailabilityStatus.AVAILABLE)
        if not volunteers:
            raise NoVolunteersError("No available volunteers found")

        top_volunteers = get_top_volunteers(
            volunteers,
            task,
            disaster,
            top_n=number_of_volunteers,
            target_location=target,
            policy=self.policy,
        )
        if not top_volunteers:
            raise NoVolunteersError("No suitable volunteers found")

        assignments = self.store.insert_assignments([
            Assignment(
                task_id=task.id,
                volunteer_id=result.volunteer_id,
                status=AssignmentStatus.PENDING,
                ai_score=result.scores.final,
            )
            for result in top_volunteers
        ])
        logger.info("Auto-assigned task %s to %d volunteers", task.id, len(assignments))

        counter_failures = self._bump_assigned_counters([result.volunteer_id for result in top_volunteers])

        return AutoAssignResult(
            task=task,
            assigned_volunteers=top_volunteers,
            assignments=assignments,
            counter_failures=counter_failures,
        )

    # --- Manual assignment ---

    def assign_volunteers(self, task_id: str, volunteer_ids: Sequence[str]) -> List[Assignment]:
        """
        Admin picked the volunteers by hand (usually from a suggestion list).
        """
        if not volunteer_ids or isinstance(volunteer_ids, (str, bytes)):
            raise ValueError("volunteer_ids array is required")

        task = self.store.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(f"Task {task_id} not found")

        assignments = self.store.insert_assignments([
            Assignment(task_id=task.id, volunteer_id=str(volunteer_id))
            for volunteer_id in volunteer_ids
        ])
        logger.info("Assigned task %s to %d volunteers", task.id, len(assignments))

        self._bump_assigned_counters([str(volunteer_id) for volunteer_id in volunteer_ids])
        return assignments

    # --- Status changes ---

    def update_assignment_status(self, assignment_id: str, volunteer_id: str, status) -> Assignment:
        """
        A volunteer accepts, declines or completes one of their own assignments.
        Completion also bumps their completed counter and reliability (best-effort).
        """
        new_status = parse_assignment_status(status)

        assignment = self.store.get_assignment(assignment_id)
        if assignment is None or assignment.volunteer_id != str(volunteer_id):
            raise AssignmentNotFoundError(f"Assignment {assignment_id} not found")

        assignment = self.store.save_assignment(transition_assignment(assignment, new_status))

        if new_status == AssignmentStatus.COMPLETED:
            self._record_completion(assignment.volunteer_id)

        return assignment

    def update_task_status(self, task_id: str, status) -> Task:
        new_status = parse_task_status(status)

        task = self.store.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(f"Task {task_id} not found")

        return self.store.save_task(transition_task(task, new_status))

    # --- Best-effort side effects ---

    def _bump_assigned_counters(self, volunteer_ids: Sequence[str]) -> List[str]:
        failures = []
        for volunteer_id in volunteer_ids:
            try:
                self.store.increment_assigned_tasks(volunteer_id)
            except Exception as exc:
                # The assignment already exists; a stale counter is acceptable
                logger.warning("increment_assigned_tasks failed for volunteer %s (non-critical): %s", volunteer_id, exc)
                failures.append(volunteer_id)
        return failures

    def _record_completion(self, volunteer_id: str) -> None:
        try:
            self.store.increment_completed_tasks(volunteer_id)
        except Exception as exc:
            logger.warning("increment_completed_tasks failed for volunteer %s (non-critical): %s", volunteer_id, exc)

        try:
            self.store.adjust_reliability(volunteer_id, COMPLETION_RELIABILITY_BONUS)
        except Exception as exc:
            logger.warning("reliability update failed for volunteer %s (non-critical): %s", volunteer_id, exc)
