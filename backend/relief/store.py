"""
Purpose: Django ORM implementation of the record-store interface (see dispatch/store.py).
What it does:
Reads ORM rows into the plain domain snapshots the ranking engine consumes,
and writes assignments / counters back. Counter updates use F() expressions so
concurrent requests do not lose increments.
"""

from typing import List, Optional

from django.db import transaction
from django.db.models import F

from disasters.models import Assignment, AssignmentStatus, Disaster, Task
from volunteers.models import AvailabilityStatus, Volunteer

from . import models


def _to_pk(value) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def disaster_snapshot(row: models.Disaster) -> Disaster:
    return Disaster.new(
        disaster_id=row.pk,
        name=row.name,
        urgency=row.urgency,
        lat=row.latitude,
        lng=row.longitude,
        disaster_type=row.disaster_type or None,
        city=row.city or None,
        state=row.state or None,
        country=row.country or None,
    )


def task_snapshot(row: models.Task) -> Task:
    return Task.from_record({
        "id": row.pk,
        "title": row.title,
        "disaster_id": row.disaster_id,
        "required_skills": row.required_skills,
        "latitude": row.latitude,
        "longitude": row.longitude,
        "description": row.description,
        "priority": row.priority,
        "status": row.status,
        "address": row.address,
    })


def volunteer_snapshot(row: models.Volunteer) -> Volunteer:
    return Volunteer.new(
        volunteer_id=row.pk,
        name=row.name,
        email=row.email or None,
        skills=row.skills,
        availability=row.availability,
        lat=row.latitude,
        lng=row.longitude,
        reliability_score=row.reliability_score,
        total_assigned_tasks=row.total_assigned_tasks,
        total_completed_tasks=row.total_completed_tasks,
    )


def assignment_snapshot(row: models.TaskAssignment) -> Assignment:
    return Assignment(
        id=str(row.pk),
        task_id=str(row.task_id),
        volunteer_id=str(row.volunteer_id),
        status=AssignmentStatus(row.status),
        ai_score=row.ai_score,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class DjangoRecordStore:
    """
    Record store backed by the relief app's models.
    """

    def get_disaster(self, disaster_id) -> Optional[Disaster]:
        row = models.Disaster.objects.filter(pk=_to_pk(disaster_id)).first()
        return disaster_snapshot(row) if row else None

    def get_task(self, task_id) -> Optional[Task]:
        row = models.Task.objects.filter(pk=_to_pk(task_id)).first()
        return task_snapshot(row) if row else None

    def get_volunteer(self, volunteer_id) -> Optional[Volunteer]:
        row = models.Volunteer.objects.filter(pk=_to_pk(volunteer_id)).first()
        return volunteer_snapshot(row) if row else None

    def list_volunteers(self, availability: Optional[AvailabilityStatus] = None) -> List[Volunteer]:
        queryset = models.Volunteer.objects.order_by('pk')
        if availability is not None:
            queryset = queryset.filter(availability=availability.value)
        return [volunteer_snapshot(row) for row in queryset]

    def get_assignment(self, assignment_id) -> Optional[Assignment]:
        row = models.TaskAssignment.objects.filter(pk=_to_pk(assignment_id)).first()
        return assignment_snapshot(row) if row else None

    def insert_assignments(self, assignments: List[Assignment]) -> List[Assignment]:
        # All rows or none: a failed insert must not leave a partial assignment set
        with transaction.atomic():
            rows = [
                models.TaskAssignment.objects.create(
                    task_id=_to_pk(assignment.task_id),
                    volunteer_id=_to_pk(assignment.volunteer_id),
                    status=assignment.status.value,
                    ai_score=assignment.ai_score,
                )
                for assignment in assignments
            ]
        return [assignment_snapshot(row) for row in rows]

    def save_assignment(self, assignment: Assignment) -> Assignment:
        row = models.TaskAssignment.objects.get(pk=_to_pk(assignment.id))
        row.status = assignment.status.value
        row.save(update_fields=['status', 'updated_at'])
        return assignment_snapshot(row)

    def save_task(self, task: Task) -> Task:
        row = models.Task.objects.get(pk=_to_pk(task.id))
        row.status = task.status.value
        row.save(update_fields=['status', 'updated_at'])
        return task_snapshot(row)

    def increment_assigned_tasks(self, volunteer_id) -> None:
        self._update_volunteer(volunteer_id, total_assigned_tasks=F('total_assigned_tasks') + 1)

    def increment_completed_tasks(self, volunteer_id) -> None:
        self._update_volunteer(volunteer_id, total_completed_tasks=F('total_completed_tasks') + 1)

    def adjust_reliability(self, volunteer_id, delta: float) -> None:
        self._update_volunteer(volunteer_id, reliability_score=F('reliability_score') + delta)

    def _update_volunteer(self, volunteer_id, **changes) -> None:
        updated = models.Volunteer.objects.filter(pk=_to_pk(volunteer_id)).update(**changes)
        if not updated:
            raise models.Volunteer.DoesNotExist(f"Volunteer {volunteer_id} does not exist")
