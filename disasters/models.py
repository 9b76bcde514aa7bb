"""
Purpose: Domain models for the Disasters capability.
What it does:
- Defines core data structures:
- Disaster (id, name, urgency, location)
- Task (id, title, required skills, optional location, owning disaster)
- Assignment (task_id, volunteer_id, status, ai_score, timestamps)

Defines enums/constants:
- Urgency = CRITICAL | HIGH | MEDIUM | LOW
- TaskStatus = OPEN | IN_PROGRESS | COMPLETED | CANCELLED
- AssignmentStatus = PENDING | ACCEPTED | DECLINED | COMPLETED

Rule: No ranking logic, no store calls. Models only.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Mapping, Optional
from datetime import datetime, timezone
import uuid

from routing.geodesic import LatLon, coerce_location


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _enum_or_default(enum_cls, value: Any, default):
    try:
        return enum_cls(value) if value is not None else default
    except ValueError:
        return default


class Urgency(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def parse(cls, value: Any) -> Urgency:
        """
        Case-insensitive lookup with an explicit MEDIUM fallback
        for missing or unrecognised values.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        return cls.MEDIUM


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class TaskStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class AssignmentStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    COMPLETED = "completed"


@dataclass(frozen=True)
class Disaster:
    """
    A disaster event. Urgency drives the ranking weights.
    """
    id: str
    name: str
    urgency: Urgency = Urgency.MEDIUM
    location: Optional[LatLon] = None

    disaster_type: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None

    @classmethod
    def new(
        cls,
        disaster_id: str,
        name: str,
        urgency: str | Urgency | None = None,
        lat: Optional[float] = None,
        lng: Optional[float] = None,
        **extra: Any,
    ) -> Disaster:
        return cls(
            id=str(disaster_id),
            name=name,
            urgency=Urgency.parse(urgency),
            location=coerce_location(lat, lng),
            **extra,
        )

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> Disaster:
        return cls.new(
            disaster_id=record["id"],
            name=record.get("name") or "",
            urgency=record.get("urgency"),
            lat=record.get("latitude"),
            lng=record.get("longitude"),
            disaster_type=record.get("disaster_type"),
            city=record.get("city"),
            state=record.get("state"),
            country=record.get("country"),
        )


@dataclass(frozen=True)
class Task:
    """
    A unit of relief work inside a disaster.
    An empty required_skills list means "no specific skills needed".
    """
    id: str
    title: str
    disaster_id: Optional[str] = None
    required_skills: List[str] = field(default_factory=list)
    location: Optional[LatLon] = None

    description: Optional[str] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.OPEN
    address: Optional[str] = None

    @classmethod
    def new(
        cls,
        task_id: str,
        title: str,
        disaster_id: Optional[str] = None,
        required_skills: Optional[List[str]] = None,
        lat: Optional[float] = None,
        lng: Optional[float] = None,
        **extra: Any,
    ) -> Task:
        return cls(
            id=str(task_id),
            title=title,
            disaster_id=str(disaster_id) if disaster_id is not None else None,
            required_skills=list(required_skills or []),
            location=coerce_location(lat, lng),
            **extra,
        )

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> Task:
        return cls.new(
            task_id=record["id"],
            title=record.get("title") or "",
            disaster_id=record.get("disaster_id"),
            required_skills=record.get("required_skills"),
            lat=record.get("latitude"),
            lng=record.get("longitude"),
            description=record.get("description"),
            priority=_enum_or_default(TaskPriority, record.get("priority"), TaskPriority.MEDIUM),
            status=_enum_or_default(TaskStatus, record.get("status"), TaskStatus.OPEN),
            address=record.get("address"),
        )


@dataclass
class Assignment:
    """
    Links a volunteer to a task. Created as PENDING by manual or automatic assignment.
    ai_score is only set when the ranking engine picked the volunteer.
    """
    task_id: str
    volunteer_id: str
    status: AssignmentStatus = AssignmentStatus.PENDING
    ai_score: Optional[int] = None

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "task_id": self.task_id,
            "volunteer_id": self.volunteer_id,
            "status": self.status.value,
            "ai_score": self.ai_score,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
