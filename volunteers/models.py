"""
Purpose: Core data models for the volunteers domain.
What it does:
Defines the structure of a Volunteer and their availability without relying on Django ORM constraints.
The ranking engine only ever reads these snapshots; the store owns the real records.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Mapping, Optional

from routing.geodesic import LatLon, coerce_location


class AvailabilityStatus(str, Enum):
    """
    Standardizes the availability states a volunteer can report.
    """
    AVAILABLE = "available"
    BUSY = "busy"
    OFFLINE = "offline"

    @classmethod
    def parse(cls, value: Any) -> Optional[AvailabilityStatus]:
        """
        Case-insensitive lookup. Returns None for missing or unknown values
        instead of raising, since volunteer records come from free-form input.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


@dataclass(frozen=True)
class Volunteer:
    """
    A read-only snapshot of a volunteer at ranking time.

    reliability_score is stored as-is (it can drift outside 0-100 at the source);
    clamping happens in the scoring layer only.
    """
    id: str
    name: str = "Volunteer"
    email: Optional[str] = None
    skills: List[str] = field(default_factory=list)
    availability: Optional[AvailabilityStatus] = None
    location: Optional[LatLon] = None
    reliability_score: Optional[float] = None

    # Workload counters, owned by the store
    total_assigned_tasks: int = 0
    total_completed_tasks: int = 0

    @classmethod
    def new(
        cls,
        volunteer_id: str,
        name: Optional[str] = None,
        email: Optional[str] = None,
        skills: Optional[List[str]] = None,
        availability: str | AvailabilityStatus | None = None,
        lat: Optional[float] = None,
        lng: Optional[float] = None,
        reliability_score: Optional[float] = None,
        total_assigned_tasks: int = 0,
        total_completed_tasks: int = 0,
    ) -> Volunteer:
        return cls(
            id=str(volunteer_id),
            name=name or "Volunteer",
            email=email,
            skills=list(skills or []),
            availability=AvailabilityStatus.parse(availability),
            location=coerce_location(lat, lng),
            reliability_score=reliability_score,
            total_assigned_tasks=total_assigned_tasks,
            total_completed_tasks=total_completed_tasks,
        )

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> Volunteer:
        """
        Builds a snapshot from a store row (dict). Profile name/email may be nested
        under "profiles" the way the hosted store joins them.
        """
        profile = record.get("profiles") or {}
        return cls.new(
            volunteer_id=record["id"],
            name=record.get("name") or profile.get("full_name"),
            email=record.get("email") or profile.get("email"),
            skills=record.get("skills"),
            availability=record.get("availability"),
            lat=record.get("latitude"),
            lng=record.get("longitude"),
            reliability_score=record.get("reliability_score"),
            total_assigned_tasks=record.get("total_assigned_tasks") or 0,
            total_completed_tasks=record.get("total_completed_tasks") or 0,
        )
