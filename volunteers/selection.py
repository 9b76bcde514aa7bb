"""
Purpose: Ranking rules for choosing the best volunteers for a task.
What it does:
Accepts a Task, its Disaster and a pool of volunteers, scores every volunteer
(skill, distance, availability, reliability), weights the scores by the
disaster's urgency and returns them best-first.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from disasters.models import Disaster, Task
from routing.geodesic import LatLon, coerce_location, haversine_km

from .models import Volunteer
from .policy import RankingPolicy, default_ranking_policy
from .scoring import (
    ComponentScores,
    availability_score,
    composite_score,
    distance_score,
    reliability_score,
    round_half_up,
    skill_score,
)


@dataclass(frozen=True)
class ScoreBreakdown:
    skill: int
    distance: int
    availability: int
    reliability: int
    final: int

    def to_dict(self) -> Dict[str, int]:
        return {
            "skill": self.skill,
            "distance": self.distance,
            "availability": self.availability,
            "reliability": self.reliability,
            "final": self.final,
        }


@dataclass(frozen=True)
class RankedVolunteer:
    """
    One row of a ranking: who, how far, and the rounded score bundle.
    volunteer keeps the original snapshot around for display.
    """
    task_id: str
    volunteer_id: str
    volunteer_name: str
    volunteer_email: Optional[str]
    distance_km: float
    scores: ScoreBreakdown
    volunteer: Volunteer

    def to_dict(self) -> Dict[str, Any]:
        volunteer = self.volunteer
        return {
            "task_id": self.task_id,
            "volunteer_id": self.volunteer_id,
            "volunteer_name": self.volunteer_name,
            "volunteer_email": self.volunteer_email,
            "distance": self.distance_km,
            "scores": self.scores.to_dict(),
            "volunteer_data": {
                "id": volunteer.id,
                "name": volunteer.name,
                "email": volunteer.email,
                "skills": list(volunteer.skills),
                "availability": volunteer.availability.value if volunteer.availability else None,
                "latitude": volunteer.location[0] if volunteer.location else None,
                "longitude": volunteer.location[1] if volunteer.location else None,
                "reliability_score": volunteer.reliability_score,
                "total_assigned_tasks": volunteer.total_assigned_tasks,
                "total_completed_tasks": volunteer.total_completed_tasks,
            },
        }


def resolve_target_location(
    task: Task,
    disaster: Disaster,
    target_location: Optional[LatLon] = None,
) -> Optional[LatLon]:
    """
    First complete (lat, lng) pair wins: explicit target -> task -> disaster.
    A pair with a missing or non-finite half is skipped as a whole; 0.0 counts as present.
    """
    for candidate in (target_location, task.location, disaster.location):
        if candidate is None:
            continue
        location = coerce_location(*candidate)
        if location is not None:
            return location
    return None


def score_volunteer(
    volunteer: Volunteer,
    task: Task,
    disaster: Disaster,
    target: Optional[LatLon],
    policy: RankingPolicy,
) -> RankedVolunteer:
    """
    Score a single volunteer against an already-resolved target location.
    """
    distance_km = policy.unknown_distance_km
    if target is not None and volunteer.location is not None:
        distance_km = haversine_km(volunteer.location[0], volunteer.location[1], target[0], target[1])

    components = ComponentScores(
        skill=skill_score(volunteer.skills, task.required_skills, policy),
        distance=distance_score(distance_km, policy),
        availability=availability_score(volunteer.availability, policy),
        reliability=reliability_score(volunteer.reliability_score, policy),
    )
    final = composite_score(components, policy.weights_for(disaster.urgency))

    return RankedVolunteer(
        task_id=task.id,
        volunteer_id=volunteer.id,
        volunteer_name=volunteer.name,
        volunteer_email=volunteer.email,
        distance_km=round_half_up(distance_km * 10) / 10,
        scores=ScoreBreakdown(
            skill=round_half_up(components.skill),
            distance=round_half_up(components.distance),
            availability=round_half_up(components.availability),
            reliability=round_half_up(components.reliability),
            final=round_half_up(final),
        ),
        volunteer=volunteer,
    )


def rank_volunteers(
    volunteers: Sequence[Volunteer],
    task: Task,
    disaster: Disaster,
    target_location: Optional[LatLon] = None,
    policy: Optional[RankingPolicy] = None,
) -> List[RankedVolunteer]:
    """
    Full ranking of every candidate, best final score first.

    Ties keep their input order (list.sort is stable).
    An empty pool is valid and returns [].
    """
    if task is None or disaster is None:
        raise ValueError("task and disaster are required to rank volunteers")

    if not volunteers:
        return []

    policy = policy or default_ranking_policy()
    target = resolve_target_location(task, disaster, target_location)

    ranked = [score_volunteer(volunteer, task, disaster, target, policy) for volunteer in volunteers]
    ranked.sort(key=lambda result: result.scores.final, reverse=True)
    return ranked


def get_top_volunteers(
    volunteers: Sequence[Volunteer],
    task: Task,
    disaster: Disaster,
    top_n: Optional[int] = None,
    target_location: Optional[LatLon] = None,
    policy: Optional[RankingPolicy] = None,
) -> List[RankedVolunteer]:
    """
    First top_n entries of rank_volunteers (default 5). No further filtering.
    """
    policy = policy or default_ranking_policy()
    if top_n is None:
        top_n = policy.default_top_n

    ranked = rank_volunteers(volunteers, task, disaster, target_location, policy)
    if top_n <= 0:
        return []
    return ranked[:top_n]
