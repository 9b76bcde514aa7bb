"""
Purpose: Per-volunteer component scores (the "how good is this one" layer).
What it does:

Computes four independent 0-100 scores for one volunteer against one task:

skill        = share of required skills the volunteer covers (loose substring match)

distance     = piecewise-linear decay over great-circle km

availability = available 100 / busy 50 / offline 0 / unknown 0

reliability  = stored trust score, clamped to 0-100

and combines them into a weighted average using the disaster's urgency row.

Rule: Pure functions only. No store, no HTTP, no logging.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from .policy import RankingPolicy, UrgencyWeights, default_ranking_policy

_DEFAULT_POLICY = default_ranking_policy()


@dataclass(frozen=True)
class ComponentScores:
    """
    Unrounded component scores for a single volunteer/task pairing.
    """
    skill: float
    distance: float
    availability: float
    reliability: float


def round_half_up(value: float) -> int:
    """
    Round .5 away from zero for positive values (12.5 -> 13).
    Python's round() uses banker's rounding, which would shift ties down.
    """
    return int(math.floor(value + 0.5))


def skill_score(
    volunteer_skills: Optional[Iterable[str]],
    required_skills: Optional[Iterable[str]],
    policy: RankingPolicy = _DEFAULT_POLICY,
) -> int:
    required = [skill for skill in (required_skills or []) if isinstance(skill, str)]
    if not required:
        return policy.neutral_skill_score

    offered = [skill.lower() for skill in (volunteer_skills or []) if isinstance(skill, str)]
    if not offered:
        return 0

    # "First Aid" matches "Basic First Aid Certified" and vice versa
    matched = 0
    for skill in required:
        needle = skill.lower()
        if any(have in needle or needle in have for have in offered):
            matched += 1

    return round_half_up(matched / len(required) * 100)


def distance_score(distance_km: float, policy: RankingPolicy = _DEFAULT_POLICY) -> float:
    """
    Piecewise-linear decay, continuous at every bracket boundary:

      0-10 km    100 -> 90
      10-50 km    90 -> 70
      50-200 km   70 -> 40
      >200 km     40 -> 0 (floored)
    """
    lower = 0.0
    for upper, start_score, slope in policy.distance_brackets:
        if distance_km <= upper:
            return start_score - (distance_km - lower) * slope
        lower = upper

    return max(0.0, policy.far_distance_base_score - (distance_km - lower) * policy.far_distance_slope)


def availability_score(availability: Any, policy: RankingPolicy = _DEFAULT_POLICY) -> int:
    # str-based enums compare by value, so .value covers AvailabilityStatus too
    raw = getattr(availability, "value", availability)
    if not isinstance(raw, str):
        return 0
    return policy.availability_scores.get(raw.strip().lower(), 0)


def reliability_score(stored_score: Optional[float], policy: RankingPolicy = _DEFAULT_POLICY) -> float:
    """
    The stored score can drift above 100 (completion bonuses) or below 0;
    clamp for ranking only.
    """
    score = policy.default_reliability if stored_score is None else float(stored_score)
    return max(0.0, min(100.0, score))


def urgency_weights(urgency: Any, policy: RankingPolicy = _DEFAULT_POLICY) -> UrgencyWeights:
    return policy.weights_for(urgency)


def composite_score(components: ComponentScores, weights: UrgencyWeights) -> float:
    """
    Weighted average (not a weighted sum), so the result stays on the same
    0-100 scale as the inputs whatever the weight magnitudes are.
    """
    weighted = (
        components.skill * weights.skill
        + components.distance * weights.distance
        + components.availability * weights.availability
        + components.reliability * weights.reliability
    )
    return weighted / weights.total
