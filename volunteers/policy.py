"""
Purpose: Central configuration for volunteer ranking.
What it does:

Stores all the hand-tuned constants the scoring layer reads:

URGENCY WEIGHTS (distance / availability / skill / reliability per urgency tier)
DISTANCE BRACKETS (piecewise-linear decay, km)
UNKNOWN_DISTANCE_KM = 9999
NEUTRAL_SKILL_SCORE = 50

Rule: No logic here, just parameters so you can tune without rewriting code.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from disasters.models import Urgency


@dataclass(frozen=True)
class UrgencyWeights:
    """
    Multipliers applied to each component score before averaging.
    """
    distance: float
    availability: float
    skill: float
    reliability: float

    @property
    def total(self) -> float:
        return self.distance + self.availability + self.skill + self.reliability


def _default_urgency_weights() -> Dict[Urgency, UrgencyWeights]:
    return {
        # Proximity and "can go now" dominate; no time to vet skills or history
        Urgency.CRITICAL: UrgencyWeights(distance=1.5, availability=1.5, skill=0.8, reliability=0.7),
        Urgency.HIGH: UrgencyWeights(distance=1.2, availability=1.3, skill=1.0, reliability=0.9),
        Urgency.MEDIUM: UrgencyWeights(distance=1.0, availability=1.0, skill=1.1, reliability=1.0),
        # Can be selective about skills and favour proven volunteers
        Urgency.LOW: UrgencyWeights(distance=0.8, availability=0.9, skill=1.3, reliability=1.2),
    }


# (upper bound km, score at lower bound, slope per km)
# The lower bound of each bracket is the upper bound of the previous one.
DistanceBracket = Tuple[float, float, float]


@dataclass(frozen=True)
class RankingPolicy:
    """
    Central configuration for volunteer scoring thresholds and weights.
    """

    # --- Urgency weighting ---
    # Unknown urgencies fall back to the MEDIUM row.
    urgency_weights: Dict[Urgency, UrgencyWeights] = field(default_factory=_default_urgency_weights)
    default_urgency: Urgency = Urgency.MEDIUM

    # --- Distance decay ---
    # 0-10km: 100-90 points, 10-50km: 90-70, 50-200km: 70-40
    distance_brackets: List[DistanceBracket] = field(
        default_factory=lambda: [(10.0, 100.0, 1.0), (50.0, 90.0, 0.5), (200.0, 70.0, 0.2)]
    )
    # Beyond the last bracket: 40 points, minus 0.1 per km, floored at 0
    far_distance_base_score: float = 40.0
    far_distance_slope: float = 0.1

    # Used when either side of the pairing has no coordinates
    unknown_distance_km: float = 9999.0

    # --- Skills ---
    # Task that lists no required skills gives no discriminating signal
    neutral_skill_score: int = 50

    # --- Reliability ---
    default_reliability: float = 100.0

    # --- Availability ---
    availability_scores: Dict[str, int] = field(
        default_factory=lambda: {"available": 100, "busy": 50, "offline": 0}
    )

    # --- Result size ---
    default_top_n: int = 5

    def weights_for(self, urgency) -> UrgencyWeights:
        return self.urgency_weights.get(Urgency.parse(urgency), self.urgency_weights[self.default_urgency])

    def validate(self) -> None:
        """
        Basic sanity checks.
        """
        if self.default_urgency not in self.urgency_weights:
            raise ValueError("urgency_weights must contain the default urgency row")

        for urgency, weights in self.urgency_weights.items():
            if min(weights.distance, weights.availability, weights.skill, weights.reliability) < 0:
                raise ValueError(f"weights for {urgency.value} must be >= 0")
            if weights.total <= 0:
                raise ValueError(f"weights for {urgency.value} must not all be 0")

        if not self.distance_brackets:
            raise ValueError("Must provide at least one distance bracket.")

        previous_upper = 0.0
        for upper, _, slope in self.distance_brackets:
            if upper <= previous_upper:
                raise ValueError("distance brackets must be strictly increasing")
            if slope < 0:
                raise ValueError("distance bracket slopes must be >= 0")
            previous_upper = upper

        if self.unknown_distance_km <= previous_upper:
            raise ValueError("unknown_distance_km must fall beyond the last distance bracket")

        if self.default_top_n < 0:
            raise ValueError("default_top_n must be >= 0")


def default_ranking_policy() -> RankingPolicy:
    """
    Convenience factory for the default policy.
    """
    p = RankingPolicy()
    p.validate()
    return p
