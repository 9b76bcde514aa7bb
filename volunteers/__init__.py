"""
Volunteers domain package.

Public API:
- Domain models: Volunteer, AvailabilityStatus
- Ranking policy: RankingPolicy, UrgencyWeights, default_ranking_policy
- Ranking entry points: rank_volunteers, get_top_volunteers
"""
from .models import Volunteer, AvailabilityStatus
from .policy import RankingPolicy, UrgencyWeights, default_ranking_policy
from .selection import RankedVolunteer, ScoreBreakdown, rank_volunteers, get_top_volunteers

__all__ = [
    "Volunteer",
    "AvailabilityStatus",
    "RankingPolicy",
    "UrgencyWeights",
    "default_ranking_policy",
    "RankedVolunteer",
    "ScoreBreakdown",
    "rank_volunteers",
    "get_top_volunteers",
]
