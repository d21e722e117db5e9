"""
Matcher de comunidades.

Combina el filtro de género y el score por categorías para sugerir
las "starter communities" del onboarding.
"""

from theconnection.matching.engine import (
    CommunityMatcher,
    StarterMatch,
    calculate_relevance_score,
    rank_communities,
    rank_starter_matches,
    should_exclude_by_gender,
)

__all__ = [
    "CommunityMatcher",
    "StarterMatch",
    "calculate_relevance_score",
    "rank_communities",
    "rank_starter_matches",
    "should_exclude_by_gender",
]
