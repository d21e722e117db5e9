"""
Matcher de relevancia de comunidades para el onboarding "Start Here".

Implementa:
- Score: campos estructurados (20 pts) + keywords (10 pts, +5 si está en el nombre)
- Filtro de género: descarta comunidades que contradicen "Men" / "Women"
- Ranking: ordena por score y completa con comunidades populares
"""

from dataclasses import dataclass
from typing import Iterable, Optional

import structlog

from theconnection.config import GENDER_CATEGORIES, Settings, get_settings
from theconnection.matching.categories import (
    CATEGORY_KEYWORDS,
    CATEGORY_TO_FILTERS,
    FIELD_ATTRIBUTES,
)
from theconnection.matching.predicates import (
    field_matches,
    is_men_only,
    is_women_only,
    keyword_points,
    name_suggests_men,
    name_suggests_women,
)
from theconnection.models import Community

logger = structlog.get_logger()

STRUCTURED_MATCH_POINTS = 20
KEYWORD_MATCH_POINTS = 10
NAME_MATCH_BONUS = 5

DEFAULT_LIST_SIZE = 8
DEFAULT_MAX_MATCHED = 6
DEFAULT_MIN_MATCHED = 4


@dataclass
class StarterMatch:
    """Comunidad sugerida con su score."""

    community: Community
    score: int
    is_backfill: bool = False  # Agregada por popularidad, no por score


def _unique_categories(categories: Optional[Iterable[str]]) -> list[str]:
    # Conjunto: el orden no importa y los duplicados no suman dos veces
    return list(dict.fromkeys(categories or ()))


def _unique_communities(communities: Iterable[Community]) -> list[Community]:
    seen = set()
    unique = []
    for community in communities:
        if community.id in seen:
            continue
        seen.add(community.id)
        unique.append(community)
    return unique


def _by_popularity(communities: Iterable[Community]) -> list[Community]:
    return sorted(communities, key=lambda c: c.popularity, reverse=True)


def calculate_relevance_score(
    community: Community, categories: Iterable[str]
) -> int:
    """
    Calcula el score de relevancia de una comunidad para las categorías elegidas.

    Cada categoría suma de forma independiente por el camino estructurado
    y por el de keywords; una misma categoría puede sumar por ambos.

    Returns:
        Score entero >= 0 (0 si no hay categorías)
    """
    selected = _unique_categories(categories)
    if not selected:
        return 0

    name = community.name or ""
    text = f"{name} {community.description or ''}"

    score = 0
    for category in selected:
        for field, accepted in CATEGORY_TO_FILTERS.get(category, ()):
            value = getattr(community, FIELD_ATTRIBUTES[field], None)
            if field_matches(value, accepted):
                score += STRUCTURED_MATCH_POINTS

        score += keyword_points(
            name,
            text,
            CATEGORY_KEYWORDS.get(category, ()),
            match_points=KEYWORD_MATCH_POINTS,
            name_bonus=NAME_MATCH_BONUS,
        )

    return score


def should_exclude_by_gender(
    community: Community, categories: Iterable[str]
) -> bool:
    """
    Indica si la comunidad contradice la selección de género del usuario.

    Es una heurística por substrings sobre el campo gender y el nombre,
    no una regla autoritativa.
    """
    selected = set(categories or ())
    if selected.isdisjoint(GENDER_CATEGORIES):
        return False

    name = community.name or ""

    if "Women" in selected:
        if is_men_only(community.gender) or name_suggests_men(name):
            return True

    if "Men" in selected:
        if is_women_only(community.gender) or name_suggests_women(name):
            return True

    return False


def rank_starter_matches(
    communities: Iterable[Community],
    categories: Iterable[str],
    limit: int = DEFAULT_LIST_SIZE,
    max_matched: int = DEFAULT_MAX_MATCHED,
    min_matched: int = DEFAULT_MIN_MATCHED,
) -> list[StarterMatch]:
    """
    Rankea comunidades para las categorías elegidas.

    Flujo:
    1. Sin categorías: las más populares
    2. Filtro de género
    3. Score y orden (score desc, miembros desc)
    4. Hasta max_matched con score > 0
    5. Si hay menos de min_matched, completar con populares hasta max_matched
    6. Cortar en limit

    Returns:
        Lista de StarterMatch sin comunidades repetidas
    """
    pool = _unique_communities(communities)
    selected = _unique_categories(categories)

    if not selected:
        return [
            StarterMatch(community=c, score=0, is_backfill=True)
            for c in _by_popularity(pool)[:limit]
        ]

    eligible = [c for c in pool if not should_exclude_by_gender(c, selected)]

    scored = [
        StarterMatch(community=c, score=calculate_relevance_score(c, selected))
        for c in eligible
    ]
    scored.sort(key=lambda m: (m.score, m.community.popularity), reverse=True)

    matched = [m for m in scored if m.score > 0][:max_matched]

    if len(matched) < min_matched:
        matched_ids = {m.community.id for m in matched}
        remaining = [c for c in _by_popularity(eligible) if c.id not in matched_ids]
        missing = max(0, max_matched - len(matched))
        matched.extend(
            StarterMatch(community=c, score=0, is_backfill=True)
            for c in remaining[:missing]
        )

    return matched[:limit]


def rank_communities(
    communities: Iterable[Community],
    categories: Iterable[str],
    limit: int = DEFAULT_LIST_SIZE,
    max_matched: int = DEFAULT_MAX_MATCHED,
    min_matched: int = DEFAULT_MIN_MATCHED,
) -> list[Community]:
    """Igual que rank_starter_matches pero devuelve solo las comunidades."""
    return [
        m.community
        for m in rank_starter_matches(
            communities,
            categories,
            limit=limit,
            max_matched=max_matched,
            min_matched=min_matched,
        )
    ]


class CommunityMatcher:
    """
    Matcher configurado con los límites de Settings.

    Se recalcula completo cada vez que cambia la selección de categorías.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def score(self, community: Community, categories: Iterable[str]) -> int:
        return calculate_relevance_score(community, categories)

    def excludes(self, community: Community, categories: Iterable[str]) -> bool:
        return should_exclude_by_gender(community, categories)

    def rank(
        self, communities: Iterable[Community], categories: Iterable[str]
    ) -> list[StarterMatch]:
        """Rankea comunidades usando los límites configurados."""
        communities = list(communities)
        categories = list(categories or ())
        matches = rank_starter_matches(
            communities,
            categories,
            limit=self.settings.starter_list_size,
            max_matched=self.settings.starter_max_matched,
            min_matched=self.settings.starter_min_matched,
        )

        logger.debug(
            "Starter communities rankeadas",
            candidates=len(communities),
            categories=len(_unique_categories(categories)),
            matched=sum(1 for m in matches if not m.is_backfill),
            backfilled=sum(1 for m in matches if m.is_backfill),
        )
        return matches
