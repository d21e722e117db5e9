"""
Script para ver las starter communities que sugeriría el matcher.

Carga todas las comunidades de Supabase y muestra el ranking para
las categorías indicadas.

Uso:
    python -m theconnection.scripts.run_suggestions --category "Bible Study" --category Men
    python -m theconnection.scripts.run_suggestions --list-categories
"""

import argparse
import sys

import structlog

from theconnection.config import AVAILABLE_CATEGORIES, get_settings
from theconnection.database import CommunityRepository
from theconnection.log import configure_logging
from theconnection.matching import CommunityMatcher

settings = get_settings()
configure_logging(settings.log_level)

logger = structlog.get_logger()


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Muestra las starter communities para un set de categorías."
    )
    parser.add_argument(
        "--category",
        "-c",
        action="append",
        default=[],
        help="Categoría elegida (repetible)",
    )
    parser.add_argument(
        "--list-categories",
        action="store_true",
        help="Lista las categorías disponibles y sale",
    )
    return parser.parse_args(argv)


def main(argv=None):
    """Entry point del script."""
    args = parse_args(argv)

    if args.list_categories:
        for category in AVAILABLE_CATEGORIES:
            print(category)
        return

    unknown = [c for c in args.category if c not in AVAILABLE_CATEGORIES]
    if unknown:
        logger.warning("Categorías desconocidas (no suman score)", categories=unknown)

    try:
        communities = CommunityRepository().get_all()
    except Exception as e:
        logger.error("Error cargando comunidades", error=str(e))
        sys.exit(1)

    matches = CommunityMatcher(settings).rank(communities, args.category)

    if not matches:
        print("No hay comunidades para sugerir.")
        return

    for position, match in enumerate(matches, start=1):
        tag = "popular" if match.is_backfill else f"score {match.score}"
        print(
            f"{position:>2}. [{match.community.id}] {match.community.name} "
            f"({match.community.popularity} miembros, {tag})"
        )

    logger.info(
        "Sugerencias calculadas",
        categories=args.category,
        communities=len(communities),
        suggested=len(matches),
    )


if __name__ == "__main__":
    main()
