"""
Predicados de matching por texto.

Funciones puras e independientes: comparación de campos estructurados,
búsqueda de keywords y las heurísticas de género por nombre.
"""

from typing import Iterable, Optional, Union


MEN_NAME_TOKENS = ("men's", "mens ", " men ")
WOMEN_NAME_TOKENS = ("women's", "womens ", " women ", "moms", "ladies")


def _substring_either_way(left: str, right: str) -> bool:
    left = left.lower()
    right = right.lower()
    return left in right or right in left


def field_matches(
    value: Optional[Union[str, list[str]]], accepted: Iterable[str]
) -> bool:
    """
    Indica si un campo estructurado matchea alguno de los valores aceptados.

    La comparación es por substring case-insensitive en ambas direcciones.
    Valores vacíos nunca matchean.
    """
    if not value:
        return False

    if isinstance(value, str):
        elements = [value]
    elif isinstance(value, (list, tuple)):
        elements = [v for v in value if isinstance(v, str) and v.strip()]
    else:
        return False

    return any(
        _substring_either_way(element, candidate)
        for candidate in accepted
        for element in elements
    )


def keyword_points(
    name: str,
    text: str,
    keywords: Iterable[str],
    match_points: int = 10,
    name_bonus: int = 5,
) -> int:
    """
    Suma puntos por cada keyword presente en el texto de la comunidad.

    Args:
        name: Nombre de la comunidad
        text: Nombre + descripción
        keywords: Fragmentos a buscar
        match_points: Puntos por keyword encontrada
        name_bonus: Puntos extra si además aparece en el nombre
    """
    name = name.lower()
    text = text.lower()
    points = 0
    for keyword in keywords:
        keyword = keyword.lower()
        if keyword in text:
            points += match_points
            if keyword in name:
                points += name_bonus
    return points


def is_men_only(gender: Optional[Union[str, list[str]]]) -> bool:
    # Substring literal: "women's only" también matchea
    return any(
        "men's only" in g or "men only" in g for g in _as_lower_list(gender)
    )


def is_women_only(gender: Optional[Union[str, list[str]]]) -> bool:
    return any(
        "women's only" in g or "women only" in g for g in _as_lower_list(gender)
    )


def name_suggests_men(name: str) -> bool:
    """Nombre con tokens de grupo de hombres y sin mencionar "women"."""
    name = name.lower()
    return any(t in name for t in MEN_NAME_TOKENS) and "women" not in name


def name_suggests_women(name: str) -> bool:
    """
    Nombre con tokens de grupo de mujeres y sin mencionar "men".

    "women" contiene "men": un nombre con "women's" nunca se excluye,
    en la práctica solo excluyen "moms" y "ladies".
    """
    name = name.lower()
    return any(t in name for t in WOMEN_NAME_TOKENS) and "men" not in name


def _as_lower_list(value) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [value.lower()]
    return [v.lower() for v in value if isinstance(v, str)]
