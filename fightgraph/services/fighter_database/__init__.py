"""
Fighter Database - Índice local nome -> id de lutadores.
"""

from .database import (
    DEFAULT_SEARCH_LIMIT,
    STARTER_DATABASE_PATH,
    FighterDatabase,
    normalize_name,
)

__all__ = [
    "FighterDatabase",
    "normalize_name",
    "DEFAULT_SEARCH_LIMIT",
    "STARTER_DATABASE_PATH",
]
