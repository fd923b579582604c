"""
Módulo de Scraping - Fontes de perfis de lutadores.

- ProfileSource: contrato consumido pelo discovery
- CachedProfileSource: memoiza buscas em um ExpiringCache
- SherdogClient: implementação httpx + BeautifulSoup
"""

from .profile_source import (
    CachedProfileSource,
    ProfileSource,
)
from .sherdog_client import (
    SherdogClient,
    build_fighter_url,
    extract_fighter_id_from_url,
    parse_fighter_page,
)

__all__ = [
    "ProfileSource",
    "CachedProfileSource",
    "SherdogClient",
    "build_fighter_url",
    "extract_fighter_id_from_url",
    "parse_fighter_page",
]
