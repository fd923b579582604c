"""
Módulo de Discovery - Construção do banco de lutadores por BFS.

Infraestrutura de acesso ao Sherdog fica em discovery_manager:
- RateLimiter / AdaptiveRateLimiter: espaçamento entre requisições
- ExpiringCache: cache de páginas já buscadas
"""

from .discovery_engine import (
    DEFAULT_EXPAND_SAMPLE_SIZE,
    DiscoveryResult,
    FighterDiscovery,
)
from .factory import create_fighter_discovery

__all__ = [
    "FighterDiscovery",
    "DiscoveryResult",
    "DEFAULT_EXPAND_SAMPLE_SIZE",
    "create_fighter_discovery",
]
