"""
Discovery Manager - Controle de acesso ao Sherdog durante o discovery.

Este módulo centraliza a infraestrutura que protege cada busca externa:
- Rate limiting por intervalo fixo (com variante adaptativa)
- Cache de páginas já buscadas (TTL + limite de entradas), opcionalmente em disco

A lógica de travessia permanece em fightgraph/services/discovery/
"""

from .fetch_cache import (
    CacheEntry,
    ExpiringCache,
)
from .file_cache import FileCache
from .rate_limiter import (
    AdaptiveRateLimiter,
    RateLimiter,
)

__all__ = [
    # Cache
    "CacheEntry",
    "ExpiringCache",
    "FileCache",
    # Rate Limiter
    "RateLimiter",
    "AdaptiveRateLimiter",
]
