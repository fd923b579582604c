"""
Contrato de busca de perfis consumido pelo discovery.

Qualquer implementação recebe um id de lutador e devolve um FighterPage
(perfil + ids linkados) ou levanta exceção. O discovery trata toda falha
de forma uniforme e apenas registra a mensagem.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from fightgraph.schemas.fighter import FighterPage
from fightgraph.services.discovery_manager import ExpiringCache

logger = logging.getLogger(__name__)


class ProfileSource(ABC):
    """Fonte de páginas de lutadores."""

    @abstractmethod
    async def fetch_fighter(self, fighter_id: str) -> FighterPage:
        """Busca e interpreta a página do lutador."""


class CachedProfileSource(ProfileSource):
    """
    Envolve outra fonte com um ExpiringCache.

    Só resultados bem-sucedidos são armazenados; falhas sempre chegam
    ao chamador e a próxima chamada tenta de novo.
    """

    def __init__(
        self,
        source: ProfileSource,
        cache: Optional[ExpiringCache[FighterPage]] = None,
        ttl_seconds: Optional[float] = None,
    ):
        self.source = source
        self.cache = cache if cache is not None else ExpiringCache()
        self.ttl_seconds = ttl_seconds

    @staticmethod
    def cache_key(fighter_id: str) -> str:
        return ExpiringCache.generate_key({"kind": "fighter", "fighter_id": fighter_id})

    async def fetch_fighter(self, fighter_id: str) -> FighterPage:
        key = self.cache_key(fighter_id)

        cached = self.cache.get(key)
        if cached is not None:
            logger.debug(f"[ProfileCache] HIT: {fighter_id}")
            return cached

        page = await self.source.fetch_fighter(fighter_id)
        self.cache.set(key, page, ttl_seconds=self.ttl_seconds)
        return page
