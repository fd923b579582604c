"""
Fetch Cache - Cache de páginas de lutadores já buscadas.

Evita buscar de novo o mesmo perfil no Sherdog enquanto a entrada
estiver dentro do TTL, reduzindo carga no site e tempo de discovery.
"""

import hashlib
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Generic, Mapping, Optional, TypeVar

from fightgraph.core.config_loader import get_section

logger = logging.getLogger(__name__)

V = TypeVar("V")


@dataclass
class CacheEntry(Generic[V]):
    """Entrada do cache."""
    value: V
    created_at: float
    ttl_seconds: float
    hits: int = 0

    def is_expired(self, now: Optional[float] = None) -> bool:
        now = time.time() if now is None else now
        return now - self.created_at > self.ttl_seconds


class ExpiringCache(Generic[V]):
    """
    Cache com TTL por entrada e limite máximo de entradas.

    Features:
    - TTL configurável por entrada (default global)
    - Entradas expiradas são tratadas como ausentes e removidas no acesso
    - Ao atingir o limite, remove a entrada MAIS ANTIGA (created_at),
      independente do TTL
    - Métricas de hit/miss/eviction
    """

    def __init__(
        self,
        ttl_seconds: Optional[float] = None,
        max_entries: Optional[int] = None,
    ):
        """
        Args:
            ttl_seconds: TTL padrão das entradas em segundos
            max_entries: Máximo de entradas no cache
        """
        cfg = get_section("discovery/fetch_cache", {})
        self._ttl_seconds = float(ttl_seconds if ttl_seconds is not None else cfg.get("ttl_seconds", 3600))
        self._max_entries = int(max_entries if max_entries is not None else cfg.get("max_entries", 1000))

        if self._max_entries < 1:
            raise ValueError("max_entries must be >= 1")

        self._cache: Dict[str, CacheEntry[V]] = {}

        # Métricas
        self._hits = 0
        self._misses = 0
        self._evictions = 0

        logger.info(f"ExpiringCache: max={self._max_entries}, ttl={self._ttl_seconds}s")

    @staticmethod
    def generate_key(descriptor: Mapping[str, Any]) -> str:
        """
        Gera chave determinística para uma requisição.

        A serialização ordena os campos (inclusive aninhados), então
        descritores equivalentes caem no mesmo slot independente da ordem.
        Strings passam por strip antes do hash.
        """
        normalized = json.dumps(
            _normalize_descriptor(descriptor),
            sort_keys=True,
            separators=(",", ":"),
            default=str,
        )
        return hashlib.md5(normalized.encode()).hexdigest()

    def get(self, key: str) -> Optional[V]:
        """
        Busca valor no cache.

        Returns:
            Valor armazenado ou None se ausente/expirado
        """
        entry = self._cache.get(key)

        if entry is None:
            self._misses += 1
            return None

        if entry.is_expired():
            del self._cache[key]
            self._misses += 1
            logger.debug(f"[Cache] EXPIRED: {key[:16]}...")
            return None

        entry.hits += 1
        self._hits += 1
        logger.debug(f"[Cache] HIT: {key[:16]}...")
        return entry.value

    def has(self, key: str) -> bool:
        entry = self._cache.get(key)
        if entry is None:
            return False
        if entry.is_expired():
            del self._cache[key]
            return False
        return True

    def set(self, key: str, value: V, ttl_seconds: Optional[float] = None) -> None:
        """
        Armazena valor no cache.

        Args:
            key: Chave (ver generate_key)
            value: Valor a armazenar
            ttl_seconds: TTL da entrada; usa o default do cache se omitido
        """
        self.cleanup()

        if key not in self._cache and len(self._cache) >= self._max_entries:
            self._evict_oldest()

        self._cache[key] = CacheEntry(
            value=value,
            created_at=time.time(),
            ttl_seconds=self._ttl_seconds if ttl_seconds is None else float(ttl_seconds),
        )
        logger.debug(f"[Cache] SET: {key[:16]}...")

    def delete(self, key: str) -> bool:
        return self._cache.pop(key, None) is not None

    def cleanup(self) -> int:
        """Remove entradas expiradas. Retorna quantas foram removidas."""
        now = time.time()
        expired_keys = [key for key, entry in self._cache.items() if entry.is_expired(now)]

        for key in expired_keys:
            del self._cache[key]

        if expired_keys:
            logger.debug(f"[Cache] Cleanup: {len(expired_keys)} entradas expiradas removidas")
        return len(expired_keys)

    def _evict_oldest(self) -> None:
        """Remove a entrada criada há mais tempo."""
        if not self._cache:
            return

        # min() mantém a primeira inserida em caso de empate
        oldest_key = min(self._cache, key=lambda k: self._cache[k].created_at)

        del self._cache[oldest_key]
        self._evictions += 1
        logger.debug(f"[Cache] Eviction: {oldest_key[:16]}...")

    def _enforce_capacity(self) -> None:
        while len(self._cache) > self._max_entries:
            self._evict_oldest()

    def clear(self) -> None:
        count = len(self._cache)
        self._cache.clear()
        logger.info(f"[Cache] Cleared: {count} entradas removidas")

    def __len__(self) -> int:
        return len(self._cache)

    def get_status(self) -> dict:
        """Retorna status e métricas do cache."""
        total_requests = self._hits + self._misses
        hit_rate = self._hits / total_requests if total_requests > 0 else 0

        return {
            "entries": len(self._cache),
            "max_entries": self._max_entries,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": f"{hit_rate:.1%}",
            "evictions": self._evictions,
            "config": {
                "ttl_seconds": self._ttl_seconds,
            },
        }

    def update_config(
        self,
        max_entries: Optional[int] = None,
        ttl_seconds: Optional[float] = None,
    ) -> None:
        """
        Atualiza configurações do cache. Não afeta o TTL de entradas existentes.

        Reduzir max_entries remove as entradas mais antigas até caber no novo limite.
        """
        if max_entries is not None:
            if max_entries < 1:
                raise ValueError("max_entries must be >= 1")
            self._max_entries = max_entries
            self._enforce_capacity()
        if ttl_seconds is not None:
            self._ttl_seconds = ttl_seconds

        logger.info(
            f"ExpiringCache: Configuração atualizada - "
            f"max={self._max_entries}, ttl={self._ttl_seconds}s"
        )


def _normalize_descriptor(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {str(k): _normalize_descriptor(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalize_descriptor(v) for v in value]
    if isinstance(value, str):
        return value.strip()
    return value
