"""
File Cache - ExpiringCache persistido em JSON.

Permite que execuções seguintes do discovery reaproveitem páginas já
buscadas. O arquivo guarda, por chave:

    {"<md5>": {"value": {...}, "created_at": 1735689600.0, "ttl_seconds": 3600.0, "hits": 2}}

- load() restaura apenas entradas ainda dentro do TTL
- set/delete/clear gravam o cache inteiro de volta (write-through)
- Falha de escrita é logada; o cache em memória continua valendo
"""

import asyncio
import logging
import time
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, TypeAdapter

from fightgraph.core.json_files import read_json, write_json_atomic

from .fetch_cache import CacheEntry, ExpiringCache, V

logger = logging.getLogger(__name__)


class _StoredEntry(BaseModel):
    value: Any
    created_at: float
    ttl_seconds: float
    hits: int = 0


_DOCUMENT_ADAPTER = TypeAdapter(Dict[str, _StoredEntry])


class FileCache(ExpiringCache[V]):
    """
    Cache com TTL persistido em disco.

    `value_type` define como os valores são (de)serializados (ex.: FighterPage);
    o default aceita qualquer valor JSON.
    """

    def __init__(
        self,
        path: Union[str, Path],
        value_type: Any = Any,
        ttl_seconds: Optional[float] = None,
        max_entries: Optional[int] = None,
    ):
        super().__init__(ttl_seconds=ttl_seconds, max_entries=max_entries)
        self.path = Path(path)
        self._value_adapter = TypeAdapter(value_type)

    async def load(self) -> int:
        """
        Substitui o conteúdo em memória pelas entradas válidas do arquivo.

        Arquivo ausente ou corrompido resulta em cache vazio.

        Returns:
            Quantidade de entradas restauradas
        """
        try:
            document = await asyncio.to_thread(read_json, self.path)
            stored = _DOCUMENT_ADAPTER.validate_python(document)
            entries = {
                key: CacheEntry(
                    value=self._value_adapter.validate_python(item.value),
                    created_at=item.created_at,
                    ttl_seconds=item.ttl_seconds,
                    hits=item.hits,
                )
                for key, item in stored.items()
            }
        except FileNotFoundError:
            logger.debug(f"[FileCache] {self.path} não existe, começando vazio")
            self._cache = {}
            return 0
        except (OSError, ValueError) as exc:
            logger.warning(f"⚠️ [FileCache] Não foi possível carregar {self.path}: {exc}")
            self._cache = {}
            return 0

        now = time.time()
        fresh = sorted(
            ((key, entry) for key, entry in entries.items() if not entry.is_expired(now)),
            key=lambda item: item[1].created_at,
        )
        self._cache = dict(fresh)
        self._enforce_capacity()

        logger.info(
            f"📂 [FileCache] {len(self._cache)} entradas restauradas de {self.path} "
            f"({len(entries) - len(fresh)} expiradas descartadas)"
        )
        return len(self._cache)

    def save(self) -> bool:
        """Grava o cache inteiro no arquivo. Retorna False se a escrita falhar."""
        payload = {
            key: {
                "value": self._value_adapter.dump_python(entry.value, mode="json"),
                "created_at": entry.created_at,
                "ttl_seconds": entry.ttl_seconds,
                "hits": entry.hits,
            }
            for key, entry in self._cache.items()
        }
        try:
            write_json_atomic(self.path, payload)
        except (OSError, TypeError, ValueError) as exc:
            logger.warning(f"⚠️ [FileCache] Falha ao gravar {self.path}: {exc}")
            return False
        return True

    async def flush(self) -> bool:
        return await asyncio.to_thread(self.save)

    def set(self, key: str, value: V, ttl_seconds: Optional[float] = None) -> None:
        super().set(key, value, ttl_seconds=ttl_seconds)
        self.save()

    def delete(self, key: str) -> bool:
        removed = super().delete(key)
        if removed:
            self.save()
        return removed

    def clear(self) -> None:
        super().clear()
        self.save()

    def get_status(self) -> dict:
        status = super().get_status()
        status["path"] = str(self.path)
        return status
