"""
Banco local de lutadores - índice nome normalizado -> id do Sherdog.

Persistido como um único documento JSON:

    {
      "jon jones": {"id": "Jon-Jones-27944", "nickname": "Bones", "lastUpdated": "..."},
      ...
    }

Quando o arquivo está vazio ou ausente, initialize() carrega o dataset
inicial empacotado (fighters_starter.json) e já o persiste, garantindo
resultados de busca logo na primeira execução.
"""

import asyncio
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Union

from pydantic import TypeAdapter

from fightgraph.core.exceptions import DatabaseSaveError
from fightgraph.core.json_files import read_json, write_json_atomic
from fightgraph.schemas.fighter import FighterIndexEntry, FighterMatch

logger = logging.getLogger(__name__)

STARTER_DATABASE_PATH = Path(__file__).resolve().parent / "fighters_starter.json"

DEFAULT_SEARCH_LIMIT = 20

_PUNCTUATION_RE = re.compile(r"[^\w\s]")
_WHITESPACE_RE = re.compile(r"\s+")

_INDEX_ADAPTER = TypeAdapter(Dict[str, FighterIndexEntry])


def normalize_name(name: str) -> str:
    """Chave canônica: case-fold, sem pontuação, espaços colapsados."""
    normalized = _PUNCTUATION_RE.sub("", name.casefold())
    return _WHITESPACE_RE.sub(" ", normalized).strip()


class FighterDatabase:
    """
    Índice persistente de lutadores.

    No máximo uma entrada por nome normalizado; add() é last-write-wins.
    Não há índice secundário por id: has_by_id() faz varredura linear,
    o que é aceitável para o tamanho esperado do banco.
    """

    def __init__(
        self,
        database_path: Union[str, Path] = "./data/fighters.json",
        starter_path: Union[str, Path, None] = STARTER_DATABASE_PATH,
    ):
        self.database_path = Path(database_path)
        self.starter_path = Path(starter_path) if starter_path else None
        self._fighters: Dict[str, FighterIndexEntry] = {}

    # ------------------------------------------------------------------
    # Persistência
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        await self.load()

        if not self._fighters:
            if await self._load_starter_database():
                await self.save()

        logger.info(f"📦 FighterDatabase: {len(self._fighters)} lutadores em {self.database_path}")

    async def _load_starter_database(self) -> bool:
        if self.starter_path is None:
            return False

        try:
            self._fighters = await asyncio.to_thread(_read_index, self.starter_path)
        except (OSError, ValueError) as exc:
            logger.info(f"💡 Dataset inicial indisponível ({exc}), começando com banco vazio")
            self._fighters = {}
            return False

        logger.info(f"📦 Dataset inicial carregado: {len(self._fighters)} lutadores")
        return bool(self._fighters)

    async def load(self) -> None:
        """Carrega o banco do disco. Arquivo ausente ou corrompido resulta em banco vazio."""
        try:
            self._fighters = await asyncio.to_thread(_read_index, self.database_path)
        except (OSError, ValueError) as exc:
            logger.debug(f"[FighterDatabase] Não foi possível carregar {self.database_path}: {exc}")
            self._fighters = {}

    async def save(self) -> None:
        payload = {
            name: entry.model_dump(mode="json", by_alias=True, exclude_none=True)
            for name, entry in self._fighters.items()
        }
        try:
            await asyncio.to_thread(write_json_atomic, self.database_path, payload)
        except (OSError, TypeError, ValueError) as exc:
            raise DatabaseSaveError(
                f"Failed to save database: {exc}", path=str(self.database_path)
            ) from exc

        logger.debug(f"[FighterDatabase] {len(payload)} lutadores salvos em {self.database_path}")

    # ------------------------------------------------------------------
    # Operações do índice
    # ------------------------------------------------------------------

    def add(self, name: str, fighter_id: str, nickname: Optional[str] = None) -> str:
        """
        Insere ou substitui a entrada do nome (normalizado).

        Returns:
            Chave normalizada usada
        """
        key = normalize_name(name)
        self._fighters[key] = FighterIndexEntry(
            id=fighter_id,
            nickname=nickname or None,
            last_updated=datetime.now(timezone.utc),
        )
        return key

    def has_name(self, name: str) -> bool:
        return normalize_name(name) in self._fighters

    def has_by_id(self, fighter_id: str) -> bool:
        return any(entry.id == fighter_id for entry in self._fighters.values())

    def find_by_id(self, fighter_id: str) -> Optional[FighterMatch]:
        for name, entry in self._fighters.items():
            if entry.id == fighter_id:
                return FighterMatch(name=name, id=entry.id, nickname=entry.nickname)
        return None

    def get(self, name: str) -> Optional[FighterIndexEntry]:
        return self._fighters.get(normalize_name(name))

    def search(self, query: str, limit: int = DEFAULT_SEARCH_LIMIT) -> List[FighterMatch]:
        """
        Busca por nome ou apelido.

        Ordem: match exato do nome normalizado primeiro; depois substrings do
        nome ou do apelido, na ordem do banco.
        """
        normalized_query = normalize_name(query)
        exact: List[FighterMatch] = []
        partial: List[FighterMatch] = []

        for name, entry in self._fighters.items():
            match = FighterMatch(name=name, id=entry.id, nickname=entry.nickname)

            if name == normalized_query:
                exact.append(match)
            elif normalized_query in name:
                partial.append(match)
            elif entry.nickname and normalized_query in normalize_name(entry.nickname):
                partial.append(match)

        return (exact + partial)[:limit]

    def get_all(self) -> List[FighterMatch]:
        return [
            FighterMatch(name=name, id=entry.id, nickname=entry.nickname)
            for name, entry in self._fighters.items()
        ]

    def get_stats(self) -> dict:
        last_updated = max(
            (entry.last_updated for entry in self._fighters.values()),
            default=None,
        )
        return {
            "total_fighters": len(self._fighters),
            "last_updated": last_updated,
        }

    def __len__(self) -> int:
        return len(self._fighters)

    def __contains__(self, name: str) -> bool:
        return self.has_name(name)


def _read_index(path: Path) -> Dict[str, FighterIndexEntry]:
    return _INDEX_ADAPTER.validate_python(read_json(path))
