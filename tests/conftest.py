from typing import Dict, List, Optional, Sequence, Tuple

import pytest

from fightgraph.core.config_loader import reset_cache
from fightgraph.core.exceptions import FetchError, ScraperErrorType
from fightgraph.schemas.fighter import FighterPage, FighterProfile
from fightgraph.services.discovery import FighterDiscovery
from fightgraph.services.discovery_manager import RateLimiter
from fightgraph.services.fighter_database import FighterDatabase
from fightgraph.services.scraper import ProfileSource


class FakeProfileSource(ProfileSource):
    """
    Fonte em memória: id -> (nome, links) ou (nome, links, apelido).

    Ids ausentes do grafo levantam NOT_FOUND; `failures` força exceções.
    """

    def __init__(
        self,
        graph: Dict[str, Tuple],
        failures: Optional[Dict[str, Exception]] = None,
    ):
        self.graph = graph
        self.failures = failures or {}
        self.calls: List[str] = []

    async def fetch_fighter(self, fighter_id: str) -> FighterPage:
        self.calls.append(fighter_id)

        if fighter_id in self.failures:
            raise self.failures[fighter_id]
        if fighter_id not in self.graph:
            raise FetchError(
                f"Fighter {fighter_id} not found",
                ScraperErrorType.NOT_FOUND_ERROR,
            )

        name, links, *rest = self.graph[fighter_id]
        return FighterPage(
            fighter_id=fighter_id,
            profile=FighterProfile(name=name, nickname=rest[0] if rest else None),
            linked_ids=list(links),
        )


class CountingDatabase(FighterDatabase):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.save_calls = 0

    async def save(self) -> None:
        self.save_calls += 1
        await super().save()


@pytest.fixture(autouse=True)
def _fresh_config_cache():
    reset_cache()
    yield
    reset_cache()


@pytest.fixture
def database(tmp_path) -> CountingDatabase:
    return CountingDatabase(tmp_path / "fighters.json", starter_path=None)


@pytest.fixture
def make_source():
    def _make(graph: Dict[str, Tuple], failures: Optional[Dict[str, Exception]] = None):
        return FakeProfileSource(graph, failures)
    return _make


@pytest.fixture
def make_engine(database):
    def _make(source: ProfileSource, rate_limiter: Optional[RateLimiter] = None, **kwargs):
        return FighterDiscovery(
            source=source,
            database=database,
            rate_limiter=rate_limiter or RateLimiter(min_interval_ms=0),
            **kwargs,
        )
    return _make


def fetch_error(fighter_id: str) -> FetchError:
    return FetchError(f"Timeout loading fighter {fighter_id}", ScraperErrorType.TIMEOUT_ERROR)


@pytest.fixture
def failing():
    """Mapa id -> FetchError para os ids informados."""
    def _failing(ids: Sequence[str]) -> Dict[str, Exception]:
        return {fighter_id: fetch_error(fighter_id) for fighter_id in ids}
    return _failing
