import logging
from typing import Optional

from fightgraph.core.config import Settings, settings as default_settings
from fightgraph.schemas.fighter import FighterPage
from fightgraph.services.discovery_manager import AdaptiveRateLimiter, ExpiringCache, FileCache
from fightgraph.services.fighter_database import FighterDatabase
from fightgraph.services.scraper import CachedProfileSource, ProfileSource, SherdogClient

from .discovery_engine import FighterDiscovery

logger = logging.getLogger(__name__)


async def create_fighter_discovery(
    settings: Optional[Settings] = None,
    source: Optional[ProfileSource] = None,
) -> FighterDiscovery:
    """
    Monta um FighterDiscovery a partir das configurações.

    Sem `source`, usa o SherdogClient com cache de páginas. O banco é
    inicializado (carregado ou semeado com o dataset inicial) antes de
    retornar.
    """
    cfg = settings or default_settings

    if source is None:
        source = CachedProfileSource(
            SherdogClient(
                base_url=cfg.SHERDOG_BASE_URL,
                timeout=cfg.REQUEST_TIMEOUT,
                retries=cfg.FETCH_RETRIES,
            ),
            await _build_fetch_cache(cfg),
        )

    database = FighterDatabase(cfg.FIGHTER_DB_PATH)
    await database.initialize()

    rate_limiter = AdaptiveRateLimiter(min_interval_ms=cfg.REQUEST_INTERVAL_MS)

    logger.info(
        f"🚀 FighterDiscovery pronto: db={cfg.FIGHTER_DB_PATH}, "
        f"interval={cfg.REQUEST_INTERVAL_MS}ms, sample={cfg.EXPAND_SAMPLE_SIZE}"
    )
    return FighterDiscovery(
        source=source,
        database=database,
        rate_limiter=rate_limiter,
        sample_size=cfg.EXPAND_SAMPLE_SIZE,
        max_depth=cfg.DISCOVERY_DEPTH,
        max_per_depth=cfg.DISCOVERY_MAX_PER_DEPTH,
    )


async def _build_fetch_cache(cfg: Settings) -> ExpiringCache[FighterPage]:
    """Cache em disco quando FETCH_CACHE_PATH está definido; senão, só em memória."""
    if not cfg.FETCH_CACHE_PATH:
        return ExpiringCache()

    cache: FileCache[FighterPage] = FileCache(cfg.FETCH_CACHE_PATH, value_type=FighterPage)
    await cache.load()
    return cache
