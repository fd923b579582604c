"""
Cliente Sherdog - implementação de referência do ProfileSource.

Busca /fighter/<id> via httpx, interpreta o HTML com BeautifulSoup e
devolve nome, apelido e os ids de todos os lutadores linkados na página
(histórico de lutas). Erros transitórios (timeout, rede, 429, bloqueio)
são repetidos com backoff exponencial via tenacity; 404 e falhas de
parse não são repetidos.
"""

import logging
import re
from typing import Optional
from urllib.parse import urljoin

import httpx
from bs4 import BeautifulSoup
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from fightgraph.core.config import settings
from fightgraph.core.exceptions import FetchError, ScraperErrorType
from fightgraph.schemas.fighter import FighterPage, FighterProfile

from .constants import (
    CLOUDFLARE_SIGNATURES,
    DEFAULT_HEADERS,
    FIGHTER_LINK_SELECTOR,
    FIGHTER_PATH,
    NAME_SELECTORS,
    NICKNAME_QUOTES,
    NICKNAME_SELECTORS,
)
from .profile_source import ProfileSource

logger = logging.getLogger(__name__)

_FIGHTER_ID_RE = re.compile(r"/fighter/([^/?#]+)")


def extract_fighter_id_from_url(url: str) -> Optional[str]:
    """Extrai o id de URLs absolutas ou relativas (/fighter/Jon-Jones-27944)."""
    match = _FIGHTER_ID_RE.search(url or "")
    return match.group(1) if match else None


def build_fighter_url(fighter_id: str, base_url: Optional[str] = None) -> str:
    base = (base_url or settings.SHERDOG_BASE_URL).rstrip("/")
    return urljoin(base + "/", FIGHTER_PATH.lstrip("/") + fighter_id)


def _is_cloudflare_block(response: httpx.Response) -> bool:
    # O Sherdog inteiro passa pelo Cloudflare: cf-ray sozinho não indica desafio
    body = response.text[:5000].lower()
    return any(sig in body for sig in CLOUDFLARE_SIGNATURES)


def _first_text(soup: BeautifulSoup, selectors) -> str:
    for selector in selectors:
        element = soup.select_one(selector)
        if element is not None:
            text = element.get_text(" ", strip=True)
            if text:
                return text
    return ""


def parse_fighter_page(html: str, fighter_id: str) -> FighterPage:
    """
    Interpreta a página de perfil.

    Raises:
        FetchError (PARSE_ERROR): página sem nome de lutador
    """
    soup = BeautifulSoup(html, "html.parser")

    name = _first_text(soup, NAME_SELECTORS)
    if not name:
        raise FetchError(
            f"No name found for fighter {fighter_id}",
            ScraperErrorType.PARSE_ERROR,
        )

    nickname = _first_text(soup, NICKNAME_SELECTORS).strip(NICKNAME_QUOTES).strip()

    linked_ids = []
    for link in soup.select(FIGHTER_LINK_SELECTOR):
        linked_id = extract_fighter_id_from_url(link.get("href", ""))
        if linked_id and linked_id != fighter_id:
            linked_ids.append(linked_id)

    return FighterPage(
        fighter_id=fighter_id,
        profile=FighterProfile(name=name, nickname=nickname or None),
        linked_ids=linked_ids,
    )


def _should_retry(exc: BaseException) -> bool:
    return isinstance(exc, FetchError) and exc.retryable


class SherdogClient(ProfileSource):
    """
    Cliente HTTP para páginas de lutadores do Sherdog.

    O cliente httpx pode ser injetado (testes, pool compartilhado); se não
    for, é criado sob demanda e fechado em aclose().
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        retries: Optional[int] = None,
        retry_backoff: float = 1.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url or settings.SHERDOG_BASE_URL
        self.timeout = timeout if timeout is not None else settings.REQUEST_TIMEOUT
        self.retries = max(1, retries if retries is not None else settings.FETCH_RETRIES)
        self.retry_backoff = retry_backoff
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                headers={**DEFAULT_HEADERS, "User-Agent": settings.USER_AGENT},
                follow_redirects=True,
            )
            self._owns_client = True
            logger.info(f"🌐 Sherdog: Cliente HTTP criado (timeout={self.timeout}s)")
        return self._client

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            logger.info("🌐 Sherdog: Cliente HTTP fechado")
        self._client = None

    async def __aenter__(self) -> "SherdogClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def fetch_fighter(self, fighter_id: str) -> FighterPage:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.retries),
            wait=wait_exponential(multiplier=self.retry_backoff, max=16),
            retry=retry_if_exception(_should_retry),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await self._fetch_once(fighter_id)

    async def _fetch_once(self, fighter_id: str) -> FighterPage:
        url = build_fighter_url(fighter_id, self.base_url)
        logger.debug(f"[Sherdog] GET {url}")

        try:
            response = await self._get_client().get(url)
        except httpx.TimeoutException as exc:
            raise FetchError(
                f"Timeout loading fighter {fighter_id}: {exc}",
                ScraperErrorType.TIMEOUT_ERROR,
                url=url,
            ) from exc
        except httpx.TransportError as exc:
            raise FetchError(
                f"Network error loading fighter {fighter_id}: {type(exc).__name__}: {exc}",
                ScraperErrorType.NETWORK_ERROR,
                url=url,
            ) from exc

        status = response.status_code
        if status == 404:
            raise FetchError(
                f"Fighter {fighter_id} not found",
                ScraperErrorType.NOT_FOUND_ERROR,
                url=url,
                status=status,
            )
        if status == 429:
            raise FetchError(
                f"Rate limited loading fighter {fighter_id}",
                ScraperErrorType.RATE_LIMIT_ERROR,
                url=url,
                status=status,
            )
        if status in (403, 503) and _is_cloudflare_block(response):
            raise FetchError(
                f"Blocked by Cloudflare loading fighter {fighter_id}",
                ScraperErrorType.CLOUDFLARE_BLOCKED,
                url=url,
                status=status,
            )
        if status != 200:
            raise FetchError(
                f"HTTP {status} loading fighter {fighter_id}",
                ScraperErrorType.HTTP_ERROR,
                url=url,
                status=status,
                retryable=status >= 500,
            )

        return parse_fighter_page(response.text, fighter_id)
