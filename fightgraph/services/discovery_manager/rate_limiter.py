"""
Rate Limiter para Discovery - Espaçamento entre requisições ao Sherdog.

Diferente do token bucket, aqui o objetivo é garantir um INTERVALO mínimo
entre dois slots concedidos: nenhuma requisição começa antes de
`min_interval_ms` desde a anterior. Chamadores concorrentes são atendidos
em fila (FIFO), cada um esperando apenas o tempo residual.

O AdaptiveRateLimiter acrescenta:
- Cota de burst por janela de tempo
- Backoff multiplicativo após falhas repetidas
"""

import asyncio
import inspect
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar, Union

from fightgraph.core.config_loader import get_section

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RateLimiterMetrics:
    """Métricas do rate limiter."""
    total_acquired: int = 0
    total_waited: int = 0
    total_wait_time_ms: float = 0

    @property
    def avg_wait_time_ms(self) -> float:
        if self.total_waited == 0:
            return 0
        return self.total_wait_time_ms / self.total_waited


class RateLimiter:
    """
    Rate limiter por intervalo fixo.

    O lock do asyncio é justo (acorda os waiters na ordem de chegada), e é
    mantido durante a espera: isso serializa os chamadores e preserva o
    espaçamento mesmo com muitos waiters simultâneos.
    """

    def __init__(self, min_interval_ms: float = 1000, name: str = "sherdog"):
        """
        Args:
            min_interval_ms: Intervalo mínimo entre slots concedidos (ms)
            name: Nome para identificação em logs
        """
        if min_interval_ms < 0:
            raise ValueError("min_interval_ms must be >= 0")

        self.name = name
        self._interval_ms = float(min_interval_ms)
        self._last_grant: Optional[float] = None
        self._waiting = 0
        self._lock = asyncio.Lock()
        self._metrics = RateLimiterMetrics()

        logger.info(f"🚦 RateLimiter[{name}]: interval={min_interval_ms}ms")

    @property
    def interval_ms(self) -> float:
        return self._interval_ms

    @property
    def queue_length(self) -> int:
        """Quantidade de chamadores aguardando um slot."""
        return self._waiting

    def set_interval_ms(self, min_interval_ms: float) -> None:
        if min_interval_ms < 0:
            raise ValueError("min_interval_ms must be >= 0")
        self._interval_ms = float(min_interval_ms)
        logger.info(f"RateLimiter[{self.name}]: intervalo atualizado para {self._interval_ms}ms")

    def _seconds_until_next(self) -> float:
        if self._last_grant is None:
            return 0.0
        elapsed = time.monotonic() - self._last_grant
        return self._interval_ms / 1000.0 - elapsed

    async def _wait_for_spacing(self) -> None:
        # Loop: o sleep pode acordar levemente antes do prazo
        while True:
            remaining = self._seconds_until_next()
            if remaining <= 0:
                return
            await asyncio.sleep(remaining)

    async def _await_turn(self) -> None:
        """Espera até que este chamador possa receber o slot. Chamado com o lock adquirido."""
        await self._wait_for_spacing()

    async def wait_for_slot(self) -> float:
        """
        Aguarda um slot respeitando o intervalo mínimo.

        Returns:
            Instante (time.monotonic) em que o slot foi concedido
        """
        start_time = time.monotonic()
        self._waiting += 1
        try:
            async with self._lock:
                await self._await_turn()
                granted_at = time.monotonic()
                self._last_grant = granted_at
        finally:
            self._waiting -= 1

        self._metrics.total_acquired += 1
        waited_ms = (granted_at - start_time) * 1000
        if waited_ms > 1:
            self._metrics.total_waited += 1
            self._metrics.total_wait_time_ms += waited_ms
            logger.debug(f"[RateLimiter:{self.name}] slot concedido após {waited_ms:.0f}ms")
        return granted_at

    async def execute(self, operation: Callable[[], Union[T, Awaitable[T]]]) -> T:
        """Aguarda um slot e executa a operação (síncrona ou assíncrona)."""
        await self.wait_for_slot()
        result = operation()
        if inspect.isawaitable(result):
            result = await result
        return result

    def reset(self) -> None:
        """Esquece o último slot concedido e zera as métricas."""
        self._last_grant = None
        self._metrics = RateLimiterMetrics()
        logger.info(f"[RateLimiter:{self.name}] Reset completo")

    def get_status(self) -> dict:
        """Retorna status e métricas do rate limiter."""
        return {
            "name": self.name,
            "interval_ms": self._interval_ms,
            "queue_length": self._waiting,
            "metrics": {
                "total_acquired": self._metrics.total_acquired,
                "total_waited": self._metrics.total_waited,
                "avg_wait_time_ms": round(self._metrics.avg_wait_time_ms, 2),
            },
        }


class AdaptiveRateLimiter(RateLimiter):
    """
    Rate limiter com cota de burst e backoff adaptativo.

    Burst:
    - No máximo `burst_limit` slots por janela de `burst_window_ms`
    - Esgotada a cota, os próximos chamadores esperam a janela virar

    Backoff:
    - `failure_threshold` ou mais falhas com menos de `success_threshold`
      sucessos dobram o intervalo (a cada nova falha)
    - Um sucesso limpa o modo degradado mas NÃO restaura o intervalo;
      use reset_interval() para voltar ao intervalo base
    """

    def __init__(
        self,
        min_interval_ms: float = 1000,
        burst_limit: Optional[int] = None,
        burst_window_ms: Optional[float] = None,
        failure_threshold: Optional[int] = None,
        success_threshold: Optional[int] = None,
        name: str = "sherdog",
    ):
        super().__init__(min_interval_ms, name=name)
        cfg = get_section("discovery/rate_limiter", {})
        self.burst_limit = burst_limit if burst_limit is not None else cfg.get("burst_limit", 5)
        self.burst_window_ms = burst_window_ms if burst_window_ms is not None else cfg.get("burst_window_ms", 10000)
        self.failure_threshold = failure_threshold if failure_threshold is not None else cfg.get("failure_threshold", 3)
        self.success_threshold = success_threshold if success_threshold is not None else cfg.get("success_threshold", 10)

        if self.burst_limit < 1:
            raise ValueError("burst_limit must be >= 1")

        self._base_interval_ms = float(min_interval_ms)
        self._window_start: Optional[float] = None
        self._window_count = 0
        self._success_count = 0
        self._failure_count = 0
        self._degraded = False

        logger.info(
            f"AdaptiveRateLimiter[{name}]: burst={self.burst_limit}/"
            f"{self.burst_window_ms}ms, failure_threshold={self.failure_threshold}"
        )

    @property
    def degraded(self) -> bool:
        return self._degraded

    async def _wait_for_window(self) -> None:
        window_s = self.burst_window_ms / 1000.0
        now = time.monotonic()

        if self._window_start is None or now - self._window_start > window_s:
            self._window_start = now
            self._window_count = 0
            return

        if self._window_count >= self.burst_limit:
            remaining = self._window_start + window_s - now
            if remaining > 0:
                logger.debug(
                    f"[RateLimiter:{self.name}] cota de burst esgotada, "
                    f"aguardando {remaining * 1000:.0f}ms"
                )
            while remaining > 0:
                await asyncio.sleep(remaining)
                remaining = self._window_start + window_s - time.monotonic()
            self._window_start = time.monotonic()
            self._window_count = 0

    async def _await_turn(self) -> None:
        await self._wait_for_window()
        self._window_count += 1
        await self._wait_for_spacing()

    def record_success(self) -> None:
        self._success_count += 1
        if self._degraded:
            logger.info(f"[RateLimiter:{self.name}] sucesso após backoff, saindo do modo degradado")
        self._degraded = False

    def record_failure(self) -> None:
        self._failure_count += 1

        if (
            self._failure_count >= self.failure_threshold
            and self._success_count < self.success_threshold
        ):
            self._degraded = True
            new_interval = self.interval_ms * 2
            logger.warning(
                f"🐢 [RateLimiter:{self.name}] {self._failure_count} falhas / "
                f"{self._success_count} sucessos, intervalo {self.interval_ms}ms -> {new_interval}ms"
            )
            self.set_interval_ms(new_interval)

    def reset_adaptive_counters(self) -> None:
        self._success_count = 0
        self._failure_count = 0
        self._degraded = False

    def reset_interval(self) -> None:
        """Volta ao intervalo configurado na criação."""
        self.set_interval_ms(self._base_interval_ms)

    def reset(self) -> None:
        super().reset()
        self._window_start = None
        self._window_count = 0
        self.reset_adaptive_counters()

    def get_adaptive_stats(self) -> dict:
        return {
            "success_count": self._success_count,
            "failure_count": self._failure_count,
            "adaptive_mode": self._degraded,
            "current_interval_ms": self.interval_ms,
        }

    def get_status(self) -> dict:
        status = super().get_status()
        status["burst"] = {
            "limit": self.burst_limit,
            "window_ms": self.burst_window_ms,
            "used_in_window": self._window_count,
        }
        status["adaptive"] = self.get_adaptive_stats()
        return status
