"""
Exceções do fightgraph.

Todas as condições nomeadas derivam de ScraperError, que carrega o tipo
do erro (ScraperErrorType) e metadados opcionais da requisição.
"""

from enum import Enum
from typing import Optional


class ScraperErrorType(Enum):
    """Tipos de erro conhecidos."""
    NETWORK_ERROR = "NETWORK_ERROR"
    RATE_LIMIT_ERROR = "RATE_LIMIT_ERROR"
    PARSE_ERROR = "PARSE_ERROR"
    NOT_FOUND_ERROR = "NOT_FOUND_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    CLOUDFLARE_BLOCKED = "CLOUDFLARE_BLOCKED"
    HTTP_ERROR = "HTTP_ERROR"
    TIMEOUT_ERROR = "TIMEOUT_ERROR"
    NO_STARTING_POINT = "NO_STARTING_POINT"
    DATABASE_SAVE_ERROR = "DATABASE_SAVE_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


# Tipos que valem nova tentativa no cliente HTTP
RETRYABLE_ERROR_TYPES = {
    ScraperErrorType.NETWORK_ERROR,
    ScraperErrorType.RATE_LIMIT_ERROR,
    ScraperErrorType.TIMEOUT_ERROR,
    ScraperErrorType.CLOUDFLARE_BLOCKED,
}


class ScraperError(Exception):
    def __init__(
        self,
        message: str,
        error_type: ScraperErrorType = ScraperErrorType.UNKNOWN_ERROR,
        url: str = "",
        status: Optional[int] = None,
        retryable: Optional[bool] = None,
    ):
        self.message = message
        self.error_type = error_type
        self.url = url
        self.status = status
        self.retryable = (
            retryable if retryable is not None
            else error_type in RETRYABLE_ERROR_TYPES
        )
        super().__init__(message)

    @property
    def code(self) -> str:
        return self.error_type.value

    def get_log_message(self) -> str:
        parts = [f"[{self.code}] {self.message}"]
        if self.status is not None:
            parts.append(f"status={self.status}")
        if self.url:
            parts.append(f"url={self.url}")
        return " ".join(parts)


class FetchError(ScraperError):
    """Falha ao buscar ou interpretar a página de um lutador."""


class NoStartingPointError(ScraperError):
    """Expansão solicitada com o banco de lutadores vazio."""

    def __init__(self, message: str = "No fighters in database. Use discover_from() first."):
        super().__init__(message, ScraperErrorType.NO_STARTING_POINT)


class DatabaseSaveError(ScraperError):
    """Falha ao persistir o banco de lutadores."""

    def __init__(self, message: str, path: str = ""):
        self.path = path
        super().__init__(message, ScraperErrorType.DATABASE_SAVE_ERROR)
