import os
from typing import Optional

from dotenv import load_dotenv

# Carregar variáveis do arquivo .env
load_dotenv()


def _optional_int(value: Optional[str]) -> Optional[int]:
    if value is None or value.strip() == "":
        return None
    return int(value)


class Settings:
    # Sherdog (fonte dos perfis)
    SHERDOG_BASE_URL: str = os.getenv("SHERDOG_BASE_URL", "https://www.sherdog.com")
    USER_AGENT: str = os.getenv(
        "USER_AGENT",
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    )
    REQUEST_TIMEOUT: float = float(os.getenv("REQUEST_TIMEOUT", "30"))
    FETCH_RETRIES: int = int(os.getenv("FETCH_RETRIES", "3"))

    # Intervalo mínimo entre requisições (ms)
    REQUEST_INTERVAL_MS: float = float(os.getenv("REQUEST_INTERVAL_MS", "2000"))

    # Discovery (BFS)
    DISCOVERY_DEPTH: int = int(os.getenv("DISCOVERY_DEPTH", "1"))
    DISCOVERY_MAX_PER_DEPTH: Optional[int] = _optional_int(os.getenv("DISCOVERY_MAX_PER_DEPTH"))
    EXPAND_SAMPLE_SIZE: int = int(os.getenv("EXPAND_SAMPLE_SIZE", "3"))

    # Banco local de lutadores (nome normalizado -> id)
    FIGHTER_DB_PATH: str = os.getenv("FIGHTER_DB_PATH", "./data/fighters.json")

    # Cache de páginas em disco (vazio = apenas em memória)
    FETCH_CACHE_PATH: Optional[str] = os.getenv("FETCH_CACHE_PATH") or None


settings = Settings()
