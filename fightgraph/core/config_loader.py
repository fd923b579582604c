"""
Leitura das seções de configuração JSON.

Cada seção é um arquivo: "discovery/rate_limiter" -> configs/discovery/rate_limiter.json.
O diretório empacotado pode ser trocado via FIGHTGRAPH_CONFIG_DIR (deploy, testes).
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

PACKAGED_CONFIG_DIR = Path(__file__).resolve().parent.parent / "configs"

# Cache por caminho absoluto do arquivo
_SECTION_CACHE: Dict[str, Dict[str, Any]] = {}


def config_dir() -> Path:
    override = os.getenv("FIGHTGRAPH_CONFIG_DIR")
    return Path(override) if override else PACKAGED_CONFIG_DIR


def load_config(name: str, *, use_cache: bool = True) -> Dict[str, Any]:
    """
    Carrega uma seção pelo nome (sem extensão).

    Arquivo ausente, ilegível ou que não seja um objeto JSON resulta em {}
    e um warning no log; o chamador segue com os próprios defaults.
    """
    config_path = config_dir() / f"{name}.json"
    cache_key = str(config_path)

    if use_cache and cache_key in _SECTION_CACHE:
        return _SECTION_CACHE[cache_key]

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        logger.warning(f"[config_loader] Arquivo não encontrado: {config_path}")
        return {}
    except (OSError, ValueError) as exc:
        logger.warning(f"[config_loader] Erro ao carregar {config_path}: {exc}")
        return {}

    if not isinstance(data, dict):
        logger.warning(f"[config_loader] {config_path} não contém um objeto JSON, ignorando")
        return {}

    if use_cache:
        _SECTION_CACHE[cache_key] = data
    return data


def get_section(name: str, default: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Valores do arquivo sobrepostos aos defaults informados."""
    section = dict(default or {})
    section.update(load_config(name))
    return section


def reset_cache() -> None:
    """Limpa cache em memória (útil para testes)."""
    _SECTION_CACHE.clear()
