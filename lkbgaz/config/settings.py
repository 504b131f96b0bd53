"""
LKB Configuration
=================

Configurazione del servizio di conoscenza centrale e default del pacchetto.

Il servizio e' configurato via environment variables; i default (query di
fallback, lookahead, query di enrichment) sono in lkb.yaml accanto a questo
modulo.

Usage:
    from lkbgaz.config import KnowledgeServiceConfig, load_lkb_config

    config = KnowledgeServiceConfig()
    if config.is_configured:
        print(config.server_url)

    defaults = load_lkb_config()
    print(defaults["gazetteer"]["lookahead"])  # 5

Environment Variables:
    LKB_SERVICE_URL: URL del server SPARQL centrale (default: vuoto, nessun servizio)
    LKB_SERVICE_REPOSITORY: ID del repository (default: lkb)
    LKB_SERVICE_TIMEOUT: Timeout del ping di raggiungibilità in secondi (default: 5)
"""

import copy
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

# Cache configurazione
_LKB_CONFIG: Optional[Dict[str, Any]] = None

DEFAULT_CONFIG_PATH = Path(__file__).parent / "lkb.yaml"


def _get_env_str(key: str, default: str) -> str:
    """Legge variabile ambiente come stringa."""
    return os.environ.get(key, default)


def _get_env_int(key: str, default: int) -> int:
    """Legge variabile ambiente come intero."""
    return int(os.environ.get(key, default))


@dataclass
class KnowledgeServiceConfig:
    """
    Configurazione del servizio di conoscenza centrale.

    Attributes:
        server_url: URL base del server (vuoto = servizio non configurato)
        repository_id: ID del repository sul server
        ping_timeout_s: Timeout del solo ping di raggiungibilità
    """
    server_url: str = field(default_factory=lambda: _get_env_str("LKB_SERVICE_URL", ""))
    repository_id: str = field(default_factory=lambda: _get_env_str("LKB_SERVICE_REPOSITORY", "lkb"))
    ping_timeout_s: int = field(default_factory=lambda: _get_env_int("LKB_SERVICE_TIMEOUT", 5))

    @property
    def is_configured(self) -> bool:
        return bool(self.server_url.strip())


def load_lkb_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Carica i default da YAML.

    Senza path usa il file del pacchetto, letto una sola volta e cachato.
    Ritorna sempre una copia, modificabile dal chiamante.

    Args:
        path: YAML alternativo (non cachato)
    """
    global _LKB_CONFIG

    if path is not None:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}

    if _LKB_CONFIG is None:
        if DEFAULT_CONFIG_PATH.exists():
            with open(DEFAULT_CONFIG_PATH, "r", encoding="utf-8") as f:
                _LKB_CONFIG = yaml.safe_load(f) or {}
        else:
            logger.warning(f"Config file non trovato: {DEFAULT_CONFIG_PATH}")
            _LKB_CONFIG = {}

    return copy.deepcopy(_LKB_CONFIG)


def get_section(name: str) -> Dict[str, Any]:
    """Ritorna una sezione della config di default (dict vuoto se assente)."""
    return load_lkb_config().get(name) or {}
