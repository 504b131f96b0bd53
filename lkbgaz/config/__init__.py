"""
Configuration module for LKB Gazetteer.
"""

from .settings import (
    KnowledgeServiceConfig,
    load_lkb_config,
    get_section,
    DEFAULT_CONFIG_PATH,
)

__all__ = [
    "KnowledgeServiceConfig",
    "load_lkb_config",
    "get_section",
    "DEFAULT_CONFIG_PATH",
]
