"""
Unavailable Feed
================

Feed valido anche senza alcuna configurazione: non fa nulla alla
costruzione e fallisce solo quando viene effettivamente invocato.

Così un dizionario con una cache già valida si inizializza anche senza
sorgente dati.
"""

from pathlib import Path

from lkbgaz.config import get_section
from lkbgaz.exceptions import QueryError
from lkbgaz.feeds.base import EntityListener, FeedVariant

CONFIG_FILE_NAME = get_section("local_repository").get("config_file", "config.ttl")


class UnavailableFeed:
    """
    Attributes:
        dictionary_path: Directory del dizionario
    """

    variant = FeedVariant.UNAVAILABLE

    def __init__(self, dictionary_path: Path):
        self.dictionary_path = Path(dictionary_path)

    @property
    def config_path(self) -> str:
        return str((self.dictionary_path / CONFIG_FILE_NAME).absolute())

    def push(self, listener: EntityListener) -> None:
        config_path = self.config_path
        raise QueryError(
            f"Could not find a valid configuration file. Please check if {config_path} exists.",
            config_path=config_path,
        )

    def __repr__(self) -> str:
        return f"<UnavailableFeed({self.dictionary_path})>"
