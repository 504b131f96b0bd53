"""
Local Repository Feed
=====================

Feed da repository privato: config.ttl + query.txt nella directory del
dizionario. Ad ogni push apre il repository, esegue la query una volta e
rilascia la connessione su ogni percorso di uscita.

Il fingerprint e' esposto perché il chiamante possa confrontarlo con quello
della cache e saltare del tutto il push.
"""

import logging

from lkbgaz.feeds.base import EntityListener, FeedVariant, stream_bindings
from lkbgaz.repository.base import SPARQL
from lkbgaz.repository.local import LocalRepository
from lkbgaz.utils import Resource

logger = logging.getLogger(__name__)


class LocalRepositoryFeed:
    """
    Attributes:
        config_url: URL del config.ttl
        query: Testo della query
        fingerprint: Hash di config + query (vedi lkbgaz.hashing)
    """

    variant = FeedVariant.LOCAL_REPOSITORY

    def __init__(self, config_url: Resource, query: str, settings_hash: int):
        self.config_url = config_url
        self.query = query
        self._settings_hash = settings_hash

    @property
    def fingerprint(self) -> int:
        return self._settings_hash

    def push(self, listener: EntityListener) -> None:
        repository = LocalRepository(self.config_url)
        try:
            with repository.connection() as conn:
                count = stream_bindings(conn.evaluate(self.query, SPARQL), listener)
        finally:
            repository.shutdown()
        logger.info(f"Local feed {self.config_url} pushed {count} entities")

    def __repr__(self) -> str:
        return f"<LocalRepositoryFeed({self.config_url}, fingerprint={self._settings_hash})>"
