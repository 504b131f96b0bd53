"""
Remote Service Feed
===================

Feed che interroga il servizio di conoscenza su una connessione già aperta.
"""

import logging

from lkbgaz.exceptions import QueryError
from lkbgaz.feeds.base import EntityListener, FeedVariant, stream_bindings
from lkbgaz.repository.base import RepositoryConnection

logger = logging.getLogger(__name__)


class RemoteServiceFeed:
    """
    Esegue una query sul repository del servizio e inoltra ogni riga.

    Attributes:
        connection: Connessione aperta al repository semantico
        query_language: Linguaggio della query (es. "sparql")
        query: Testo della query
    """

    variant = FeedVariant.REMOTE_SERVICE

    def __init__(self, connection: RepositoryConnection, query_language: str, query: str):
        self.connection = connection
        self.query_language = query_language
        self.query = query

    def push(self, listener: EntityListener) -> None:
        try:
            rows = self.connection.evaluate(self.query, self.query_language)
            count = stream_bindings(rows, listener)
        except QueryError:
            raise
        except Exception as e:
            raise QueryError(f"Remote feed query failed: {e}") from e
        logger.info(f"Remote feed pushed {count} entities")

    def close(self) -> None:
        """Rilascia la connessione al repository del servizio."""
        self.connection.close()

    def __repr__(self) -> str:
        return f"<RemoteServiceFeed({self.query_language}, {self.query[:60]!r})>"
