"""
LKB Exceptions
==============

Gerarchia delle eccezioni del gazetteer LKB.

- QueryError: fallimento di una query (push di un feed, valutazione SPARQL)
- MalformedQueryError: query sintatticamente non valida
- RepositoryUnavailableError: servizio/repository non raggiungibile
- RegistryNotInitializedError: registro entità trusted non ancora pronto
- ResourceInstantiationError: inizializzazione di una risorsa fallita
"""

from typing import Optional


class LkbError(Exception):
    """Base class per tutti gli errori del pacchetto."""


class QueryError(LkbError):
    """
    Errore tipizzato per query fallite.

    Attributes:
        config_path: Path della configurazione attesa, se rilevante
    """

    def __init__(self, message: str, config_path: Optional[str] = None):
        super().__init__(message)
        self.config_path = config_path


class MalformedQueryError(QueryError):
    """La query non e' valida per il parser del repository."""


class RepositoryUnavailableError(LkbError):
    """Il servizio di conoscenza o il repository non e' disponibile."""


class RegistryNotInitializedError(LkbError):
    """Il registro delle entità trusted non e' stato inizializzato."""


class ResourceInstantiationError(LkbError):
    """Una risorsa (enrichment, gazetteer) non può essere inizializzata."""
