"""
Base Repository Connection
==========================

Interfaccia comune per connessioni a repository RDF interrogabili in SPARQL.

Una connessione e' una risorsa posseduta in esclusiva per la durata di
un'operazione: va acquisita con `with` e rilasciata su ogni percorso di
uscita, eccezioni comprese.

Esempio:
    with repository.connection() as conn:
        for binding in conn.evaluate("SELECT ?s WHERE { ?s ?p ?o } LIMIT 10"):
            print(binding["s"])
"""

from abc import ABC, abstractmethod
from typing import Dict, Iterator, Optional

from lkbgaz.exceptions import QueryError

SPARQL = "sparql"

# Riga di risultato: variabile -> valore stringa, in ordine di proiezione.
# Ogni variabile proiettata e' presente; None se non legata.
BindingSet = Dict[str, Optional[str]]


class RepositoryConnection(ABC):
    """
    Connessione a un repository.

    Le sottoclassi implementano `evaluate` e `_release`.
    """

    def __init__(self):
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @abstractmethod
    def evaluate(self, query: str, language: str = SPARQL) -> Iterator[BindingSet]:
        """
        Esegue una query tuple (SELECT).

        Args:
            query: Testo della query
            language: Linguaggio della query (solo "sparql")

        Returns:
            Iteratore di BindingSet

        Raises:
            MalformedQueryError: Sintassi non valida
            QueryError: Errore di esecuzione
        """
        pass

    @abstractmethod
    def _release(self) -> None:
        pass

    def close(self) -> None:
        """Rilascia la connessione. Idempotente."""
        if self._closed:
            return
        self._closed = True
        self._release()

    def _check_open(self, language: str) -> None:
        if self._closed:
            raise QueryError("Connection already closed")
        if language.lower() != SPARQL:
            raise QueryError(f"Unsupported query language: {language}")

    def __enter__(self) -> "RepositoryConnection":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
