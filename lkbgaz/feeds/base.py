"""
Feed Protocol
=============

Un Feed e' una sorgente di EntityRecord per un dizionario: `push(listener)`
spinge tutte le entità disponibili al listener, una volta per chiamata,
in modo sincrono. Gli errori di query sono sempre propagati come QueryError.

Le tre varianti (RemoteServiceFeed, LocalRepositoryFeed, UnavailableFeed)
implementano il protocollo senza una classe base comune.
"""

from enum import Enum
from typing import Iterable, Protocol, runtime_checkable

from lkbgaz.exceptions import QueryError
from lkbgaz.repository.base import BindingSet


class FeedVariant(str, Enum):
    """Variante di feed selezionata dal resolver."""
    REMOTE_SERVICE = "remote_service"
    LOCAL_REPOSITORY = "local_repository"
    UNAVAILABLE = "unavailable"


@runtime_checkable
class EntityListener(Protocol):
    """Punto di ingresso per i dati delle entità."""

    def add_entity(self, inst_uri: str, class_uri: str, alias_label: str) -> None:
        ...


@runtime_checkable
class Feed(Protocol):
    """Sorgente di entità per un dizionario."""

    variant: FeedVariant

    def push(self, listener: EntityListener) -> None:
        ...


def stream_bindings(bindings: Iterable[BindingSet], listener: EntityListener) -> int:
    """
    Inoltra ogni riga come un EntityRecord (primi tre valori, in ordine).

    L'ordine e il numero delle colonne sono un contratto con la query.

    Returns:
        Numero di righe inoltrate

    Raises:
        QueryError: Se una delle prime tre colonne proiettate manca o non e' legata
    """
    count = 0
    for binding in bindings:
        values = list(binding.values())[:3]
        if len(values) < 3 or None in values:
            raise QueryError(
                f"Result row {count} must bind instance, class and alias "
                f"in its first three columns: {binding}"
            )
        listener.add_entity(values[0], values[1], values[2])
        count += 1
    return count
