"""
Dictionary Feeder
=================

Contratto tra il gazetteer e un'implementazione esterna che gli fornisce
entità.

Due cicli indipendenti:

- Bulk (una volta, all'avvio): init(options) -> feed_all(listener)
- Per documento: local_feed_init(doc) -> [local_feed_needed(doc, window, listener)]* -> local_feed_end(doc)

local_feed_needed e' chiamato dal parser dopo ogni passo incrementale e prima
di un lookup nel dizionario locale: il feeder guarda i lessemi pendenti nella
finestra di lookahead e decide se deve inviare nuove entità (es. risolvere
un'entità solo quando la sua forma superficiale sta per essere confrontata).

Le entità inviate nel ciclo per documento appartengono al dizionario locale
di quel documento e non devono finire nel dizionario globale né in quello del
documento successivo.

Esempio:
    feeder = LabelLookupFeeder()
    feeder.init({"config_url": "dict/config.ttl"})
    feeder.feed_all(global_dictionary)

    if feeder.local_feed_init(doc):
        try:
            for window in parser_windows:
                feeder.local_feed_needed(doc, window, local_dictionary)
        finally:
            feeder.local_feed_end(doc)
"""

import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Set, Union, runtime_checkable

from lkbgaz.config import get_section
from lkbgaz.exceptions import QueryError
from lkbgaz.feeds.base import EntityListener
from lkbgaz.feeds.resolver import FeedResolver
from lkbgaz.models import EntityRecord
from lkbgaz.repository.base import SPARQL, RepositoryConnection
from lkbgaz.repository.http import SparqlHttpRepository
from lkbgaz.repository.local import LocalRepository

logger = logging.getLogger(__name__)

_LOOKUP_CONFIG = get_section("label_lookup")


@runtime_checkable
class LexemeWindow(Protocol):
    """Lessemi alfanumerici pendenti nel parser (lookahead read-only)."""

    def lexeme_count(self) -> int:
        ...

    def get_lexeme(self, i: int) -> str:
        ...


class DictionaryFeeder(ABC):
    """
    Implementazione esterna che alimenta il dizionario del gazetteer.
    """

    @abstractmethod
    def init(self, options: Dict[str, str]) -> None:
        """
        Configurazione specifica dell'implementazione.

        Args:
            options: Coppie chiave/valore interpretate solo dal feeder
        """
        pass

    @abstractmethod
    def feed_all(self, listener: EntityListener) -> None:
        """Riempie il dizionario fisso principale all'avvio (no-op se vuoto)."""
        pass

    @abstractmethod
    def local_feed_init(self, document: Any) -> bool:
        """
        Inizio dell'elaborazione di un documento.

        Returns:
            True se il feeder supporta dati locali per questo documento
        """
        pass

    @abstractmethod
    def local_feed_needed(self, document: Any, window: LexemeWindow, listener: EntityListener) -> None:
        """
        Checkpoint del parser: eventuale invio di entità locali.

        Può essere chiamato zero o più volte per documento, senza assumere
        posizioni monotone dei lessemi oltre quanto espone la finestra.
        """
        pass

    @abstractmethod
    def local_feed_end(self, document: Any) -> None:
        """Fine del documento: cleanup di cache e connessioni per documento."""
        pass


class LocalFeedSession(ABC):
    """
    Stato locale di un singolo documento.

    Isolato per documento: nessuno stato mutabile condiviso tra documenti.
    """

    @abstractmethod
    def on_checkpoint(self, window: LexemeWindow) -> List[EntityRecord]:
        """Ritorna le entità da aggiungere al dizionario locale."""
        pass

    def close(self) -> None:
        pass


class NullDictionaryFeeder(DictionaryFeeder):
    """Feeder vuoto: nessun contenuto bulk, dizionari locali disabilitati."""

    def init(self, options: Dict[str, str]) -> None:
        pass

    def feed_all(self, listener: EntityListener) -> None:
        pass

    def local_feed_init(self, document: Any) -> bool:
        return False

    def local_feed_needed(self, document: Any, window: LexemeWindow, listener: EntityListener) -> None:
        pass

    def local_feed_end(self, document: Any) -> None:
        pass


class FeedDictionaryFeeder(DictionaryFeeder):
    """
    Vocabolario fisso da un Feed risolto per una directory di dizionario.

    Options:
        dictionary_path: Directory con config.ttl / query.txt
    """

    def __init__(self, resolver: Optional[FeedResolver] = None):
        self.resolver = resolver or FeedResolver()
        self.dictionary_path: Optional[Path] = None

    def init(self, options: Dict[str, str]) -> None:
        path = (options or {}).get("dictionary_path")
        self.dictionary_path = Path(path) if path else None

    def feed_all(self, listener: EntityListener) -> None:
        if self.dictionary_path is None:
            return
        feed = self.resolver.resolve(self.dictionary_path)
        try:
            feed.push(listener)
        finally:
            close = getattr(feed, "close", None)
            if close is not None:
                close()

    def local_feed_init(self, document: Any) -> bool:
        return False

    def local_feed_needed(self, document: Any, window: LexemeWindow, listener: EntityListener) -> None:
        pass

    def local_feed_end(self, document: Any) -> None:
        pass


class SessionDictionaryFeeder(DictionaryFeeder):
    """
    Base per feeder con stato per documento.

    Mantiene una LocalFeedSession per documento (protetta da lock: l'host può
    elaborare documenti in parallelo) e inoltra i record restituiti da
    on_checkpoint al listener.
    """

    def __init__(self):
        self.options: Dict[str, str] = {}
        self._sessions: Dict[int, LocalFeedSession] = {}
        self._lock = threading.Lock()

    def init(self, options: Dict[str, str]) -> None:
        self.options = dict(options or {})

    def feed_all(self, listener: EntityListener) -> None:
        pass

    @abstractmethod
    def open_session(self, document: Any) -> Optional[LocalFeedSession]:
        """Crea la sessione del documento (None = niente feeding locale)."""
        pass

    def local_feed_init(self, document: Any) -> bool:
        session = self.open_session(document)
        if session is None:
            return False
        with self._lock:
            previous = self._sessions.pop(id(document), None)
            self._sessions[id(document)] = session
        if previous is not None:
            logger.warning(f"Sessione locale precedente non chiusa per {document!r}")
            previous.close()
        return True

    def local_feed_needed(self, document: Any, window: LexemeWindow, listener: EntityListener) -> None:
        if window.lexeme_count() == 0:
            return
        with self._lock:
            session = self._sessions.get(id(document))
        if session is None:
            raise RuntimeError(f"No local feed session for {document!r}. Call local_feed_init() first.")
        for record in session.on_checkpoint(window):
            listener.add_entity(record.inst_uri, record.class_uri, record.alias_label)

    def local_feed_end(self, document: Any) -> None:
        with self._lock:
            session = self._sessions.pop(id(document), None)
        if session is not None:
            session.close()

    @property
    def active_sessions(self) -> int:
        with self._lock:
            return len(self._sessions)


def sparql_literal(text: str) -> str:
    """Literal SPARQL tra doppi apici con escape."""
    escaped = (
        text.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )
    return f'"{escaped}"'


class LabelLookupSession(LocalFeedSession):
    """
    Lookup pigro delle frasi che iniziano in testa alla finestra.

    Ogni frase (1..N lessemi) e' interrogata una sola volta per documento.
    """

    def __init__(
        self,
        connection: RepositoryConnection,
        label_query: str,
        min_lexeme_length: int = 2,
        max_phrase_length: Optional[int] = None,
    ):
        self.connection = connection
        self.label_query = label_query
        self.min_lexeme_length = min_lexeme_length
        self.max_phrase_length = max_phrase_length
        self._seen: Set[str] = set()

    def on_checkpoint(self, window: LexemeWindow) -> List[EntityRecord]:
        records: List[EntityRecord] = []
        count = window.lexeme_count()
        if self.max_phrase_length:
            count = min(count, self.max_phrase_length)

        lexemes: List[str] = []
        for i in range(count):
            lexemes.append(window.get_lexeme(i))
            phrase = " ".join(lexemes)
            key = phrase.lower()
            if key in self._seen or len(phrase) < self.min_lexeme_length:
                continue
            self._seen.add(key)
            records.extend(self._lookup(phrase))
        return records

    def _lookup(self, phrase: str) -> List[EntityRecord]:
        query = self.label_query % sparql_literal(phrase)
        try:
            rows = list(self.connection.evaluate(query, SPARQL))
        except QueryError as e:
            logger.warning(f"Lookup fallito per [{phrase}]: {e}")
            return []
        records = []
        for row in rows:
            values = list(row.values())[:3]
            if len(values) == 3 and None not in values:
                records.append(EntityRecord(values[0], values[1], values[2]))
        return records

    def close(self) -> None:
        self.connection.close()


class LabelLookupFeeder(SessionDictionaryFeeder):
    """
    Feeder che risolve le entità solo quando la loro label sta per essere
    confrontata dal parser.

    Options:
        config_url: config.ttl di un repository locale
        server / repository_id: repository SPARQL remoto (se manca config_url)
        label_query: Template con un solo %s per il literal della label
        min_lexeme_length: Lunghezza minima di una frase (default 2)
        max_phrase_length: Lessemi massimi per frase (default: tutta la finestra)

    Example:
        >>> feeder = LabelLookupFeeder()
        >>> feeder.init({"config_url": "dict/config.ttl"})
    """

    def __init__(self):
        super().__init__()
        self.repository: Optional[Union[LocalRepository, SparqlHttpRepository]] = None
        self.label_query: str = _LOOKUP_CONFIG.get("label_query", "")
        self.min_lexeme_length: int = int(_LOOKUP_CONFIG.get("min_lexeme_length", 2))
        self.max_phrase_length: Optional[int] = None

    def init(self, options: Dict[str, str]) -> None:
        super().init(options)
        opts = self.options

        if opts.get("config_url"):
            self.repository = LocalRepository(opts["config_url"])
        elif opts.get("server") and opts.get("repository_id"):
            self.repository = SparqlHttpRepository(opts["server"], opts["repository_id"])
        else:
            raise ValueError("LabelLookupFeeder requires 'config_url' or 'server' and 'repository_id'")

        self.label_query = opts.get("label_query", self.label_query)
        if self.label_query.count("%s") != 1:
            raise ValueError("label_query must contain exactly one %s placeholder")
        self.min_lexeme_length = int(opts.get("min_lexeme_length", self.min_lexeme_length))
        if opts.get("max_phrase_length"):
            self.max_phrase_length = int(opts["max_phrase_length"])

        logger.info(f"LabelLookupFeeder inizializzato su {self.repository!r}")

    def open_session(self, document: Any) -> Optional[LocalFeedSession]:
        if self.repository is None:
            raise RuntimeError("LabelLookupFeeder not initialized. Call init() first.")
        return LabelLookupSession(
            self.repository.connection(),
            self.label_query,
            min_lexeme_length=self.min_lexeme_length,
            max_phrase_length=self.max_phrase_length,
        )
