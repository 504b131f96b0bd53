"""
LKB Gazetteer
=============

Host di riferimento per feed e feeder: costruisce il dizionario globale
all'avvio e guida il ciclo locale per ogni documento.

Avvio:
1. FeedResolver sceglie il Feed della directory del dizionario
2. Se il feed espone un fingerprint uguale a quello della cache su disco,
   il dizionario viene letto dalla cache e push() non viene invocato
3. Altrimenti push() nel dizionario e salvataggio della cache
4. feeder.init(options) + feeder.feed_all(dizionario globale)

Per documento: tokenizzazione in lessemi alfanumerici, checkpoint del
feeder con finestra di lookahead, lookup "longest match" ingenuo su
dizionario globale + locale, annotazioni Lookup con feature inst/class/alias.
Il lookup non e' un automa: serve solo a chiudere il ciclo.

Esempio:
    gazetteer = LkbGazetteer(Path("dictionaries/cities"), feeder=LabelLookupFeeder(),
                             feeder_options={"config_url": "dictionaries/cities/config.ttl"})
    gazetteer.init()
    gazetteer.execute(document)
"""

import json
import logging
import re
from collections import defaultdict
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Tuple, Union

from lkbgaz.config import get_section
from lkbgaz.exceptions import QueryError, ResourceInstantiationError
from lkbgaz.feeder import DictionaryFeeder, NullDictionaryFeeder
from lkbgaz.feeds.base import Feed, FeedVariant
from lkbgaz.feeds.resolver import FeedResolver
from lkbgaz.models import Annotation, Document, EntityRecord, SequenceLexemeWindow

logger = logging.getLogger(__name__)

_GAZETTEER_CONFIG = get_section("gazetteer")
DEFAULT_LOOKAHEAD: int = int(_GAZETTEER_CONFIG.get("lookahead", 5))
CACHE_FILE_NAME: str = _GAZETTEER_CONFIG.get("cache_file", "dictionary.cache.json")
ANNOTATION_TYPE: str = _GAZETTEER_CONFIG.get("annotation_type", "Lookup")

# Lessema alfanumerico
LEXEME_PATTERN = re.compile(r"\w+", re.UNICODE)

Lexeme = Tuple[str, int, int]


def tokenize(text: str) -> List[Lexeme]:
    """Lessemi alfanumerici con offset (testo, start, end)."""
    return [(m.group(), m.start(), m.end()) for m in LEXEME_PATTERN.finditer(text)]


def normalize_alias(alias: str) -> str:
    """Chiave di lookup: lessemi minuscoli separati da uno spazio."""
    return " ".join(LEXEME_PATTERN.findall(alias)).lower()


class EntityDictionary:
    """
    Dizionario di entità indicizzato per alias normalizzato.

    Implementa EntityListener. Nessuna deduplicazione: record ripetuti
    vengono conservati così come arrivano.
    """

    def __init__(self):
        self._records: List[EntityRecord] = []
        self._by_alias: Dict[str, List[EntityRecord]] = defaultdict(list)
        self.max_alias_lexemes = 0

    def add_entity(self, inst_uri: str, class_uri: str, alias_label: str) -> None:
        key = normalize_alias(alias_label)
        if not key:
            return
        record = EntityRecord(inst_uri, class_uri, alias_label)
        self._records.append(record)
        self._by_alias[key].append(record)
        self.max_alias_lexemes = max(self.max_alias_lexemes, key.count(" ") + 1)

    def lookup(self, alias: str) -> List[EntityRecord]:
        return list(self._by_alias.get(normalize_alias(alias), ()))

    def lookup_key(self, key: str) -> List[EntityRecord]:
        return self._by_alias.get(key, [])

    def __contains__(self, alias: object) -> bool:
        return isinstance(alias, str) and normalize_alias(alias) in self._by_alias

    def __iter__(self) -> Iterator[EntityRecord]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)


class DictionaryCache:
    """
    Cache JSON del dizionario compilato, validata dal fingerprint del feed.

    Attributes:
        path: File di cache nella directory del dizionario
    """

    def __init__(self, dictionary_path: Union[str, Path], file_name: str = CACHE_FILE_NAME):
        self.path = Path(dictionary_path) / file_name

    def exists(self) -> bool:
        return self.path.is_file()

    def _read(self) -> Optional[dict]:
        if not self.path.is_file():
            return None
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Cache illeggibile {self.path}: {e}")
            return None

    @staticmethod
    def _build(data: dict) -> EntityDictionary:
        dictionary = EntityDictionary()
        for inst_uri, class_uri, alias in data.get("entities", []):
            dictionary.add_entity(inst_uri, class_uri, alias)
        return dictionary

    def load(self, fingerprint: int) -> Optional[EntityDictionary]:
        """Dizionario in cache se il fingerprint coincide, altrimenti None."""
        data = self._read()
        if data is None:
            return None
        if data.get("fingerprint") != fingerprint:
            logger.info(f"Cache {self.path} obsoleta (fingerprint diverso)")
            return None
        dictionary = self._build(data)
        logger.info(f"Dizionario caricato da cache: {len(dictionary)} entità")
        return dictionary

    def load_any(self) -> Optional[EntityDictionary]:
        """Dizionario in cache senza validazione (nessuna sorgente disponibile)."""
        data = self._read()
        if data is None:
            return None
        dictionary = self._build(data)
        logger.info(f"Dizionario caricato da cache non validata: {len(dictionary)} entità")
        return dictionary

    def save(self, fingerprint: int, dictionary: EntityDictionary) -> None:
        data = {
            "fingerprint": fingerprint,
            "created_at": datetime.now().isoformat(),
            "entities": [list(record) for record in dictionary],
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False)
        except OSError as e:
            logger.warning(f"Impossibile scrivere la cache {self.path}: {e}")


class LkbGazetteer:
    """
    Gazetteer basato su un dizionario LKB.

    Attributes:
        dictionary_path: Directory del dizionario
        feeder: DictionaryFeeder esterno (default: NullDictionaryFeeder)
        feeder_options: Opzioni passate a feeder.init()
        lookahead: Lessemi esposti nella finestra di ogni checkpoint
        dictionary: Dizionario globale (dopo init())
    """

    def __init__(
        self,
        dictionary_path: Union[str, Path],
        feeder: Optional[DictionaryFeeder] = None,
        feeder_options: Optional[Dict[str, str]] = None,
        resolver: Optional[FeedResolver] = None,
        lookahead: Optional[int] = None,
        output_as_name: Optional[str] = None,
        annotation_type: str = ANNOTATION_TYPE,
        use_cache: bool = True,
    ):
        self.dictionary_path = Path(dictionary_path)
        self.feeder = feeder or NullDictionaryFeeder()
        self.feeder_options = dict(feeder_options or {})
        self.resolver = resolver or FeedResolver()
        self.lookahead = lookahead or DEFAULT_LOOKAHEAD
        self.output_as_name = output_as_name
        self.annotation_type = annotation_type
        self.use_cache = use_cache
        self.cache = DictionaryCache(self.dictionary_path)
        self.dictionary: Optional[EntityDictionary] = None
        self.feed: Optional[Feed] = None

    def init(self) -> "LkbGazetteer":
        """
        Costruisce il dizionario globale.

        Raises:
            ResourceInstantiationError: Se il feed fallisce e non c'e' cache valida
        """
        self.feed = self.resolver.resolve(self.dictionary_path)
        self.dictionary = self._load_dictionary(self.feed)

        self.feeder.init(self.feeder_options)
        self.feeder.feed_all(self.dictionary)
        logger.info(f"Gazetteer {self.dictionary_path} pronto: {len(self.dictionary)} entità")
        return self

    def _load_dictionary(self, feed: Feed) -> EntityDictionary:
        fingerprint = getattr(feed, "fingerprint", None)

        if self.use_cache:
            if fingerprint is not None:
                cached = self.cache.load(fingerprint)
            elif feed.variant is FeedVariant.UNAVAILABLE:
                cached = self.cache.load_any()
            else:
                cached = None
            if cached is not None:
                return cached

        dictionary = EntityDictionary()
        try:
            feed.push(dictionary)
        except QueryError as e:
            raise ResourceInstantiationError(f"Cannot build dictionary {self.dictionary_path}: {e}") from e
        finally:
            close = getattr(feed, "close", None)
            if close is not None:
                close()

        if self.use_cache and fingerprint is not None:
            self.cache.save(fingerprint, dictionary)
        return dictionary

    def execute(self, document: Document) -> List[Annotation]:
        """
        Annota un documento.

        Returns:
            Annotazioni create
        """
        if self.dictionary is None:
            raise RuntimeError("Gazetteer not initialized. Call init() first.")

        lexemes = tokenize(document.content)
        local = EntityDictionary()
        created: List[Annotation] = []

        if self.feeder.local_feed_init(document):
            try:
                created = self._scan(document, lexemes, local, feed_local=True)
            finally:
                self.feeder.local_feed_end(document)
        else:
            created = self._scan(document, lexemes, local, feed_local=False)

        logger.debug(f"{document.name}: {len(created)} annotazioni, {len(local)} entità locali")
        return created

    def _scan(
        self,
        document: Document,
        lexemes: Sequence[Lexeme],
        local: EntityDictionary,
        feed_local: bool,
    ) -> List[Annotation]:
        created: List[Annotation] = []
        i = 0
        while i < len(lexemes):
            if feed_local:
                window = SequenceLexemeWindow([text for text, _, _ in lexemes[i:i + self.lookahead]])
                self.feeder.local_feed_needed(document, window, local)
            matched = self._match_at(document, lexemes, i, local, created)
            i += matched or 1
        return created

    def _match_at(
        self,
        document: Document,
        lexemes: Sequence[Lexeme],
        i: int,
        local: EntityDictionary,
        created: List[Annotation],
    ) -> int:
        longest = max(self.dictionary.max_alias_lexemes, local.max_alias_lexemes)
        longest = min(longest, len(lexemes) - i)
        output = document.get_annotations(self.output_as_name)

        for n in range(longest, 0, -1):
            key = " ".join(text.lower() for text, _, _ in lexemes[i:i + n])
            records = self.dictionary.lookup_key(key) + local.lookup_key(key)
            if not records:
                continue
            start, end = lexemes[i][1], lexemes[i + n - 1][2]
            for record in records:
                created.append(output.create(self.annotation_type, start, end, {
                    "inst": record.inst_uri,
                    "class": record.class_uri,
                    "alias": record.alias_label,
                }))
            return n
        return 0
