"""
LKB Data Models
===============

Modelli dati condivisi:

- EntityRecord: una forma superficiale di un individuo della knowledge base
- SequenceLexemeWindow: finestra di lookahead read-only sui lessemi pendenti
- Annotation / AnnotationSet / Document: modello minimale del documento host

Il modello documento riproduce solo quello che serve al protocollo di feeding
e all'enrichment: tipi, offset e feature delle annotazioni.
"""

import itertools
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, NamedTuple, Optional, Sequence, Set, Union


class EntityRecord(NamedTuple):
    """
    Un alias testuale di un'entità.

    Più record possono condividere lo stesso inst_uri (più alias o più
    classi asserite). Nessun vincolo di unicità.
    """
    inst_uri: str
    class_uri: str
    alias_label: str


class SequenceLexemeWindow:
    """
    Vista read-only sui lessemi alfanumerici pendenti nel parser.

    Valida solo per la durata di una singola callback: il feeder non deve
    conservarla oltre la chiamata.

    Example:
        >>> window = SequenceLexemeWindow(["Sofia", "University"])
        >>> window.lexeme_count()
        2
        >>> window.get_lexeme(0)
        'Sofia'
    """

    __slots__ = ("_lexemes",)

    def __init__(self, lexemes: Sequence[str] = ()):
        self._lexemes = tuple(lexemes)

    def lexeme_count(self) -> int:
        return len(self._lexemes)

    def get_lexeme(self, i: int) -> str:
        """Ritorna l'i-esimo lessema (0-based). IndexError fuori range."""
        if not 0 <= i < len(self._lexemes):
            raise IndexError(f"Lexeme index {i} out of range (0..{len(self._lexemes) - 1})")
        return self._lexemes[i]

    def __len__(self) -> int:
        return len(self._lexemes)

    def __getitem__(self, i: int) -> str:
        return self._lexemes[i]

    def __iter__(self) -> Iterator[str]:
        return iter(self._lexemes)

    def __repr__(self) -> str:
        return f"<SequenceLexemeWindow({list(self._lexemes)})>"


_annotation_ids = itertools.count(1)


@dataclass(eq=False)
class Annotation:
    """
    Annotazione su un intervallo del documento.

    Attributes:
        type: Tipo (es. "Lookup")
        start: Offset iniziale
        end: Offset finale
        features: Feature map (es. "inst", "connections")
        id: Identificativo univoco nel processo
    """
    type: str
    start: int = 0
    end: int = 0
    features: Dict[str, Any] = field(default_factory=dict)
    id: int = field(default_factory=lambda: next(_annotation_ids))

    def __repr__(self) -> str:
        return f"<Annotation#{self.id} {self.type}[{self.start}:{self.end}] {self.features}>"


class AnnotationSet:
    """
    Insieme di annotazioni posseduto da un documento.

    L'ordine di iterazione e' quello di inserimento.
    """

    def __init__(self, name: Optional[str] = None, annotations: Iterable[Annotation] = ()):
        self.name = name
        self._annotations: Dict[int, Annotation] = {}
        for ann in annotations:
            self.add(ann)

    def add(self, ann: Annotation) -> Annotation:
        self._annotations[ann.id] = ann
        return ann

    def create(self, ann_type: str, start: int, end: int, features: Optional[Dict[str, Any]] = None) -> Annotation:
        """Crea e aggiunge una nuova annotazione."""
        return self.add(Annotation(type=ann_type, start=start, end=end, features=dict(features or {})))

    def get(self, types: Union[str, Iterable[str], None] = None) -> List[Annotation]:
        """
        Ritorna le annotazioni dei tipi richiesti.

        Args:
            types: Un tipo, una collezione di tipi o None (tutte)
        """
        if types is None:
            return list(self._annotations.values())
        wanted: Set[str] = {types} if isinstance(types, str) else set(types)
        return [a for a in self._annotations.values() if a.type in wanted]

    def remove(self, ann: Annotation) -> bool:
        return self._annotations.pop(ann.id, None) is not None

    def remove_all(self, annotations: Iterable[Annotation]) -> int:
        """Rimuove un batch di annotazioni. Ritorna quante erano presenti."""
        removed = 0
        for ann in list(annotations):
            if self.remove(ann):
                removed += 1
        return removed

    def __contains__(self, ann: object) -> bool:
        return isinstance(ann, Annotation) and ann.id in self._annotations

    def __iter__(self) -> Iterator[Annotation]:
        return iter(list(self._annotations.values()))

    def __len__(self) -> int:
        return len(self._annotations)

    def __repr__(self) -> str:
        return f"<AnnotationSet({self.name!r}, {len(self)} annotations)>"


class Document:
    """
    Documento host: testo e insiemi di annotazioni.

    Il set di default ha nome None; i set nominati sono creati on demand.
    """

    def __init__(self, content: str = "", name: str = "document"):
        self.content = content
        self.name = name
        self._default = AnnotationSet()
        self._named: Dict[str, AnnotationSet] = {}

    def get_annotations(self, name: Optional[str] = None) -> AnnotationSet:
        if not name:
            return self._default
        if name not in self._named:
            self._named[name] = AnnotationSet(name)
        return self._named[name]

    @property
    def annotation_set_names(self) -> List[str]:
        return list(self._named)

    def __repr__(self) -> str:
        return f"<Document({self.name!r}, {len(self.content)} chars)>"
