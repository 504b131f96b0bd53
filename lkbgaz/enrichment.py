"""
Semantic Enrichment
===================

Arricchisce le annotazioni semantiche con dati presi da un repository RDF
esterno (Linked Data).

Un'annotazione semantica ha l'URI dell'entità nella feature "inst". Per ogni
annotazione dei tipi configurati si esegue una query SPARQL parametrica
(template con un solo %s per l'URI) e si scrive nella feature "connections"
la lista dei valori restituiti, ognuno seguito da una virgola.

Regole:
- risultato vuoto e delete_on_no_relations attivo -> annotazione rimossa
- query malformata o errore di esecuzione -> log, annotazione invariata,
  si prosegue con le altre
- le rimozioni avvengono in un unico batch a fine scansione

Esempio:
    from lkbgaz.enrichment import EnrichmentSettings, SemanticEnrichment

    enrichment = SemanticEnrichment(EnrichmentSettings(
        server="http://localhost:7200",
        repository_id="dbpedia",
    )).init()
    report = enrichment.execute(document)
    print(report.summary())
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from lkbgaz.config import get_section
from lkbgaz.exceptions import MalformedQueryError, ResourceInstantiationError
from lkbgaz.models import Annotation, Document
from lkbgaz.repository.base import SPARQL, RepositoryConnection
from lkbgaz.repository.http import SparqlHttpRepository

logger = logging.getLogger(__name__)

_ENRICHMENT_CONFIG = get_section("enrichment")

INST_FEATURE = "inst"
CONNECTIONS_FEATURE = "connections"

DEFAULT_QUERY: str = _ENRICHMENT_CONFIG.get(
    "query",
    "SELECT ?Person WHERE { "
    "?Person <http://dbpedia.org/ontology/birthplace> ?BirthPlace . "
    "?BirthPlace <http://www.geonames.org/ontology#parentFeature> <%s> . "
    "?Person a <http://sw.opencyc.org/2008/06/10/concept/en/Entertainer> .} LIMIT 100",
)


class EnrichmentSettings(BaseModel):
    """
    Parametri dell'enrichment.

    Attributes:
        server: URL del server SPARQL
        repository_id: ID del repository
        input_as_name: Annotation set di input (None = default)
        annotation_types: Tipi di annotazione da arricchire
        delete_on_no_relations: Rimuovi le annotazioni senza risultati
        query: Template SPARQL con un solo %s per l'URI dell'entità
    """
    model_config = {"validate_assignment": True}

    server: Optional[str] = Field(default=None, description="URL del server SPARQL")
    repository_id: Optional[str] = Field(default=None, description="ID del repository")
    input_as_name: Optional[str] = Field(default=None, description="Annotation set di input")
    annotation_types: List[str] = Field(
        default_factory=lambda: list(_ENRICHMENT_CONFIG.get("annotation_types", ["Lookup"]))
    )
    delete_on_no_relations: bool = Field(
        default=bool(_ENRICHMENT_CONFIG.get("delete_on_no_relations", True))
    )
    query: str = Field(default=DEFAULT_QUERY, description="Template della query")

    @field_validator("query")
    @classmethod
    def strip_backslashes(cls, v: str) -> str:
        # I backslash arrivano dall'escaping dei parametri, non dalla query
        return v.replace("\\", "")

    @field_validator("delete_on_no_relations", mode="before")
    @classmethod
    def none_keeps_default(cls, v):
        return True if v is None else v


@dataclass
class EnrichmentError:
    """Errore su una singola annotazione."""

    inst_uri: str
    query: str
    error_type: str
    error_message: str
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class EnrichmentReport:
    """
    Risultato di un passaggio di enrichment su un documento.

    Example:
        >>> report = enrichment.execute(document)
        >>> if not report.success:
        ...     print(f"{len(report.errors)} query fallite")
    """

    processed: int = 0
    enriched: int = 0
    deleted: int = 0
    errors: List[EnrichmentError] = field(default_factory=list)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def success(self) -> bool:
        return not self.errors

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def add_error(self, inst_uri: str, query: str, error: Exception) -> None:
        self.errors.append(EnrichmentError(
            inst_uri=inst_uri,
            query=query,
            error_type=type(error).__name__,
            error_message=str(error),
        ))

    def summary(self) -> str:
        return (
            f"Enrichment: {self.processed} annotazioni, {self.enriched} arricchite, "
            f"{self.deleted} rimosse, {len(self.errors)} errori"
        )


class SemanticEnrichment:
    """
    Processing resource di enrichment semantico.

    Attributes:
        settings: EnrichmentSettings
        repository: Repository interrogato (creato da init() se non fornito)
    """

    def __init__(self, settings: Optional[EnrichmentSettings] = None, repository=None):
        self.settings = settings or EnrichmentSettings()
        self.repository = repository
        self._owns_repository = repository is None

    def init(self) -> "SemanticEnrichment":
        """
        Raises:
            ResourceInstantiationError: Se server/repository non sono validi
        """
        if self.repository is None:
            try:
                self.repository = SparqlHttpRepository(
                    self.settings.server or "",
                    self.settings.repository_id or "",
                )
            except ValueError as e:
                raise ResourceInstantiationError(f"Invalid enrichment repository: {e}") from e
            self._owns_repository = True
        return self

    def reinit(self) -> "SemanticEnrichment":
        self.cleanup()
        return self.init()

    def cleanup(self) -> None:
        if self.repository is not None and self._owns_repository:
            self.repository.shutdown()
            self.repository = None

    def execute(self, document: Document) -> EnrichmentReport:
        """
        Arricchisce le annotazioni del documento.

        La connessione e' acquisita per l'intera scansione e rilasciata
        anche in caso di eccezione.
        """
        if self.repository is None:
            raise RuntimeError("SemanticEnrichment not initialized. Call init() first.")

        report = EnrichmentReport(started_at=datetime.now())
        input_set = document.get_annotations(self.settings.input_as_name)
        death_row: List[Annotation] = []

        with self.repository.connection() as conn:
            for ann in input_set.get(self.settings.annotation_types):
                inst = ann.features.get(INST_FEATURE)
                if not isinstance(inst, str):
                    continue
                report.processed += 1
                if self._enrich_annotation(conn, ann, inst, report):
                    death_row.append(ann)

        if self.settings.delete_on_no_relations:
            report.deleted = input_set.remove_all(death_row)

        report.completed_at = datetime.now()
        logger.info(f"{document.name}: {report.summary()}")
        return report

    def _enrich_annotation(
        self,
        conn: RepositoryConnection,
        ann: Annotation,
        inst: str,
        report: EnrichmentReport,
    ) -> bool:
        """Ritorna True se l'annotazione va rimossa."""
        try:
            inst_query = self.settings.query % inst
        except (TypeError, ValueError) as e:
            logger.warning(
                f"Created invalid query [{self.settings.query}] for entity [{inst}] (in brackets). "
                f"Substitution failed: {e}"
            )
            report.add_error(inst, self.settings.query, e)
            return False

        try:
            rows = list(conn.evaluate(inst_query, SPARQL))
        except MalformedQueryError as e:
            logger.warning(
                f"Created invalid query [{inst_query}] for entity [{inst}] (in brackets). "
                f"Parser reported: {e}"
            )
            report.add_error(inst, inst_query, e)
            return False
        except Exception as e:
            logger.warning(
                f"Error executing query [{inst_query}] for entity [{inst}] (in brackets)",
                exc_info=True,
            )
            report.add_error(inst, inst_query, e)
            return False

        if not rows and self.settings.delete_on_no_relations:
            return True

        output = "".join(f"{value}," for row in rows for value in row.values() if value is not None)
        if output:
            ann.features[CONNECTIONS_FEATURE] = output
            report.enriched += 1
        return False
