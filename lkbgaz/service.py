"""
Knowledge Service
=================

Accesso al servizio di conoscenza centrale e al registro delle entità
trusted.

Il servizio e' configurato centralmente (environment, vedi
lkbgaz.config.KnowledgeServiceConfig). La sua assenza o irraggiungibilità
non e' un errore: il resolver dei feed passa semplicemente al livello
successivo.

Esempio:
    from lkbgaz.service import get_knowledge_service, TrustedEntityRegistry

    service = get_knowledge_service()
    if service is not None:
        repo = service.get_semantic_repository()   # RepositoryUnavailableError

    TrustedEntityRegistry.get().initialize(["http://proton.semanticweb.org/protont#Person"])
"""

import threading
from typing import Iterable, List, Optional, Sequence

import structlog

from lkbgaz.config import KnowledgeServiceConfig, get_section
from lkbgaz.exceptions import RegistryNotInitializedError
from lkbgaz.repository.http import SparqlHttpRepository

log = structlog.get_logger()

_FEEDS_CONFIG = get_section("feeds")

QUERY_LANGUAGE: str = _FEEDS_CONFIG.get("query_language", "sparql")
ENTITY_PROJECTION: str = _FEEDS_CONFIG.get("projection", "?inst ?cls ?label")
FALLBACK_ENTITY_PATTERN: str = _FEEDS_CONFIG.get(
    "fallback_pattern",
    "?inst <http://www.w3.org/1999/02/22-rdf-syntax-ns#type> ?cls . "
    "?inst <http://www.w3.org/2000/01/rdf-schema#label> ?label .",
)
DEFAULT_ALIAS_PREDICATES: List[str] = _FEEDS_CONFIG.get(
    "alias_predicates",
    ["http://www.w3.org/2000/01/rdf-schema#label"],
)


def compose_entity_query(patterns: Sequence[str], projection: str = ENTITY_PROJECTION) -> str:
    """
    Compone una SELECT dall'unione di group pattern.

    Example:
        >>> compose_entity_query(["?a ?b ?c ."], "?a")
        'SELECT ?a WHERE { ?a ?b ?c . }'
    """
    if not patterns:
        raise ValueError("At least one pattern is required")
    if len(patterns) == 1:
        body = patterns[0]
    else:
        body = " UNION ".join(f"{{ {p} }}" for p in patterns)
    return f"SELECT {projection} WHERE {{ {body} }}"


FALLBACK_ENTITY_QUERY: str = compose_entity_query([FALLBACK_ENTITY_PATTERN])


class KnowledgeService:
    """
    Servizio di conoscenza centrale.

    Attributes:
        config: Configurazione del servizio
    """

    def __init__(self, config: Optional[KnowledgeServiceConfig] = None):
        self.config = config or KnowledgeServiceConfig()

    def get_semantic_repository(self) -> SparqlHttpRepository:
        """
        Ritorna il repository semantico, verificandone la raggiungibilità.

        Raises:
            RepositoryUnavailableError: Se il server non risponde
        """
        repository = SparqlHttpRepository(self.config.server_url, self.config.repository_id)
        repository.ping(timeout=self.config.ping_timeout_s)
        log.info(f"Knowledge service reachable at {repository.endpoint}")
        return repository

    def __repr__(self) -> str:
        return f"<KnowledgeService({self.config.server_url})>"


_UNSET = object()
_service_override = _UNSET


def get_knowledge_service() -> Optional[KnowledgeService]:
    """
    Ritorna il servizio configurato, o None se non configurato.

    Un servizio impostato con set_knowledge_service() ha precedenza
    sull'environment.
    """
    if _service_override is not _UNSET:
        return _service_override
    config = KnowledgeServiceConfig()
    if not config.is_configured:
        return None
    return KnowledgeService(config)


def set_knowledge_service(service: Optional[KnowledgeService]) -> None:
    """Imposta il servizio (None = nessun servizio) ignorando l'environment."""
    global _service_override
    _service_override = service


def reset_knowledge_service() -> None:
    """Torna alla configurazione da environment."""
    global _service_override
    _service_override = _UNSET


class TrustedEntityRegistry:
    """
    Registro delle classi di entità trusted.

    Inizializzato una volta dal processo host; finché non lo e',
    trusted_entities_pattern() solleva RegistryNotInitializedError.

    Example:
        >>> registry = TrustedEntityRegistry()
        >>> registry.initialize(["http://example.org/City"])
        >>> "VALUES ?cls" in registry.trusted_entities_pattern()
        True
    """

    _instance: Optional["TrustedEntityRegistry"] = None
    _instance_lock = threading.Lock()

    def __init__(self):
        self._class_uris: Optional[List[str]] = None
        self._alias_predicates: List[str] = list(DEFAULT_ALIAS_PREDICATES)

    @classmethod
    def get(cls) -> "TrustedEntityRegistry":
        """Istanza di processo."""
        with cls._instance_lock:
            if cls._instance is None:
                cls._instance = cls()
            return cls._instance

    @property
    def initialized(self) -> bool:
        return self._class_uris is not None

    @property
    def class_uris(self) -> List[str]:
        return list(self._class_uris or [])

    def initialize(
        self,
        class_uris: Iterable[str],
        alias_predicates: Optional[Iterable[str]] = None,
    ) -> None:
        self._class_uris = list(dict.fromkeys(class_uris))
        if alias_predicates is not None:
            self._alias_predicates = list(alias_predicates)
        log.info(f"Trusted entity registry initialized with {len(self._class_uris)} classes")

    def reset(self) -> None:
        self._class_uris = None
        self._alias_predicates = list(DEFAULT_ALIAS_PREDICATES)

    def trusted_entities_pattern(self) -> str:
        """
        Group pattern SPARQL per tutte le entità trusted.

        Raises:
            RegistryNotInitializedError: Se initialize() non e' stato chiamato
        """
        if self._class_uris is None:
            raise RegistryNotInitializedError("Trusted entity registry not initialized")
        classes = " ".join(f"<{uri}>" for uri in self._class_uris)
        predicates = " ".join(f"<{uri}>" for uri in self._alias_predicates)
        return (
            f"VALUES ?cls {{ {classes} }} "
            f"VALUES ?aliasPredicate {{ {predicates} }} "
            f"?inst <http://www.w3.org/1999/02/22-rdf-syntax-ns#type> ?cls . "
            f"?inst ?aliasPredicate ?label ."
        )
