"""
Feed Resolver
=============

Sceglie esattamente un Feed per ogni directory di dizionario, con fallback
ordinato (vince il primo che riesce):

1. Servizio di conoscenza centrale, se configurato e raggiungibile
2. Repository locale: config.ttl + query.txt nella directory
3. UnavailableFeed, che fallisce solo se invocato

Così un dizionario funziona connesso al servizio condiviso, offline su un
repository privato, o solo da cache precompilata, senza che il chiamante
sappia quale modalità si applica.

La decisione avviene solo alla costruzione: un feed che fallisce durante
push() non ripiega automaticamente sul livello successivo.

Esempio:
    from lkbgaz.feeds import create_feed

    feed = create_feed(Path("resources/dictionaries/cities"))
    feed.push(dictionary)
"""

import logging
from pathlib import Path
from typing import Callable, Optional, Union

from lkbgaz.config import get_section
from lkbgaz.exceptions import RegistryNotInitializedError, RepositoryUnavailableError
from lkbgaz.feeds.base import Feed, FeedVariant
from lkbgaz.feeds.local import LocalRepositoryFeed
from lkbgaz.feeds.remote import RemoteServiceFeed
from lkbgaz.feeds.unavailable import UnavailableFeed
from lkbgaz.hashing import SettingsHashBuilder
from lkbgaz.service import (
    FALLBACK_ENTITY_PATTERN,
    QUERY_LANGUAGE,
    KnowledgeService,
    TrustedEntityRegistry,
    compose_entity_query,
    get_knowledge_service,
)
from lkbgaz.utils import file_url

logger = logging.getLogger(__name__)

_LOCAL_CONFIG = get_section("local_repository")
CONFIG_FILE_NAME: str = _LOCAL_CONFIG.get("config_file", "config.ttl")
QUERY_FILE_NAME: str = _LOCAL_CONFIG.get("query_file", "query.txt")


def select_feed_variant(service_reachable: bool, local_files_readable: bool) -> FeedVariant:
    """
    Decisione pura del fallback.

    Example:
        >>> select_feed_variant(False, True)
        <FeedVariant.LOCAL_REPOSITORY: 'local_repository'>
    """
    if service_reachable:
        return FeedVariant.REMOTE_SERVICE
    if local_files_readable:
        return FeedVariant.LOCAL_REPOSITORY
    return FeedVariant.UNAVAILABLE


class FeedResolver:
    """
    Costruisce il Feed per una directory di dizionario.

    Attributes:
        service_provider: Callable che ritorna il KnowledgeService o None
        registry: Registro entità trusted (default: istanza di processo)
        fallback_pattern: Group pattern SPARQL di fallback
    """

    def __init__(
        self,
        service_provider: Callable[[], Optional[KnowledgeService]] = get_knowledge_service,
        registry: Optional[TrustedEntityRegistry] = None,
        fallback_pattern: str = FALLBACK_ENTITY_PATTERN,
        hash_builder: Optional[SettingsHashBuilder] = None,
    ):
        self.service_provider = service_provider
        self.registry = registry
        self.fallback_pattern = fallback_pattern
        self.hash_builder = hash_builder or SettingsHashBuilder()

    def resolve(self, dictionary_path: Union[str, Path]) -> Feed:
        """Ritorna sempre un Feed; non solleva mai."""
        dictionary_path = Path(dictionary_path)

        feed: Optional[Feed] = None
        service = self._get_service()
        if service is not None:
            feed = self.create_service_feed(service)

        if feed is None:
            feed = self.create_local_feed(dictionary_path)

        if feed is None:
            feed = UnavailableFeed(dictionary_path)

        logger.info(f"Feed per {dictionary_path}: {feed.variant.value}")
        return feed

    def _get_service(self) -> Optional[KnowledgeService]:
        try:
            return self.service_provider()
        except Exception as e:
            logger.info(f"Knowledge service non disponibile: {e}")
            return None

    def entity_query(self) -> str:
        """Query trusted UNION fallback, o solo fallback se il registro non e' pronto."""
        registry = self.registry or TrustedEntityRegistry.get()
        try:
            trusted = registry.trusted_entities_pattern()
        except RegistryNotInitializedError:
            return compose_entity_query([self.fallback_pattern])
        return compose_entity_query([trusted, self.fallback_pattern])

    def create_service_feed(self, service: KnowledgeService) -> Optional[RemoteServiceFeed]:
        try:
            repository = service.get_semantic_repository()
        except RepositoryUnavailableError as e:
            logger.info(f"Semantic repository is not available: {e}")
            return None
        except Exception as e:
            logger.warning(f"Errore nella connessione al servizio di conoscenza: {e}")
            return None

        try:
            query = self.entity_query()
            return RemoteServiceFeed(repository.connection(), QUERY_LANGUAGE, query)
        except Exception as e:
            logger.warning(f"Impossibile creare il feed remoto: {e}", exc_info=True)
            return None

    def create_local_feed(self, dictionary_path: Path) -> Optional[LocalRepositoryFeed]:
        query_file = (dictionary_path / QUERY_FILE_NAME).absolute()
        config_file = (dictionary_path / CONFIG_FILE_NAME).absolute()
        try:
            if not config_file.is_file():
                raise FileNotFoundError(f"Config file not found: {config_file}")
            query = query_file.read_text(encoding="utf-8")
            logger.info(f"Query loaded from {query_file}")
            config_url = file_url(config_file)
            settings_hash = self.hash_builder.get_hash(config_url, query)
            return LocalRepositoryFeed(config_url, query, settings_hash)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Error while reading {query_file}: {e}")
        return None


def create_feed(dictionary_path: Union[str, Path]) -> Feed:
    """Risolve il feed con la configurazione di default."""
    return FeedResolver().resolve(dictionary_path)
