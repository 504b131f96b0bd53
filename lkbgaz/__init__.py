"""
LKB Gazetteer
=============

Risoluzione delle sorgenti e streaming delle entità per un gazetteer basato
su una knowledge base lessicale, più enrichment delle annotazioni da un
repository SPARQL.

Quick Start:
    from lkbgaz import LkbGazetteer, SemanticEnrichment, EnrichmentSettings
    from lkbgaz.models import Document

    gazetteer = LkbGazetteer("dictionaries/cities").init()
    doc = Document("Sofia is the capital of Bulgaria")
    gazetteer.execute(doc)

    enrichment = SemanticEnrichment(EnrichmentSettings(
        server="http://localhost:7200", repository_id="geo",
    )).init()
    print(enrichment.execute(doc).summary())

Componenti:
- hashing: SettingsHashBuilder, fingerprint
- feeds: FeedResolver, RemoteServiceFeed, LocalRepositoryFeed, UnavailableFeed
- feeder: DictionaryFeeder, LabelLookupFeeder
- gazetteer: LkbGazetteer, EntityDictionary, DictionaryCache
- enrichment: SemanticEnrichment
- repository: LocalRepository, SparqlHttpRepository
"""

__version__ = "0.1.0"
__author__ = "LKB Gazetteer Team"

from lkbgaz.enrichment import EnrichmentReport, EnrichmentSettings, SemanticEnrichment
from lkbgaz.exceptions import MalformedQueryError, QueryError
from lkbgaz.feeder import DictionaryFeeder, LabelLookupFeeder, NullDictionaryFeeder
from lkbgaz.feeds import FeedResolver, FeedVariant, create_feed
from lkbgaz.gazetteer import DictionaryCache, EntityDictionary, LkbGazetteer
from lkbgaz.hashing import SettingsHashBuilder, fingerprint
from lkbgaz.models import EntityRecord

__all__ = [
    # Hashing
    "SettingsHashBuilder",
    "fingerprint",
    # Feeds
    "FeedResolver",
    "FeedVariant",
    "create_feed",
    # Feeder
    "DictionaryFeeder",
    "LabelLookupFeeder",
    "NullDictionaryFeeder",
    # Gazetteer
    "LkbGazetteer",
    "EntityDictionary",
    "DictionaryCache",
    # Enrichment
    "SemanticEnrichment",
    "EnrichmentSettings",
    "EnrichmentReport",
    # Models / errors
    "EntityRecord",
    "QueryError",
    "MalformedQueryError",
]
