"""
LKB Entity Feeds
================

Sorgenti di entità per i dizionari del gazetteer.

Varianti:
- RemoteServiceFeed: interroga il servizio di conoscenza centrale
- LocalRepositoryFeed: config.ttl + query.txt su repository privato
- UnavailableFeed: fallisce solo quando invocato

Esempio:
    from lkbgaz.feeds import FeedResolver

    feed = FeedResolver().resolve(Path("dictionaries/cities"))
    if getattr(feed, "fingerprint", None) != cached_fingerprint:
        feed.push(dictionary)
"""

from lkbgaz.feeds.base import EntityListener, Feed, FeedVariant, stream_bindings
from lkbgaz.feeds.local import LocalRepositoryFeed
from lkbgaz.feeds.remote import RemoteServiceFeed
from lkbgaz.feeds.resolver import FeedResolver, create_feed, select_feed_variant
from lkbgaz.feeds.unavailable import UnavailableFeed

__all__ = [
    "EntityListener",
    "Feed",
    "FeedVariant",
    "stream_bindings",
    "RemoteServiceFeed",
    "LocalRepositoryFeed",
    "UnavailableFeed",
    "FeedResolver",
    "create_feed",
    "select_feed_variant",
]
