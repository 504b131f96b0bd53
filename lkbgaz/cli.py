"""
LKB Gazetteer CLI

Comandi per ispezionare le directory dei dizionari:

    lkbgaz fingerprint DICTIONARY_DIR
    lkbgaz resolve DICTIONARY_DIR
    lkbgaz feed DICTIONARY_DIR --show 10
"""

import logging
from pathlib import Path
from typing import List

import click
import structlog

from lkbgaz import __version__
from lkbgaz.exceptions import QueryError
from lkbgaz.feeds.resolver import CONFIG_FILE_NAME, QUERY_FILE_NAME, FeedResolver
from lkbgaz.hashing import fingerprint
from lkbgaz.models import EntityRecord

log = structlog.get_logger()


def configure_logging(verbose: bool = False) -> None:
    """Logging su console per structlog e logging standard."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
    )


class _CollectingListener:
    """Conta le entità e conserva le prime `keep`."""

    def __init__(self, keep: int = 0):
        self.keep = keep
        self.count = 0
        self.records: List[EntityRecord] = []

    def add_entity(self, inst_uri: str, class_uri: str, alias_label: str) -> None:
        self.count += 1
        if len(self.records) < self.keep:
            self.records.append(EntityRecord(inst_uri, class_uri, alias_label))


# ============================================================================
# CLI
# ============================================================================

@click.group()
@click.version_option(version=__version__, prog_name='lkbgaz')
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
def cli(verbose):
    """LKB Gazetteer - feed resolution and entity streaming tools."""
    configure_logging(verbose)


@cli.command('fingerprint')
@click.argument('dictionary_dir', type=click.Path(exists=True, file_okay=False, path_type=Path))
def fingerprint_command(dictionary_dir):
    """Print the cache fingerprint of config.ttl + query.txt.

    Example:
        lkbgaz fingerprint dictionaries/cities
    """
    query_file = dictionary_dir / QUERY_FILE_NAME
    try:
        query = query_file.read_text(encoding='utf-8')
    except OSError as e:
        raise click.ClickException(f"Cannot read {query_file}: {e}")
    click.echo(fingerprint(dictionary_dir / CONFIG_FILE_NAME, query))


@cli.command('resolve')
@click.argument('dictionary_dir', type=click.Path(file_okay=False, path_type=Path))
def resolve_command(dictionary_dir):
    """Print which feed variant would be used for a dictionary."""
    feed = FeedResolver().resolve(dictionary_dir)
    click.echo(feed.variant.value)
    settings_hash = getattr(feed, 'fingerprint', None)
    if settings_hash is not None:
        click.echo(f"fingerprint: {settings_hash}")
    close = getattr(feed, 'close', None)
    if close is not None:
        close()


@cli.command('feed')
@click.argument('dictionary_dir', type=click.Path(file_okay=False, path_type=Path))
@click.option('--show', default=0, show_default=True, help='Number of entities to print')
def feed_command(dictionary_dir, show):
    """Push the resolved feed and print the entity count.

    Example:
        lkbgaz feed dictionaries/cities --show 5
    """
    feed = FeedResolver().resolve(dictionary_dir)
    listener = _CollectingListener(keep=show)
    try:
        feed.push(listener)
    except QueryError as e:
        log.error(f"Feed failed for {dictionary_dir}: {e}")
        raise click.ClickException(str(e))
    finally:
        close = getattr(feed, 'close', None)
        if close is not None:
            close()

    for record in listener.records:
        click.echo(f"{record.inst_uri}\t{record.class_uri}\t{record.alias_label}")
    click.echo(f"{listener.count} entities ({feed.variant.value})")


if __name__ == '__main__':
    cli()
