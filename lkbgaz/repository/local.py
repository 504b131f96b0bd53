"""
Local Repository
================

Repository privato in memoria costruito da un file di configurazione Turtle.

Il config.ttl viene caricato con rdflib; le risorse che nomina tramite
`lkb:imports` (<http://lkbgaz.org/config#imports>) vengono caricate nello
stesso grafo. IRI relativi sono risolti rispetto al file di configurazione.

Esempio config.ttl:
    @prefix lkb: <http://lkbgaz.org/config#> .
    <> lkb:imports <ontology.ttl>, <instances.nt> .
"""

import threading
from pathlib import Path
from typing import Iterator, Optional

import structlog
from pyparsing import ParseBaseException
from rdflib import Graph, Literal, Namespace
from rdflib.util import guess_format

from lkbgaz.exceptions import MalformedQueryError, QueryError
from lkbgaz.repository.base import SPARQL, BindingSet, RepositoryConnection
from lkbgaz.utils import Resource, resource_path

log = structlog.get_logger()

LKB_CONFIG = Namespace("http://lkbgaz.org/config#")


class LocalRepositoryConnection(RepositoryConnection):
    """Connessione a un grafo rdflib già caricato."""

    def __init__(self, graph: Graph):
        super().__init__()
        self._graph = graph

    def evaluate(self, query: str, language: str = SPARQL) -> Iterator[BindingSet]:
        self._check_open(language)
        try:
            result = self._graph.query(query)
        except ParseBaseException as e:
            raise MalformedQueryError(f"Invalid SPARQL query: {e}") from e
        except Exception as e:
            raise QueryError(f"Query evaluation failed: {e}") from e

        if result.type != "SELECT":
            raise QueryError(f"Expected a SELECT query, got {result.type}")
        return self._iter_bindings(result)

    @staticmethod
    def _iter_bindings(result) -> Iterator[BindingSet]:
        variables = [str(v) for v in (result.vars or [])]
        try:
            for row in result:
                binding: BindingSet = {}
                for name in variables:
                    value = row[name]
                    binding[name] = str(value) if value is not None else None
                yield binding
        except Exception as e:
            raise QueryError(f"Query evaluation failed: {e}") from e

    def _release(self) -> None:
        self._graph = None


class LocalRepository:
    """
    Repository privato descritto da un config.ttl.

    Il grafo e' caricato una sola volta, al primo `connection()`, anche con
    documenti elaborati in parallelo, e condiviso dalle connessioni successive
    della stessa istanza.

    Attributes:
        config_url: URL (o path) del file di configurazione
    """

    def __init__(self, config_url: Resource):
        self.config_url = config_url
        self._graph: Optional[Graph] = None
        self._lock = threading.Lock()

    @property
    def config_path(self) -> Path:
        return resource_path(self.config_url)

    def initialize(self) -> Graph:
        """
        Carica configurazione e import.

        Raises:
            QueryError: Se la configurazione o un import non sono caricabili
        """
        graph = self._graph
        if graph is not None:
            return graph
        with self._lock:
            if self._graph is None:
                self._graph = self._load()
            return self._graph

    def _load(self) -> Graph:
        config_path = self.config_path
        graph = Graph()
        try:
            graph.parse(config_path.as_posix(), format="turtle", publicID=config_path.absolute().as_uri())
        except Exception as e:
            raise QueryError(
                f"Cannot load repository configuration {config_path}: {e}",
                config_path=str(config_path),
            ) from e

        for source in list(graph.objects(None, LKB_CONFIG.imports)):
            location = self._resolve_import(config_path, source)
            fmt = guess_format(location) or "turtle"
            try:
                graph.parse(location, format=fmt)
            except Exception as e:
                raise QueryError(
                    f"Cannot load {location} imported by {config_path}: {e}",
                    config_path=str(config_path),
                ) from e
            log.debug(f"Imported {location} ({fmt})")

        log.info(f"Local repository loaded from {config_path}: {len(graph)} triples")
        return graph

    @staticmethod
    def _resolve_import(config_path: Path, source) -> str:
        text = str(source)
        if isinstance(source, Literal) and "://" not in text:
            return (config_path.parent / text).as_posix()
        if text.startswith("file:"):
            return resource_path(text).as_posix()
        return text

    def connection(self) -> LocalRepositoryConnection:
        return LocalRepositoryConnection(self.initialize())

    def shutdown(self) -> None:
        with self._lock:
            self._graph = None

    def __repr__(self) -> str:
        return f"<LocalRepository({self.config_url})>"
