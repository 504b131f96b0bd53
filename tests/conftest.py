"""
LKB Gazetteer Test Configuration
================================

Shared fixtures for all tests.
"""

from typing import Dict, Iterator, List, Optional, Union

import pytest

from lkbgaz.repository.base import SPARQL, BindingSet, RepositoryConnection


SAMPLE_CONFIG_TTL = """\
@prefix rdf: <http://www.w3.org/1999/02/22-rdf-syntax-ns#> .
@prefix rdfs: <http://www.w3.org/2000/01/rdf-schema#> .
@prefix ex: <http://example.org/> .

ex:Sofia a ex:City ;
    rdfs:label "Sofia" .

ex:Plovdiv a ex:City ;
    rdfs:label "Plovdiv" , "Philippopolis" .

ex:NewYork a ex:City ;
    rdfs:label "New York" .
"""

SAMPLE_QUERY = """\
PREFIX rdfs: <http://www.w3.org/2000/01/rdf-schema#>
SELECT ?inst ?cls ?label
WHERE {
    ?inst a ?cls .
    ?inst rdfs:label ?label .
}
"""


# Isolamento dal servizio centrale e dal registro di processo
@pytest.fixture(autouse=True)
def no_knowledge_service():
    """Nessun servizio di conoscenza, a prescindere dall'environment."""
    from lkbgaz.service import TrustedEntityRegistry, reset_knowledge_service, set_knowledge_service

    set_knowledge_service(None)
    yield
    reset_knowledge_service()
    TrustedEntityRegistry.get().reset()


@pytest.fixture
def dictionary_dir(tmp_path):
    """Directory di dizionario con config.ttl e query.txt validi."""
    path = tmp_path / "cities"
    path.mkdir()
    (path / "config.ttl").write_text(SAMPLE_CONFIG_TTL, encoding="utf-8")
    (path / "query.txt").write_text(SAMPLE_QUERY, encoding="utf-8")
    return path


@pytest.fixture
def empty_dictionary_dir(tmp_path):
    """Directory di dizionario senza risorse."""
    path = tmp_path / "empty"
    path.mkdir()
    return path


class RecordingListener:
    """EntityListener che registra ogni add_entity."""

    def __init__(self):
        self.entities: List[tuple] = []

    def add_entity(self, inst_uri: str, class_uri: str, alias_label: str) -> None:
        self.entities.append((inst_uri, class_uri, alias_label))


@pytest.fixture
def listener():
    return RecordingListener()


Response = Union[List[BindingSet], Exception]


class FakeConnection(RepositoryConnection):
    """
    Connessione finta: la risposta e' scelta dalla prima chiave contenuta
    nella query.
    """

    def __init__(self, responses: Dict[str, Response], default: Optional[Response] = None):
        super().__init__()
        self.responses = responses
        self.default = default if default is not None else []
        self.queries: List[str] = []

    def evaluate(self, query: str, language: str = SPARQL) -> Iterator[BindingSet]:
        self._check_open(language)
        self.queries.append(query)
        response = self.default
        for key, value in self.responses.items():
            if key in query:
                response = value
                break
        if isinstance(response, Exception):
            raise response
        return iter([dict(row) for row in response])

    def _release(self) -> None:
        pass


class FakeRepository:
    """Repository finto che registra le connessioni aperte."""

    def __init__(self, responses: Optional[Dict[str, Response]] = None, default: Optional[Response] = None):
        self.responses = responses or {}
        self.default = default
        self.connections: List[FakeConnection] = []
        self.shut_down = False

    def connection(self) -> FakeConnection:
        conn = FakeConnection(self.responses, self.default)
        self.connections.append(conn)
        return conn

    def shutdown(self) -> None:
        self.shut_down = True


@pytest.fixture
def fake_repository_factory():
    return FakeRepository


@pytest.fixture
def fake_connection_factory():
    return FakeConnection
