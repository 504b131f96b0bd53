"""
SPARQL HTTP Repository
======================

Client per repository remoti esposti via SPARQL 1.1 Protocol
(RDF4J/Sesame, GraphDB, Fuseki, ...).

Endpoint: <server>/repositories/<repository_id>

Nessun timeout di query viene imposto (timeout=None): eventuali deadline
sono responsabilità del chiamante. Il ping usa un timeout proprio.

Esempio:
    repo = SparqlHttpRepository("http://localhost:7200", "lkb")
    repo.ping()
    with repo.connection() as conn:
        rows = list(conn.evaluate("SELECT * WHERE { ?s ?p ?o } LIMIT 5"))
"""

from typing import Iterator, List, Optional

import requests
import structlog

from lkbgaz.exceptions import MalformedQueryError, QueryError, RepositoryUnavailableError
from lkbgaz.repository.base import SPARQL, BindingSet, RepositoryConnection

log = structlog.get_logger()

SPARQL_RESULTS_JSON = "application/sparql-results+json"


def parse_sparql_json(payload: dict) -> List[BindingSet]:
    """
    Converte un documento application/sparql-results+json in BindingSet.

    L'ordine delle chiavi segue head.vars; le variabili non legate valgono None.
    """
    variables = payload.get("head", {}).get("vars", [])
    rows = []
    for binding in payload.get("results", {}).get("bindings", []):
        rows.append({
            name: binding[name]["value"] if name in binding else None
            for name in variables
        })
    return rows


class HttpRepositoryConnection(RepositoryConnection):
    """Connessione HTTP con sessione requests dedicata."""

    def __init__(self, endpoint: str, timeout: Optional[float] = None):
        super().__init__()
        self.endpoint = endpoint
        self.timeout = timeout
        self._session = requests.Session()

    def evaluate(self, query: str, language: str = SPARQL) -> Iterator[BindingSet]:
        self._check_open(language)
        try:
            response = self._session.post(
                self.endpoint,
                data={"query": query},
                headers={"Accept": SPARQL_RESULTS_JSON},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise QueryError(f"Request to {self.endpoint} failed: {e}") from e

        if response.status_code == 400:
            raise MalformedQueryError(f"Repository rejected query: {response.text[:500]}")
        if not response.ok:
            raise QueryError(f"Repository returned HTTP {response.status_code}: {response.text[:500]}")

        try:
            payload = response.json()
        except ValueError as e:
            raise QueryError(f"Invalid SPARQL JSON from {self.endpoint}: {e}") from e

        rows = parse_sparql_json(payload)
        log.debug(f"Query executed: {query[:100]}... -> {len(rows)} rows")
        return iter(rows)

    def _release(self) -> None:
        self._session.close()


class SparqlHttpRepository:
    """
    Repository remoto SPARQL.

    Attributes:
        server: URL base del server
        repository_id: ID del repository
        timeout: Timeout delle query (None = nessuno)
    """

    def __init__(self, server: str, repository_id: str, timeout: Optional[float] = None):
        if not server:
            raise ValueError("server is required")
        if not repository_id:
            raise ValueError("repository_id is required")
        self.server = server.rstrip("/")
        self.repository_id = repository_id
        self.timeout = timeout

    @property
    def endpoint(self) -> str:
        return f"{self.server}/repositories/{self.repository_id}"

    def ping(self, timeout: float = 5) -> None:
        """
        Verifica che l'endpoint risponda.

        Raises:
            RepositoryUnavailableError: Se il server non e' raggiungibile
        """
        try:
            response = requests.get(
                self.endpoint,
                params={"query": "ASK {}"},
                headers={"Accept": SPARQL_RESULTS_JSON},
                timeout=timeout,
            )
        except requests.RequestException as e:
            raise RepositoryUnavailableError(f"{self.endpoint} not reachable: {e}") from e
        if not response.ok:
            raise RepositoryUnavailableError(f"{self.endpoint} answered HTTP {response.status_code}")

    def connection(self) -> HttpRepositoryConnection:
        return HttpRepositoryConnection(self.endpoint, timeout=self.timeout)

    def shutdown(self) -> None:
        pass

    def __repr__(self) -> str:
        return f"<SparqlHttpRepository({self.endpoint})>"
