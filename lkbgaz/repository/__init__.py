"""
LKB Repository Clients
======================

Client per repository RDF interrogabili in SPARQL.

Componenti:
- LocalRepository: repository privato in memoria (rdflib) da config.ttl
- SparqlHttpRepository: repository remoto via SPARQL Protocol (requests)

Esempio:
    from lkbgaz.repository import LocalRepository

    with LocalRepository("dict/config.ttl").connection() as conn:
        for row in conn.evaluate(query):
            print(row)
"""

from lkbgaz.repository.base import SPARQL, BindingSet, RepositoryConnection
from lkbgaz.repository.http import HttpRepositoryConnection, SparqlHttpRepository
from lkbgaz.repository.local import LocalRepository, LocalRepositoryConnection

__all__ = [
    "SPARQL",
    "BindingSet",
    "RepositoryConnection",
    "LocalRepository",
    "LocalRepositoryConnection",
    "SparqlHttpRepository",
    "HttpRepositoryConnection",
]
