"""
In-process graph store backed by an rdflib Graph.

Used for tests and for applications that keep their data in memory. Update
requests are applied to a copy of the graph that replaces the live graph
only if every operation in the request succeeded, so a failing request
leaves the store unchanged like a remote store would.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

from rdflib import Graph
from rdflib.term import Node

from sparqlmap.errors import StoreError
from sparqlmap.storage.graph_store import GraphStore, SolutionRow, result_rows

LOG = logging.getLogger("storage.memory_store")


class MemoryGraphStore(GraphStore):
    """rdflib-backed in-memory store."""

    def __init__(self, graph: Graph | None = None) -> None:
        self._graph = graph if graph is not None else Graph()
        self.update_count = 0

    @property
    def graph(self) -> Graph:
        return self._graph

    def load(self, data: str, format: str = "turtle") -> None:
        """Parse serialized RDF into the store."""
        self._graph.parse(data=data, format=format)

    def triples(self, pattern: tuple[Node | None, Node | None, Node | None] = (None, None, None)) -> Iterator:
        return self._graph.triples(pattern)

    def execute_update(self, update: str) -> None:
        working = Graph()
        for prefix, namespace in self._graph.namespaces():
            working.bind(prefix, namespace, override=True)
        working += self._graph
        try:
            working.update(update)
        except Exception as exc:
            raise StoreError(f"Update failed: {exc}") from exc
        self._graph = working
        self.update_count += 1
        LOG.debug("Applied update #%d (%d triples)", self.update_count, len(self._graph))

    def execute_query(self, query: str) -> list[SolutionRow]:
        try:
            result = self._graph.query(query)
        except Exception as exc:
            raise StoreError(f"Query failed: {exc}") from exc
        if result.type != "SELECT":
            raise StoreError(f"Expected a SELECT query, got {result.type}")
        return result_rows(result)

    def __len__(self) -> int:
        return len(self._graph)
