"""
Abstract graph store interface.

The runtime only needs two RPCs from a store:

- execute_update(update): apply a SPARQL update request atomically
- execute_query(query): run a SELECT and return ordered solution rows

Backends:
- MemoryGraphStore (in-process rdflib graph)
- SparqlEndpointStore (remote SPARQL 1.1 protocol endpoint over httpx)
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from rdflib.query import Result
from rdflib.term import Node

if TYPE_CHECKING:
    from sparqlmap.config.settings import StoreConfig

LOG = logging.getLogger("storage.graph_store")

SolutionRow = dict[str, Node | None]


def result_rows(result: Result) -> list[SolutionRow]:
    """Convert an rdflib SELECT result to rows keyed by variable name (None = unbound)."""
    names = [str(v) for v in (result.vars or [])]
    rows: list[SolutionRow] = []
    for row in result:
        rows.append({name: row[i] for i, name in enumerate(names)})
    return rows


class GraphStore(ABC):
    """Abstract interface for a SPARQL-capable triple store."""

    @abstractmethod
    def execute_update(self, update: str) -> None:
        """
        Apply a SPARQL update request.

        Raises:
            StoreError: The request failed; nothing was applied locally.
        """

    @abstractmethod
    def execute_query(self, query: str) -> list[SolutionRow]:
        """
        Run a SELECT query.

        Returns:
            Solution rows in result order, variable name -> term (None if unbound)

        Raises:
            StoreError: The query failed.
        """

    def close(self) -> None:
        """Release store resources."""

    def __enter__(self) -> "GraphStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def build_graph_store(config: "StoreConfig") -> GraphStore:
    """
    Factory: create a GraphStore of the configured backend.

    Raises:
        ValueError: Unknown backend or missing endpoint URL
    """
    if config.backend == "memory":
        from sparqlmap.storage.memory_store import MemoryGraphStore

        return MemoryGraphStore()

    elif config.backend == "endpoint":
        from sparqlmap.storage.endpoint_store import SparqlEndpointStore

        if not config.query_url:
            raise ValueError("SPARQLMAP_QUERY_URL is required for the endpoint backend")
        return SparqlEndpointStore(
            config.query_url,
            update_url=config.update_url or None,
            timeout=config.timeout,
        )

    else:
        raise ValueError(f"Unknown graph store backend: {config.backend!r}. Supported: 'memory', 'endpoint'")
