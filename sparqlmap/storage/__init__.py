"""
Graph store backends.

Submodules:
    - graph_store: GraphStore ABC and build_graph_store factory
    - memory_store: in-process rdflib store
    - endpoint_store: SPARQL 1.1 protocol client (httpx)
"""

from .graph_store import GraphStore, SolutionRow, build_graph_store
from .memory_store import MemoryGraphStore
from .endpoint_store import SparqlEndpointStore

__all__ = ["GraphStore", "MemoryGraphStore", "SolutionRow", "SparqlEndpointStore", "build_graph_store"]
