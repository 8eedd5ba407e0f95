"""Tests for storage.memory_store and the build_graph_store factory."""

import pytest
from rdflib import Literal, URIRef

from sparqlmap.config import StoreConfig
from sparqlmap.errors import StoreError
from sparqlmap.storage import MemoryGraphStore, SparqlEndpointStore, build_graph_store

EX = "http://example.org/"


@pytest.fixture
def store():
    s = MemoryGraphStore()
    s.load(f"<{EX}a> <{EX}name> \"Alice\" .\n<{EX}b> <{EX}name> \"Bob\" .\n", format="nt")
    yield s
    s.close()


class TestMemoryGraphStore:
    def test_query_rows(self, store):
        rows = store.execute_query(
            f"SELECT ?s ?n ?missing WHERE {{ ?s <{EX}name> ?n OPTIONAL {{ ?s <{EX}age> ?missing }} }} ORDER BY ?n"
        )
        assert rows == [
            {"s": URIRef(EX + "a"), "n": Literal("Alice"), "missing": None},
            {"s": URIRef(EX + "b"), "n": Literal("Bob"), "missing": None},
        ]

    def test_update(self, store):
        store.execute_update(f"INSERT DATA {{ <{EX}c> <{EX}name> \"Carol\" }}")
        assert len(store) == 3
        assert store.update_count == 1

    def test_failed_update_is_atomic(self, store):
        update = f'INSERT DATA {{ <{EX}c> <{EX}name> "Carol" }} ;\nINSERT DATA {{ <{EX}d> <{EX}name> "Dan" '
        with pytest.raises(StoreError):
            store.execute_update(update)
        assert len(store) == 2
        assert store.update_count == 0

    def test_query_error(self, store):
        with pytest.raises(StoreError):
            store.execute_query("SELECT WHERE {")

    def test_non_select_rejected(self, store):
        with pytest.raises(StoreError):
            store.execute_query(f"ASK {{ ?s <{EX}name> ?n }}")

    def test_triples(self, store):
        assert len(list(store.triples((URIRef(EX + "a"), None, None)))) == 1


class TestBuildGraphStore:
    def test_memory(self):
        assert isinstance(build_graph_store(StoreConfig(backend="memory")), MemoryGraphStore)

    def test_endpoint(self):
        store = build_graph_store(
            StoreConfig(backend="endpoint", query_url="http://localhost:3030/ds/query", timeout=5.0)
        )
        assert isinstance(store, SparqlEndpointStore)
        assert store.update_url == "http://localhost:3030/ds/query"
        store.close()

    def test_endpoint_requires_url(self):
        with pytest.raises(ValueError):
            build_graph_store(StoreConfig(backend="endpoint"))

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Unknown graph store backend"):
            build_graph_store(StoreConfig(backend="oxigraph"))


class TestLoad:
    def test_load_turtle(self):
        s = MemoryGraphStore()
        s.load(f"@prefix ex: <{EX}> .\nex:a ex:name \"Alice\" ; ex:age 30 .")
        assert len(s) == 2
        assert (URIRef(EX + "a"), URIRef(EX + "age"), Literal(30)) in s.graph
