"""Tests for runtime.changes — rendering of change nodes as SPARQL updates."""

import pytest
from rdflib import Literal, URIRef

from sparqlmap.runtime.changes import (
    ChangeKind,
    CreateEntity,
    DeleteEntity,
    PropertyAdd,
    PropertyChange,
    PropertyRemove,
    RedirectDelete,
)
from sparqlmap.storage import MemoryGraphStore

EX = "http://example.org/"
A, B, C = URIRef(EX + "a"), URIRef(EX + "b"), URIRef(EX + "c")
NAME, KNOWS = URIRef(EX + "name"), URIRef(EX + "knows")


@pytest.fixture
def store():
    s = MemoryGraphStore()
    s.graph.add((A, NAME, Literal("Alice")))
    s.graph.add((B, KNOWS, A))
    s.graph.add((A, KNOWS, C))
    return s


class TestRendering:
    def test_add(self):
        node = PropertyAdd(str(A), str(NAME), Literal("Al"))
        assert node.kind is ChangeKind.PROPERTY_ADD
        assert node.as_update() == f'INSERT DATA {{ <{A}> <{NAME}> "Al" }}'

    def test_remove(self):
        node = PropertyRemove(str(A), str(NAME), Literal("Alice"))
        assert node.as_update() == f'DELETE DATA {{ <{A}> <{NAME}> "Alice" }}'

    def test_subject(self):
        assert RedirectDelete(str(A), str(B)).subject == str(A)
        assert CreateEntity(str(C), "INSERT DATA { }").subject == str(C)

    def test_create_passes_update_through(self):
        assert CreateEntity(str(C), "INSERT DATA { }").as_update() == "INSERT DATA { }"

    def test_nodes_are_immutable(self):
        node = DeleteEntity(str(A))
        with pytest.raises(AttributeError):
            node.uri = str(B)


class TestApplied:
    def test_change_replaces_value(self, store):
        store.execute_update(PropertyChange(str(A), str(NAME), Literal("Alice"), Literal("Alicia")).as_update())
        assert list(store.graph.objects(A, NAME)) == [Literal("Alicia")]

    def test_change_with_stale_old_value_still_inserts(self, store):
        store.execute_update(PropertyChange(str(A), str(NAME), Literal("Bob"), Literal("Alicia")).as_update())
        assert set(store.graph.objects(A, NAME)) == {Literal("Alice"), Literal("Alicia")}

    def test_remove_twice_is_noop(self, store):
        update = PropertyRemove(str(A), str(NAME), Literal("Alice")).as_update()
        store.execute_update(update)
        store.execute_update(update)
        assert (A, NAME, None) not in store.graph

    def test_delete_removes_subject_and_object_triples(self, store):
        store.execute_update(DeleteEntity(str(A)).as_update())
        assert len(store) == 0

    def test_redirect_repoints_incoming_edges(self, store):
        store.execute_update(RedirectDelete(str(A), str(C)).as_update())
        assert (B, KNOWS, C) in store.graph
        assert (A, None, None) not in store.graph
        assert (None, None, A) not in store.graph
