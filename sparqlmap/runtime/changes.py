"""
Change nodes: one atomic mutation intent each.

Every node renders to a SPARQL update fragment. The journal joins the
fragments of all queued nodes, in order, into one update request.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

from rdflib.term import Node

from sparqlmap.synthesis.parameterized import ParameterizedSparql

_ADD = "INSERT DATA { ?s ?p ?o }"
_REMOVE = "DELETE DATA { ?s ?p ?o }"
# Pattern-matched delete: a non-matching prior state is a no-op
_CHANGE = "DELETE { ?s ?p ?o } WHERE { ?s ?p ?o } ;\nINSERT DATA { ?s ?p ?n }"
_DELETE = "DELETE WHERE { ?a ?b ?c } ;\nDELETE WHERE { ?d ?e ?a }"
# Incoming edges are repointed before the old node's own triples are dropped
_REDIRECT = "DELETE { ?s ?p ?old } INSERT { ?s ?p ?new } WHERE { ?s ?p ?old } ;\nDELETE WHERE { ?old ?b ?c }"


class ChangeKind(str, Enum):
    """Kind of mutation recorded in the journal."""

    PROPERTY_ADD = "property_add"
    PROPERTY_REMOVE = "property_remove"
    PROPERTY_CHANGE = "property_change"
    CREATE_ENTITY = "create_entity"
    DELETE_ENTITY = "delete_entity"
    REDIRECT_DELETE = "redirect_delete"


class ChangeNode(ABC):
    """A queued mutation that can render itself as a SPARQL update."""

    kind: ChangeKind

    @property
    @abstractmethod
    def subject(self) -> str:
        """IRI of the entity the change belongs to."""

    @abstractmethod
    def as_update(self) -> str:
        """Render this change as SPARQL update text."""


@dataclass(frozen=True)
class PropertyAdd(ChangeNode):
    uri: str
    predicate: str
    value: Node
    kind: ChangeKind = ChangeKind.PROPERTY_ADD

    @property
    def subject(self) -> str:
        return self.uri

    def as_update(self) -> str:
        template = ParameterizedSparql(_ADD)
        template.set_iri("s", self.uri).set_iri("p", self.predicate).set_param("o", self.value)
        return template.render()


@dataclass(frozen=True)
class PropertyRemove(ChangeNode):
    uri: str
    predicate: str
    value: Node
    kind: ChangeKind = ChangeKind.PROPERTY_REMOVE

    @property
    def subject(self) -> str:
        return self.uri

    def as_update(self) -> str:
        template = ParameterizedSparql(_REMOVE)
        template.set_iri("s", self.uri).set_iri("p", self.predicate).set_param("o", self.value)
        return template.render()


@dataclass(frozen=True)
class PropertyChange(ChangeNode):
    uri: str
    predicate: str
    old_value: Node
    new_value: Node
    kind: ChangeKind = ChangeKind.PROPERTY_CHANGE

    @property
    def subject(self) -> str:
        return self.uri

    def as_update(self) -> str:
        template = ParameterizedSparql(_CHANGE)
        template.set_iri("s", self.uri).set_iri("p", self.predicate)
        template.set_param("o", self.old_value).set_param("n", self.new_value)
        return template.render()


@dataclass(frozen=True)
class CreateEntity(ChangeNode):
    """A precomputed, already bound creation update."""

    uri: str
    update: str
    kind: ChangeKind = ChangeKind.CREATE_ENTITY

    @property
    def subject(self) -> str:
        return self.uri

    def as_update(self) -> str:
        return self.update


@dataclass(frozen=True)
class DeleteEntity(ChangeNode):
    uri: str
    kind: ChangeKind = ChangeKind.DELETE_ENTITY

    @property
    def subject(self) -> str:
        return self.uri

    def as_update(self) -> str:
        return ParameterizedSparql(_DELETE).set_iri("a", self.uri).render()


@dataclass(frozen=True)
class RedirectDelete(ChangeNode):
    old_uri: str
    new_uri: str
    kind: ChangeKind = ChangeKind.REDIRECT_DELETE

    @property
    def subject(self) -> str:
        return self.old_uri

    def as_update(self) -> str:
        return ParameterizedSparql(_REDIRECT).set_iri("old", self.old_uri).set_iri("new", self.new_uri).render()

