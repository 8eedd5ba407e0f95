"""
Generic entities driven by a property descriptor table.

Instead of generating one class per query, every mapped query becomes an
EntityType: a descriptor table (name -> kind, multiplicity, predicate,
datatype) plus the synthesized update templates. SemanticEntity instances
expose descriptor-driven accessors:

    functional property:     get / set
    multi-valued property:   get / add / remove

Every mutator checks the deleted flag first, queues exactly one change node
in the session journal and marks the entity dirty.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from rdflib import Literal, URIRef
from rdflib.term import Node

from sparqlmap.analysis.analyzer import ANY_LITERAL, PredicateHints, VariableProperties, derive_types
from sparqlmap.analysis.patterns import ParsedQuery, parse_select
from sparqlmap.errors import (
    MissingValueError,
    MutationOnDeletedEntityError,
    ReadOnlyPropertyError,
    UnknownVariableError,
)
from sparqlmap.runtime.changes import (
    ChangeNode,
    CreateEntity,
    DeleteEntity,
    PropertyAdd,
    PropertyChange,
    PropertyRemove,
    RedirectDelete,
)
from sparqlmap.runtime.journal import UPDATE_SEPARATOR
from sparqlmap.runtime.violations import ConstraintViolation, ViolationKind
from sparqlmap.synthesis.parameterized import ParameterizedSparql, check_iri
from sparqlmap.synthesis.synthesizer import QuerySynthesizer

if TYPE_CHECKING:
    from sparqlmap.models import EntityConfig, PropertyConfig
    from sparqlmap.runtime.session import Session
    from sparqlmap.storage.graph_store import SolutionRow

LOG = logging.getLogger("runtime.entity")


class PropertyKind(str, Enum):
    OBJECT = "object"
    LITERAL = "literal"


class Multiplicity(str, Enum):
    ONE = "1"
    OPTIONAL = "?"
    MANY = "*"


@dataclass(frozen=True)
class PropertyDescriptor:
    """How one property of an entity type is stored and accessed."""

    name: str
    kind: PropertyKind
    multiplicity: Multiplicity
    predicate: str | None
    datatype: str

    @classmethod
    def from_variable(cls, name: str, props: VariableProperties) -> "PropertyDescriptor":
        if not props.functional:
            multiplicity = Multiplicity.MANY
        elif props.nullable:
            multiplicity = Multiplicity.OPTIONAL
        else:
            multiplicity = Multiplicity.ONE
        return cls(
            name=name,
            kind=PropertyKind.OBJECT if props.is_object_reference else PropertyKind.LITERAL,
            multiplicity=multiplicity,
            predicate=props.predicate,
            datatype=props.datatype,
        )

    @property
    def functional(self) -> bool:
        return self.multiplicity is not Multiplicity.MANY

    @property
    def nullable(self) -> bool:
        return self.multiplicity is Multiplicity.OPTIONAL

    @property
    def writable(self) -> bool:
        return self.predicate is not None

    def to_term(self, value: Any) -> Node:
        """Encode a Python value (or entity) as an RDF term for this property."""
        if self.kind is PropertyKind.OBJECT:
            if isinstance(value, SemanticEntity):
                return check_iri(value.uri)
            if isinstance(value, str):
                return check_iri(value)
            raise TypeError(f"Property '{self.name}' expects an entity or IRI, got {type(value).__name__}")
        if isinstance(value, Literal):
            return value
        if isinstance(value, (URIRef, SemanticEntity)):
            raise TypeError(f"Property '{self.name}' expects a literal value, got {type(value).__name__}")
        datatype = None if self.datatype == ANY_LITERAL else URIRef(self.datatype)
        return Literal(value, datatype=datatype)

    @staticmethod
    def from_term(term: Node) -> Any:
        """Decode a literal term to a Python value; IRIs are returned as URIRef."""
        if isinstance(term, Literal):
            return term.toPython()
        return term

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "kind": self.kind.value,
            "multiplicity": self.multiplicity.value,
            "predicate": self.predicate,
            "datatype": self.datatype,
        }


# Stored state of one property: a term (or None) for functional properties,
# a set of terms for multi-valued ones.
PropertyState = Node | None | set[Node]


def _copy_state(values: dict[str, PropertyState]) -> dict[str, PropertyState]:
    return {k: set(v) if isinstance(v, set) else v for k, v in values.items()}


class SemanticEntity:
    """An entity identified by an IRI whose properties follow its type's descriptor table."""

    def __init__(
        self,
        entity_type: "EntityType",
        uri: str,
        values: dict[str, PropertyState],
        session: "Session",
        is_new: bool = False,
    ) -> None:
        self._type = entity_type
        self.uri = uri
        self._values = values
        self._session = session
        self._is_new = is_new
        self.deleted = False
        self._committed = _copy_state(values)

    @property
    def entity_type(self) -> "EntityType":
        return self._type

    def __repr__(self) -> str:
        state = " deleted" if self.deleted else ""
        return f"<{self._type.name} {self.uri}{state}>"

    # ── Accessors ─────────────────────────────────────────────────────

    def get(self, name: str) -> Any:
        """
        Read a property.

        Functional properties return a single value (or None); multi-valued
        properties return a frozenset. Object references resolve to loaded
        entities when their datatype names a registered entity type.
        """
        desc = self._type.descriptor(name)
        state = self._values[name]
        if desc.functional:
            return None if state is None else self._decode(desc, state)
        return frozenset(self._decode(desc, term) for term in state)

    def get_ref(self, name: str) -> Any:
        """Read a property without resolving object references."""
        desc = self._type.descriptor(name)
        state = self._values[name]
        if desc.functional:
            return None if state is None else desc.from_term(state)
        return frozenset(desc.from_term(term) for term in state)

    def _decode(self, desc: PropertyDescriptor, term: Node) -> Any:
        if desc.kind is PropertyKind.OBJECT:
            resolved = self._session.resolve(desc.datatype, str(term))
            return resolved if resolved is not None else term
        return desc.from_term(term)

    @staticmethod
    def _term_for(desc: PropertyDescriptor, value: Any, existing: Iterable[Node]) -> Node:
        """
        Encode ``value`` against the stored terms of a property.

        A value equal to a stored literal maps back to that exact term, so
        ``3`` read from ``"3"^^xsd:int`` is not rewritten as ``xsd:integer``.
        Untyped properties otherwise keep the datatype of a stored literal of
        the same Python type.
        """
        if desc.kind is PropertyKind.LITERAL and not isinstance(value, Literal):
            existing = [t for t in existing if isinstance(t, Literal) and type(t.toPython()) is type(value)]
            for term in existing:
                if term.toPython() == value:
                    return term
            if desc.datatype == ANY_LITERAL:
                for term in existing:
                    if term.datatype is not None:
                        return Literal(value, datatype=term.datatype)
        return desc.to_term(value)

    def set(self, name: str, value: Any) -> None:
        """Assign a functional property. ``None`` unsets a nullable property."""
        desc = self._writable(name)
        if not desc.functional:
            raise TypeError(f"Property '{name}' is multi-valued; use add() / remove()")

        old = self._values[name]
        if value is None:
            if not desc.nullable:
                raise MissingValueError(f"Property '{name}' of <{self.uri}> cannot be unset")
            if old is None:
                return
            node: ChangeNode = PropertyRemove(self.uri, desc.predicate, old)
            new = None
        else:
            new = self._term_for(desc, value, () if old is None else (old,))
            if old is None:
                node = PropertyAdd(self.uri, desc.predicate, new)
            else:
                node = PropertyChange(self.uri, desc.predicate, old, new)

        self._values[name] = new
        self._session.record(self, node)

    def add(self, name: str, value: Any) -> None:
        """Add one element to a multi-valued property."""
        desc = self._writable(name)
        if desc.functional:
            raise TypeError(f"Property '{name}' is functional; use set()")
        term = self._term_for(desc, value, self._values[name])
        self._values[name].add(term)
        self._session.record(self, PropertyAdd(self.uri, desc.predicate, term))

    def remove(self, name: str, value: Any) -> None:
        """Remove one element from a multi-valued property."""
        desc = self._writable(name)
        if desc.functional:
            raise TypeError(f"Property '{name}' is functional; use set(name, None)")
        term = self._term_for(desc, value, self._values[name])
        self._values[name].discard(term)
        self._session.record(self, PropertyRemove(self.uri, desc.predicate, term))

    def delete(self) -> None:
        """Delete every triple mentioning this entity, as subject or object."""
        self._check_alive("delete")
        self.deleted = True
        self._session.record(self, DeleteEntity(self.uri))

    def redirect_to(self, replacement: "SemanticEntity | str") -> None:
        """
        Repoint all references to this entity at ``replacement``, then delete it.

        Outgoing triples are dropped, not copied; copy what should survive
        onto the replacement first.
        """
        self._check_alive("redirect")
        if isinstance(replacement, SemanticEntity):
            if replacement.deleted:
                raise MutationOnDeletedEntityError(f"Cannot redirect to deleted entity <{replacement.uri}>")
            target = replacement.uri
        else:
            target = str(check_iri(replacement))
        if target == self.uri:
            raise ValueError(f"Cannot redirect <{self.uri}> to itself")
        self.deleted = True
        self._session.record(self, RedirectDelete(self.uri, target))

    def _check_alive(self, action: str) -> None:
        if self.deleted:
            raise MutationOnDeletedEntityError(f"Trying to {action} deleted entity <{self.uri}>")

    def _writable(self, name: str) -> PropertyDescriptor:
        desc = self._type.descriptor(name)
        if self.deleted:
            raise MutationOnDeletedEntityError(f"Trying to set property '{name}' on deleted entity <{self.uri}>")
        if not desc.writable:
            raise ReadOnlyPropertyError(f"Property '{name}' is not linked to the anchor by a predicate")
        return desc

    # ── Session hooks ─────────────────────────────────────────────────

    @property
    def is_new(self) -> bool:
        return self._is_new

    def snapshot(self) -> dict[str, PropertyState]:
        return _copy_state(self._values)

    def mark_committed(self, state: dict[str, PropertyState] | None = None) -> None:
        """Record ``state`` (default: the current values) as what the store holds."""
        self._committed = _copy_state(self._values if state is None else state)
        self._is_new = False

    def revert(self) -> None:
        """Restore the last committed state; uncommitted creations become deleted."""
        self._values = _copy_state(self._committed)
        self.deleted = self._is_new

    def refresh(self, values: dict[str, PropertyState]) -> None:
        self._values = values
        self._committed = _copy_state(values)


class EntityType:
    """
    Factory and descriptor table for entities mapped from one anchored query.

    Usage:
        Bike = EntityType.from_query("Bike", query, anchor="bike", namespace=BK, hints=hints)
        session.register(Bike)
        bike = Bike.create(session, mfg=2007, fw=wheel)
        session.commit()
    """

    def __init__(
        self,
        name: str,
        query: ParsedQuery,
        anchor: str,
        namespace: str,
        descriptors: dict[str, PropertyDescriptor],
        synthesizer: QuerySynthesizer,
    ) -> None:
        self.name = name
        self.query = query
        self.anchor = anchor
        self.namespace = namespace
        self.descriptors = descriptors
        self.synthesizer = synthesizer

    @classmethod
    def from_query(
        cls,
        name: str,
        query: str | ParsedQuery,
        anchor: str | None = None,
        namespace: str = "",
        hints: PredicateHints | None = None,
        namespaces: dict[str, str] | None = None,
        overrides: dict[str, "PropertyConfig"] | None = None,
    ) -> "EntityType":
        """
        Analyze ``query`` and build the entity type.

        The anchor defaults to the first projected variable. ``overrides``
        replace the derived datatype and/or multiplicity of single variables.

        Raises:
            AnalysisError: any analysis failure (see sparqlmap.errors)
        """
        parsed = query if isinstance(query, ParsedQuery) else parse_select(query, namespaces)
        anchor = anchor or parsed.projected[0]
        result = derive_types(parsed, anchor, hints)
        result.require_unambiguous()

        variables = dict(result.variables)
        for var, override in (overrides or {}).items():
            if var not in variables:
                raise UnknownVariableError(f"Override for unknown variable ?{var}")
            variables[var] = _apply_override(variables[var], override)

        descriptors = {v: PropertyDescriptor.from_variable(v, props) for v, props in variables.items()}
        synthesizer = QuerySynthesizer(parsed, anchor, variables, result.ambiguous)
        LOG.info("Mapped %s with %d properties anchored on ?%s", name, len(descriptors), anchor)
        return cls(name, parsed, anchor, namespace, descriptors, synthesizer)

    @classmethod
    def from_config(cls, config: "EntityConfig") -> "EntityType":
        return cls.from_query(
            config.name,
            config.query,
            anchor=config.anchor,
            namespace=config.namespace,
            hints=config.hints.to_predicate_hints(),
            namespaces=config.prefixes,
            overrides=config.properties,
        )

    def descriptor(self, name: str) -> PropertyDescriptor:
        try:
            return self.descriptors[name]
        except KeyError:
            raise UnknownVariableError(f"{self.name} has no property '{name}'") from None

    # ── Factory operations ────────────────────────────────────────────

    def create(self, session: "Session", **values: Any) -> SemanticEntity:
        """
        Create a new entity with a fresh IRI and queue its creation.

        Mandatory properties must be supplied; nullable ones may be omitted
        or None; multi-valued ones take an iterable.

        Raises:
            UnknownVariableError: a keyword names no property
            ReadOnlyPropertyError: a keyword names a property without a direct predicate
            MissingValueError: a mandatory property is missing
        """
        for name in values:
            if not self.descriptor(name).writable:
                raise ReadOnlyPropertyError(f"Property '{name}' cannot be initialized")

        uri = self.namespace + self.anchor + session.fresh_suffix_for(self.anchor)
        state: dict[str, PropertyState] = {
            name: (None if desc.functional else set()) for name, desc in self.descriptors.items()
        }

        template = self.synthesizer.creation_template()
        template.set_iri(self.anchor, uri)
        for name in self.synthesizer.mandatory_variables():
            if values.get(name) is None:
                raise MissingValueError(f"{self.name}.create() requires '{name}'")
            term = self.descriptors[name].to_term(values[name])
            template.set_param(name, term)
            state[name] = term
        parts = [template.render()]

        for name, desc in self.descriptors.items():
            if not desc.writable or desc.multiplicity is Multiplicity.ONE:
                continue
            if desc.nullable:
                supplied: Iterable[Any] = () if values.get(name) is None else (values[name],)
            else:
                supplied = values.get(name) or ()
                if isinstance(supplied, (str, SemanticEntity)):
                    raise TypeError(f"Property '{name}' is multi-valued; pass an iterable of values")
            for value in supplied:
                term = desc.to_term(value)
                parts.append(self._initializer(name, uri, term).render())
                if desc.functional:
                    state[name] = term
                else:
                    state[name].add(term)

        entity = SemanticEntity(self, uri, state, session, is_new=True)
        session.cache_entity(entity)
        session.record(entity, CreateEntity(uri, UPDATE_SEPARATOR.join(parts)))
        return entity

    def _initializer(self, name: str, uri: str, term: Node) -> ParameterizedSparql:
        template = self.synthesizer.initializer_template(name)
        template.set_iri(self.anchor, uri)
        template.set_param(name, term)
        return template

    def load_all(self, session: "Session") -> list[SemanticEntity]:
        """Load every entity the query matches."""
        return self._load(session, self.query.prologue + self.query.body)

    def load_selected(self, session: "Session", filter_expr: str) -> list[SemanticEntity]:
        """
        Load the entities whose solutions satisfy a SPARQL filter expression,
        e.g. ``!bound(?bw)``. The expression is trusted query text.
        """
        text = f"{self.query.prologue}SELECT * WHERE {{ {{ {self.query.body} }} FILTER ({filter_expr}) }}"
        return self._load(session, text)

    def load_from_uri(self, session: "Session", uri: str) -> SemanticEntity | None:
        """Load one entity by IRI; cached entities are returned without a query."""
        cached = session.cached(self, uri)
        if cached is not None:
            return cached
        anchor_values = f"VALUES ?{self.anchor} {{ {check_iri(uri).n3()} }}"
        text = f"{self.query.prologue}SELECT * WHERE {{ {anchor_values} {{ {self.query.body} }} }}"
        loaded = self._load(session, text)
        return loaded[0] if loaded else None

    def _load(self, session: "Session", text: str) -> list[SemanticEntity]:
        rows = session.store.execute_query(text)
        grouped: dict[str, list["SolutionRow"]] = {}
        for row in rows:
            anchor = row.get(self.anchor)
            if not isinstance(anchor, URIRef):
                LOG.warning("Skipping solution with non-IRI anchor %r", anchor)
                continue
            grouped.setdefault(str(anchor), []).append(row)

        LOG.debug("%s: %d solution(s) for %d entities", self.name, len(rows), len(grouped))
        return [self._instantiate(session, uri, lines) for uri, lines in grouped.items()]

    def _instantiate(self, session: "Session", uri: str, lines: list["SolutionRow"]) -> SemanticEntity:
        state: dict[str, PropertyState] = {}
        for name, desc in self.descriptors.items():
            seen: list[Node] = []
            for line in lines:
                term = line.get(name)
                if term is not None and term not in seen:
                    seen.append(term)

            if not desc.functional:
                state[name] = set(seen)
                continue

            # all rows must agree on a functional property; keep the first
            if len(seen) > 1:
                session.violation(
                    ConstraintViolation(
                        ViolationKind.MULTIPLE_VALUES,
                        uri,
                        name,
                        f"{len(seen)} distinct values for functional property",
                    )
                )
            elif not seen and not desc.nullable:
                session.violation(
                    ConstraintViolation(ViolationKind.MISSING_VALUE, uri, name, "mandatory property is unbound")
                )
            state[name] = seen[0] if seen else None

        cached = session.cached(self, uri)
        if cached is not None:
            if not session.is_dirty(cached):
                cached.refresh(state)
            return cached

        entity = SemanticEntity(self, uri, state, session)
        session.cache_entity(entity)
        return entity


def _apply_override(props: VariableProperties, override: "PropertyConfig") -> VariableProperties:
    changes: dict[str, Any] = {}
    if override.datatype:
        changes["datatype"] = override.datatype
    if override.multiplicity == "1":
        changes.update(functional=True, nullable=False)
    elif override.multiplicity == "?":
        changes.update(functional=True, nullable=True)
    elif override.multiplicity == "*":
        changes.update(functional=False, nullable=False)
    return dataclasses.replace(props, **changes)
