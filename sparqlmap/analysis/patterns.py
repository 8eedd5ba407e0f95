"""
Graph pattern AST and SPARQL lowering.

The analyzer does not walk rdflib's algebra directly. Query text is parsed
with rdflib and then lowered into a small tagged-variant tree:

    BasicPattern     -- a block of triple patterns
    Group            -- a conjunction of child patterns
    OptionalPattern  -- an OPTIONAL block
    UnionPattern     -- alternatives (never analyzable)
    UnsupportedElement -- anything else we refuse to reason about

Filters and BIND are transparent: they neither bind nor unbind a variable
through a predicate, so they contribute nothing to cardinality. Filters
containing EXISTS / NOT EXISTS are negation and are lowered as unsupported.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from rdflib import Variable
from rdflib.plugins.sparql import prepareQuery
from rdflib.plugins.sparql.parserutils import CompValue
from rdflib.term import Node

from sparqlmap.errors import QueryParseError, UnsupportedPatternError

LOG = logging.getLogger("analysis.patterns")

_PROLOGUE_RE = re.compile(
    r"^(?P<prologue>\s*(?:(?:PREFIX\s+[\w.\-]*:\s*<[^>]*>|BASE\s*<[^>]*>)\s*)*)(?P<body>.*)$",
    re.IGNORECASE | re.DOTALL,
)

# Solution modifiers that wrap the projected pattern without changing it
_MODIFIERS = {"Project", "Distinct", "Reduced", "Slice", "OrderBy"}

_NEGATION_BUILTINS = {"Builtin_EXISTS", "Builtin_NOTEXISTS"}


class PatternKind(str, Enum):
    """Tag of a pattern tree node."""

    BASIC = "basic"
    GROUP = "group"
    OPTIONAL = "optional"
    UNION = "union"
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True)
class TriplePattern:
    """A single (subject, predicate, object) pattern of rdflib terms."""

    subject: Node
    predicate: Node
    object: Node

    def __str__(self) -> str:
        return " ".join(t.n3() for t in (self.subject, self.predicate, self.object))


@dataclass(frozen=True)
class BasicPattern:
    triples: tuple[TriplePattern, ...] = ()
    kind: PatternKind = field(default=PatternKind.BASIC, init=False)


@dataclass(frozen=True)
class Group:
    children: tuple["Pattern", ...] = ()
    kind: PatternKind = field(default=PatternKind.GROUP, init=False)


@dataclass(frozen=True)
class OptionalPattern:
    child: "Pattern"
    kind: PatternKind = field(default=PatternKind.OPTIONAL, init=False)


@dataclass(frozen=True)
class UnionPattern:
    branches: tuple["Pattern", ...] = ()
    kind: PatternKind = field(default=PatternKind.UNION, init=False)


@dataclass(frozen=True)
class UnsupportedElement:
    """A construct the analyzer refuses to reason about (MINUS, GRAPH, ...)."""

    element: str
    kind: PatternKind = field(default=PatternKind.UNSUPPORTED, init=False)


Pattern = Union[BasicPattern, Group, OptionalPattern, UnionPattern, UnsupportedElement]


@dataclass(frozen=True)
class ParsedQuery:
    """
    A parsed SELECT query.

    Keeps the original text split into its prologue (PREFIX / BASE
    declarations) and body so that callers can wrap the query when loading
    a filtered selection or a single entity.
    """

    text: str
    prologue: str
    body: str
    projected: tuple[str, ...]
    pattern: Pattern

    def variables(self) -> set[str]:
        """All variable names mentioned in the pattern tree."""
        names: set[str] = set()
        for triple in iter_triples(self.pattern):
            for term in (triple.subject, triple.predicate, triple.object):
                if isinstance(term, Variable):
                    names.add(str(term))
        return names


def iter_triples(pattern: Pattern) -> Iterator[TriplePattern]:
    """Yield every triple pattern in the tree, depth first."""
    if isinstance(pattern, BasicPattern):
        yield from pattern.triples
    elif isinstance(pattern, Group):
        for child in pattern.children:
            yield from iter_triples(child)
    elif isinstance(pattern, OptionalPattern):
        yield from iter_triples(pattern.child)
    elif isinstance(pattern, UnionPattern):
        for branch in pattern.branches:
            yield from iter_triples(branch)


def _contains_negation(value: object) -> bool:
    """Check whether a filter expression contains EXISTS / NOT EXISTS."""
    if isinstance(value, CompValue):
        if value.name in _NEGATION_BUILTINS:
            return True
        return any(_contains_negation(v) for v in value.values())
    if isinstance(value, (list, tuple)):
        return any(_contains_negation(v) for v in value)
    return False


def _lower(node: CompValue) -> Pattern:
    """Lower one rdflib algebra node into the pattern AST."""
    name = node.name

    if name == "BGP":
        return BasicPattern(tuple(TriplePattern(s, p, o) for s, p, o in node["triples"]))

    if name == "Join":
        return Group((_lower(node["p1"]), _lower(node["p2"])))

    if name == "LeftJoin":
        # A filter attached to the OPTIONAL only restricts it further
        if "expr" in node and _contains_negation(node["expr"]):
            return UnsupportedElement("FILTER EXISTS")
        return Group((_lower(node["p1"]), OptionalPattern(_lower(node["p2"]))))

    if name == "Filter":
        if _contains_negation(node["expr"]):
            return UnsupportedElement("FILTER EXISTS")
        return _lower(node["p"])

    if name == "Extend":
        return _lower(node["p"])

    if name == "Union":
        return UnionPattern((_lower(node["p1"]), _lower(node["p2"])))

    if name == "ToMultiSet":
        inner = node["p"]
        if isinstance(inner, CompValue) and inner.name == "values":
            return BasicPattern()
        return UnsupportedElement("SubSelect")

    if name in _MODIFIERS:
        return _lower(node["p"])

    return UnsupportedElement(name)


def lower_algebra(algebra: CompValue) -> Pattern:
    """Lower the pattern of a translated rdflib SELECT query."""
    return _lower(algebra["p"])


def parse_select(text: str, namespaces: dict[str, str] | None = None) -> ParsedQuery:
    """
    Parse a SPARQL SELECT query into a ParsedQuery.

    Args:
        text: SPARQL query text
        namespaces: Extra prefix declarations (prefix -> namespace IRI)

    Raises:
        QueryParseError: The text is not valid SPARQL
        UnsupportedPatternError: The query is not a SELECT query
    """
    namespaces = dict(namespaces or {})
    try:
        query = prepareQuery(text, initNs=namespaces)
    except Exception as exc:
        raise QueryParseError(f"Cannot parse query: {exc}") from exc

    algebra = query.algebra
    if algebra.name != "SelectQuery":
        raise UnsupportedPatternError(f"Only SELECT queries can be mapped, got {algebra.name}")

    match = _PROLOGUE_RE.match(text)
    prologue = match.group("prologue") if match else ""
    body = match.group("body") if match else text
    declared = "".join(f"PREFIX {prefix}: <{iri}>\n" for prefix, iri in namespaces.items())

    projected = tuple(str(v) for v in algebra["PV"])
    pattern = lower_algebra(algebra)
    LOG.debug("Parsed SELECT projecting %s", ", ".join(projected))

    return ParsedQuery(
        text=text,
        prologue=declared + prologue.strip() + ("\n" if prologue.strip() else ""),
        body=body.strip(),
        projected=projected,
        pattern=pattern,
    )
