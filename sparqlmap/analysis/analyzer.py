"""
Graph pattern analyzer.

Given a SELECT query and the anchor variable that stands for an entity's
identity, derive for every other projected variable:

- functional: single-valued, unless only reachable through a one-to-many relation
- nullable: bound only inside OPTIONAL blocks
- isObjectReference: value is an entity IRI rather than a literal
- predicate: the relation linking the anchor directly to the variable

The walk is a plain recursion over the pattern AST that keeps a stack of
OPTIONAL context ids, mirroring the way ScopeTracker keeps scope names while
extracting call graphs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import networkx as nx
from rdflib import URIRef, Variable

from sparqlmap.analysis.patterns import (
    BasicPattern,
    Group,
    OptionalPattern,
    ParsedQuery,
    Pattern,
    UnionPattern,
    UnsupportedElement,
)
from sparqlmap.errors import (
    AmbiguousOptionalBindingError,
    UnknownAnchorError,
    UnresolvedTypeError,
    UnsupportedPatternError,
)

LOG = logging.getLogger("analysis.analyzer")

# Datatype tags used when no hint says otherwise
GENERIC_ENTITY = "Entity"
ANY_LITERAL = "Literal"


@dataclass(frozen=True)
class PredicateHints:
    """
    Schema knowledge the query alone cannot provide.

    one_to_many: predicates whose subject may have many objects
    entity_ranges: predicate IRI -> entity type tag for entity-valued ranges
    literal_ranges: predicate IRI -> datatype IRI for literal-valued ranges
    """

    one_to_many: frozenset[str] = frozenset()
    entity_ranges: dict[str, str] = field(default_factory=dict)
    literal_ranges: dict[str, str] = field(default_factory=dict)

    def is_one_to_many(self, predicate: str) -> bool:
        return predicate in self.one_to_many

    def has_entity_range(self, predicate: str) -> bool:
        return predicate in self.entity_ranges


@dataclass(frozen=True)
class VariableProperties:
    """Derived type information for one query variable."""

    functional: bool
    nullable: bool
    datatype: str
    is_object_reference: bool = False
    predicate: str | None = None

    def to_dict(self) -> dict:
        return {
            "functional": self.functional,
            "nullable": self.nullable,
            "datatype": self.datatype,
            "is_object_reference": self.is_object_reference,
            "predicate": self.predicate,
        }


@dataclass(frozen=True)
class VarDependency:
    """A predicate linking two query variables."""

    subject: str
    predicate: str
    object: str
    is_optional: bool

    def __str__(self) -> str:
        marker = " (optional)" if self.is_optional else ""
        return f"?{self.subject} <{self.predicate}> ?{self.object}{marker}"


@dataclass
class AnalysisResult:
    """Output of a query analysis."""

    anchor: str
    variables: dict[str, VariableProperties]
    dependencies: set[VarDependency]
    ambiguous: frozenset[str] = frozenset()

    def require_unambiguous(self) -> None:
        """Raise if any variable was flagged as ambiguously bound."""
        if self.ambiguous:
            raise AmbiguousOptionalBindingError(self.ambiguous)

    def dependency_graph(self) -> nx.MultiDiGraph:
        """Dependencies as a networkx multigraph keyed by predicate."""
        return _dependency_graph(self.dependencies)


def _dependency_graph(dependencies: set[VarDependency]) -> nx.MultiDiGraph:
    graph = nx.MultiDiGraph()
    for dep in dependencies:
        graph.add_edge(dep.subject, dep.object, key=dep.predicate, optional=dep.is_optional)
    return graph


class PatternWalker:
    """
    Collects domain, range, dependency and optional-context facts.

    Only variables in ``tracked`` are recorded as domain/range members;
    dependencies are recorded between any two variables so that paths
    through unprojected variables are still visible.
    """

    def __init__(self, tracked: set[str]) -> None:
        self.tracked = tracked
        self.in_ranges_of: dict[str, set[str]] = {}
        self.in_domains_of: dict[str, set[str]] = {}
        self.dependencies: set[VarDependency] = set()
        self.optional_contexts: dict[str, set[tuple[int, ...]]] = {}
        self._optional_counter = 0
        self._optional_stack: list[int] = []

    def walk(self, pattern: Pattern) -> None:
        if isinstance(pattern, BasicPattern):
            for triple in pattern.triples:
                self._visit_triple(triple.subject, triple.predicate, triple.object)
        elif isinstance(pattern, Group):
            for child in pattern.children:
                self.walk(child)
        elif isinstance(pattern, OptionalPattern):
            self._optional_counter += 1
            self._optional_stack.append(self._optional_counter)
            try:
                self.walk(pattern.child)
            finally:
                self._optional_stack.pop()
        elif isinstance(pattern, UnionPattern):
            raise UnsupportedPatternError("UNION blocks have no single provable cardinality")
        elif isinstance(pattern, UnsupportedElement):
            raise UnsupportedPatternError(f"Unsupported query construct: {pattern.element}")
        else:
            raise UnsupportedPatternError(f"Unknown pattern node: {pattern!r}")

    def _visit_triple(self, s, p, o) -> None:
        if isinstance(p, Variable):
            raise UnsupportedPatternError(f"Variable ?{p} occurs in predicate position in '{s.n3()} ?{p} {o.n3()}'")
        if not isinstance(p, URIRef):
            raise UnsupportedPatternError(f"Property paths are not supported: {p.n3()}")

        predicate = str(p)
        context = tuple(self._optional_stack)

        if isinstance(o, Variable) and str(o) in self.tracked:
            self.in_ranges_of.setdefault(str(o), set()).add(predicate)
            self.optional_contexts.setdefault(str(o), set()).add(context)

        if isinstance(s, Variable) and str(s) in self.tracked:
            self.in_domains_of.setdefault(str(s), set()).add(predicate)
            self.optional_contexts.setdefault(str(s), set()).add(context)

        if isinstance(s, Variable) and isinstance(o, Variable):
            self.dependencies.add(VarDependency(str(s), predicate, str(o), bool(self._optional_stack)))


def _is_prefix(a: tuple[int, ...], b: tuple[int, ...]) -> bool:
    return len(a) <= len(b) and b[: len(a)] == a


def _has_sibling_contexts(contexts: set[tuple[int, ...]]) -> bool:
    """True if two contexts are neither equal nor nested in each other."""
    ordered = sorted(contexts)
    for i, a in enumerate(ordered):
        for b in ordered[i + 1 :]:
            if not _is_prefix(a, b) and not _is_prefix(b, a):
                return True
    return False


class GraphPatternAnalyzer:
    """
    Derives property descriptors for the variables of a SELECT query.

    Usage:
        analyzer = GraphPatternAnalyzer(hints)
        result = analyzer.analyze(parse_select(text), "bike")
        result.variables["mfg"].functional
    """

    def __init__(self, hints: PredicateHints | None = None) -> None:
        self.hints = hints or PredicateHints()

    def analyze(self, query: ParsedQuery, anchor: str) -> AnalysisResult:
        """
        Analyze a parsed query around an anchor variable.

        Raises:
            UnknownAnchorError: anchor is not projected
            UnsupportedPatternError: variable predicate, UNION, MINUS, ...
            UnresolvedTypeError: a projected variable has no predicate
        """
        if anchor not in query.projected:
            raise UnknownAnchorError(f"Anchor ?{anchor} is not a projected variable of the query")

        targets = [v for v in query.projected if v != anchor]
        walker = PatternWalker(set(query.projected))
        walker.walk(query.pattern)

        functional_reach = self._functional_reach(anchor, walker.dependencies)
        direct = self._direct_predicates(anchor, walker.dependencies)

        variables: dict[str, VariableProperties] = {}
        ambiguous: set[str] = set()

        for var in targets:
            ranges = walker.in_ranges_of.get(var, set())
            domains = walker.in_domains_of.get(var, set())
            if not ranges and not domains:
                raise UnresolvedTypeError(f"Variable ?{var} is never bound through a concrete predicate")

            contexts = walker.optional_contexts.get(var, set())
            unconditional = () in contexts
            nullable = not unconditional
            if nullable and _has_sibling_contexts(contexts):
                ambiguous.add(var)

            predicate = self._owning_predicate(var, direct.get(var, set()))
            sole = next(iter(ranges)) if len(ranges) == 1 else None
            is_object_reference = bool(domains) or (sole is not None and self.hints.has_entity_range(sole))

            typing_predicate = predicate or sole
            if is_object_reference:
                datatype = self.hints.entity_ranges.get(typing_predicate or "", GENERIC_ENTITY)
            else:
                datatype = self.hints.literal_ranges.get(typing_predicate or "", ANY_LITERAL)

            reachable = var in functional_reach or not self._reachable(anchor, var, walker.dependencies)
            variables[var] = VariableProperties(
                functional=reachable,
                nullable=nullable,
                datatype=datatype,
                is_object_reference=is_object_reference,
                predicate=predicate,
            )
            LOG.debug("?%s -> %s", var, variables[var])

        if ambiguous:
            LOG.warning("Ambiguous OPTIONAL bindings for %s", ", ".join(sorted(ambiguous)))

        return AnalysisResult(
            anchor=anchor,
            variables=variables,
            dependencies=walker.dependencies,
            ambiguous=frozenset(ambiguous),
        )

    def _functional_reach(self, anchor: str, dependencies: set[VarDependency]) -> set[str]:
        """Variables reachable from the anchor without crossing a one-to-many edge."""
        graph = nx.DiGraph()
        graph.add_node(anchor)
        for dep in dependencies:
            if not self.hints.is_one_to_many(dep.predicate):
                graph.add_edge(dep.subject, dep.object)
            graph.add_edge(dep.object, dep.subject)
        return set(nx.descendants(graph, anchor))

    @staticmethod
    def _reachable(anchor: str, var: str, dependencies: set[VarDependency]) -> bool:
        graph = _dependency_graph(dependencies).to_undirected(as_view=True)
        return anchor in graph and var in graph and nx.has_path(graph, anchor, var)

    @staticmethod
    def _direct_predicates(anchor: str, dependencies: set[VarDependency]) -> dict[str, set[str]]:
        direct: dict[str, set[str]] = {}
        for dep in dependencies:
            if dep.subject == anchor and dep.object != anchor:
                direct.setdefault(dep.object, set()).add(dep.predicate)
        return direct

    @staticmethod
    def _owning_predicate(var: str, predicates: set[str]) -> str | None:
        if len(predicates) > 1:
            names = ", ".join(f"<{p}>" for p in sorted(predicates))
            raise UnsupportedPatternError(f"Variable ?{var} is linked to the anchor through several predicates: {names}")
        return next(iter(predicates), None)


def derive_types(
    query: ParsedQuery,
    anchor: str,
    hints: PredicateHints | None = None,
) -> AnalysisResult:
    """Convenience wrapper: analyze ``query`` around ``anchor``."""
    return GraphPatternAnalyzer(hints).analyze(query, anchor)
