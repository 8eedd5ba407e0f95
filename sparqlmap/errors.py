"""
Exception hierarchy for sparqlmap.

Analysis errors are raised while a query is being turned into a property
descriptor table; they abort setup before anything is generated or executed.
Runtime errors are raised while entities are mutated or committed.
"""

from __future__ import annotations


class SparqlMapError(Exception):
    """Base exception for all sparqlmap errors."""

    pass


# ── Analysis / setup ──────────────────────────────────────────────────


class AnalysisError(SparqlMapError):
    """Base exception for query analysis failures."""

    pass


class QueryParseError(AnalysisError):
    """The query text is not valid SPARQL."""

    pass


class UnsupportedPatternError(AnalysisError):
    """The query uses a construct whose cardinality cannot be derived."""

    pass


class UnknownAnchorError(AnalysisError):
    """The anchor variable is not among the query's projected variables."""

    pass


class UnresolvedTypeError(AnalysisError):
    """A projected variable is never bound through a concrete predicate."""

    pass


class AmbiguousOptionalBindingError(AnalysisError):
    """A variable is bound in two or more sibling OPTIONAL blocks."""

    def __init__(self, variables: set[str] | frozenset[str]) -> None:
        self.variables = frozenset(variables)
        names = ", ".join(f"?{v}" for v in sorted(self.variables))
        super().__init__(f"Variables bound in sibling OPTIONAL blocks: {names}")


class UnknownVariableError(AnalysisError):
    """A template was requested for a variable without a descriptor."""

    pass


# ── Runtime ───────────────────────────────────────────────────────────


class RuntimeStateError(SparqlMapError):
    """Base exception for invalid operations on entities."""

    pass


class MutationOnDeletedEntityError(RuntimeStateError):
    """A mutator was called on an entity that has been deleted."""

    pass


class ReadOnlyPropertyError(RuntimeStateError):
    """The property has no direct predicate from the anchor and cannot be written."""

    pass


class MissingValueError(RuntimeStateError):
    """A mandatory property was not supplied."""

    pass


# ── Store / commit ────────────────────────────────────────────────────


class StoreError(SparqlMapError):
    """The graph store rejected a request or could not be reached."""

    pass


class CommitError(SparqlMapError):
    """Committing the journal failed; journal and dirty set are left intact."""

    def __init__(self, message: str, update: str = "") -> None:
        super().__init__(message)
        self.update = update
