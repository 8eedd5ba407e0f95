"""
sparqlmap: typed, mutation-tracked entities over SPARQL SELECT queries.

Usage:
    from sparqlmap import EntityType, MemoryGraphStore, PredicateHints, Session

    Bike = EntityType.from_query(
        "Bike",
        "SELECT ?bike ?mfg WHERE { ?bike bk:mfgDate ?mfg }",
        namespace="http://rec0de.net/ns/bike#",
        namespaces={"bk": "http://rec0de.net/ns/bike#"},
    )
    with Session(MemoryGraphStore()) as session:
        bike = Bike.create(session, mfg=2007)
        session.commit()
"""

from sparqlmap.analysis import PredicateHints, derive_types, parse_select
from sparqlmap.errors import (
    AmbiguousOptionalBindingError,
    AnalysisError,
    CommitError,
    MissingValueError,
    MutationOnDeletedEntityError,
    QueryParseError,
    ReadOnlyPropertyError,
    SparqlMapError,
    StoreError,
    UnknownAnchorError,
    UnknownVariableError,
    UnresolvedTypeError,
    UnsupportedPatternError,
)
from sparqlmap.runtime import EntityType, SemanticEntity, Session
from sparqlmap.storage import GraphStore, MemoryGraphStore, SparqlEndpointStore

__version__ = "0.1.0"

__all__ = [
    "EntityType",
    "GraphStore",
    "MemoryGraphStore",
    "PredicateHints",
    "SemanticEntity",
    "Session",
    "SparqlEndpointStore",
    "derive_types",
    "parse_select",
    # Exceptions
    "AmbiguousOptionalBindingError",
    "AnalysisError",
    "CommitError",
    "MissingValueError",
    "MutationOnDeletedEntityError",
    "QueryParseError",
    "ReadOnlyPropertyError",
    "SparqlMapError",
    "StoreError",
    "UnknownAnchorError",
    "UnknownVariableError",
    "UnresolvedTypeError",
    "UnsupportedPatternError",
]
