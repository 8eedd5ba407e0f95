"""
Query analysis for sparqlmap.

    from sparqlmap.analysis import parse_select, derive_types

    query = parse_select("SELECT ?bike ?mfg WHERE { ?bike bk:mfgDate ?mfg }", {"bk": BK})
    result = derive_types(query, "bike")
    result.variables["mfg"].functional
"""

from .analyzer import (
    ANY_LITERAL,
    GENERIC_ENTITY,
    AnalysisResult,
    GraphPatternAnalyzer,
    PredicateHints,
    VarDependency,
    VariableProperties,
    derive_types,
)
from .patterns import (
    BasicPattern,
    Group,
    OptionalPattern,
    ParsedQuery,
    Pattern,
    PatternKind,
    TriplePattern,
    UnionPattern,
    UnsupportedElement,
    parse_select,
)

__all__ = [
    # Analyzer
    "AnalysisResult",
    "GraphPatternAnalyzer",
    "PredicateHints",
    "VarDependency",
    "VariableProperties",
    "derive_types",
    "ANY_LITERAL",
    "GENERIC_ENTITY",
    # Pattern AST
    "BasicPattern",
    "Group",
    "OptionalPattern",
    "ParsedQuery",
    "Pattern",
    "PatternKind",
    "TriplePattern",
    "UnionPattern",
    "UnsupportedElement",
    "parse_select",
]
