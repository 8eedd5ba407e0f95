from .parameterized import ParameterizedSparql, check_iri
from .synthesizer import QuerySynthesizer

__all__ = ["ParameterizedSparql", "QuerySynthesizer", "check_iri"]
