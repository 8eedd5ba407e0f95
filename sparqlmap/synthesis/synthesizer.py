"""
Update template synthesis.

Turns the descriptor table of an analyzed query into parameterized SPARQL
update templates:

- baseCreationUpdate: one INSERT DATA with a triple per mandatory property
  (functional and non-nullable). Optional and multi-valued properties are
  left out, so "absent" costs zero triples instead of a sentinel value.
- initializerUpdate(v): one INSERT DATA with the single triple for v, used to
  assign a nullable property for the first time or to add one element of a
  multi-valued property.

Slots are named after the query variables (the anchor slot is the anchor's
name), so concrete values are bound with ParameterizedSparql.
"""

from __future__ import annotations

import logging

from sparqlmap.analysis.analyzer import VariableProperties
from sparqlmap.analysis.patterns import ParsedQuery
from sparqlmap.errors import AmbiguousOptionalBindingError, UnknownVariableError
from sparqlmap.synthesis.parameterized import ParameterizedSparql, check_iri

LOG = logging.getLogger("synthesis.synthesizer")


class QuerySynthesizer:
    """Builds parameterized update templates for one anchored query."""

    def __init__(
        self,
        query: ParsedQuery,
        anchor: str,
        variables: dict[str, VariableProperties],
        ambiguous: frozenset[str] = frozenset(),
    ) -> None:
        conflicting = ambiguous & set(variables)
        if conflicting:
            raise AmbiguousOptionalBindingError(conflicting)
        self.query = query
        self.anchor = anchor
        self.variables = variables

    def mandatory_variables(self) -> list[str]:
        """Functional, non-nullable variables with a direct predicate, in projection order."""
        return [
            v
            for v, props in self.variables.items()
            if props.functional and not props.nullable and props.predicate is not None
        ]

    def _triple(self, var: str) -> str:
        props = self.variables[var]
        predicate = check_iri(props.predicate).n3()
        return f"?{self.anchor} {predicate} ?{var} ."

    def base_creation_update(self) -> str:
        """INSERT DATA template with one triple per mandatory property."""
        triples = " ".join(self._triple(v) for v in self.mandatory_variables())
        template = f"INSERT DATA {{ {triples} }}" if triples else "INSERT DATA { }"
        LOG.debug("Creation template for ?%s: %s", self.anchor, template)
        return template

    def initializer_update(self, var: str) -> str:
        """
        INSERT DATA template adding one value of ``var``.

        Raises:
            UnknownVariableError: ``var`` has no descriptor or no direct predicate
        """
        if var not in self.variables:
            raise UnknownVariableError(f"No descriptor for variable ?{var}")
        if self.variables[var].predicate is None:
            raise UnknownVariableError(f"Variable ?{var} is not linked to ?{self.anchor} by a predicate")
        return f"INSERT DATA {{ {self._triple(var)} }}"

    def creation_template(self) -> ParameterizedSparql:
        return ParameterizedSparql(self.base_creation_update())

    def initializer_template(self, var: str) -> ParameterizedSparql:
        return ParameterizedSparql(self.initializer_update(var))
