"""
Named-parameter SPARQL templates.

Values never reach a query or update by string concatenation. A template
holds ``?name`` slots; callers bind RDF terms to slots and ``render()``
replaces each whole slot token with the term's N3 serialization. IRIs and
quoted strings inside the template are skipped, so a ``?`` inside an IRI is
never mistaken for a slot.
"""

from __future__ import annotations

import re
from typing import Any

from rdflib import BNode, Literal, URIRef, Variable
from rdflib.term import Node

_TOKEN_RE = re.compile(
    r"""
    (?P<iri><[^<>"{}|^`\\\s]*>)
    | (?P<string>"(?:[^"\\\n]|\\.)*"|'(?:[^'\\\n]|\\.)*')
    | [?$](?P<var>[A-Za-z_][A-Za-z0-9_]*)
    """,
    re.VERBOSE,
)

_INVALID_IRI_CHARS = re.compile(r'[<>"{}|^`\\\s]')


def check_iri(value: str) -> URIRef:
    """Return ``value`` as a URIRef, rejecting characters that could break out of ``<...>``."""
    text = str(value)
    if not text or _INVALID_IRI_CHARS.search(text):
        raise ValueError(f"Invalid IRI: {text!r}")
    return URIRef(text)


class ParameterizedSparql:
    """
    A SPARQL query/update template with named slots.

    Example:
        template = ParameterizedSparql("INSERT DATA { ?s ?p ?o }")
        template.set_iri("s", "http://ex.org/a")
        template.set_iri("p", "http://ex.org/name")
        template.set_literal("o", "Alice")
        template.render()
    """

    def __init__(self, template: str) -> None:
        self.template = template
        self._bindings: dict[str, Node] = {}

    @property
    def bindings(self) -> dict[str, Node]:
        return dict(self._bindings)

    def slots(self) -> set[str]:
        """Names of all ``?name`` slots in the template."""
        return {m.group("var") for m in _TOKEN_RE.finditer(self.template) if m.group("var")}

    def set_iri(self, name: str, iri: str) -> "ParameterizedSparql":
        self._bindings[name] = check_iri(iri)
        return self

    def set_literal(self, name: str, value: Any, datatype: str | None = None) -> "ParameterizedSparql":
        if isinstance(value, Literal):
            self._bindings[name] = value
        else:
            self._bindings[name] = Literal(value, datatype=URIRef(datatype) if datatype else None)
        return self

    def set_param(self, name: str, term: Node) -> "ParameterizedSparql":
        if isinstance(term, (BNode, Variable)):
            raise ValueError(f"Cannot bind {type(term).__name__} {term!r} to slot ?{name}")
        if isinstance(term, URIRef):
            term = check_iri(term)
        elif not isinstance(term, Literal):
            raise TypeError(f"Expected an RDF term for slot ?{name}, got {type(term).__name__}")
        self._bindings[name] = term
        return self

    def render(self) -> str:
        """Substitute bound slots; unbound slots stay variables."""

        def _replace(match: re.Match) -> str:
            name = match.group("var")
            if name is None or name not in self._bindings:
                return match.group(0)
            return self._bindings[name].n3()

        return _TOKEN_RE.sub(_replace, self.template)

    def __str__(self) -> str:
        return self.render()
