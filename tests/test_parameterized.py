"""Tests for synthesis.parameterized — named-slot SPARQL templates."""

import pytest
from rdflib import BNode, Literal, URIRef, Variable

from sparqlmap.synthesis.parameterized import ParameterizedSparql, check_iri

EX = "http://example.org/"


class TestCheckIri:
    def test_valid(self):
        assert check_iri(EX + "a") == URIRef(EX + "a")

    @pytest.mark.parametrize("bad", ["", "http://ex.org/a b", "http://ex.org/a>", 'http://ex.org/"', "http://ex.org/{x}"])
    def test_invalid(self, bad):
        with pytest.raises(ValueError):
            check_iri(bad)


class TestParameterizedSparql:
    def test_slots(self):
        t = ParameterizedSparql("INSERT DATA { ?s ?p ?o . $x <http://ex.org/?q> 'a ?b' }")
        assert t.slots() == {"s", "p", "o", "x"}

    def test_render_binds_terms(self):
        t = ParameterizedSparql("INSERT DATA { ?s ?p ?o }")
        t.set_iri("s", EX + "a").set_iri("p", EX + "name").set_literal("o", "Alice")
        assert t.render() == f'INSERT DATA {{ <{EX}a> <{EX}name> "Alice" }}'

    def test_unbound_slots_stay_variables(self):
        t = ParameterizedSparql("DELETE WHERE { ?a ?b ?c }").set_iri("a", EX + "a")
        assert t.render() == f"DELETE WHERE {{ <{EX}a> ?b ?c }}"

    def test_typed_literal(self):
        t = ParameterizedSparql("?o").set_literal("o", 7, datatype="http://www.w3.org/2001/XMLSchema#int")
        assert t.render() == '"7"^^<http://www.w3.org/2001/XMLSchema#int>'

    def test_literal_escaping(self):
        t = ParameterizedSparql("?o").set_literal("o", 'say "hi" } ;')
        rendered = t.render()
        assert rendered.startswith('"') and '\\"hi\\"' in rendered

    def test_slot_names_are_whole_tokens(self):
        t = ParameterizedSparql("?a ?ab").set_iri("a", EX + "x")
        assert t.render() == f"<{EX}x> ?ab"

    def test_iri_inside_template_untouched(self):
        t = ParameterizedSparql("<http://ex.org/?o> ?o").set_literal("o", 1)
        assert t.render().startswith("<http://ex.org/?o> ")

    def test_substituted_values_are_not_rescanned(self):
        t = ParameterizedSparql("?a ?b").set_literal("a", "?b").set_literal("b", "x")
        assert t.render() == '"?b" "x"'

    def test_set_param_rejects_bnode_and_variable(self):
        t = ParameterizedSparql("?o")
        with pytest.raises(ValueError):
            t.set_param("o", BNode())
        with pytest.raises(ValueError):
            t.set_param("o", Variable("x"))

    def test_set_param_validates_iri(self):
        with pytest.raises(ValueError):
            ParameterizedSparql("?o").set_param("o", URIRef("http://ex.org/a> . <b"))

    def test_set_param_literal(self):
        t = ParameterizedSparql("?o").set_param("o", Literal(True))
        assert t.bindings == {"o": Literal(True)}
        assert str(t) == t.render()
