"""Tests for models — pydantic mapping documents."""

import json

import pytest
from pydantic import ValidationError

from sparqlmap.models import EntityConfig, MappingConfig, PropertyConfig, SchemaHints, load_mapping

from conftest import BK


@pytest.fixture
def mapping_file(tmp_path):
    doc = {
        "entities": [
            {
                "name": "Bike",
                "anchor": "bike",
                "namespace": BK,
                "prefixes": {"bk": BK},
                "query": "SELECT ?bike ?mfg WHERE { ?bike bk:mfgDate ?mfg }",
                "properties": {"mfg": {"datatype": "http://www.w3.org/2001/XMLSchema#int"}},
                "hints": {"one_to_many": [BK + "hasBell"]},
            },
            {"name": "Wheel", "query": "SELECT ?wheel ?d WHERE { ?wheel bk:diameter ?d }", "prefixes": {"bk": BK}},
        ]
    }
    path = tmp_path / "mapping.json"
    path.write_text(json.dumps(doc))
    return path


class TestMappingConfig:
    def test_load(self, mapping_file):
        mapping = load_mapping(mapping_file)
        assert [e.name for e in mapping.entities] == ["Bike", "Wheel"]
        bike = mapping.entity("Bike")
        assert bike.properties["mfg"].multiplicity is None
        assert bike.hints.one_to_many == [BK + "hasBell"]

    def test_defaults(self, mapping_file):
        wheel = load_mapping(mapping_file).entity("Wheel")
        assert wheel.anchor is None
        assert wheel.namespace == ""
        assert wheel.hints == SchemaHints()

    def test_missing_entity(self, mapping_file):
        with pytest.raises(KeyError):
            load_mapping(mapping_file).entity("Bell")

    def test_invalid_multiplicity(self):
        with pytest.raises(ValidationError):
            PropertyConfig(multiplicity="+")

    def test_missing_query(self):
        with pytest.raises(ValidationError):
            EntityConfig(name="Bike")

    def test_to_predicate_hints(self):
        hints = SchemaHints(one_to_many=[BK + "hasBell"], entity_ranges={BK + "frontWheel": "Wheel"})
        predicate_hints = hints.to_predicate_hints()
        assert predicate_hints.is_one_to_many(BK + "hasBell")
        assert predicate_hints.has_entity_range(BK + "frontWheel")

    def test_round_trip_dump(self, mapping_file):
        mapping = load_mapping(mapping_file)
        assert MappingConfig.model_validate(mapping.model_dump()) == mapping
