"""
Configuration documents for entity mappings.

A mapping file is JSON:

    {
      "entities": [
        {
          "name": "Bike",
          "anchor": "bike",
          "namespace": "http://rec0de.net/ns/bike#",
          "prefixes": {"bk": "http://rec0de.net/ns/bike#"},
          "query": "SELECT ?bike ?mfg WHERE { ?bike bk:mfgDate ?mfg }",
          "properties": {"mfg": {"datatype": "http://www.w3.org/2001/XMLSchema#int"}},
          "hints": {"one_to_many": ["http://rec0de.net/ns/bike#hasBell"]}
        }
      ]
    }
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from sparqlmap.analysis.analyzer import PredicateHints

Multiplicity = Literal["1", "?", "*"]


class PropertyConfig(BaseModel):
    """Per-variable override of derived type information."""

    datatype: Optional[str] = None
    multiplicity: Optional[Multiplicity] = None


class SchemaHints(BaseModel):
    """Schema knowledge about predicates that the query cannot express."""

    one_to_many: List[str] = Field(default_factory=list)
    entity_ranges: Dict[str, str] = Field(default_factory=dict)
    literal_ranges: Dict[str, str] = Field(default_factory=dict)

    def to_predicate_hints(self) -> PredicateHints:
        return PredicateHints(
            one_to_many=frozenset(self.one_to_many),
            entity_ranges=dict(self.entity_ranges),
            literal_ranges=dict(self.literal_ranges),
        )


class EntityConfig(BaseModel):
    name: str
    query: str
    anchor: Optional[str] = None
    namespace: str = ""
    prefixes: Dict[str, str] = Field(default_factory=dict)
    properties: Dict[str, PropertyConfig] = Field(default_factory=dict)
    hints: SchemaHints = Field(default_factory=SchemaHints)


class MappingConfig(BaseModel):
    entities: List[EntityConfig]

    def entity(self, name: str) -> EntityConfig:
        for entity in self.entities:
            if entity.name == name:
                return entity
        raise KeyError(name)


def load_mapping(path: Path) -> MappingConfig:
    """Read and validate a JSON mapping file."""
    return MappingConfig.model_validate_json(Path(path).read_text())
