"""
Shared test fixtures and pytest configuration.

Markers:
    @pytest.mark.integration  — Full create/commit/load cycles against the in-memory store

Run:
    pytest -m integration             # end-to-end cycles only
    pytest -m "not integration"       # unit tests only
"""

import itertools

import pytest

from sparqlmap.analysis import PredicateHints
from sparqlmap.runtime import EntityType, Session
from sparqlmap.storage import MemoryGraphStore

BK = "http://rec0de.net/ns/bike#"
XSD_INT = "http://www.w3.org/2001/XMLSchema#int"
PREFIXES = {"bk": BK}

BIKE_QUERY = """
SELECT ?bike ?mfg ?fw ?bw ?bells WHERE {
    ?bike bk:mfgDate ?mfg .
    ?bike bk:frontWheel ?fw .
    OPTIONAL { ?bike bk:backWheel ?bw }
    OPTIONAL { ?bike bk:hasBell ?bells }
}
"""

WHEEL_QUERY = """
SELECT ?wheel ?diameter ?mfgName WHERE {
    ?wheel bk:diameter ?diameter .
    OPTIONAL { ?wheel bk:mfgName ?mfgName }
}
"""

BIKE_HINTS = PredicateHints(
    one_to_many=frozenset({BK + "hasBell"}),
    entity_ranges={BK + "frontWheel": "Wheel", BK + "backWheel": "Wheel", BK + "hasBell": "Bell"},
    literal_ranges={BK + "mfgDate": XSD_INT},
)


class CountingIds:
    """Deterministic fresh-id generator: -1, -2, ..."""

    def __init__(self) -> None:
        self._counter = itertools.count(1)

    def fresh_suffix_for(self, tag: str) -> str:
        return f"-{next(self._counter)}"


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: full cycles against the in-memory store")


@pytest.fixture
def store():
    s = MemoryGraphStore()
    s.graph.bind("bk", BK)
    yield s
    s.close()


@pytest.fixture
def session(store):
    s = Session(store, id_generator=CountingIds())
    yield s
    s.close()


@pytest.fixture
def wheel_type():
    return EntityType.from_query("Wheel", WHEEL_QUERY, anchor="wheel", namespace=BK, namespaces=PREFIXES)


@pytest.fixture
def bike_type():
    return EntityType.from_query(
        "Bike", BIKE_QUERY, anchor="bike", namespace=BK, hints=BIKE_HINTS, namespaces=PREFIXES
    )


@pytest.fixture
def mapped_session(session, bike_type, wheel_type):
    """Session with Bike and Wheel registered."""
    session.register(bike_type)
    session.register(wheel_type)
    return session
