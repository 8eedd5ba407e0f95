"""
Command line interface.

    python -m sparqlmap analyze "SELECT ?bike ?mfg WHERE { ?bike bk:mfgDate ?mfg }" \\
        --prefix bk=http://rec0de.net/ns/bike# --anchor bike
    python -m sparqlmap describe mapping.json
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from sparqlmap.analysis import PredicateHints, derive_types, parse_select
from sparqlmap.config.settings import AppConfig
from sparqlmap.errors import SparqlMapError
from sparqlmap.models import load_mapping
from sparqlmap.runtime.entity import EntityType

LOG = logging.getLogger("cli")

EXIT_ANALYSIS_ERROR = 2


def _pairs(values: list[str] | None, option: str) -> dict[str, str]:
    pairs: dict[str, str] = {}
    for item in values or []:
        key, sep, value = item.partition("=")
        if not sep or not key or not value:
            raise argparse.ArgumentTypeError(f"{option} expects KEY=VALUE, got {item!r}")
        pairs[key] = value
    return pairs


def cmd_analyze(args: argparse.Namespace) -> int:
    hints = PredicateHints(
        one_to_many=frozenset(args.one_to_many or []),
        entity_ranges=_pairs(args.entity_range, "--entity-range"),
        literal_ranges=_pairs(args.literal_range, "--literal-range"),
    )
    query = parse_select(args.query, _pairs(args.prefix, "--prefix"))
    anchor = args.anchor or query.projected[0]
    result = derive_types(query, anchor, hints)

    payload = {
        "anchor": result.anchor,
        "variables": {v: props.to_dict() for v, props in result.variables.items()},
        "dependencies": sorted(str(dep) for dep in result.dependencies),
        "ambiguous": sorted(result.ambiguous),
    }
    print(json.dumps(payload, indent=2))
    return 0


def cmd_describe(args: argparse.Namespace) -> int:
    mapping = load_mapping(Path(args.config))
    described = []
    for config in mapping.entities:
        entity_type = EntityType.from_config(config)
        synthesizer = entity_type.synthesizer
        described.append(
            {
                "name": entity_type.name,
                "anchor": entity_type.anchor,
                "properties": [d.to_dict() for d in entity_type.descriptors.values()],
                "creation_template": synthesizer.base_creation_update(),
                "initializers": {
                    name: synthesizer.initializer_update(name)
                    for name, desc in entity_type.descriptors.items()
                    if desc.writable and (desc.nullable or not desc.functional)
                },
            }
        )
    print(json.dumps(described, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sparqlmap", description="Map SPARQL SELECT queries onto typed entities.")
    sub = parser.add_subparsers(dest="command", required=True)

    analyze = sub.add_parser("analyze", help="Analyze a SPARQL query")
    analyze.add_argument("query", help="SPARQL SELECT query to analyze")
    analyze.add_argument("--anchor", help="anchor variable of query (default: first projected variable)")
    analyze.add_argument("--prefix", action="append", metavar="P=IRI", help="namespace prefix declaration")
    analyze.add_argument("--one-to-many", action="append", metavar="IRI", help="predicate known to be one-to-many")
    analyze.add_argument("--entity-range", action="append", metavar="IRI=TYPE", help="predicate with entity range")
    analyze.add_argument("--literal-range", action="append", metavar="IRI=DATATYPE", help="predicate with literal range")
    analyze.set_defaults(func=cmd_analyze)

    describe = sub.add_parser("describe", help="Describe the entity types of a mapping file")
    describe.add_argument("config", help="JSON mapping file")
    describe.set_defaults(func=cmd_describe)

    return parser


def main(argv: list[str] | None = None) -> int:
    config = AppConfig.from_env()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    parser = build_parser()
    args = parser.parse_args(argv)
    LOG.debug("Running %s", args.command)
    try:
        return args.func(args)
    except argparse.ArgumentTypeError as exc:
        parser.error(str(exc))
    except SparqlMapError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_ANALYSIS_ERROR
    return 0


if __name__ == "__main__":
    sys.exit(main())
