#!/usr/bin/env python3
"""
Cross-section report driver.

Examples:
    python cross_sections.py --particles p p
    python cross_sections.py --particles pi+ p --final-state --csv pip_p.csv
    python cross_sections.py --particles p p --plab 1.0 2.0 3.5
    python cross_sections.py --reactions
"""

import argparse
import logging
import sys
from pathlib import Path

from scattering.config import CollisionTermConfig, load_config
from scattering.diagnostics import dump_cross_sections, dump_reactions, iso_summary
from scattering.errors import ScatteringError
from scattering.finder import ScatterActionsFinder
from scattering.models import ChannelTable, build_model
from scattering.particles import DB_PATH, ParticleTypeRegistry

ROOT = Path(__file__).resolve().parent

logger = logging.getLogger("cross_sections")


def build_finder(db_path=DB_PATH, config_path=None, channels_path=None, postgres=False):
    """Registry, configuration and channel model wired into one finder."""
    registry = ParticleTypeRegistry.from_postgres() if postgres else ParticleTypeRegistry.from_sqlite(db_path)
    config = load_config(config_path) if config_path else CollisionTermConfig()
    table = ChannelTable.from_yaml(channels_path, registry) if channels_path else None
    model = build_model(config, registry, table)
    return ScatterActionsFinder(config, registry, model=model)


def build_parser():
    return argparse.ArgumentParser(
        description="Partial and final-state cross-section reports",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""Examples:
  python cross_sections.py --particles p p
  python cross_sections.py --particles pi+ p --masses 0.138 0.938 --final-state
  python cross_sections.py --reactions --verbose"""
    )


def main(argv=None):
    parser = build_parser()
    parser.add_argument("--db", type=Path, default=DB_PATH, help="sqlite particle database")
    parser.add_argument("--postgres", action="store_true", help="Read particles from PostgreSQL (PG* env vars)")
    parser.add_argument("--config", type=Path, help="YAML file with a Collision_Term section")
    parser.add_argument("--channels", type=Path, default=ROOT / "data" / "channels.yaml",
                        help="YAML channel table")
    parser.add_argument("--particles", nargs=2, metavar=("A", "B"), help="Incoming pair (name or symbol)")
    parser.add_argument("--masses", nargs=2, type=float, metavar=("M_A", "M_B"),
                        help="Masses in GeV (default: pole masses)")
    parser.add_argument("--final-state", action="store_true", help="Expand decays and report final states")
    parser.add_argument("--plab", nargs="+", type=float, default=[], help="Lab-frame momenta in GeV")
    parser.add_argument("--reactions", action="store_true", help="List all reactions of all isospin pairs")
    parser.add_argument("--csv", type=Path, help="Also write the scan to this CSV file")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not args.reactions and not args.particles:
        parser.error("either --particles A B or --reactions is required")

    try:
        finder = build_finder(args.db, args.config, args.channels, args.postgres)

        if args.reactions:
            for line in dump_reactions(finder):
                print(line)
            return 0

        type_a = finder.registry.find(args.particles[0])
        type_b = finder.registry.find(args.particles[1])
        m_a, m_b = args.masses if args.masses else (type_a.mass, type_b.mass)

        scan = dump_cross_sections(finder, type_a, type_b, m_a, m_b,
                                   final_state=args.final_state, plab=args.plab)
        print(iso_summary(finder.registry))
        print(scan.format_table())

        if args.csv:
            scan.to_dataframe().to_csv(args.csv)
            logger.info(f"Wrote {len(scan.sqrts)} rows to {args.csv}")
    except (ScatteringError, FileNotFoundError) as exc:
        logger.error(str(exc))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
