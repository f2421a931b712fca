"""
Unified CLI entry point for mesh inspection and surface walks.
"""

import argparse
import logging
from typing import List, Optional

# Import sub-command handlers
from . import distance
from . import mesh
from . import walk

def setup_logging(level_str: str):
    level = getattr(logging, level_str.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="geonav", description="Geodesic sphere navigation toolkit")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level",
    )

    subparsers = parser.add_subparsers(dest="command", required=True, help="Sub-commands")

    cmd_mesh = subparsers.add_parser("mesh", help="Build a geodesic mesh and report its face graph")
    mesh.register_arguments(cmd_mesh)

    cmd_distance = subparsers.add_parser("distance", help="Hop distance between two faces")
    distance.register_arguments(cmd_distance)

    cmd_walk = subparsers.add_parser("walk", help="Drive an agent across a (rotating) sphere")
    walk.register_arguments(cmd_walk)

    return parser

def main(argv: Optional[List[str]] = None):
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    # Dispatch
    if args.command == "mesh":
        mesh.run(args)
    elif args.command == "distance":
        distance.run(args)
    elif args.command == "walk":
        walk.run(args)
    else:
        parser.print_help()

if __name__ == "__main__":
    main()
