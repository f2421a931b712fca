"""
CLI handler for face-to-face hop distance.
"""

import argparse

from ..errors import FaceNotFoundError
from ..geometry.adjacency import build_adjacency
from ..geometry.distance import UNREACHABLE, classify, distance
from .mesh import add_level_arguments, build_checked

def register_arguments(parser: argparse.ArgumentParser):
    add_level_arguments(parser)
    parser.add_argument("--source", type=int, required=True, help="Source face id")
    parser.add_argument("--target", type=int, required=True, help="Target face id")

def run(args: argparse.Namespace):
    mesh = build_checked(args)
    adjacency = build_adjacency(mesh)
    try:
        d = distance(args.source, args.target, adjacency)
    except FaceNotFoundError as exc:
        raise SystemExit(f"{exc} (valid ids are 1..{len(mesh)})") from None
    shown = "unreachable" if d is UNREACHABLE else str(d)
    print(f"distance({args.source}, {args.target}) = {shown} [{classify(d).name.lower()}]")
