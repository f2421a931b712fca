"""
CLI handler for building a mesh and summarising its adjacency graph.
"""

import argparse
from collections import Counter
from pathlib import Path

from ..errors import InvalidLevelError
from ..geometry.adjacency import METHODS, build_adjacency
from ..geometry.icosphere import build_mesh, shortest_edge
from ..utils.visualization import build_interactive_html, plot_mesh

def add_level_arguments(parser: argparse.ArgumentParser):
    parser.add_argument("--level", type=int, default=2, help="Subdivision level")
    parser.add_argument("--max-level", type=int, default=6, help="Refuse levels above this")

def build_checked(args: argparse.Namespace):
    try:
        return build_mesh(args.level, max_level=args.max_level)
    except InvalidLevelError as exc:
        raise SystemExit(str(exc)) from None

def register_arguments(parser: argparse.ArgumentParser):
    add_level_arguments(parser)
    parser.add_argument("--method", choices=list(METHODS), default="vertex", help="Adjacency construction")
    parser.add_argument(
        "--tolerance", type=float, default=1e-9,
        help="Vertex weld tolerance; must stay below half the shortest edge",
    )
    parser.add_argument("--png", type=Path, default=None, help="Write a 3D snapshot")
    parser.add_argument("--html", type=Path, default=None, help="Write an interactive Plotly view")

def run(args: argparse.Namespace):
    mesh = build_checked(args)
    limit = 0.5 * shortest_edge(mesh)
    if not 0.0 <= args.tolerance < limit:
        raise SystemExit(f"--tolerance must be in [0, {limit:.4g}) at level {mesh.level}, got {args.tolerance:g}")
    adjacency = build_adjacency(mesh, tol=args.tolerance, method=args.method)
    vertices, _, _ = mesh.triangle_list()
    degrees = Counter(adjacency.degree(face_id) for face_id in adjacency)

    print("=== Geodesic Sphere ===")
    print(f"Level              : {mesh.level}")
    print(f"Faces              : {len(mesh)}")
    print(f"Vertices           : {len(vertices)}")
    print(f"Adjacency method   : {args.method}")
    print(f"Adjacency links    : {sum(adjacency.degree(f) for f in adjacency) // 2}")
    for degree in sorted(degrees):
        print(f"  degree {degree:>2d}        : {degrees[degree]} faces")

    if args.png is not None:
        print(f"3D view image      : {plot_mesh(mesh, args.png)}")
    if args.html is not None:
        print(f"Interactive HTML   : {build_interactive_html(mesh, args.html)}")
