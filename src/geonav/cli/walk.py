"""
CLI handler for a scripted agent walk over a (possibly spinning) sphere.
"""

import argparse
import math
from pathlib import Path

import numpy as np

from ..errors import InvalidLevelError
from ..geometry.core import angle_between
from ..simulation.context import SimulationConfig, SimulationContext
from ..simulation.navigator import AgentState, NavigatorConfig
from ..utils.progress import ProgressBar
from ..utils.visualization import build_interactive_html, face_colors, plot_equirectangular, plot_mesh

def register_arguments(parser: argparse.ArgumentParser):
    parser.add_argument("--level", type=int, default=2, help="Subdivision level")
    parser.add_argument("--max-level", type=int, default=6, help="Refuse levels above this")
    parser.add_argument("--ticks", type=int, default=100, help="Number of simulation ticks")
    parser.add_argument("--dt", type=float, default=1.0 / 60.0, help="Seconds per tick")
    parser.add_argument("--speed", type=float, default=1.0, help="Translation intent")
    parser.add_argument("--turn-rate", type=float, default=0.0, help="Turn intent")
    parser.add_argument("--turn-gain", type=float, default=1.0)
    parser.add_argument("--spin-deg", type=float, default=0.0, help="Sphere rotation per tick (deg)")
    parser.add_argument("--spin-axis", type=float, nargs=3, default=(0.0, 1.0, 0.0))
    parser.add_argument(
        "--drag", type=float, nargs=6, default=None, metavar=("FX", "FY", "FZ", "TX", "TY", "TZ"),
        help="Drag the sphere once before the walk so the point under FROM lands on TO",
    )
    parser.add_argument("--start", type=float, nargs=3, default=(0.0, 0.0, 1.0))
    parser.add_argument("--heading", type=float, nargs=3, default=(0.0, 1.0, 0.0))
    parser.add_argument("--brute-force", action="store_true", help="Scan all centroids instead of a KD-tree")
    parser.add_argument("--progress", action="store_true")
    parser.add_argument("--png", type=Path, default=None)
    parser.add_argument("--html", type=Path, default=None)
    parser.add_argument("--map", type=Path, default=None, help="Write a longitude/latitude plot of the path")

def create_config(args: argparse.Namespace) -> SimulationConfig:
    return SimulationConfig(
        level=args.level,
        max_level=args.max_level,
        navigator=NavigatorConfig(
            turn_gain=args.turn_gain,
            spatial_index=not args.brute_force,
        ),
    )

def run(args: argparse.Namespace):
    if np.linalg.norm(args.start) == 0.0:
        raise SystemExit("--start must be a non-zero vector")
    config = create_config(args)
    state = AgentState.initial(args.start, args.heading)
    start = state.center.copy()
    try:
        ctx = SimulationContext(config, state=state)
    except InvalidLevelError as exc:
        raise SystemExit(str(exc)) from None

    if args.drag is not None:
        ctx.drag_sphere(args.drag[:3], args.drag[3:])
    spin = math.radians(args.spin_deg)
    path = [start]
    bar = ProgressBar(total=args.ticks, prefix="walk") if args.progress else None
    transform = None
    for step in range(1, args.ticks + 1):
        if spin:
            ctx.rotate_sphere(args.spin_axis, spin)
        transform = ctx.tick(args.speed, args.turn_rate, args.dt)
        path.append(transform.position)
        if bar is not None:
            bar.update(step, extra=f"face={transform.face_id}")
    if bar is not None:
        bar.finish()

    s = ctx.state
    print("=== Surface Walk ===")
    print(f"Mesh level         : {ctx.mesh.level} ({len(ctx.mesh)} faces)")
    print(f"Ticks              : {args.ticks} (dt={args.dt:g})")
    print(f"Final center       : ({s.center[0]:+.5f}, {s.center[1]:+.5f}, {s.center[2]:+.5f})")
    print(f"Final forward      : ({s.forward[0]:+.5f}, {s.forward[1]:+.5f}, {s.forward[2]:+.5f})")
    print(f"Current face       : {s.current_face_id}")
    print(f"Face transitions   : {ctx.navigator.transitions}")
    print(f"Arc from start     : {math.degrees(angle_between(start, s.center)):.3f} deg")

    if args.png is not None or args.html is not None or args.map is not None:
        colors = face_colors(ctx.mesh, ctx.face_bands())
        path_arr = np.array(path)
        if args.png is not None:
            out = plot_mesh(ctx.mesh, args.png, colors=colors, path=path_arr, orientation=ctx.orientation.current)
            print(f"3D view image      : {out}")
        if args.html is not None:
            out = build_interactive_html(
                ctx.mesh, args.html, colors=colors, path=path_arr, orientation=ctx.orientation.current
            )
            print(f"Interactive HTML   : {out}")
        if args.map is not None:
            out = plot_equirectangular(
                ctx.mesh, args.map, colors=colors, path=path_arr, orientation=ctx.orientation.current
            )
            print(f"Lon/lat map        : {out}")
