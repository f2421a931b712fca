"""
Debug snapshots of a geodesic mesh: faces colored by distance band around the
agent, plus the path the agent walked.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple, Union

import matplotlib.pyplot as plt
import numpy as np
import plotly.graph_objects as go
from mpl_toolkits.mplot3d.art3d import Poly3DCollection
from numpy.typing import NDArray

from ..geometry.core import rotate_points_by_quat
from ..geometry.distance import DistanceBand
from ..geometry.icosphere import Mesh

RGB = Tuple[float, float, float]
PathLike = Union[str, Path]

BASE_COLOR: RGB = (0.3, 0.5, 0.3)

BAND_COLORS: Dict[DistanceBand, RGB] = {
    DistanceBand.SAME: (0.85, 0.25, 0.2),
    DistanceBand.ADJACENT: (0.95, 0.75, 0.25),
    DistanceBand.FAR: BASE_COLOR,
}


def face_colors(
    mesh: Mesh,
    bands: Optional[Mapping[int, DistanceBand]] = None,
    palette: Optional[Mapping[DistanceBand, RGB]] = None,
) -> NDArray[np.floating]:
    """RGB row per face in mesh order; faces without a band get the base color."""
    palette = BAND_COLORS if palette is None else palette
    bands = bands or {}
    colors = np.empty((len(mesh), 3), dtype=float)
    for i, face_id in enumerate(mesh.ids):
        band = bands.get(face_id)
        colors[i] = palette[band] if band is not None else BASE_COLOR
    return colors


def _ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def _world_positions(mesh: Mesh, orientation: Optional[np.ndarray]) -> NDArray[np.floating]:
    if orientation is None:
        return mesh.positions
    return rotate_points_by_quat(mesh.positions, orientation)


def _lon_lat(points: np.ndarray) -> np.ndarray:
    """Unit-sphere points to (longitude, latitude) in degrees."""
    pts = points / np.linalg.norm(points, axis=1, keepdims=True)
    lat = np.degrees(np.arcsin(np.clip(pts[:, 2], -1.0, 1.0)))
    lon = np.degrees(np.arctan2(pts[:, 1], pts[:, 0]))
    return np.stack((lon, lat), axis=1)


def plot_mesh(
    mesh: Mesh,
    output: PathLike,
    colors: Optional[np.ndarray] = None,
    path: Optional[np.ndarray] = None,
    orientation: Optional[np.ndarray] = None,
    title: str = "Geodesic sphere",
) -> Path:
    """Static 3D PNG of the mesh with an optional agent path."""
    output = Path(output)
    _ensure_parent(output)
    colors = face_colors(mesh) if colors is None else colors

    fig = plt.figure(figsize=(8, 8))
    ax = fig.add_subplot(111, projection="3d")
    poly = Poly3DCollection(_world_positions(mesh, orientation), linewidths=0.2)
    poly.set_facecolor(colors)
    poly.set_edgecolor("k")
    ax.add_collection3d(poly)

    if path is not None and len(path):
        lifted = np.asarray(path, dtype=float) * 1.01
        ax.plot(lifted[:, 0], lifted[:, 1], lifted[:, 2], color="k", linewidth=1.5)
        ax.scatter(*lifted[-1], color="k", s=20)

    for setter in (ax.set_xlim, ax.set_ylim, ax.set_zlim):
        setter(-1.1, 1.1)
    ax.set_box_aspect((1, 1, 1))
    ax.set_title(title)
    ax.axis("off")
    plt.tight_layout()
    fig.savefig(output, dpi=160)
    plt.close(fig)
    return output


def plot_equirectangular(
    mesh: Mesh,
    output: PathLike,
    colors: Optional[np.ndarray] = None,
    path: Optional[np.ndarray] = None,
    orientation: Optional[np.ndarray] = None,
) -> Path:
    """Face centroids and agent path in longitude/latitude."""
    output = Path(output)
    _ensure_parent(output)
    colors = face_colors(mesh) if colors is None else colors

    fig, ax = plt.subplots(figsize=(10, 5), constrained_layout=True)
    ax.set_title("Face centroids (equirectangular)")
    ax.set_xlabel("Longitude (deg)")
    ax.set_ylabel("Latitude (deg)")
    ax.set_xlim(-180, 180)
    ax.set_ylim(-90, 90)
    if len(mesh):
        centroids = _world_positions(mesh, orientation).mean(axis=1)
        ll = _lon_lat(centroids)
        ax.scatter(ll[:, 0], ll[:, 1], c=colors, s=8)
    if path is not None and len(path):
        ll = _lon_lat(np.asarray(path, dtype=float))
        ax.plot(ll[:, 0], ll[:, 1], ".", color="k", markersize=2)
    ax.grid(True, linestyle="--", linewidth=0.4, alpha=0.6)
    fig.savefig(output, dpi=160)
    plt.close(fig)
    return output


def _rgb_string(rgb: np.ndarray) -> str:
    r, g, b = (int(round(255 * float(c))) for c in rgb)
    return f"rgb({r},{g},{b})"


def build_interactive_html(
    mesh: Mesh,
    output: PathLike,
    colors: Optional[np.ndarray] = None,
    path: Optional[np.ndarray] = None,
    orientation: Optional[np.ndarray] = None,
    title: str = "Geodesic sphere",
) -> Path:
    """Plotly HTML export built from the mesh's indexed triangle list."""
    output = Path(output)
    _ensure_parent(output)
    colors = face_colors(mesh) if colors is None else colors

    vertices, indices, _ = mesh.triangle_list()
    if orientation is not None:
        vertices = rotate_points_by_quat(vertices, orientation)

    traces = [
        go.Mesh3d(
            x=vertices[:, 0],
            y=vertices[:, 1],
            z=vertices[:, 2],
            i=indices[:, 0], j=indices[:, 1], k=indices[:, 2],
            facecolor=[_rgb_string(c) for c in colors],
            flatshading=True,
            name="faces",
        )
    ]
    if path is not None and len(path):
        lifted = np.asarray(path, dtype=float) * 1.01
        traces.append(
            go.Scatter3d(
                x=lifted[:, 0],
                y=lifted[:, 1],
                z=lifted[:, 2],
                mode="lines",
                line={"color": "black", "width": 4},
                name="agent path",
            )
        )

    fig = go.Figure(data=traces)
    fig.update_layout(
        title=title,
        scene=dict(
            xaxis=dict(visible=False),
            yaxis=dict(visible=False),
            zaxis=dict(visible=False),
            aspectmode="data",
        ),
        margin=dict(l=0, r=0, t=40, b=0),
    )
    fig.write_html(str(output), auto_open=False, include_plotlyjs="cdn")
    return output
