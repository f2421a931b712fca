"""
Geodesic sphere construction.

The base icosahedron is inscribed in the unit sphere and every level splits
each triangle into four, pushing the new edge midpoints back onto the sphere.
Faces carry dense integer ids (1..F) in the order they are emitted; ids are
only meaningful within one build, which is why a mesh also records the
generation it belongs to.
"""

from __future__ import annotations

import logging
import math
import numbers
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

import numpy as np
from numpy.typing import NDArray
from scipy.spatial import cKDTree

from ..errors import DegenerateFaceError, FaceNotFoundError, InvalidLevelError
from .core import normalize

logger = logging.getLogger(__name__)

PHI = (1.0 + 5.0 ** 0.5) / 2.0

# Cyclic permutations of (±1, ±φ, 0).
_ICOSAHEDRON_VERTICES = [
    (-1,  PHI, 0), (1,  PHI, 0), (-1, -PHI, 0), (1, -PHI, 0),
    (0, -1,  PHI), (0, 1,  PHI), (0, -1, -PHI), (0, 1, -PHI),
    (PHI, 0, -1), (PHI, 0, 1), (-PHI, 0, -1), (-PHI, 0, 1),
]

# Counter-clockwise when seen from outside, so (b - a) x (c - a) points outward.
_ICOSAHEDRON_FACES = [
    (0, 11, 5), (0, 5, 1), (0, 1, 7), (0, 7, 10), (0, 10, 11),
    (1, 5, 9), (5, 11, 4), (11, 10, 2), (10, 7, 6), (7, 1, 8),
    (3, 9, 4), (3, 4, 2), (3, 2, 6), (3, 6, 8), (3, 8, 9),
    (4, 9, 5), (2, 4, 11), (6, 2, 10), (8, 6, 7), (9, 8, 1),
]

DEFAULT_WELD_TOLERANCE = 1e-9
DEGENERATE_AREA_EPS = 1e-14


def face_count(level: int) -> int:
    """Number of faces after `level` subdivisions."""
    return 20 * 4 ** int(level)


def icosahedron() -> Tuple[NDArray[np.floating], List[Tuple[int, int, int]]]:
    """Unit icosahedron as (vertices (12, 3), face index triples)."""
    verts = np.array([normalize(np.array(v, dtype=float)) for v in _ICOSAHEDRON_VERTICES])
    return verts, [tuple(face) for face in _ICOSAHEDRON_FACES]


@dataclass(eq=False)
class Face:
    """One triangular facet; `vertices` rows are the corners in outward order."""
    id: int
    vertices: NDArray[np.floating]

    @property
    def centroid(self) -> NDArray[np.floating]:
        return self.vertices.mean(axis=0)

    def is_degenerate(self, eps: float = DEGENERATE_AREA_EPS) -> bool:
        a, b, c = self.vertices
        return float(np.linalg.norm(np.cross(b - a, c - a))) <= eps

    @property
    def normal(self) -> NDArray[np.floating]:
        """Unit outward normal. Raises DegenerateFaceError for collinear corners."""
        a, b, c = self.vertices
        n = np.cross(b - a, c - a)
        if float(np.linalg.norm(n)) <= DEGENERATE_AREA_EPS:
            raise DegenerateFaceError(self.id)
        return normalize(n)


@dataclass(eq=False)
class Mesh:
    """
    Ordered faces produced by one builder call.

    `vertices`/`indices` hold the shared vertex table when the mesh comes from
    `build_mesh`; for hand-assembled meshes they are derived by welding.
    """
    level: int
    faces: List[Face]
    generation: int = 0
    vertices: Optional[NDArray[np.floating]] = field(default=None, repr=False)
    indices: Optional[NDArray[np.int_]] = field(default=None, repr=False)
    positions: NDArray[np.floating] = field(init=False, repr=False)
    _index: Dict[int, int] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.faces:
            self.positions = np.stack([f.vertices for f in self.faces], axis=0)
        else:
            self.positions = np.zeros((0, 3, 3), dtype=float)
        self._index = {f.id: i for i, f in enumerate(self.faces)}

    def __len__(self) -> int:
        return len(self.faces)

    def __iter__(self) -> Iterator[Face]:
        return iter(self.faces)

    def __contains__(self, face_id: object) -> bool:
        return face_id in self._index

    @property
    def ids(self) -> List[int]:
        return [f.id for f in self.faces]

    @property
    def centroids(self) -> NDArray[np.floating]:
        return self.positions.mean(axis=1)

    def index_of(self, face_id: int) -> int:
        try:
            return self._index[face_id]
        except KeyError:
            raise FaceNotFoundError(face_id) from None

    def face(self, face_id: int) -> Face:
        return self.faces[self.index_of(face_id)]

    def face_normals(self) -> NDArray[np.floating]:
        """
        Outward unit normal per face. Degenerate faces get a zero row and a
        warning instead of aborting the whole mesh.
        """
        normals = np.zeros((len(self.faces), 3), dtype=float)
        for i, f in enumerate(self.faces):
            try:
                normals[i] = f.normal
            except DegenerateFaceError as exc:
                logger.warning("Skipping normal: %s", exc)
        return normals

    def triangle_list(self) -> Tuple[NDArray[np.floating], NDArray[np.int_], NDArray[np.floating]]:
        """
        Indexed triangle list for upload to a renderer: (vertices, indices,
        per-vertex normals). On a unit sphere a vertex normal is the
        normalized vertex position.
        """
        if self.vertices is None or self.indices is None:
            labels, reps = weld_points(self.positions.reshape(-1, 3))
            self.vertices = self.positions.reshape(-1, 3)[reps]
            self.indices = labels.reshape(-1, 3)
        norms = np.linalg.norm(self.vertices, axis=1, keepdims=True)
        normals = np.divide(self.vertices, norms, out=np.zeros_like(self.vertices), where=norms > 0)
        return self.vertices, self.indices, normals


def weld_points(
    points: NDArray[np.floating],
    tol: float = DEFAULT_WELD_TOLERANCE,
) -> Tuple[NDArray[np.int_], NDArray[np.int_]]:
    """
    Group points that coincide within `tol`.

    Returns (labels, representatives): labels[i] is the welded vertex number
    of points[i] (0..V-1, in order of first appearance) and
    representatives[v] is the first point index of welded vertex v.
    """
    pts = np.asarray(points, dtype=float).reshape(-1, 3)
    if len(pts) == 0:
        return np.zeros(0, dtype=int), np.zeros(0, dtype=int)
    if tol < 0.0:
        raise ValueError(f"weld tolerance must be non-negative, got {tol}")
    tree = cKDTree(pts)
    balls = tree.query_ball_point(pts, r=tol)
    first = np.fromiter((min(b) for b in balls), dtype=int, count=len(pts))
    # Every cluster must point at a member that points at itself; otherwise
    # tol spans a chain of distinct vertices.
    if np.any(first[first] != first):
        raise ValueError(
            f"weld tolerance {tol:g} merges distinct vertices; "
            "keep it below half the shortest edge"
        )
    reps, labels = np.unique(first, return_inverse=True)
    return labels.reshape(-1), reps


def shortest_edge(mesh: Mesh) -> float:
    """Length of the shortest face edge (inf for an empty mesh)."""
    if len(mesh) == 0:
        return math.inf
    pos = mesh.positions
    return float(np.linalg.norm(pos - np.roll(pos, 1, axis=1), axis=-1).min())


def check_level(level, max_level: Optional[int]) -> int:
    if isinstance(level, bool) or not isinstance(level, numbers.Integral):
        raise InvalidLevelError(level, max_level)
    level = int(level)
    if level < 0 or (max_level is not None and level > max_level):
        raise InvalidLevelError(level, max_level)
    return level


def subdivide(
    verts: List[np.ndarray],
    faces: Sequence[Tuple[int, int, int]],
) -> List[Tuple[int, int, int]]:
    """
    One quadrisection pass. New midpoint vertices are appended to `verts`;
    each edge midpoint is created once and shared by both faces on the edge.
    """
    cache: Dict[Tuple[int, int], int] = {}

    def midpoint(i: int, j: int) -> int:
        key = (i, j) if i < j else (j, i)
        if key in cache:
            return cache[key]
        vm = normalize((verts[i] + verts[j]) * 0.5)
        verts.append(vm)
        idx = len(verts) - 1
        cache[key] = idx
        return idx

    new_faces = []
    for a, b, c in faces:
        ab = midpoint(a, b)
        bc = midpoint(b, c)
        ca = midpoint(c, a)
        new_faces.extend([
            (a, ab, ca),
            (b, bc, ab),
            (c, ca, bc),
            (ab, bc, ca),
        ])
    return new_faces


def build_mesh(level: int, max_level: Optional[int] = None, generation: int = 0) -> Mesh:
    """
    Build the geodesic sphere at `level` subdivisions (20 * 4**level faces).

    Raises InvalidLevelError before doing any work when `level` is negative,
    not an integer, or larger than `max_level`.
    """
    level = check_level(level, max_level)
    base_verts, faces = icosahedron()
    verts = list(base_verts)
    for _ in range(level):
        faces = subdivide(verts, faces)

    vertices = np.array(verts, dtype=float)
    indices = np.array(faces, dtype=int)
    out = [Face(id=i, vertices=vertices[tri]) for i, tri in enumerate(indices, start=1)]
    logger.debug("Built geodesic mesh level=%d faces=%d vertices=%d", level, len(out), len(vertices))
    return Mesh(level=level, faces=out, generation=generation, vertices=vertices, indices=indices)
