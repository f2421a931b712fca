"""
Face adjacency on a geodesic mesh.

Two faces are neighbours when they share at least one vertex position, so a
face touching another only at a corner counts the same as one sharing an
edge. On a geodesic sphere this gives 12 neighbours per face, 11 for faces
touching one of the twelve valence-5 vertices, 9 on the bare icosahedron.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterator, List, Set, Tuple

import numpy as np

from ..errors import FaceNotFoundError
from .icosphere import DEFAULT_WELD_TOLERANCE, Mesh, weld_points

logger = logging.getLogger(__name__)

METHODS = ("vertex", "pairwise")


@dataclass(frozen=True)
class AdjacencyIndex:
    """Face id -> ids of faces sharing a vertex position with it."""
    neighbor_sets: Dict[int, FrozenSet[int]]
    generation: int = 0

    def __len__(self) -> int:
        return len(self.neighbor_sets)

    def __contains__(self, face_id: object) -> bool:
        return face_id in self.neighbor_sets

    def __iter__(self) -> Iterator[int]:
        return iter(self.neighbor_sets)

    @property
    def face_ids(self) -> List[int]:
        return sorted(self.neighbor_sets)

    def _get(self, face_id: int) -> FrozenSet[int]:
        try:
            return self.neighbor_sets[face_id]
        except KeyError:
            raise FaceNotFoundError(face_id) from None

    def neighbors(self, face_id: int) -> Tuple[int, ...]:
        """Neighbour ids in ascending order."""
        return tuple(sorted(self._get(face_id)))

    def degree(self, face_id: int) -> int:
        return len(self._get(face_id))

    def is_adjacent(self, a: int, b: int) -> bool:
        self._get(b)
        return b in self._get(a)

    def is_symmetric(self) -> bool:
        return all(
            face_id in self.neighbor_sets.get(other, ())
            for face_id, nbrs in self.neighbor_sets.items()
            for other in nbrs
        )


def _usable_faces(mesh: Mesh) -> np.ndarray:
    """Boolean mask of non-degenerate faces; degenerate ones are reported."""
    mask = np.ones(len(mesh), dtype=bool)
    for i, face in enumerate(mesh.faces):
        if face.is_degenerate():
            logger.warning("Face %d is degenerate (collinear vertices); excluded from adjacency", face.id)
            mask[i] = False
    return mask


def _by_shared_vertex(mesh: Mesh, usable: np.ndarray, tol: float) -> Dict[int, Set[int]]:
    labels, _ = weld_points(mesh.positions.reshape(-1, 3), tol)
    labels = labels.reshape(-1, 3)
    ids = mesh.ids

    faces_at: Dict[int, List[int]] = {}
    for i, row in enumerate(labels):
        if not usable[i]:
            continue
        for v in set(row.tolist()):
            faces_at.setdefault(v, []).append(ids[i])

    out: Dict[int, Set[int]] = {face_id: set() for face_id in ids}
    for members in faces_at.values():
        for a in members:
            out[a].update(members)
    for face_id, nbrs in out.items():
        nbrs.discard(face_id)
    return out


def _by_pairwise_comparison(mesh: Mesh, usable: np.ndarray, tol: float) -> Dict[int, Set[int]]:
    pos = mesh.positions
    ids = mesh.ids
    out: Dict[int, Set[int]] = {face_id: set() for face_id in ids}
    for i in range(len(ids) - 1):
        if not usable[i]:
            continue
        rest = pos[i + 1:]
        # (F-i-1, 3, 3): distance from each corner of face i to each corner of the others
        d = np.linalg.norm(rest[:, None, :, :] - pos[i][None, :, None, :], axis=-1)
        touching = np.any(d <= tol, axis=(1, 2))
        for j in np.nonzero(touching)[0]:
            j = int(j) + i + 1
            if usable[j]:
                out[ids[i]].add(ids[j])
                out[ids[j]].add(ids[i])
    return out


def build_adjacency(
    mesh: Mesh,
    tol: float = DEFAULT_WELD_TOLERANCE,
    method: str = "vertex",
) -> AdjacencyIndex:
    """
    Derive the vertex-sharing adjacency of `mesh`.

    method="vertex" groups faces by welded vertex position (sub-quadratic);
    method="pairwise" compares every pair of faces directly. Both give the
    same index.
    """
    if method not in METHODS:
        raise ValueError(f"Unknown adjacency method: {method!r} (expected one of {METHODS})")
    usable = _usable_faces(mesh)
    if method == "vertex":
        sets = _by_shared_vertex(mesh, usable, tol)
    else:
        sets = _by_pairwise_comparison(mesh, usable, tol)
    index = AdjacencyIndex(
        neighbor_sets={face_id: frozenset(nbrs) for face_id, nbrs in sets.items()},
        generation=mesh.generation,
    )
    logger.debug(
        "Adjacency built: method=%s faces=%d links=%d generation=%d",
        method, len(index), sum(len(s) for s in sets.values()) // 2, mesh.generation,
    )
    return index
