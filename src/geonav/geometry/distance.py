"""
Hop distances between faces over an AdjacencyIndex.

Distances are only used to sort faces into bands around a reference face
(same face, direct neighbour, anything further), not for path finding.
"""

from __future__ import annotations

import enum
from collections import deque
from typing import Dict, Union

from ..errors import FaceNotFoundError
from .adjacency import AdjacencyIndex


class Unreachable(enum.Enum):
    """Sentinel for a face that cannot be reached from the source."""
    UNREACHABLE = "unreachable"

    def __repr__(self) -> str:
        return "UNREACHABLE"


UNREACHABLE = Unreachable.UNREACHABLE

Distance = Union[int, Unreachable]


class DistanceBand(enum.Enum):
    SAME = 0
    ADJACENT = 1
    FAR = 2


def _require(adjacency: AdjacencyIndex, face_id: int) -> None:
    if face_id not in adjacency:
        raise FaceNotFoundError(face_id)


def distance(source: int, target: int, adjacency: AdjacencyIndex) -> Distance:
    """
    Number of adjacency hops from `source` to `target` (0 for the same face,
    1 for a direct neighbour), or UNREACHABLE.
    """
    _require(adjacency, source)
    _require(adjacency, target)
    if source == target:
        return 0
    visited = {source}
    queue = deque([(source, 0)])
    while queue:
        face_id, depth = queue.popleft()
        for nbr in adjacency.neighbors(face_id):
            if nbr in visited:
                continue
            if nbr == target:
                return depth + 1
            visited.add(nbr)
            queue.append((nbr, depth + 1))
    return UNREACHABLE


def distances_from(source: int, adjacency: AdjacencyIndex) -> Dict[int, int]:
    """Hop distance to every face reachable from `source` (one full BFS)."""
    _require(adjacency, source)
    out = {source: 0}
    queue = deque([source])
    while queue:
        face_id = queue.popleft()
        depth = out[face_id] + 1
        for nbr in adjacency.neighbors(face_id):
            if nbr not in out:
                out[nbr] = depth
                queue.append(nbr)
    return out


def classify(d: Distance) -> DistanceBand:
    """Map a distance to its band; UNREACHABLE counts as far."""
    if d is UNREACHABLE:
        return DistanceBand.FAR
    if d == 0:
        return DistanceBand.SAME
    if d == 1:
        return DistanceBand.ADJACENT
    return DistanceBand.FAR


class DistanceOracle:
    """
    Distance queries bound to one AdjacencyIndex.

    Full BFS results are cached per source face, so classifying every face
    against the agent's face costs one BFS per distinct reference face. The
    oracle is thrown away together with its index when the mesh regenerates.
    """

    def __init__(self, adjacency: AdjacencyIndex) -> None:
        self.adjacency = adjacency
        self._cache: Dict[int, Dict[int, int]] = {}

    @property
    def generation(self) -> int:
        return self.adjacency.generation

    def _levels(self, source: int) -> Dict[int, int]:
        levels = self._cache.get(source)
        if levels is None:
            levels = distances_from(source, self.adjacency)
            self._cache[source] = levels
        return levels

    def distance(self, source: int, target: int) -> Distance:
        _require(self.adjacency, target)
        return self._levels(source).get(target, UNREACHABLE)

    def bands_from(self, source: int) -> Dict[int, DistanceBand]:
        levels = self._levels(source)
        return {
            face_id: classify(levels.get(face_id, UNREACHABLE))
            for face_id in self.adjacency.face_ids
        }

    def clear(self) -> None:
        self._cache.clear()
