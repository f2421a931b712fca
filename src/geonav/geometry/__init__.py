"""
Geometry module: vector/quaternion math, geodesic mesh construction, face
adjacency and hop distances.
"""

from .core import (
    normalize,
    orthonormal_basis,
    project_to_tangent,
    reorthonormalize_frame,
    quat_from_axis_angle,
    quat_mul,
    quat_conj,
    rotate_vec_by_quat,
    quat_to_matrix,
    quat_from_matrix,
    quat_between,
)
from .icosphere import Face, Mesh, build_mesh, face_count, icosahedron, shortest_edge, weld_points
from .adjacency import AdjacencyIndex, build_adjacency
from .distance import (
    UNREACHABLE,
    DistanceBand,
    DistanceOracle,
    Unreachable,
    classify,
    distance,
    distances_from,
)

__all__ = [
    "normalize",
    "orthonormal_basis",
    "project_to_tangent",
    "reorthonormalize_frame",
    "quat_from_axis_angle",
    "quat_mul",
    "quat_conj",
    "rotate_vec_by_quat",
    "quat_to_matrix",
    "quat_from_matrix",
    "quat_between",
    "Face",
    "Mesh",
    "build_mesh",
    "face_count",
    "icosahedron",
    "shortest_edge",
    "weld_points",
    "AdjacencyIndex",
    "build_adjacency",
    "UNREACHABLE",
    "DistanceBand",
    "DistanceOracle",
    "Unreachable",
    "classify",
    "distance",
    "distances_from",
]
