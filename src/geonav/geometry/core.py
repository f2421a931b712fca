"""
Core geometry and math utilities.
Includes vector normalization, tangent-frame helpers and quaternion operations.
"""

from __future__ import annotations

import math
from typing import Tuple

import numpy as np
from numpy.typing import NDArray

# -----------------------------------------------------------------------------
# Vector Utilities
# -----------------------------------------------------------------------------

def normalize(vec: np.ndarray) -> np.ndarray:
    """Return the normalized vector."""
    norm = np.linalg.norm(vec)
    if norm == 0:
        # A zero vector has no direction; it stays zero.
        return vec
    return vec / norm

def as_vector(values) -> NDArray[np.floating]:
    """Coerce a length-3 sequence into a float64 array."""
    vec = np.asarray(values, dtype=float).reshape(3)
    return vec.copy()

def orthonormal_basis(normal: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Construct an orthonormal basis (u, v, n) given a normal vector n."""
    n = normalize(normal)
    if abs(n[2]) < 0.9:
        helper = np.array([0.0, 0.0, 1.0], dtype=float)
    else:
        helper = np.array([1.0, 0.0, 0.0], dtype=float)
    u = normalize(np.cross(helper, n))
    v = np.cross(n, u)
    return u, v, n

def project_to_tangent(vec: np.ndarray, normal: np.ndarray, eps: float = 1e-12) -> np.ndarray | None:
    """
    Remove the component of vec along the unit normal and renormalize.
    Returns None when vec is (nearly) parallel to the normal.
    """
    t = vec - float(np.dot(vec, normal)) * normal
    nrm = float(np.linalg.norm(t))
    if nrm < eps:
        return None
    return t / nrm

def reorthonormalize_frame(
    up: np.ndarray,
    forward: np.ndarray,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Gram-Schmidt with up fixed: forward is corrected against up, right
    against both. Returns (forward, up, right).
    """
    f = project_to_tangent(forward, up)
    if f is None:
        # 退化时重建
        f, _, _ = orthonormal_basis(up)
    r = normalize(np.cross(up, f))
    # Second pass removes what the cross product picked up from rounding.
    r = r - float(np.dot(r, up)) * up - float(np.dot(r, f)) * f
    r = normalize(r)
    return f, up, r

def angle_between(u: np.ndarray, v: np.ndarray) -> float:
    """Angle in radians between two vectors."""
    nu = normalize(u)
    nv = normalize(v)
    return math.acos(float(np.clip(np.dot(nu, nv), -1.0, 1.0)))

# -----------------------------------------------------------------------------
# Quaternion Utilities
# -----------------------------------------------------------------------------

IDENTITY_QUAT = np.array([1.0, 0.0, 0.0, 0.0], dtype=float)

def quat_from_axis_angle(axis: np.ndarray, angle: float) -> np.ndarray:
    """Create a quaternion from a rotation axis and angle."""
    axis_n = normalize(np.asarray(axis, dtype=float))
    s = np.sin(angle / 2.0)
    return np.array([np.cos(angle / 2.0), axis_n[0] * s, axis_n[1] * s, axis_n[2] * s], dtype=float)

def quat_mul(q1: np.ndarray, q2: np.ndarray) -> np.ndarray:
    """Multiply two quaternions."""
    w1, x1, y1, z1 = q1
    w2, x2, y2, z2 = q2
    return np.array([
        w1 * w2 - x1 * x2 - y1 * y2 - z1 * z2,
        w1 * x2 + x1 * w2 + y1 * z2 - z1 * y2,
        w1 * y2 - x1 * z2 + y1 * w2 + z1 * x2,
        w1 * z2 + x1 * y2 - y1 * x2 + z1 * w2,
    ], dtype=float)

def quat_conj(q: np.ndarray) -> np.ndarray:
    """Return the conjugate of a quaternion."""
    w, x, y, z = q
    return np.array([w, -x, -y, -z], dtype=float)

def quat_normalize(q: np.ndarray) -> np.ndarray:
    """Renormalize a quaternion, falling back to identity for zero input."""
    norm = float(np.linalg.norm(q))
    if norm == 0.0:
        return IDENTITY_QUAT.copy()
    return np.asarray(q, dtype=float) / norm

def rotate_vec_by_quat(v: np.ndarray, q: np.ndarray) -> np.ndarray:
    """Rotate vector v by quaternion q."""
    vq = np.array([0.0, v[0], v[1], v[2]], dtype=float)
    return quat_mul(quat_mul(q, vq), quat_conj(q))[1:]

def quat_to_matrix(q: np.ndarray) -> NDArray[np.floating]:
    """Rotation matrix of a unit quaternion [w, x, y, z]."""
    w, x, y, z = quat_normalize(q)
    return np.array([
        [1 - 2 * (y * y + z * z), 2 * (x * y - w * z), 2 * (x * z + w * y)],
        [2 * (x * y + w * z), 1 - 2 * (x * x + z * z), 2 * (y * z - w * x)],
        [2 * (x * z - w * y), 2 * (y * z + w * x), 1 - 2 * (x * x + y * y)],
    ], dtype=float)

def rotate_points_by_quat(points: np.ndarray, q: np.ndarray) -> NDArray[np.floating]:
    """Rotate an (..., 3) array of points by quaternion q."""
    return np.asarray(points, dtype=float) @ quat_to_matrix(q).T

def quat_from_matrix(m: np.ndarray) -> np.ndarray:
    """
    Unit quaternion [w, x, y, z] of a proper rotation matrix.
    Picks the largest diagonal term for numerical stability.
    """
    m = np.asarray(m, dtype=float)
    trace = float(m[0, 0] + m[1, 1] + m[2, 2])
    if trace > 0.0:
        s = math.sqrt(trace + 1.0) * 2.0
        q = [0.25 * s, (m[2, 1] - m[1, 2]) / s, (m[0, 2] - m[2, 0]) / s, (m[1, 0] - m[0, 1]) / s]
    elif m[0, 0] > m[1, 1] and m[0, 0] > m[2, 2]:
        s = math.sqrt(1.0 + m[0, 0] - m[1, 1] - m[2, 2]) * 2.0
        q = [(m[2, 1] - m[1, 2]) / s, 0.25 * s, (m[0, 1] + m[1, 0]) / s, (m[0, 2] + m[2, 0]) / s]
    elif m[1, 1] > m[2, 2]:
        s = math.sqrt(1.0 + m[1, 1] - m[0, 0] - m[2, 2]) * 2.0
        q = [(m[0, 2] - m[2, 0]) / s, (m[0, 1] + m[1, 0]) / s, 0.25 * s, (m[1, 2] + m[2, 1]) / s]
    else:
        s = math.sqrt(1.0 + m[2, 2] - m[0, 0] - m[1, 1]) * 2.0
        q = [(m[1, 0] - m[0, 1]) / s, (m[0, 2] + m[2, 0]) / s, (m[1, 2] + m[2, 1]) / s, 0.25 * s]
    q = quat_normalize(np.array(q, dtype=float))
    if q[0] < 0.0:
        q = -q
    return q

def quat_between(u: np.ndarray, v: np.ndarray) -> np.ndarray:
    """
    Shortest-arc rotation taking direction u onto direction v.

    Built from the half-way vector, q = (1 + u.v, u x v) normalized; for
    opposite directions any axis perpendicular to u gives a half turn.
    """
    u = normalize(as_vector(u))
    v = normalize(as_vector(v))
    w = 1.0 + float(np.dot(u, v))
    if w < 1e-12:
        e1, _, _ = orthonormal_basis(u)
        return np.array([0.0, e1[0], e1[1], e1[2]])
    return quat_normalize(np.concatenate(([w], np.cross(u, v))))
