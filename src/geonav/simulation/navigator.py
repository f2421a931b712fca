"""
Surface navigation: an agent moving over a rotating geodesic sphere.

The agent keeps an orthonormal tangent frame (forward, up, right) with up
along its position vector. Every tick the frame is carried along with the
sphere's incremental rotation, advanced by the translation and turn intents,
re-orthonormalized, and attached to the face whose centroid is nearest.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Optional, Sequence

import numpy as np
from numpy.typing import NDArray
from scipy.spatial import cKDTree

from ..geometry.core import (
    IDENTITY_QUAT,
    as_vector,
    normalize,
    quat_conj,
    quat_from_matrix,
    quat_mul,
    quat_normalize,
    reorthonormalize_frame,
    rotate_points_by_quat,
    rotate_vec_by_quat,
)
from ..geometry.icosphere import Face, Mesh

logger = logging.getLogger(__name__)


@dataclass
class NavigatorConfig:
    turn_gain: float = 1.0      # scales turn_rate * dt in the forward/right blend
    spatial_index: bool = True  # KD-tree over centroids instead of a full scan


@dataclass
class AgentState:
    center: NDArray[np.floating]
    forward: NDArray[np.floating]
    up: NDArray[np.floating]
    right: NDArray[np.floating]
    current_face_id: Optional[int] = None
    face_generation: Optional[int] = None

    @classmethod
    def initial(
        cls,
        center: Sequence[float] = (0.0, 0.0, 1.0),
        forward: Sequence[float] = (0.0, 1.0, 0.0),
    ) -> "AgentState":
        """
        Valid state from any non-zero center and heading; the heading is
        projected onto the tangent plane at the center.
        """
        c = as_vector(center)
        if float(np.linalg.norm(c)) == 0.0:
            raise ValueError("agent center must be a non-zero vector")
        up = normalize(c)
        f, up, r = reorthonormalize_frame(up, as_vector(forward))
        return cls(center=up.copy(), forward=f, up=up, right=r)

    def copy(self) -> "AgentState":
        return AgentState(
            center=self.center.copy(),
            forward=self.forward.copy(),
            up=self.up.copy(),
            right=self.right.copy(),
            current_face_id=self.current_face_id,
            face_generation=self.face_generation,
        )


@dataclass(frozen=True)
class AgentRenderTransform:
    """What the renderer needs: position plus the frame as a rotation."""
    position: NDArray[np.floating]
    rotation: NDArray[np.floating]  # columns: right, up, forward
    quaternion: NDArray[np.floating]
    face_id: Optional[int]
    updated: bool = True


class SurfaceNavigator:
    def __init__(
        self,
        mesh: Mesh,
        state: Optional[AgentState] = None,
        config: Optional[NavigatorConfig] = None,
    ) -> None:
        self.cfg = config if config is not None else NavigatorConfig()
        self.state = state if state is not None else AgentState.initial()
        self.sphere_orientation = IDENTITY_QUAT.copy()
        self.transitions = 0
        self._mesh = mesh
        self._tree: Optional[cKDTree] = None

    @property
    def mesh(self) -> Mesh:
        return self._mesh

    def set_mesh(self, mesh: Mesh) -> None:
        """
        Replace the mesh after a regeneration. The agent keeps its pose; the
        face id from the old mesh is dropped and found again on the next tick.
        """
        self._mesh = mesh
        self._tree = None
        self.state.current_face_id = None
        self.state.face_generation = None

    # ------------------------------------------------------------------
    # Nearest face
    # ------------------------------------------------------------------

    def _centroid_tree(self) -> cKDTree:
        if self._tree is None:
            self._tree = cKDTree(self._mesh.centroids)
        return self._tree

    def nearest_face(
        self,
        point: np.ndarray,
        orientation: Optional[np.ndarray] = None,
    ) -> Optional[Face]:
        """
        Face whose centroid, after rotating the mesh by `orientation`, is
        closest to `point`. None for an empty mesh.
        """
        if len(self._mesh) == 0:
            return None
        q = self.sphere_orientation if orientation is None else quat_normalize(orientation)
        if self.cfg.spatial_index:
            # Distances are rotation invariant: undo the rotation on the
            # query point instead of rotating every centroid.
            local = rotate_vec_by_quat(np.asarray(point, dtype=float), quat_conj(q))
            _, idx = self._centroid_tree().query(local)
        else:
            world = rotate_points_by_quat(self._mesh.centroids, q)
            idx = np.argmin(np.linalg.norm(world - point, axis=1))
        return self._mesh.faces[int(idx)]

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def tick(
        self,
        speed: float,
        turn_rate: float,
        dt: float,
        sphere_rotation_delta: Optional[np.ndarray] = None,
        sphere_orientation: Optional[np.ndarray] = None,
    ) -> AgentRenderTransform:
        """
        Advance the agent by one step.

        `sphere_rotation_delta` is the rotation the sphere went through since
        the previous tick; it is also accumulated into the navigator's own
        orientation estimate unless `sphere_orientation` gives the absolute
        orientation explicitly.
        """
        if not all(math.isfinite(float(x)) for x in (speed, turn_rate, dt)):
            raise ValueError(f"non-finite tick input: speed={speed}, turn_rate={turn_rate}, dt={dt}")
        s = self.state
        center, forward = s.center, s.forward

        if sphere_rotation_delta is not None:
            delta = quat_normalize(sphere_rotation_delta)
            center = rotate_vec_by_quat(center, delta)
            forward = rotate_vec_by_quat(forward, delta)
            self.sphere_orientation = quat_normalize(quat_mul(delta, self.sphere_orientation))
        if sphere_orientation is not None:
            self.sphere_orientation = quat_normalize(sphere_orientation)

        # Lock to the tangent plane at the (possibly rotated) position.
        up = normalize(center)
        forward, up, right = reorthonormalize_frame(up, forward)

        # Step along the tangent, then back onto the unit sphere.
        center = normalize(up + forward * (speed * dt))
        up = center.copy()

        # Turn by leaning forward toward right, then Gram-Schmidt (up fixed).
        blend = turn_rate * dt * self.cfg.turn_gain
        if blend != 0.0:
            forward = normalize(forward + right * blend)
        forward, up, right = reorthonormalize_frame(up, forward)

        s.center, s.up, s.forward, s.right = center, up, forward, right

        face = self.nearest_face(center)
        if face is None:
            logger.debug("Nearest-face search found no face (empty mesh); keeping face id %s", s.current_face_id)
            return self.render_transform(updated=False)
        if face.id != s.current_face_id:
            if s.current_face_id is not None:
                self.transitions += 1
            logger.debug("Agent moved from face %s to face %d", s.current_face_id, face.id)
        s.current_face_id = face.id
        s.face_generation = self._mesh.generation
        return self.render_transform()

    def render_transform(self, updated: bool = True) -> AgentRenderTransform:
        s = self.state
        rotation = np.column_stack([s.right, s.up, s.forward])
        return AgentRenderTransform(
            position=s.center.copy(),
            rotation=rotation,
            quaternion=quat_from_matrix(rotation),
            face_id=s.current_face_id,
            updated=updated,
        )
