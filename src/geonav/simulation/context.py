"""
Simulation context: the single owner of the live mesh, its adjacency index
and distance cache, the agent navigator and the sphere orientation.

Hosts create one context and call `tick` once per frame. Mesh rebuilds are
swapped in whole, either immediately (`set_level`) or, for expensive levels,
prepared on an executor and installed at the start of the next tick.
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor, Future
from dataclasses import dataclass, field, replace
from typing import Dict, Optional, Sequence

import numpy as np
from numpy.typing import NDArray

from ..errors import StaleGenerationError
from ..geometry.adjacency import AdjacencyIndex, build_adjacency
from ..geometry.core import (
    IDENTITY_QUAT,
    quat_between,
    quat_conj,
    quat_from_axis_angle,
    quat_mul,
    quat_normalize,
)
from ..geometry.distance import Distance, DistanceBand, DistanceOracle
from ..geometry.icosphere import DEFAULT_WELD_TOLERANCE, Mesh, check_level, build_mesh
from .navigator import AgentRenderTransform, AgentState, NavigatorConfig, SurfaceNavigator

logger = logging.getLogger(__name__)


@dataclass
class SimulationConfig:
    level: int = 2
    max_level: int = 6          # interactive cap on subdivision
    weld_tolerance: float = DEFAULT_WELD_TOLERANCE
    adjacency_method: str = "vertex"
    navigator: NavigatorConfig = field(default_factory=NavigatorConfig)


@dataclass
class SphereOrientation:
    """Rigid rotation of the whole sphere, with the value seen at the last tick."""
    current: NDArray[np.floating] = field(default_factory=lambda: IDENTITY_QUAT.copy())
    previous: NDArray[np.floating] = field(default_factory=lambda: IDENTITY_QUAT.copy())

    def rotate(self, axis: Sequence[float], angle: float) -> None:
        """Compose a world-space rotation onto the current orientation."""
        q = quat_from_axis_angle(np.asarray(axis, dtype=float), angle)
        self.current = quat_normalize(quat_mul(q, self.current))

    def drag(self, start: Sequence[float], end: Sequence[float]) -> None:
        """Turn the sphere so the surface point under `start` moves to `end`."""
        self.current = quat_normalize(quat_mul(quat_between(start, end), self.current))

    def delta(self) -> NDArray[np.floating]:
        """Rotation taking the previous orientation to the current one."""
        return quat_normalize(quat_mul(self.current, quat_conj(self.previous)))

    def commit(self) -> None:
        self.previous = self.current.copy()


@dataclass(frozen=True)
class MeshBundle:
    mesh: Mesh
    adjacency: AdjacencyIndex


class SimulationContext:
    def __init__(
        self,
        config: Optional[SimulationConfig] = None,
        state: Optional[AgentState] = None,
    ) -> None:
        self.cfg = config if config is not None else SimulationConfig()
        self.orientation = SphereOrientation()
        self.generation = 0
        self._pending: Optional[Future] = None
        bundle = self.prepare(self.cfg.level)
        self.navigator = SurfaceNavigator(bundle.mesh, state=state, config=self.cfg.navigator)
        self.install(bundle)

    # ------------------------------------------------------------------
    # Mesh lifecycle
    # ------------------------------------------------------------------

    def prepare(self, level: int) -> MeshBundle:
        """Build mesh and adjacency for `level` without touching live state."""
        mesh = build_mesh(level, max_level=self.cfg.max_level)
        adjacency = build_adjacency(mesh, tol=self.cfg.weld_tolerance, method=self.cfg.adjacency_method)
        return MeshBundle(mesh=mesh, adjacency=adjacency)

    def install(self, bundle: MeshBundle) -> None:
        """Make `bundle` the live mesh under a fresh generation number."""
        self.generation += 1
        bundle.mesh.generation = self.generation
        self.mesh: Mesh = bundle.mesh
        self.adjacency: AdjacencyIndex = replace(bundle.adjacency, generation=self.generation)
        self.oracle = DistanceOracle(self.adjacency)
        self.navigator.set_mesh(self.mesh)
        logger.info(
            "Installed mesh level=%d faces=%d generation=%d",
            self.mesh.level, len(self.mesh), self.generation,
        )

    def set_level(self, level: int) -> Mesh:
        """
        Rebuild synchronously; an invalid level leaves everything as it was.
        A background rebuild still in flight is superseded and dropped.
        """
        bundle = self.prepare(level)
        self._discard_pending()
        self.install(bundle)
        return self.mesh

    def rebuild_in_background(self, level: int, executor: Executor) -> Future:
        """
        Prepare `level` on `executor`. The current mesh stays live until the
        next tick after the build completes.
        """
        check_level(level, self.cfg.max_level)
        self._discard_pending()
        self._pending = executor.submit(self.prepare, level)
        return self._pending

    def _discard_pending(self) -> None:
        if self._pending is not None:
            if not self._pending.cancel():
                logger.debug("Dropping superseded background rebuild")
            self._pending = None

    @property
    def rebuild_pending(self) -> bool:
        return self._pending is not None

    def _install_pending(self) -> None:
        future = self._pending
        if future is None or not future.done():
            return
        self._pending = None
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.error("Background mesh rebuild failed, keeping generation %d: %s", self.generation, exc)
            return
        self.install(future.result())

    # ------------------------------------------------------------------
    # Per-tick update
    # ------------------------------------------------------------------

    def rotate_sphere(self, axis: Sequence[float], angle: float) -> None:
        self.orientation.rotate(axis, angle)

    def drag_sphere(self, start: Sequence[float], end: Sequence[float]) -> None:
        self.orientation.drag(start, end)

    def tick(self, speed: float, turn_rate: float, dt: float) -> AgentRenderTransform:
        self._install_pending()
        transform = self.navigator.tick(
            speed,
            turn_rate,
            dt,
            sphere_rotation_delta=self.orientation.delta(),
            sphere_orientation=self.orientation.current,
        )
        self.orientation.commit()
        return transform

    @property
    def state(self) -> AgentState:
        return self.navigator.state

    @property
    def current_face_id(self) -> Optional[int]:
        return self.navigator.state.current_face_id

    # ------------------------------------------------------------------
    # Distance queries
    # ------------------------------------------------------------------

    def check_generation(self, generation: Optional[int]) -> None:
        if generation != self.generation:
            raise StaleGenerationError(generation, self.generation)

    def distance(self, source: int, target: int, generation: int) -> Distance:
        """
        Hop distance on the live mesh. `generation` is the generation the ids
        were read under (`ctx.generation` or `state.face_generation`); ids
        from any other generation are refused.
        """
        self.check_generation(generation)
        return self.oracle.distance(source, target)

    def face_bands(self) -> Dict[int, DistanceBand]:
        """Band of every face relative to the agent's face (all FAR before the first tick)."""
        state = self.navigator.state
        if state.current_face_id is None:
            return {face_id: DistanceBand.FAR for face_id in self.adjacency.face_ids}
        self.check_generation(state.face_generation)
        return self.oracle.bands_from(state.current_face_id)
