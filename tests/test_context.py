"""Simulation context: mesh lifecycle, generations and background rebuilds."""

import logging
import math
import threading
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from geonav.errors import InvalidLevelError, StaleGenerationError
from geonav.geometry.core import normalize, rotate_vec_by_quat
from geonav.geometry.distance import DistanceBand
from geonav.simulation.navigator import AgentState
from geonav.simulation.context import SimulationConfig, SimulationContext, SphereOrientation


@pytest.fixture
def ctx():
    return SimulationContext(SimulationConfig(level=1))


class TestLifecycle:

    def test_first_install_is_generation_one(self, ctx):
        assert ctx.generation == 1
        assert ctx.mesh.generation == 1
        assert ctx.adjacency.generation == 1
        assert ctx.oracle.generation == 1
        assert len(ctx.mesh) == 80
        assert ctx.current_face_id is None

    def test_set_level_swaps_everything(self, ctx):
        ctx.tick(0.5, 0.0, 0.1)
        assert ctx.current_face_id is not None
        mesh = ctx.set_level(3)
        assert mesh is ctx.mesh
        assert len(ctx.mesh) == 1280
        assert ctx.generation == 2
        assert ctx.adjacency.generation == 2
        assert ctx.current_face_id is None
        ctx.tick(0.0, 0.0, 0.1)
        assert ctx.current_face_id in ctx.mesh
        assert ctx.state.face_generation == 2

    @pytest.mark.parametrize("level", [7, -1, 2.5])
    def test_invalid_level_leaves_state(self, ctx, level):
        ctx.tick(0.5, 0.0, 0.1)
        face_id = ctx.current_face_id
        mesh = ctx.mesh
        with pytest.raises(InvalidLevelError):
            ctx.set_level(level)
        assert ctx.mesh is mesh
        assert ctx.generation == 1
        assert ctx.current_face_id == face_id

    def test_pose_survives_rebuild(self, ctx):
        for _ in range(5):
            ctx.tick(1.0, 0.5, 0.1)
        center = ctx.state.center.copy()
        ctx.set_level(2)
        assert np.array_equal(ctx.state.center, center)


class TestGenerations:

    def test_distance_with_current_generation(self, ctx):
        assert ctx.distance(1, 1, generation=1) == 0
        assert ctx.distance(1, 2, generation=ctx.generation) == 1

    def test_generation_is_required(self, ctx):
        with pytest.raises(TypeError):
            ctx.distance(1, 2)
        with pytest.raises(StaleGenerationError):
            ctx.distance(1, 2, generation=None)

    def test_stale_generation_refused(self, ctx):
        old = ctx.generation
        ctx.set_level(2)
        with pytest.raises(StaleGenerationError):
            ctx.distance(1, 2, generation=old)
        assert ctx.distance(1, 2, generation=ctx.generation) >= 1


class TestFaceBands:

    def test_all_far_before_first_tick(self, ctx):
        bands = ctx.face_bands()
        assert len(bands) == 80
        assert set(bands.values()) == {DistanceBand.FAR}

    def test_bands_follow_agent(self, ctx):
        ctx.tick(0.3, 0.0, 0.1)
        bands = ctx.face_bands()
        face_id = ctx.current_face_id
        assert bands[face_id] is DistanceBand.SAME
        adjacent = {f for f, b in bands.items() if b is DistanceBand.ADJACENT}
        assert adjacent == set(ctx.adjacency.neighbors(face_id))


class TestSphereOrientation:

    def test_delta_and_commit(self):
        o = SphereOrientation()
        o.rotate((0.0, 0.0, 1.0), 0.2)
        o.rotate((0.0, 0.0, 1.0), 0.3)
        v = np.array([1.0, 0.0, 0.0])
        expected = np.array([math.cos(0.5), math.sin(0.5), 0.0])
        assert np.allclose(rotate_vec_by_quat(v, o.delta()), expected, atol=1e-12)
        o.commit()
        assert np.allclose(rotate_vec_by_quat(v, o.delta()), v, atol=1e-12)

    def test_drag_moves_point_onto_target(self):
        o = SphereOrientation()
        start = np.array([0.0, 0.0, 1.0])
        end = normalize(np.array([1.0, 1.0, 0.5]))
        o.drag(start, end)
        assert np.allclose(rotate_vec_by_quat(start, o.current), end, atol=1e-12)
        assert np.allclose(rotate_vec_by_quat(start, o.delta()), end, atol=1e-12)

    def test_drag_sphere_carries_agent(self, ctx):
        ctx.tick(0.0, 0.0, 0.1)
        start = ctx.state.center.copy()
        target = normalize(np.array([0.2, -0.7, 0.3]))
        ctx.drag_sphere(start, target)
        ctx.tick(0.0, 0.0, 0.1)
        assert np.allclose(ctx.state.center, target, atol=1e-12)

    def test_agent_rides_rotating_sphere(self):
        state = AgentState.initial(center=(0.3, -0.2, 0.9), forward=(1.0, 0.5, 0.0))
        ctx = SimulationContext(SimulationConfig(level=1), state=state)
        ctx.tick(0.0, 0.0, 0.1)
        face_id = ctx.current_face_id
        start = ctx.state.center.copy()
        for _ in range(30):
            ctx.rotate_sphere((0.2, 1.0, 0.4), 0.04)
            ctx.tick(0.0, 0.0, 0.1)
            assert ctx.current_face_id == face_id
        expected = rotate_vec_by_quat(start, ctx.orientation.current)
        assert np.allclose(ctx.state.center, expected, atol=1e-9)
        assert np.allclose(ctx.navigator.sphere_orientation, ctx.orientation.current, atol=1e-9)


class TestBackgroundRebuild:

    def test_installed_on_next_tick(self, ctx):
        with ThreadPoolExecutor(max_workers=1) as executor:
            future = ctx.rebuild_in_background(2, executor)
            future.result()
        assert ctx.rebuild_pending
        assert len(ctx.mesh) == 80
        assert ctx.generation == 1
        ctx.tick(0.0, 0.0, 0.1)
        assert not ctx.rebuild_pending
        assert len(ctx.mesh) == 320
        assert ctx.generation == 2
        assert ctx.current_face_id in ctx.mesh
        assert ctx.state.face_generation == 2

    def test_invalid_level_raises_immediately(self, ctx):
        with ThreadPoolExecutor(max_workers=1) as executor:
            with pytest.raises(InvalidLevelError):
                ctx.rebuild_in_background(9, executor)
        assert not ctx.rebuild_pending

    def test_failed_build_keeps_mesh(self, ctx, monkeypatch, caplog):
        def boom(level):
            raise RuntimeError("out of memory")

        monkeypatch.setattr(ctx, "prepare", boom)
        with ThreadPoolExecutor(max_workers=1) as executor:
            future = ctx.rebuild_in_background(3, executor)
            with pytest.raises(RuntimeError):
                future.result()
        mesh = ctx.mesh
        with caplog.at_level(logging.ERROR, logger="geonav.simulation.context"):
            ctx.tick(0.0, 0.0, 0.1)
        assert ctx.mesh is mesh
        assert ctx.generation == 1
        assert not ctx.rebuild_pending
        assert "Background mesh rebuild failed" in caplog.text

    def test_set_level_supersedes_pending_build(self, ctx, monkeypatch):
        """A synchronous rebuild wins over a background build still running."""
        gate = threading.Event()
        prepare = ctx.prepare

        def gated(level):
            gate.wait(timeout=10)
            return prepare(level)

        monkeypatch.setattr(ctx, "prepare", gated)
        with ThreadPoolExecutor(max_workers=1) as executor:
            ctx.rebuild_in_background(3, executor)
            monkeypatch.setattr(ctx, "prepare", prepare)
            ctx.set_level(0)
            assert not ctx.rebuild_pending
            gate.set()
        ctx.tick(0.0, 0.0, 0.1)
        assert ctx.mesh.level == 0
        assert len(ctx.mesh) == 20
        assert ctx.generation == 2

    def test_invalid_set_level_keeps_pending_build(self, ctx):
        with ThreadPoolExecutor(max_workers=1) as executor:
            future = ctx.rebuild_in_background(2, executor)
            with pytest.raises(InvalidLevelError):
                ctx.set_level(-1)
            future.result()
        assert ctx.rebuild_pending
        ctx.tick(0.0, 0.0, 0.1)
        assert ctx.mesh.level == 2

    def test_newer_background_request_wins(self, ctx, monkeypatch):
        gate = threading.Event()
        prepare = ctx.prepare

        def gated(level):
            gate.wait(timeout=10)
            return prepare(level)

        monkeypatch.setattr(ctx, "prepare", gated)
        with ThreadPoolExecutor(max_workers=2) as executor:
            ctx.rebuild_in_background(3, executor)
            ctx.rebuild_in_background(2, executor)
            gate.set()
        ctx.tick(0.0, 0.0, 0.1)
        assert ctx.mesh.level == 2
        assert ctx.generation == 2
