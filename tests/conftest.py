"""
Pytest configuration: puts src/ on sys.path so the package imports without
installation, and forces a headless matplotlib backend.
"""

import sys
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

src_root = Path(__file__).resolve().parent.parent / "src"
if str(src_root) not in sys.path:
    sys.path.insert(0, str(src_root))

from geonav.geometry.adjacency import build_adjacency
from geonav.geometry.icosphere import Face, Mesh, build_mesh


@pytest.fixture(scope="session")
def mesh_l1():
    return build_mesh(1)


@pytest.fixture(scope="session")
def mesh_l2():
    return build_mesh(2)


@pytest.fixture(scope="session")
def adjacency_l1(mesh_l1):
    return build_adjacency(mesh_l1)


@pytest.fixture(scope="session")
def adjacency_l2(mesh_l2):
    return build_adjacency(mesh_l2)


@pytest.fixture
def rng():
    return np.random.default_rng(20240611)


@pytest.fixture
def make_mesh():
    """Factory for small hand-assembled meshes from lists of corner triples."""
    def _make(triangles, level=0):
        faces = [
            Face(id=i, vertices=np.array(tri, dtype=float))
            for i, tri in enumerate(triangles, start=1)
        ]
        return Mesh(level=level, faces=faces)
    return _make
