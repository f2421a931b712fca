"""
geonav: geodesic sphere meshes, face adjacency graphs and an agent that
navigates the sphere surface.
"""

from .errors import (
    DegenerateFaceError,
    FaceNotFoundError,
    GeonavError,
    InvalidLevelError,
    StaleGenerationError,
)
from .geometry import (
    UNREACHABLE,
    AdjacencyIndex,
    DistanceBand,
    DistanceOracle,
    Face,
    Mesh,
    Unreachable,
    build_adjacency,
    build_mesh,
    classify,
    distance,
)
from .simulation import (
    AgentRenderTransform,
    AgentState,
    NavigatorConfig,
    SimulationConfig,
    SimulationContext,
    SurfaceNavigator,
)

__version__ = "0.1.0"

__all__ = [
    "DegenerateFaceError",
    "FaceNotFoundError",
    "GeonavError",
    "InvalidLevelError",
    "StaleGenerationError",
    "UNREACHABLE",
    "AdjacencyIndex",
    "DistanceBand",
    "DistanceOracle",
    "Face",
    "Mesh",
    "Unreachable",
    "build_adjacency",
    "build_mesh",
    "classify",
    "distance",
    "AgentRenderTransform",
    "AgentState",
    "NavigatorConfig",
    "SimulationConfig",
    "SimulationContext",
    "SurfaceNavigator",
]
