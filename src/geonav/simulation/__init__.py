"""
Simulation module: surface navigation and the per-tick simulation context.
"""

from .navigator import AgentRenderTransform, AgentState, NavigatorConfig, SurfaceNavigator
from .context import MeshBundle, SimulationConfig, SimulationContext, SphereOrientation

__all__ = [
    "AgentRenderTransform",
    "AgentState",
    "NavigatorConfig",
    "SurfaceNavigator",
    "MeshBundle",
    "SimulationConfig",
    "SimulationContext",
    "SphereOrientation",
]
