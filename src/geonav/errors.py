"""
Exception types shared by the mesh, graph and navigation modules.
"""

from __future__ import annotations


class GeonavError(Exception):
    """Base class for all geonav errors."""


class InvalidLevelError(GeonavError, ValueError):
    """Subdivision level is negative, not an integer, or above the allowed bound."""

    def __init__(self, level, max_level: int | None = None) -> None:
        self.level = level
        self.max_level = max_level
        if max_level is None:
            msg = f"subdivision level must be a non-negative integer, got {level!r}"
        else:
            msg = f"subdivision level must be an integer in [0, {max_level}], got {level!r}"
        super().__init__(msg)


class FaceNotFoundError(GeonavError, KeyError):
    """A face id that the mesh or adjacency index does not contain."""

    def __init__(self, face_id) -> None:
        self.face_id = face_id
        super().__init__(face_id)

    def __str__(self) -> str:
        return f"face id {self.face_id!r} not found"


class StaleGenerationError(GeonavError):
    """A face id was issued by a mesh generation that has since been replaced."""

    def __init__(self, generation: int, current: int) -> None:
        self.generation = generation
        self.current = current
        super().__init__(
            f"face id belongs to mesh generation {generation}, current generation is {current}"
        )


class DegenerateFaceError(GeonavError, ValueError):
    """Face vertices are collinear, so no normal can be computed."""

    def __init__(self, face_id: int) -> None:
        self.face_id = face_id
        super().__init__(f"face {face_id} is degenerate (collinear vertices)")
