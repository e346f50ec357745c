"""
Surface boundary data model.

This module contains:
- SurfaceBoundary: a typed, labelled polygon marking a wall, floor or ceiling
  region on the source photo.
- make_boundary_id: session-unique id generation.
- clone_boundaries: structural deep copy of a boundary list, used for history
  snapshots and for handing results to the host.
"""

# Marbleviz imports
from marbleviz import config
from marbleviz.geometry_utils import Point

# Standard library imports
import time
from dataclasses import dataclass, field
from typing import Iterable, List, Optional


@dataclass
class SurfaceBoundary:
    """
    A polygon in image space tagged with a surface type.

    Attributes:
        id (str): Unique identifier within the editing session.
        type (str): One of config.SURFACE_TYPES.
        points (List[Point]): Vertex ring; insertion order is the winding.
        visible (bool): Hidden boundaries stay in the set but are not drawn
            or hit-tested.

    Example:
        >>> b = SurfaceBoundary("floors-1", "floors", [(0, 0), (10, 0), (10, 10)])
        >>> b.is_closed
        True
    """

    id: str
    type: str
    points: List[Point] = field(default_factory=list)
    visible: bool = True

    def __post_init__(self):
        if self.type not in config.SURFACE_TYPES:
            raise ValueError(
                f"Unknown surface type '{self.type}'. Must be one of {config.SURFACE_TYPES}")
        # Own a fresh list so callers' sequences are never aliased
        self.points = [_as_point(p) for p in self.points]

    @property
    def is_closed(self) -> bool:
        """True once the ring has enough vertices to enclose an area."""
        return len(self.points) >= 3

    def clone(self) -> "SurfaceBoundary":
        return SurfaceBoundary(
            id      = self.id,
            type    = self.type,
            points  = list(self.points),
            visible = self.visible,
        )

    def to_dict(self) -> dict:
        return {
            "id":       self.id,
            "type":     self.type,
            "points":   [p.to_dict() for p in self.points],
            "visible":  self.visible,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SurfaceBoundary":
        return cls(
            id      = str(data["id"]),
            type    = data["type"],
            points  = [Point.from_dict(p) for p in data.get("points", [])],
            visible = bool(data.get("visible", True)),
        )


def _as_point(value) -> Point:
    if isinstance(value, Point):
        return value
    if isinstance(value, dict):
        return Point.from_dict(value)
    x, y = value
    return Point(float(x), float(y))


def clone_boundaries(boundaries: Iterable[SurfaceBoundary]) -> List[SurfaceBoundary]:
    """Return a structural copy of every boundary in order."""
    return [b.clone() for b in boundaries]


def make_boundary_id(
    surface_type:   str,
    existing_ids:   Iterable[str] = (),
    now_ms:         Optional[int] = None,
) -> str:
    """
    Generate an id of the form ``"<type>-<epoch ms>"``.

    Two boundaries drawn within the same millisecond would collide, so a
    ``-<n>`` suffix is appended until the id is unused.

    Args:
        surface_type: Surface type prefix.
        existing_ids: Ids already present in the session.
        now_ms: Timestamp override (defaults to the wall clock).

    Returns:
        str: An id not contained in existing_ids.
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    taken = set(existing_ids)
    candidate = f"{surface_type}-{now_ms}"
    suffix = 1
    while candidate in taken:
        candidate = f"{surface_type}-{now_ms}-{suffix}"
        suffix += 1
    return candidate
