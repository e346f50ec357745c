# Standard library imports
import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

# Third-party imports
import numpy as np


@dataclass(frozen=True)
class Point:
    """A 2D coordinate in image space (pixels of the unscaled source image)."""
    x: float
    y: float

    def to_dict(self) -> dict:
        return {"x": float(self.x), "y": float(self.y)}

    @classmethod
    def from_dict(cls, data: dict) -> "Point":
        return cls(float(data["x"]), float(data["y"]))


def distance(a: Point, b: Point) -> float:
    """Euclidean distance between two points."""
    return math.hypot(a.x - b.x, a.y - b.y)


def point_in_polygon(point: Point, polygon: Sequence[Point]) -> bool:
    """
    Even-odd ray casting test.

    Casts a horizontal ray from the point towards +x and counts edge
    crossings. Polygons with fewer than 3 vertices never contain anything.

    Args:
        point (Point): Query position in image space.
        polygon (Sequence[Point]): Vertex ring, closing edge implied.

    Returns:
        bool: True when the number of crossings is odd.
    """
    n = len(polygon)
    if n < 3:
        return False

    inside = False
    j = n - 1
    for i in range(n):
        xi, yi = polygon[i].x, polygon[i].y
        xj, yj = polygon[j].x, polygon[j].y
        if (yi > point.y) != (yj > point.y):
            x_cross = (xj - xi) * (point.y - yi) / (yj - yi) + xi
            if point.x < x_cross:
                inside = not inside
        j = i
    return inside


def nearest_vertex(point: Point, vertices: Sequence[Point]) -> Optional[Tuple[int, float]]:
    """
    Index of and distance to the vertex closest to ``point``.

    Returns None for an empty vertex list. Equal distances resolve to the
    lowest index.
    """
    if len(vertices) == 0:
        return None
    verts = np.array([(v.x, v.y) for v in vertices], dtype=float)
    distances = np.hypot(verts[:, 0] - point.x, verts[:, 1] - point.y)
    min_idx = int(np.argmin(distances))
    return min_idx, float(distances[min_idx])


def polygon_centroid(polygon: Sequence[Point]) -> Optional[Point]:
    """Mean of the vertices, used to anchor layer labels."""
    if len(polygon) == 0:
        return None
    centroid = np.array([(p.x, p.y) for p in polygon], dtype=float).mean(axis=0)
    return Point(float(centroid[0]), float(centroid[1]))
