# Marbleviz imports
from marbleviz import config
from marbleviz.geometry_utils import Point

# Standard library imports
from dataclasses import dataclass
from typing import Tuple


@dataclass
class ViewTransform:
    """
    Uniform zoom plus translation between image space and the drawing surface.

    The drawing surface has the image's native resolution as its backing
    size, but may be displayed at a different size. Screen positions are
    given in displayed pixels relative to the surface origin (top-left) and
    scaled to backing pixels before the pan/zoom is undone:

        image = (screen * backing_scale - pan) / zoom

    Attributes:
        zoom (float): Scale factor, always > 0.
        pan_x (float): Horizontal translation in backing pixels.
        pan_y (float): Vertical translation in backing pixels.
    """

    zoom:   float = 1.0
    pan_x:  float = 0.0
    pan_y:  float = 0.0

    def __post_init__(self):
        if self.zoom <= 0:
            raise ValueError(f"zoom must be > 0, got {self.zoom}")

    @property
    def pan(self) -> Point:
        return Point(self.pan_x, self.pan_y)

    def set_pan(self, x: float, y: float) -> None:
        self.pan_x = float(x)
        self.pan_y = float(y)

    def set_zoom(self, zoom: float) -> None:
        if zoom <= 0:
            raise ValueError(f"zoom must be > 0, got {zoom}")
        self.zoom = float(zoom)

    def screen_to_image(self, sx: float, sy: float, scale_x: float = 1.0, scale_y: float = 1.0) -> Point:
        return Point(
            (sx * scale_x - self.pan_x) / self.zoom,
            (sy * scale_y - self.pan_y) / self.zoom,
        )

    def image_to_screen(self, point: Point, scale_x: float = 1.0, scale_y: float = 1.0) -> Tuple[float, float]:
        return (
            (point.x * self.zoom + self.pan_x) / scale_x,
            (point.y * self.zoom + self.pan_y) / scale_y,
        )

    def zoom_by(self, factor: float) -> None:
        """Multiply zoom, clamped to [ZOOM_MIN, ZOOM_MAX]. Pan is unchanged."""
        self.set_zoom(clamp_zoom(self.zoom * factor))

    def zoom_at(self, sx: float, sy: float, factor: float, scale_x: float = 1.0, scale_y: float = 1.0) -> None:
        """Zoom about a screen position so the image point under it stays put."""
        anchor = self.screen_to_image(sx, sy, scale_x, scale_y)
        self.set_zoom(clamp_zoom(self.zoom * factor))
        self.pan_x = sx * scale_x - anchor.x * self.zoom
        self.pan_y = sy * scale_y - anchor.y * self.zoom

    def reset(self) -> None:
        self.zoom  = 1.0
        self.pan_x = 0.0
        self.pan_y = 0.0

    def visible_extent(self, width: float, height: float) -> Tuple[float, float, float, float]:
        """
        Image-space rectangle shown on a surface of backing size width x height.

        Returns:
            tuple: (x_min, x_max, y_min, y_max)
        """
        return (
            -self.pan_x / self.zoom,
            (width - self.pan_x) / self.zoom,
            -self.pan_y / self.zoom,
            (height - self.pan_y) / self.zoom,
        )


def clamp_zoom(zoom: float) -> float:
    return max(config.ZOOM_MIN, min(config.ZOOM_MAX, zoom))
