"""
Surface Boundary Editor state machine.

Owns every piece of editing state for one session: the committed boundary
set, selection, active tool, the polygon being traced, the zoom/pan view and
the undo/redo history. Input arrives as discrete events (pointer down / move /
up, double-click, key press, button actions) and each one is applied
completely before returning. No UI toolkit is imported here; the matplotlib
front end in surface_boundary_editor.py feeds events in and reads state back
out for rendering.

Controls (as wired by the front end):
    select tool   Click vertex to drag it, click inside a polygon to select it
    draw tool     Click to place vertices, double-click to close (>= 3 points)
    pan tool      Drag to move the view
    Escape        Discard the polygon being drawn
    Delete        Delete selected surface (Backspace too)
    Ctrl+Z        Undo
    Ctrl+Shift+Z  Redo
"""

# Marbleviz imports
from marbleviz import config
from marbleviz.geometry_utils import Point, distance, nearest_vertex, point_in_polygon
from marbleviz.history import BoundaryHistory
from marbleviz.surface_boundary import SurfaceBoundary, clone_boundaries, make_boundary_id
from marbleviz.view_transform import ViewTransform

# Standard library imports
import functools
import logging
from typing import Callable, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

PointRef = Tuple[str, int]


def _while_open(method):
    """Turn an event handler into a no-op once the session has ended."""
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        if self.closed:
            logger.debug("Ignoring %s: session closed", method.__name__)
            return None
        return method(self, *args, **kwargs)
    return wrapper


class EditorState:
    """
    Editing session for a set of surface boundaries over one image.

    Args:
        image_ref: Path or URL of the background photo. Stored for the host
            and the renderer; never read here.
        initial_boundaries: Boundaries to start from (e.g. automated
            detection). Entries with fewer than 3 points are dropped.
        on_save: Called once with the final boundaries when saved.
        on_cancel: Called once with no arguments when cancelled.
        hit_threshold: Vertex hit radius in screen pixels.
        clock_ms: Millisecond clock used for new boundary ids.
    """

    def __init__(
        self,
        image_ref:          str                                         = "",
        initial_boundaries: Optional[Sequence[SurfaceBoundary]]         = None,
        on_save:            Optional[Callable[[List[SurfaceBoundary]], None]] = None,
        on_cancel:          Optional[Callable[[], None]]                = None,
        hit_threshold:      float                                       = config.HIT_THRESHOLD_PX,
        clock_ms:           Optional[Callable[[], int]]                 = None,
    ):
        self.image_ref                                  = str(image_ref)
        self.on_save                                    = on_save
        self.on_cancel                                  = on_cancel
        self.hit_threshold:     float                   = float(hit_threshold)
        self._clock_ms                                  = clock_ms

        self._initial:          List[SurfaceBoundary]   = self._validated(initial_boundaries or [])
        self.boundaries:        List[SurfaceBoundary]   = clone_boundaries(self._initial)
        self.history:           BoundaryHistory         = BoundaryHistory(self._initial)

        # Selection
        self.selected_boundary_id:  Optional[str]       = None
        self.selected_point:        Optional[PointRef]  = None

        # Tools and in-progress drawing
        self.active_tool:           str                 = config.DEFAULT_TOOL
        self.active_surface_type:   str                 = config.DEFAULT_SURFACE
        self.drawing_points:        List[Point]         = []

        # View and pointer interaction
        self.view:                  ViewTransform       = ViewTransform()
        self._dragging:             bool                = False
        self._drag_moved:           bool                = False
        self._panning:              bool                = False
        self._pan_start:            Tuple[float, float] = (0.0, 0.0)

        self.closed:                bool                = False

    @staticmethod
    def _validated(boundaries: Sequence[SurfaceBoundary]) -> List[SurfaceBoundary]:
        kept = []
        for b in boundaries:
            if not b.is_closed:
                logger.warning("Dropping boundary '%s': %d point(s), need at least 3", b.id, len(b.points))
                continue
            kept.append(b.clone())
        return kept

    # -------------------------------------------------------------------------
    # Derived state
    # -------------------------------------------------------------------------

    @property
    def is_drawing(self) -> bool:
        return len(self.drawing_points) > 0

    @property
    def is_dragging(self) -> bool:
        return self._dragging

    @property
    def is_panning(self) -> bool:
        return self._panning

    @property
    def can_undo(self) -> bool:
        return self.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.history.can_redo

    def get_boundary(self, boundary_id: Optional[str]) -> Optional[SurfaceBoundary]:
        for b in self.boundaries:
            if b.id == boundary_id:
                return b
        return None

    @property
    def selected_boundary(self) -> Optional[SurfaceBoundary]:
        return self.get_boundary(self.selected_boundary_id)

    def status_line(self) -> str:
        parts = [f"Zoom: {round(self.view.zoom * 100)}%", f"Tool: {self.active_tool.capitalize()}"]
        if self.is_drawing:
            parts.append(f"Drawing {self.active_surface_type} ({len(self.drawing_points)} points)")
        return " • ".join(parts)

    def surface_count_label(self) -> str:
        n = len(self.boundaries)
        return f"{n} surface{'s' if n != 1 else ''} detected"

    # -------------------------------------------------------------------------
    # Tools
    # -------------------------------------------------------------------------

    @_while_open
    def set_tool(self, tool: str) -> None:
        """Switch interaction mode. Leaving draw mode discards the polygon in progress."""
        if tool not in config.TOOLS:
            raise ValueError(f"Unknown tool '{tool}'. Must be one of {config.TOOLS}")
        if self._dragging and self._drag_moved:
            self._commit("move vertex")
            self.selected_point = None
        if tool != "draw" and self.is_drawing:
            logger.info("Discarding %d unfinished point(s) on switch to %s", len(self.drawing_points), tool)
            self.drawing_points = []
        self._end_pointer_interaction()
        self.active_tool = tool

    @_while_open
    def set_surface_type(self, surface_type: str) -> None:
        if surface_type not in config.SURFACE_TYPES:
            raise ValueError(
                f"Unknown surface type '{surface_type}'. Must be one of {config.SURFACE_TYPES}")
        self.active_surface_type = surface_type

    # -------------------------------------------------------------------------
    # Hit testing
    # -------------------------------------------------------------------------

    def screen_to_image(self, sx: float, sy: float, scale_x: float = 1.0, scale_y: float = 1.0) -> Point:
        return self.view.screen_to_image(sx, sy, scale_x, scale_y)

    def find_point_at(self, pos: Point) -> Optional[PointRef]:
        """
        Nearest visible vertex within the hit radius.

        The radius is hit_threshold / zoom so the on-screen tolerance is the
        same at every zoom level. When vertices of several boundaries are in
        range the closest wins; exact ties keep boundary order.
        """
        threshold = self.hit_threshold / self.view.zoom
        best: Optional[PointRef] = None
        best_dist = float("inf")
        for boundary in self.boundaries:
            if not boundary.visible:
                continue
            hit = nearest_vertex(pos, boundary.points)
            if hit is None:
                continue
            idx, dist = hit
            if dist < threshold and dist < best_dist:
                best, best_dist = (boundary.id, idx), dist
        return best

    def find_boundary_at(self, pos: Point) -> Optional[str]:
        """First visible boundary whose polygon contains pos."""
        for boundary in self.boundaries:
            if boundary.visible and point_in_polygon(pos, boundary.points):
                return boundary.id
        return None

    # -------------------------------------------------------------------------
    # Pointer events
    # -------------------------------------------------------------------------

    @_while_open
    def pointer_down(self, sx: float, sy: float, scale_x: float = 1.0, scale_y: float = 1.0) -> None:
        if self.active_tool == "pan":
            self._panning = True
            self._pan_start = (sx * scale_x - self.view.pan_x, sy * scale_y - self.view.pan_y)
            return

        pos = self.screen_to_image(sx, sy, scale_x, scale_y)

        if self.active_tool == "select":
            point_ref = self.find_point_at(pos)
            if point_ref is not None:
                self.selected_point       = point_ref
                self.selected_boundary_id = point_ref[0]
                self._dragging            = True
                self._drag_moved          = False
                return
            self.selected_point       = None
            self.selected_boundary_id = self.find_boundary_at(pos)
            return

        if self.active_tool == "draw":
            if not self.is_drawing:
                logger.debug("Started drawing %s", self.active_surface_type)
            self.drawing_points.append(pos)

    @_while_open
    def pointer_move(self, sx: float, sy: float, scale_x: float = 1.0, scale_y: float = 1.0) -> None:
        if self._panning:
            self.view.set_pan(sx * scale_x - self._pan_start[0], sy * scale_y - self._pan_start[1])
            return

        if self._dragging and self.selected_point is not None and self.active_tool == "select":
            boundary_id, idx = self.selected_point
            boundary = self.get_boundary(boundary_id)
            if boundary is None:
                return
            boundary.points[idx] = self.screen_to_image(sx, sy, scale_x, scale_y)
            self._drag_moved = True

    @_while_open
    def pointer_up(self) -> None:
        """End a pan or a vertex drag; a drag that moved its vertex is committed once."""
        if self._panning:
            self._panning = False
            return

        if self._dragging:
            if self._drag_moved:
                self._commit("move vertex")
            self.selected_point = None
        self._end_pointer_interaction()

    def _end_pointer_interaction(self) -> None:
        self._dragging   = False
        self._drag_moved = False
        self._panning    = False

    @_while_open
    def double_click(self) -> None:
        """
        Close the polygon being drawn; fewer than 3 vertices is a no-op.

        The first press of a double-click has already placed a vertex, so a
        last vertex within the hit radius of the one before it is dropped.
        """
        if self.active_tool != "draw":
            return
        if len(self.drawing_points) >= 2:
            last, previous = self.drawing_points[-1], self.drawing_points[-2]
            if distance(last, previous) < self.hit_threshold / self.view.zoom:
                self.drawing_points.pop()
        if len(self.drawing_points) < 3:
            return
        boundary = SurfaceBoundary(
            id      = make_boundary_id(
                self.active_surface_type,
                (b.id for b in self.boundaries),
                now_ms=self._clock_ms() if self._clock_ms else None,
            ),
            type    = self.active_surface_type,
            points  = self.drawing_points,
            visible = True,
        )
        self.boundaries.append(boundary)
        self.drawing_points = []
        self._commit(f"add {boundary.id}")

    @_while_open
    def cancel_drawing(self) -> None:
        if self.is_drawing:
            logger.debug("Discarded %d drawing point(s)", len(self.drawing_points))
        self.drawing_points = []

    @_while_open
    def key_press(self, key: str, ctrl: bool = False, shift: bool = False) -> bool:
        """
        Apply a keyboard shortcut.

        Args:
            key: Key name, case-insensitive ('escape', 'delete', 'backspace', 'z').
            ctrl: Platform modifier (Ctrl or Cmd) held.
            shift: Shift held.

        Returns:
            bool: True when the key mapped to an editor action.
        """
        key = (key or "").lower()
        if key == "escape":
            self.cancel_drawing()
            return True
        if key in ("delete", "backspace"):
            self.delete_selected()
            return True
        if ctrl and key == "z":
            if shift:
                self.redo()
            else:
                self.undo()
            return True
        return False

    # -------------------------------------------------------------------------
    # Boundary operations
    # -------------------------------------------------------------------------

    @_while_open
    def select_boundary(self, boundary_id: Optional[str]) -> None:
        self.selected_point = None
        self.selected_boundary_id = boundary_id if self.get_boundary(boundary_id) else None

    @_while_open
    def clear_selection(self) -> None:
        self.selected_boundary_id = None
        self.selected_point       = None

    @_while_open
    def delete_selected(self) -> None:
        if self.selected_boundary_id is None:
            return
        doomed = self.selected_boundary_id
        self.boundaries = [b for b in self.boundaries if b.id != doomed]
        self.selected_boundary_id = None
        self.selected_point       = None
        self._end_pointer_interaction()
        self._commit(f"delete {doomed}")

    @_while_open
    def toggle_visibility(self, boundary_id: str) -> None:
        """Flip a boundary's visible flag. Not recorded in history."""
        boundary = self.get_boundary(boundary_id)
        if boundary is not None:
            boundary.visible = not boundary.visible

    @_while_open
    def reset(self) -> None:
        """Restore the boundaries the session was opened with, as a new history entry."""
        self.boundaries = clone_boundaries(self._initial)
        self.selected_boundary_id = None
        self.selected_point       = None
        self._end_pointer_interaction()
        self._commit("reset")

    @_while_open
    def undo(self) -> None:
        restored = self.history.undo()
        if restored is None:
            logger.debug("Nothing to undo")
            return
        self._restore(restored)

    @_while_open
    def redo(self) -> None:
        restored = self.history.redo()
        if restored is None:
            logger.debug("Nothing to redo")
            return
        self._restore(restored)

    def _restore(self, boundaries: List[SurfaceBoundary]) -> None:
        # Visibility flags are not part of history
        current_visibility = {b.id: b.visible for b in self.boundaries}
        for b in boundaries:
            if b.id in current_visibility:
                b.visible = current_visibility[b.id]
        self.boundaries = boundaries
        self.selected_point = None
        self._end_pointer_interaction()
        if self.get_boundary(self.selected_boundary_id) is None:
            self.selected_boundary_id = None

    def _commit(self, action: str) -> None:
        self.history.commit(self.boundaries)
        logger.info("%s (%d surface(s), history %d)", action, len(self.boundaries), self.history.cursor)

    # -------------------------------------------------------------------------
    # View
    # -------------------------------------------------------------------------

    @_while_open
    def zoom_in(self) -> None:
        self.view.zoom_by(config.ZOOM_STEP)

    @_while_open
    def zoom_out(self) -> None:
        self.view.zoom_by(1 / config.ZOOM_STEP)

    @_while_open
    def zoom_at(self, sx: float, sy: float, factor: float, scale_x: float = 1.0, scale_y: float = 1.0) -> None:
        self.view.zoom_at(sx, sy, factor, scale_x, scale_y)

    @_while_open
    def reset_view(self) -> None:
        self.view.reset()

    # -------------------------------------------------------------------------
    # Session end
    # -------------------------------------------------------------------------

    @_while_open
    def save(self) -> List[SurfaceBoundary]:
        """Hand the committed boundaries to the host and end the session."""
        result = clone_boundaries(self.boundaries)
        self.closed = True
        logger.info("Saved %d surface(s)", len(result))
        if self.on_save is not None:
            self.on_save(result)
        return result

    @_while_open
    def cancel(self) -> None:
        self.closed = True
        logger.info("Editing cancelled")
        if self.on_cancel is not None:
            self.on_cancel()
