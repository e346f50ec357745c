"""
Interactive Surface Boundary Editor for room photos.

Displays a room photo with wall, floor and ceiling boundaries overlaid as
coloured polygons and lets the user adjust them before the photo is sent for
marble re-rendering. All editing logic lives in EditorState; this module only
renders that state with matplotlib and translates canvas events into state
operations.

Controls:
    v             Select tool (click vertex to drag, click polygon to select)
    p             Draw tool (click to place vertices, double-click to close)
    m             Pan tool (drag to move the view)
    Scroll        Zoom centred on cursor
    +/-           Zoom in / out
    r             Reset view
    Escape        Discard polygon being drawn
    Delete        Delete selected surface (Backspace too)
    Ctrl+Z        Undo
    Ctrl+Shift+Z  Redo

Usage:
    from marbleviz.surface_boundary_editor import SurfaceBoundaryEditor
    editor = SurfaceBoundaryEditor("room.jpg", initial_boundaries, on_save=print)
    editor.launch()
"""

# fmt: off
# autopep8: off

# Standard library imports
from typing import Callable, List, Optional, Sequence, Tuple

# Third-party imports
import matplotlib.pyplot as plt
from matplotlib.colors import to_rgba
from matplotlib.patches import FancyBboxPatch, Polygon
from matplotlib.widgets import Button
import numpy as np

# Marbleviz imports
from marbleviz import config, utils
from marbleviz.editor_state import EditorState
from marbleviz.geometry_utils import polygon_centroid
from marbleviz.surface_boundary import SurfaceBoundary

# Default matplotlib shortcuts that collide with editor keys
_CLEARED_KEYMAPS = (
    'keymap.back', 'keymap.forward', 'keymap.pan', 'keymap.home',
    'keymap.save', 'keymap.zoom', 'keymap.quit',
)

_MODIFIERS = {'ctrl': 'ctrl', 'cmd': 'ctrl', 'super': 'ctrl', 'shift': 'shift', 'alt': 'alt'}


def parse_key(key: Optional[str]) -> Tuple[str, bool, bool]:
    """
    Split a matplotlib key string into (key, ctrl, shift).

    matplotlib reports modifiers as prefixes ('ctrl+z', 'cmd+z',
    'ctrl+shift+z') and on most backends folds Shift into the letter case
    ('ctrl+Z'). Cmd is treated like Ctrl so the same bindings work on macOS.
    """
    if not key:
        return '', False, False
    if key == '+':
        return '+', False, False
    if key.endswith('++'):
        base, mod_parts = '+', key[:-2].split('+')
    else:
        *mod_parts, base = key.split('+')
    mods  = {_MODIFIERS.get(m, m) for m in mod_parts}
    shift = 'shift' in mods
    if len(base) == 1 and base.isalpha() and base.isupper():
        shift = True
        base  = base.lower()
    return base.lower() if len(base) > 1 else base, 'ctrl' in mods, shift


class SurfaceBoundaryEditor:
    """matplotlib front end for an EditorState session.

    The image is drawn at its native pixel size; the main axes limits are
    driven by the session's zoom/pan so matplotlib's data coordinates stay
    in image space. Pointer positions are converted through the session's
    own view transform, using the axes' on-screen size to account for the
    difference between displayed and native resolution.

    Args:
        image_ref: Path or URL of the room photo.
        initial_boundaries: Boundaries to start from, e.g. from automated
            surface detection.
        on_save: Called with the final List[SurfaceBoundary] on save.
        on_cancel: Called with no arguments on cancel or window close.
        image: Pre-loaded (H, W, 3) array; skips loading image_ref.
    """

    _WINDOW_TITLE = "Marbleviz - Adjust Surface Boundaries"

    def __init__(
        self,
        image_ref:          str,
        initial_boundaries: Optional[Sequence[SurfaceBoundary]]                 = None,
        on_save:            Optional[Callable[[List[SurfaceBoundary]], None]]   = None,
        on_cancel:          Optional[Callable[[], None]]                        = None,
        image:              Optional[np.ndarray]                                = None,
    ):
        self.image_ref                                  = str(image_ref)
        self._host_on_save                              = on_save
        self._host_on_cancel                            = on_cancel
        self.state:             EditorState             = EditorState(
            image_ref           = self.image_ref,
            initial_boundaries  = initial_boundaries,
            on_save             = self._handle_saved,
            on_cancel           = self._handle_cancelled,
        )
        self.result:            Optional[List[SurfaceBoundary]] = None

        self._image:            Optional[np.ndarray]    = image
        self._image_width:      int                     = 1
        self._image_height:     int                     = 1

        self.fig                                        = None
        self.ax                                         = None
        self.ax_list                                    = None
        self.status_text                                = None
        self.count_text                                 = None
        self._cids:             List[int]               = []
        self._list_hit_boxes:   List[Tuple]             = []
        self._tool_buttons:     dict                    = {}
        self._surface_buttons:  dict                    = {}

        self._btn_color         = '#E8E8E0'
        self._btn_hover         = '#D8D8D0'
        self._btn_active        = '#9DC3F7'
        self._btn_disabled_text = '#A0A0A0'

    # -------------------------------------------------------------------------
    # Layout helper: top-left coordinate system
    # -------------------------------------------------------------------------

    def _axes(self, x, y, w, h):
        """Create figure axes at (x, y) measured from the top-left corner."""
        return self.fig.add_axes((x, 1.0 - y - h, w, h))

    # -------------------------------------------------------------------------
    # Launch / teardown
    # -------------------------------------------------------------------------

    def launch(self, show: bool = True):
        """Open the editor window. With show=False the figure is built but not shown."""
        if self._image is None:
            self._image = utils.load_image(self.image_ref)
        if self._image is None:
            raise FileNotFoundError(f"Could not load image: {self.image_ref}")
        self._image_height, self._image_width = self._image.shape[:2]

        for name in _CLEARED_KEYMAPS:
            if name in plt.rcParams:
                plt.rcParams[name] = []

        self.fig = plt.figure(figsize=(16, 9), facecolor='#1F1F1F')
        self.fig.canvas.manager.set_window_title(self._WINDOW_TITLE)

        # Main image area (top-left: x=0.10, y=0.07, w=0.66, h=0.86)
        self.ax = self._axes(0.10, 0.07, 0.66, 0.86)
        self.ax.set_facecolor('#171717')

        self._setup_toolbar()
        self._setup_side_panel()
        self._connect_events()
        self._render()

        print("\n=== Surface Boundary Editor ===")
        print(f"Image: {self.image_ref} ({self._image_width}x{self._image_height})")
        print(f"Loaded {len(self.state.boundaries)} surface boundaries")
        print("v: select | p: draw | m: pan | Esc: cancel drawing | Del: delete | Ctrl+Z: undo")
        print("===============================\n")
        if show:
            plt.show()

    def _connect_events(self):
        canvas = self.fig.canvas
        self._cids = [
            canvas.mpl_connect('button_press_event',   self._on_button_press),
            canvas.mpl_connect('button_press_event',   self._on_list_click),
            canvas.mpl_connect('button_release_event', self._on_button_release),
            canvas.mpl_connect('motion_notify_event',  self._on_mouse_motion),
            canvas.mpl_connect('axes_leave_event',     self._on_axes_leave),
            canvas.mpl_connect('scroll_event',         self._on_scroll),
            canvas.mpl_connect('key_press_event',      self._on_key_press),
            canvas.mpl_connect('close_event',          self._on_window_close),
        ]

    def _disconnect_events(self):
        if self.fig is None:
            return
        for cid in self._cids:
            self.fig.canvas.mpl_disconnect(cid)
        self._cids = []

    @property
    def is_connected(self) -> bool:
        return bool(self._cids)

    def _handle_saved(self, boundaries: List[SurfaceBoundary]):
        self.result = boundaries
        print(f"Saved {len(boundaries)} surface boundaries")
        if self._host_on_save is not None:
            self._host_on_save(boundaries)
        self._close()

    def _handle_cancelled(self):
        print("Boundary edits discarded")
        if self._host_on_cancel is not None:
            self._host_on_cancel()
        self._close()

    def _close(self):
        self._disconnect_events()
        if self.fig is not None:
            plt.close(self.fig)

    def _on_window_close(self, event):
        """Closing the window without saving discards the session."""
        if not self.state.closed:
            self.state.cancel()

    # -------------------------------------------------------------------------
    # UI setup
    # -------------------------------------------------------------------------

    def _make_button(self, x, y, w, h, label, callback, fontsize=8):
        btn = Button(self._axes(x, y, w, h), label, color=self._btn_color, hovercolor=self._btn_hover)
        btn.label.set_fontsize(fontsize)
        btn.on_clicked(callback)
        return btn

    def _setup_toolbar(self):
        """Left toolbar: tools, view and history buttons."""
        tx, tw, th, gap = 0.015, 0.07, 0.04, 0.008

        def header(y, text):
            ax = self._axes(tx, y, tw, 0.02)
            ax.axis('off')
            ax.text(0, 0.5, text, fontsize=8, color='#B0B0B0', fontweight='bold')

        header(0.07, "TOOLS")
        y = 0.10
        for tool, label in [('select', 'Select (V)'), ('draw', 'Draw (P)'), ('pan', 'Pan (M)')]:
            self._tool_buttons[tool] = self._make_button(
                tx, y, tw, th, label, lambda event, t=tool: self._on_tool_click(t))
            y += th + gap

        header(y + 0.01, "VIEW")
        y += 0.04
        self.btn_zoom_in    = self._make_button(tx, y, tw, th, 'Zoom In (+)',  self._on_zoom_in_click)
        y += th + gap
        self.btn_zoom_out   = self._make_button(tx, y, tw, th, 'Zoom Out (-)', self._on_zoom_out_click)
        y += th + gap
        self.btn_reset_view = self._make_button(tx, y, tw, th, 'Reset View',   self._on_reset_view_click)
        y += th + gap

        header(y + 0.01, "HISTORY")
        y += 0.04
        self.btn_undo  = self._make_button(tx, y, tw, th, 'Undo',  self._on_undo_click)
        y += th + gap
        self.btn_redo  = self._make_button(tx, y, tw, th, 'Redo',  self._on_redo_click)
        y += th + gap
        self.btn_reset = self._make_button(tx, y, tw, th, 'Reset to\nDetection', self._on_reset_click, fontsize=7)

        # Status bar under the image
        ax_status = self._axes(0.10, 0.945, 0.66, 0.03)
        ax_status.axis('off')
        self.status_text = ax_status.text(0, 0.5, "", fontsize=9, color='#D0D0D0', va='center')
        ax_hint = self._axes(0.50, 0.945, 0.26, 0.03)
        ax_hint.axis('off')
        ax_hint.text(1, 0.5, "Esc: cancel drawing  •  Delete: remove selected surface",
                     fontsize=8, color='#909090', ha='right', va='center')

        # Title
        ax_title = self._axes(0.10, 0.015, 0.5, 0.04)
        ax_title.axis('off')
        ax_title.text(0, 0.5, "Adjust Surface Boundaries", fontsize=13, fontweight='bold',
                      color='#F0F0F0', va='center')

    def _setup_side_panel(self):
        """Right panel: save/cancel, surface type, layers list, delete and legend."""
        px, pw = 0.79, 0.19

        self.btn_cancel = self._make_button(px, 0.015, pw / 2 - 0.004, 0.04, 'Cancel', self._on_cancel_click)
        self.btn_save   = self._make_button(px + pw / 2 + 0.004, 0.015, pw / 2 - 0.004, 0.04,
                                            'Save Changes', self._on_save_click)
        self.btn_save.color = '#C8E6C9'
        self.btn_save.hovercolor = '#A5D6A7'
        self.btn_save.ax.set_facecolor('#C8E6C9')

        ax_hdr = self._axes(px, 0.07, pw, 0.025)
        ax_hdr.axis('off')
        ax_hdr.text(0, 0.5, "DRAWING SURFACE TYPE:", fontsize=9, fontweight='bold', color='#D0D0D0')

        bw = (pw - 2 * 0.006) / 3
        for i, surface in enumerate(config.SURFACE_TYPES):
            btn = self._make_button(
                px + i * (bw + 0.006), 0.10, bw, 0.04, config.SURFACE_COLORS[surface]['name'],
                lambda event, s=surface: self._on_surface_type_click(s))
            self._surface_buttons[surface] = btn

        ax_layers = self._axes(px, 0.16, pw, 0.025)
        ax_layers.axis('off')
        ax_layers.text(0, 0.5, "SURFACE LAYERS:", fontsize=9, fontweight='bold', color='#D0D0D0')
        self.count_text = ax_layers.text(1, 0.5, "", fontsize=8, color='#909090', ha='right')

        self.ax_list = self._axes(px, 0.19, pw, 0.52)
        self.ax_list.set_facecolor('#2A2A2A')
        self.ax_list.tick_params(left=False, bottom=False, labelleft=False, labelbottom=False)
        for spine in self.ax_list.spines.values():
            spine.set_edgecolor('#444444')
            spine.set_linewidth(0.5)

        self.btn_delete = self._make_button(px, 0.73, pw, 0.04, 'Delete Selected Surface', self._on_delete_click)

        # Legend (colour key)
        ax_legend = self._axes(px, 0.80, pw, 0.13)
        ax_legend.axis('off')
        ax_legend.text(0.01, 0.92, "LEGEND", fontsize=8, fontweight='bold', color='#D0D0D0',
                       transform=ax_legend.transAxes)
        for i, surface in enumerate(config.SURFACE_TYPES):
            colors = config.SURFACE_COLORS[surface]
            y0 = 0.68 - i * 0.25
            rect = FancyBboxPatch((0.01, y0 - 0.07), 0.06, 0.14,
                                  boxstyle='round,pad=0.01',
                                  facecolor=colors['stroke'], edgecolor=colors['stroke'],
                                  transform=ax_legend.transAxes, clip_on=False)
            ax_legend.add_patch(rect)
            ax_legend.text(0.10, y0, colors['name'], fontsize=8, color='#D0D0D0',
                           va='center', transform=ax_legend.transAxes)

    # -------------------------------------------------------------------------
    # Coordinate mapping
    # -------------------------------------------------------------------------

    def _screen_coords(self, event) -> Optional[Tuple[float, float, float, float]]:
        """Event position relative to the image axes' top-left, plus backing scale.

        Returns:
            (sx, sy, scale_x, scale_y) or None when the axes has no extent.
        """
        if event.x is None or event.y is None:
            return None
        bbox = self.ax.get_window_extent()
        if bbox.width <= 0 or bbox.height <= 0:
            return None
        sx = event.x - bbox.x0
        sy = bbox.y1 - event.y
        return sx, sy, self._image_width / bbox.width, self._image_height / bbox.height

    # -------------------------------------------------------------------------
    # Event handlers
    # -------------------------------------------------------------------------

    def _on_button_press(self, event):
        if event.inaxes != self.ax or event.button != 1:
            return
        if getattr(event, 'dblclick', False):
            self.state.double_click()
        else:
            coords = self._screen_coords(event)
            if coords is None:
                return
            self.state.pointer_down(*coords)
        self._render()

    def _on_button_release(self, event):
        if not (self.state.is_dragging or self.state.is_panning):
            return
        self.state.pointer_up()
        self._render()

    def _on_mouse_motion(self, event):
        if not (self.state.is_dragging or self.state.is_panning):
            return
        coords = self._screen_coords(event)
        if coords is None:
            return
        self.state.pointer_move(*coords)
        self._render()

    def _on_axes_leave(self, event):
        if event.inaxes == self.ax and (self.state.is_dragging or self.state.is_panning):
            self.state.pointer_up()
            self._render()

    def _on_scroll(self, event):
        """Scroll wheel zoom centred on the cursor."""
        if event.inaxes != self.ax:
            return
        coords = self._screen_coords(event)
        if coords is None:
            return
        sx, sy, scale_x, scale_y = coords
        factor = config.ZOOM_STEP if event.button == 'up' else 1 / config.ZOOM_STEP
        self.state.zoom_at(sx, sy, factor, scale_x, scale_y)
        self._render()

    def _on_key_press(self, event):
        key, ctrl, shift = parse_key(event.key)
        if self.state.key_press(key, ctrl=ctrl, shift=shift):
            if not self.state.closed:
                self._render()
            return
        if ctrl:
            return
        if key == 'v':
            self._on_tool_click('select')
        elif key == 'p':
            self._on_tool_click('draw')
        elif key == 'm':
            self._on_tool_click('pan')
        elif key in ('+', '='):
            self._on_zoom_in_click(None)
        elif key == '-':
            self._on_zoom_out_click(None)
        elif key == 'r':
            self._on_reset_view_click(None)

    def _on_list_click(self, event):
        """Click a layer row to select it; click its eye column to toggle visibility."""
        if event.inaxes != self.ax_list or event.xdata is None or event.ydata is None:
            return
        for y_lo, y_hi, boundary_id in self._list_hit_boxes:
            if y_lo <= event.ydata <= y_hi:
                if event.xdata >= 0.82:
                    self.state.toggle_visibility(boundary_id)
                else:
                    self.state.select_boundary(boundary_id)
                self._render()
                return

    # -------------------------------------------------------------------------
    # Button callbacks
    # -------------------------------------------------------------------------

    def _on_tool_click(self, tool: str):
        self.state.set_tool(tool)
        self._render()

    def _on_surface_type_click(self, surface_type: str):
        self.state.set_surface_type(surface_type)
        self._render()

    def _on_zoom_in_click(self, event):
        self.state.zoom_in()
        self._render()

    def _on_zoom_out_click(self, event):
        self.state.zoom_out()
        self._render()

    def _on_reset_view_click(self, event):
        self.state.reset_view()
        self._render()

    def _on_undo_click(self, event):
        self.state.undo()
        self._render()

    def _on_redo_click(self, event):
        self.state.redo()
        self._render()

    def _on_reset_click(self, event):
        self.state.reset()
        self._render()

    def _on_delete_click(self, event):
        self.state.delete_selected()
        self._render()

    def _on_save_click(self, event):
        self.state.save()

    def _on_cancel_click(self, event):
        self.state.cancel()

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    def _render(self):
        """Redraw image, boundaries and panel from the current session state."""
        if self.fig is None or self.state.closed:
            return
        state = self.state
        self.ax.clear()
        self.ax.imshow(self._image, origin='upper',
                       extent=[0, self._image_width, self._image_height, 0], zorder=0)

        for boundary in state.boundaries:
            self._draw_boundary(boundary)
        self._draw_in_progress()

        x0, x1, y0, y1 = state.view.visible_extent(self._image_width, self._image_height)
        self.ax.set_xlim(x0, x1)
        self.ax.set_ylim(y1, y0)
        self.ax.set_aspect('equal', adjustable='box')
        self.ax.axis('off')

        self._update_panel()
        self.fig.canvas.draw_idle()

    def _draw_boundary(self, boundary: SurfaceBoundary):
        if not boundary.visible or len(boundary.points) < 2:
            return
        colors       = config.SURFACE_COLORS[boundary.type]
        is_selected  = boundary.id == self.state.selected_boundary_id
        verts        = [(p.x, p.y) for p in boundary.points]

        poly = Polygon(
            verts, closed=True,
            facecolor=to_rgba(colors['stroke'], colors['fill_alpha']),
            edgecolor=config.SELECTED_COLOR if is_selected else colors['stroke'],
            linewidth=3 if is_selected else 2,
            zorder=10,
        )
        self.ax.add_patch(poly)

        sel = self.state.selected_point
        sizes, faces = [], []
        for idx in range(len(verts)):
            is_point_selected = sel is not None and sel[0] == boundary.id and sel[1] == idx
            sizes.append((8 if is_point_selected else 6) ** 2)
            faces.append(config.SELECTED_COLOR if is_point_selected else colors['stroke'])
        xs, ys = zip(*verts)
        self.ax.scatter(xs, ys, s=sizes, c=faces,
                        edgecolors=config.SELECTED_COLOR if is_selected else colors['stroke'],
                        linewidths=1.5, zorder=20)

        if is_selected:
            centroid = polygon_centroid(boundary.points)
            self.ax.text(centroid.x, centroid.y, colors['name'], color='white',
                         fontsize=9, fontweight='bold', ha='center', va='center', zorder=30)

    def _draw_in_progress(self):
        """Dashed open polyline for the polygon being drawn; never filled."""
        points = self.state.drawing_points
        if not points:
            return
        stroke = config.SURFACE_COLORS[self.state.active_surface_type]['stroke']
        xs = [p.x for p in points]
        ys = [p.y for p in points]
        self.ax.plot(xs, ys, linestyle='--', color=stroke, linewidth=2, zorder=40)
        self.ax.scatter(xs, ys, s=6 ** 2, c=stroke, zorder=41)

    def _update_panel(self):
        state = self.state
        self.status_text.set_text(state.status_line())
        self.count_text.set_text(state.surface_count_label())

        for tool, btn in self._tool_buttons.items():
            self._set_button_color(btn, self._btn_active if tool == state.active_tool else self._btn_color)
        for surface, btn in self._surface_buttons.items():
            active = surface == state.active_surface_type
            self._set_button_color(btn, self._btn_active if active else self._btn_color)
            btn.ax.set_visible(state.active_tool == 'draw')

        self.btn_undo.label.set_color('black' if state.can_undo else self._btn_disabled_text)
        self.btn_redo.label.set_color('black' if state.can_redo else self._btn_disabled_text)
        self.btn_delete.ax.set_visible(state.selected_boundary_id is not None)

        self._update_layer_list()

    def _set_button_color(self, btn, color):
        btn.color = color
        btn.ax.set_facecolor(color)

    def _update_layer_list(self):
        """Redraw the layer rows and rebuild their click hit boxes."""
        self.ax_list.clear()
        self.ax_list.set_facecolor('#2A2A2A')
        self.ax_list.set_xlim(0, 1)
        self.ax_list.set_ylim(0, 1)
        self.ax_list.tick_params(left=False, bottom=False, labelleft=False, labelbottom=False)
        self._list_hit_boxes = []

        boundaries = self.state.boundaries
        if not boundaries:
            self.ax_list.text(0.5, 0.5, "No surfaces detected.\nUse the draw tool to add surfaces.",
                              fontsize=8, color='#909090', ha='center', va='center')
            return

        row_h    = 0.055
        max_rows = int(0.96 / row_h)
        for i, boundary in enumerate(boundaries[:max_rows]):
            y_hi = 0.98 - i * row_h
            y_lo = y_hi - row_h
            y_mid = (y_lo + y_hi) / 2
            colors = config.SURFACE_COLORS[boundary.type]
            if boundary.id == self.state.selected_boundary_id:
                self.ax_list.axhspan(y_lo, y_hi, color='#3B82F6', alpha=0.25)
            self.ax_list.add_patch(FancyBboxPatch(
                (0.03, y_mid - row_h * 0.25), 0.05, row_h * 0.5,
                boxstyle='round,pad=0.005', facecolor=colors['stroke'], edgecolor=colors['stroke']))
            self.ax_list.text(0.12, y_mid, colors['name'], fontsize=8, va='center',
                              color='#E0E0E0' if boundary.visible else '#808080')
            self.ax_list.text(0.90, y_mid, 'on' if boundary.visible else 'off', fontsize=7,
                              va='center', ha='center', color='#B0B0B0')
            self._list_hit_boxes.append((y_lo, y_hi, boundary.id))

        hidden = len(boundaries) - max_rows
        if hidden > 0:
            self.ax_list.text(0.5, 0.01, f"+{hidden} more", fontsize=7, color='#909090',
                              ha='center', va='bottom')
