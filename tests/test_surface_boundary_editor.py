# Standard library imports
from types import SimpleNamespace

# Third-party imports
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import pytest

# Marbleviz imports
from marbleviz.geometry_utils import Point
from marbleviz.surface_boundary import SurfaceBoundary
from marbleviz.surface_boundary_editor import SurfaceBoundaryEditor, parse_key


@pytest.fixture
def host():
    """Records host callbacks"""
    return SimpleNamespace(saved=[], cancelled=[])


@pytest.fixture
def editor(host):
    """Headless editor over a blank 300x200 photo with one wall"""
    wall = SurfaceBoundary("walls-1", "walls", [(20, 20), (120, 20), (120, 120), (20, 120)])
    ed = SurfaceBoundaryEditor(
        "room.jpg",
        [wall],
        on_save=host.saved.append,
        on_cancel=lambda: host.cancelled.append(True),
        image=np.zeros((200, 300, 3), dtype=np.float32),
    )
    ed.launch(show=False)
    ed.fig.canvas.draw()
    yield ed
    plt.close("all")


def mouse_event(editor, ix, iy, button=1, dblclick=False, axes=None):
    """Canvas event positioned over image coordinates (ix, iy)."""
    x, y = editor.ax.transData.transform((ix, iy))
    return SimpleNamespace(x=x, y=y, xdata=ix, ydata=iy, inaxes=axes or editor.ax,
                           button=button, dblclick=dblclick, key=None)


def key_event(key):
    return SimpleNamespace(key=key)


class TestParseKey:
    """Tests for matplotlib key string parsing"""

    @pytest.mark.parametrize("key, expected", [
        ("ctrl+z",        ("z", True, False)),
        ("ctrl+Z",        ("z", True, True)),
        ("ctrl+shift+z",  ("z", True, True)),
        ("cmd+z",         ("z", True, False)),
        ("escape",        ("escape", False, False)),
        ("delete",        ("delete", False, False)),
        ("+",             ("+", False, False)),
        ("ctrl++",        ("+", True, False)),
        (None,            ("", False, False)),
    ])
    def test_parse(self, key, expected):
        assert parse_key(key) == expected


class TestEditorWindow:
    """Tests for the matplotlib front end driven by synthetic events"""

    def test_launch_renders_state(self, editor):
        assert editor.is_connected
        assert editor.status_text.get_text() == "Zoom: 100% • Tool: Select"
        assert editor.count_text.get_text() == "1 surface detected"
        assert len(editor._list_hit_boxes) == 1

    def test_missing_image_raises(self, tmp_path):
        ed = SurfaceBoundaryEditor(str(tmp_path / "missing.jpg"))
        with pytest.raises(FileNotFoundError):
            ed.launch(show=False)

    def test_draw_and_save(self, editor, host):
        editor._on_key_press(key_event("p"))
        editor._on_surface_type_click("floors")
        for ix, iy in [(150, 30), (250, 30), (250, 150), (150, 150)]:
            editor._on_button_press(mouse_event(editor, ix, iy))
            editor._on_button_release(mouse_event(editor, ix, iy))
        # matplotlib reports a double-click as press, release, then a dblclick press
        editor._on_button_press(mouse_event(editor, 150, 150))
        editor._on_button_release(mouse_event(editor, 150, 150))
        editor._on_button_press(mouse_event(editor, 150, 150, dblclick=True))
        editor._on_button_release(mouse_event(editor, 150, 150))

        assert len(editor.state.boundaries) == 2
        new = editor.state.boundaries[1]
        assert new.type == "floors"
        assert [(p.x, p.y) for p in new.points] == [
            pytest.approx((150, 30)), pytest.approx((250, 30)),
            pytest.approx((250, 150)), pytest.approx((150, 150)),
        ]

        fig = editor.fig
        editor._on_save_click(None)
        assert len(host.saved) == 1
        assert [b.type for b in host.saved[0]] == ["walls", "floors"]
        assert editor.result == host.saved[0]
        assert not editor.is_connected
        assert not plt.fignum_exists(fig.number)

    def test_drag_vertex_and_undo(self, editor):
        editor._on_button_press(mouse_event(editor, 120, 120))
        editor._on_mouse_motion(mouse_event(editor, 140, 150))
        editor._on_button_release(mouse_event(editor, 140, 150))
        moved = editor.state.boundaries[0].points[2]
        assert (moved.x, moved.y) == pytest.approx((140, 150))

        editor._on_key_press(key_event("ctrl+z"))
        assert editor.state.boundaries[0].points[2] == Point(120, 120)
        editor._on_key_press(key_event("ctrl+Z"))
        moved = editor.state.boundaries[0].points[2]
        assert (moved.x, moved.y) == pytest.approx((140, 150))

    def test_scroll_zoom_keeps_cursor_point(self, editor):
        event = mouse_event(editor, 60, 80)
        event.button = "up"
        editor._on_scroll(event)
        editor.fig.canvas.draw()
        assert editor.state.view.zoom == pytest.approx(1.2)
        # The same display position still maps to image (60, 80)
        xdata, ydata = editor.ax.transData.inverted().transform((event.x, event.y))
        assert (xdata, ydata) == pytest.approx((60, 80), abs=1e-3)

    def test_layer_list_toggles_visibility_and_selects(self, editor):
        y_lo, y_hi, boundary_id = editor._list_hit_boxes[0]
        y_mid = (y_lo + y_hi) / 2

        editor._on_list_click(SimpleNamespace(inaxes=editor.ax_list, xdata=0.9, ydata=y_mid))
        assert editor.state.get_boundary(boundary_id).visible is False
        assert not editor.state.can_undo

        editor._on_list_click(SimpleNamespace(inaxes=editor.ax_list, xdata=0.3, ydata=y_mid))
        assert editor.state.selected_boundary_id == boundary_id
        assert editor.btn_delete.ax.get_visible()

    def test_delete_key(self, editor):
        editor._on_button_press(mouse_event(editor, 60, 60))
        editor._on_key_press(key_event("delete"))
        assert editor.state.boundaries == []
        assert editor.count_text.get_text() == "0 surfaces detected"

    def test_window_close_cancels(self, editor, host):
        editor._on_window_close(None)
        assert host.cancelled == [True]
        assert host.saved == []
        assert editor.state.closed

    def test_cancel_button(self, editor, host):
        editor._on_cancel_click(None)
        assert host.cancelled == [True]
        assert not editor.is_connected

    def test_pan_tool(self, editor):
        editor._on_key_press(key_event("m"))
        editor._on_button_press(mouse_event(editor, 100, 100))
        editor._on_mouse_motion(mouse_event(editor, 110, 90))
        editor._on_button_release(mouse_event(editor, 110, 90))
        pan = editor.state.view.pan
        assert (pan.x, pan.y) == pytest.approx((10, -10))
        assert len(editor.state.history) == 1
