r"""
Marbleviz Example: Adjust Detected Surface Boundaries
======================================================================================================

Opens the interactive surface boundary editor on a room photo. Boundaries are
read from a JSON session beside the photo when one exists (for example the
output of automated surface detection); otherwise the editor starts empty and
surfaces can be traced with the draw tool.

On "Save Changes" the edited boundaries are written back to the session file
and exported to a per-vertex CSV. "Cancel" (or closing the window) leaves the
session file untouched.

Input:              Room photo (path or http(s) URL), optional session JSON
Output:             Updated session JSON, surface_boundaries.csv

Controls:
    v / p / m     Select / Draw / Pan tool
    Double-click  Close the polygon being drawn (>= 3 points)
    Scroll        Zoom centred on cursor
    Escape        Discard the polygon being drawn
    Delete        Delete selected surface
    Ctrl+Z        Undo (Ctrl+Shift+Z redo)
"""

# fmt: off
# autopep8: off

# Marbleviz imports
from marbleviz import boundary_io, config
from marbleviz.surface_boundary_editor import SurfaceBoundaryEditor

# Standard library imports
import logging
from pathlib import Path

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s",
)

if __name__ == "__main__":

    image_ref           = config.INPUTS_DIR / "living_room.jpg"
    session_path        = boundary_io.default_session_path(image_ref)
    csv_path            = config.BOUNDARY_DIR / config.CSV_FILENAME

    initial_boundaries  = []
    if Path(session_path).exists():
        _, initial_boundaries = boundary_io.load_session(session_path)

    def on_save(boundaries):
        boundary_io.save_session(session_path, image_ref, boundaries)
        boundary_io.export_boundaries_csv(boundaries, csv_path)

    editor = SurfaceBoundaryEditor(
        image_ref           = str(image_ref),
        initial_boundaries  = initial_boundaries,
        on_save             = on_save,
    )
    editor.launch()
