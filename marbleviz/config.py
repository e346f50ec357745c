"""
Marbleviz Configuration Module
==============================

Centralized configuration for project paths, editor constants and surface
colours. Values that vary between machines can be overridden with
environment variables.
"""

# fmt: off
# autopep8: off

import os
from pathlib import Path

# Root directory of the project
PROJECT_ROOT        = Path(__file__).parent.parent

# Input/Output directories
INPUTS_DIR          = PROJECT_ROOT / "inputs"
OUTPUTS_DIR         = Path(os.getenv("MARBLEVIZ_OUTPUTS_DIR", str(PROJECT_ROOT / "outputs")))

# Output subdirectories
BOUNDARY_DIR        = OUTPUTS_DIR / "boundaries"
SESSION_FILENAME    = "boundary_session.json"
CSV_FILENAME        = "surface_boundaries.csv"

# ============================================================================
# EDITOR SETTINGS
# ============================================================================
# Vertex hit radius in screen pixels (divided by zoom before testing)
HIT_THRESHOLD_PX    = float(os.getenv("MARBLEVIZ_HIT_THRESHOLD_PX", "10"))

# Zoom controls
ZOOM_STEP           = 1.2
ZOOM_MIN            = 0.5
ZOOM_MAX            = 5.0

# Remote image fetch timeout (seconds)
IMAGE_FETCH_TIMEOUT = 30

# ============================================================================
# SURFACE TYPES
# ============================================================================
SURFACE_TYPES       = ("walls", "floors", "ceilings")
DEFAULT_SURFACE     = "walls"

TOOLS               = ("select", "draw", "pan")
DEFAULT_TOOL        = "select"

SURFACE_COLORS = {
    "walls"     : {"stroke": "#3B82F6", "fill_alpha": 0.3, "name": "Walls"},
    "floors"    : {"stroke": "#22C55E", "fill_alpha": 0.3, "name": "Floors"},
    "ceilings"  : {"stroke": "#EAB308", "fill_alpha": 0.3, "name": "Ceilings"},
}

SELECTED_COLOR      = "#FFFFFF"
