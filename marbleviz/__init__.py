from .editor_state import EditorState
from .geometry_utils import Point
from .history import BoundaryHistory
from .surface_boundary import SurfaceBoundary
from .view_transform import ViewTransform
from . import boundary_io, config
