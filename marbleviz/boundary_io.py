"""Host-side persistence for surface boundaries.

The editor itself owns no file format; these helpers let a host (such as
examples/surface_boundary_editor.py) keep a JSON session next to the photo
and export a flat CSV of every vertex.

Session format:
    {
        "image": "<path or URL>",
        "boundaries": [
            {"id": "walls-1700000000000", "type": "walls",
             "points": [{"x": 10.0, "y": 12.5}, ...], "visible": true},
            ...
        ]
    }
"""

# Marbleviz imports
from marbleviz import config
from marbleviz.surface_boundary import SurfaceBoundary

# Standard library imports
import csv
import json
import logging
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

logger = logging.getLogger(__name__)

CSV_COLUMNS = ["boundary_id", "type", "visible", "point_index", "x", "y"]


def default_session_path(image_ref: Union[str, Path]) -> Path:
    """Session JSON beside a local image, or under BOUNDARY_DIR for URLs."""
    ref = str(image_ref)
    if ref.startswith(("http://", "https://")):
        stem = Path(ref.split("?", 1)[0]).stem or "remote_image"
        return config.BOUNDARY_DIR / f"{stem}_{config.SESSION_FILENAME}"
    path = Path(ref)
    return path.parent / f"{path.stem}_{config.SESSION_FILENAME}"


def parse_boundaries(entries: Sequence[dict]) -> List[SurfaceBoundary]:
    """Build boundaries from dicts, skipping any that are malformed or open."""
    boundaries = []
    for i, entry in enumerate(entries):
        try:
            boundary = SurfaceBoundary.from_dict(entry)
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Skipping boundary entry %d: %s", i, exc)
            continue
        if not boundary.is_closed:
            logger.warning("Skipping boundary '%s': fewer than 3 points", boundary.id)
            continue
        boundaries.append(boundary)
    return boundaries


def load_session(session_path: Union[str, Path]) -> Tuple[Optional[str], List[SurfaceBoundary]]:
    """
    Read a boundary session file.

    Args:
        session_path: JSON file written by save_session.

    Returns:
        tuple: (image reference or None, list of boundaries)

    Raises:
        FileNotFoundError: If the session file does not exist.
    """
    session_path = Path(session_path)
    if not session_path.exists():
        raise FileNotFoundError(f"Session file not found: {session_path}")

    with open(session_path, "r") as f:
        data = json.load(f)

    boundaries = parse_boundaries(data.get("boundaries", []))
    logger.info("Loaded %d boundaries from %s", len(boundaries), session_path)
    return data.get("image"), boundaries


def save_session(
    session_path:   Union[str, Path],
    image_ref:      Union[str, Path],
    boundaries:     Sequence[SurfaceBoundary],
) -> Path:
    """Write boundaries and their image reference to a JSON session file."""
    session_path = Path(session_path)
    session_path.parent.mkdir(parents=True, exist_ok=True)
    data = {
        "image":      str(image_ref),
        "boundaries": [b.to_dict() for b in boundaries],
    }
    with open(session_path, "w") as f:
        json.dump(data, f, indent=2)
    logger.info("Session saved to %s", session_path)
    return session_path


def export_boundaries_csv(
    boundaries:     Sequence[SurfaceBoundary],
    output_path:    Union[str, Path],
) -> Path:
    """Write one CSV row per vertex: boundary_id, type, visible, point_index, x, y."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(CSV_COLUMNS)
        for b in boundaries:
            for idx, p in enumerate(b.points):
                writer.writerow([b.id, b.type, b.visible, idx, f"{p.x:.2f}", f"{p.y:.2f}"])
    logger.info("Exported %d boundaries to %s", len(boundaries), output_path)
    return output_path
