"""Linear undo/redo history of boundary snapshots."""

# Marbleviz imports
from marbleviz.surface_boundary import SurfaceBoundary, clone_boundaries

# Standard library imports
import logging
from typing import List, Optional, Sequence

logger = logging.getLogger(__name__)


class BoundaryHistory:
    """
    Full snapshots of the boundary set with a cursor.

    Entry 0 is the set the editor was opened with. Every commit truncates any
    redo branch, appends a deep copy and advances the cursor. Restores hand
    back deep copies so the stored snapshots are never aliased.

    Args:
        initial: Boundary set the editing session starts from.
    """

    def __init__(self, initial: Sequence[SurfaceBoundary]):
        self._snapshots:    List[List[SurfaceBoundary]] = [clone_boundaries(initial)]
        self._cursor:       int                         = 0

    def __len__(self) -> int:
        return len(self._snapshots)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def can_undo(self) -> bool:
        return self._cursor > 0

    @property
    def can_redo(self) -> bool:
        return self._cursor < len(self._snapshots) - 1

    def commit(self, boundaries: Sequence[SurfaceBoundary]) -> None:
        """Record a new snapshot after the cursor, discarding redo entries."""
        del self._snapshots[self._cursor + 1:]
        self._snapshots.append(clone_boundaries(boundaries))
        self._cursor = len(self._snapshots) - 1
        logger.debug("History commit -> %d/%d", self._cursor, len(self._snapshots) - 1)

    def undo(self) -> Optional[List[SurfaceBoundary]]:
        """Step back one snapshot. Returns None when already at entry 0."""
        if not self.can_undo:
            return None
        self._cursor -= 1
        return clone_boundaries(self._snapshots[self._cursor])

    def redo(self) -> Optional[List[SurfaceBoundary]]:
        """Step forward one snapshot. Returns None when at the newest entry."""
        if not self.can_redo:
            return None
        self._cursor += 1
        return clone_boundaries(self._snapshots[self._cursor])
