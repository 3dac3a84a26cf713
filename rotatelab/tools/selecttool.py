from enum import Enum, auto

from PySide6.QtCore import QPointF, Qt

from rotatelab.core.geometry import MIN_SELECTION_SIZE, Selection
from rotatelab.tools.basetool import BaseTool


class SelectionPhase(Enum):
    IDLE = auto()
    DRAGGING = auto()
    FINALIZED = auto()


class SelectionTracker(BaseTool):
    """Tracks a rectangle drag and yields a normalized :class:`Selection`."""

    cursor_shape = Qt.CrossCursor

    def __init__(self, min_size: float = MIN_SELECTION_SIZE):
        self.min_size = min_size
        self.phase = SelectionPhase.IDLE
        self.start_point = QPointF()
        self.selection: Selection | None = None

    @property
    def dragging(self) -> bool:
        return self.phase is SelectionPhase.DRAGGING

    def press(self, pos: QPointF):
        # A new drag always discards the previous box.
        self.phase = SelectionPhase.DRAGGING
        self.start_point = QPointF(pos)
        self.selection = None

    def move(self, pos: QPointF) -> Selection | None:
        if not self.dragging:
            return None
        self.selection = Selection.from_points(self.start_point, pos)
        return self.selection

    def release(self) -> Selection | None:
        """Finish the drag. Returns the selection if it is larger than the
        dead zone on both axes, otherwise discards it and returns ``None``."""

        if not self.dragging:
            return None
        if self.selection is not None and self.selection.exceeds(self.min_size):
            self.phase = SelectionPhase.FINALIZED
            return self.selection
        self.phase = SelectionPhase.IDLE
        self.selection = None
        return None

    def reset(self):
        self.phase = SelectionPhase.IDLE
        self.selection = None
