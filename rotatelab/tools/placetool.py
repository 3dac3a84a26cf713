from PySide6.QtCore import QPointF, Qt

from rotatelab.core.fragment import RotatedFragment
from rotatelab.tools.basetool import BaseTool


class PlacementController(BaseTool):
    """Drags the pending fragment around before it is committed."""

    cursor_shape = Qt.OpenHandCursor

    def __init__(self):
        self.dragging = False
        self.drag_offset = QPointF()

    @property
    def cursor(self) -> Qt.CursorShape:
        return Qt.ClosedHandCursor if self.dragging else self.cursor_shape

    @staticmethod
    def hit_test(fragment: RotatedFragment | None, pos: QPointF) -> bool:
        return fragment is not None and fragment.contains(pos)

    def press(self, fragment: RotatedFragment | None, pos: QPointF) -> bool:
        """Start dragging if *pos* is on the fragment. Returns whether a drag
        started."""
        if not self.hit_test(fragment, pos):
            return False
        self.dragging = True
        self.drag_offset = QPointF(pos) - fragment.top_left()
        return True

    def move(self, fragment: RotatedFragment | None, pos: QPointF) -> bool:
        if not self.dragging or fragment is None:
            return False
        fragment.move_to(QPointF(pos) - self.drag_offset)
        return True

    def release(self) -> bool:
        was_dragging = self.dragging
        self.dragging = False
        return was_dragging

    def reset(self):
        self.dragging = False
        self.drag_offset = QPointF()
