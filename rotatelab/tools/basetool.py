from PySide6.QtCore import QPointF, Qt


class BaseTool:
    """Base class for the engine's gesture handlers.

    Tools receive positions already converted to raster coordinates and hold
    only their own gesture state; they never touch the raster.
    """

    cursor_shape = Qt.ArrowCursor

    def press(self, pos: QPointF):
        pass

    def move(self, pos: QPointF):
        pass

    def release(self):
        pass

    def reset(self):
        """Drop any in-progress gesture."""
        pass

    @property
    def cursor(self) -> Qt.CursorShape:
        return self.cursor_shape
