from __future__ import annotations

from PySide6.QtCore import QPointF, QRectF, Qt, Signal
from PySide6.QtGui import QColor, QPainter, QPalette
from PySide6.QtWidgets import QSizePolicy, QWidget

from rotatelab.core.geometry import map_to_raster
from rotatelab.core.services.image_service import ImageService


class ImageCanvas(QWidget):
    """Shows the engine's display frame and feeds it pointer input.

    The frame is scaled down to fit the widget (never up) and centered, so
    every pointer position goes through :func:`map_to_raster` before it
    reaches the engine.
    """

    file_dropped = Signal(str)
    cursor_pos_changed = Signal(QPointF)

    def __init__(self, engine, parent=None):
        super().__init__(parent)
        self.engine = engine
        self.setMouseTracking(True)
        self.setAcceptDrops(True)
        self.setMinimumSize(320, 240)
        self.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Expanding)
        self._pressed = False

        self.engine.changed.connect(self.update)
        self.engine.tool_mode_changed.connect(self._refresh_cursor)

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------
    def target_rect(self) -> QRectF:
        """Where the raster is drawn inside the widget."""
        size = self.engine.compositor.size()
        if size.isEmpty():
            return QRectF()
        scale = min(1.0, self.width() / size.width(), self.height() / size.height())
        width = size.width() * scale
        height = size.height() * scale
        return QRectF(
            (self.width() - width) / 2,
            (self.height() - height) / 2,
            width,
            height,
        )

    def get_raster_coords(self, widget_pos: QPointF) -> QPointF:
        target = self.target_rect()
        return map_to_raster(
            widget_pos,
            target.topLeft(),
            target.size(),
            self.engine.compositor.size(),
        )

    # ------------------------------------------------------------------
    # Painting
    # ------------------------------------------------------------------
    def paintEvent(self, event):
        painter = QPainter(self)
        painter.fillRect(self.rect(), self.palette().color(QPalette.ColorRole.Window))
        frame = self.engine.render()
        if frame is None:
            painter.setPen(self.palette().color(QPalette.ColorRole.PlaceholderText))
            painter.drawText(
                self.rect(),
                Qt.AlignCenter,
                "Drop an image here or use File > Open",
            )
            painter.end()
            return

        target = self.target_rect()
        self._draw_checkerboard(painter, target)
        painter.setRenderHint(QPainter.SmoothPixmapTransform, target.width() < frame.width())
        painter.drawImage(target, frame)
        painter.end()

    def _draw_checkerboard(self, painter: QPainter, target: QRectF, cell: int = 8):
        # Shows through wherever the raster has been cleared.
        painter.save()
        painter.setClipRect(target)
        light = QColor(230, 230, 230)
        dark = QColor(200, 200, 200)
        painter.fillRect(target, light)
        x0, y0 = int(target.left()), int(target.top())
        for row, y in enumerate(range(y0, int(target.bottom()) + 1, cell)):
            for col, x in enumerate(range(x0, int(target.right()) + 1, cell)):
                if (row + col) % 2:
                    painter.fillRect(x, y, cell, cell, dark)
        painter.restore()

    # ------------------------------------------------------------------
    # Pointer input
    # ------------------------------------------------------------------
    def mousePressEvent(self, event):
        if event.button() != Qt.LeftButton:
            return
        self._pressed = True
        self.engine.press(self.get_raster_coords(event.position()))
        self._refresh_cursor()

    def mouseMoveEvent(self, event):
        raster_pos = self.get_raster_coords(event.position())
        self.cursor_pos_changed.emit(raster_pos)
        if self._pressed and event.buttons() & Qt.LeftButton:
            self.engine.move(raster_pos)

    def mouseReleaseEvent(self, event):
        if event.button() != Qt.LeftButton or not self._pressed:
            return
        self._pressed = False
        self.engine.release(self.get_raster_coords(event.position()))
        self._refresh_cursor()

    def leaveEvent(self, event):
        # Leaving the canvas ends the gesture like a release would.
        if self._pressed:
            self._pressed = False
            self.engine.release()
            self._refresh_cursor()
        super().leaveEvent(event)

    def _refresh_cursor(self, *_):
        self.setCursor(self.engine.cursor())

    # ------------------------------------------------------------------
    # Drag and drop ingestion
    # ------------------------------------------------------------------
    def _first_image_path(self, mime_data) -> str | None:
        if not mime_data.hasUrls():
            return None
        for url in mime_data.urls():
            if url.isLocalFile() and ImageService.is_supported_image(url.toLocalFile()):
                return url.toLocalFile()
        return None

    def dragEnterEvent(self, event):
        if self._first_image_path(event.mimeData()):
            event.acceptProposedAction()
        else:
            event.ignore()

    def dragMoveEvent(self, event):
        self.dragEnterEvent(event)

    def dropEvent(self, event):
        path = self._first_image_path(event.mimeData())
        if path is None:
            event.ignore()
            return
        event.acceptProposedAction()
        self.file_dropped.emit(path)
