from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from PySide6.QtCore import QObject, QRectF, QSize, Qt, Signal
from PySide6.QtGui import QBrush, QColor, QImage, QPainter, QPen

from rotatelab.core.codec import RASTER_FORMAT, encode_image
from rotatelab.core.fragment import RotatedFragment
from rotatelab.core.geometry import Selection
from rotatelab.core.logger import get_logger

_logger = get_logger("compositor")


@dataclass(frozen=True)
class OverlayStyle:
    color: str = "#9b87f5"
    line_width: int = 3
    dash_pattern: tuple[float, ...] = (10.0, 5.0)
    fill_alpha: float = 0.1
    fragment_opacity: float = 0.6


def _bits(image: QImage) -> np.ndarray:
    width = image.width()
    rows = np.frombuffer(image.constBits(), dtype=np.uint8, count=image.sizeInBytes())
    return rows.reshape(image.height(), image.bytesPerLine())[:, : width * 4]


def max_pixel_difference(first: QImage, second: QImage) -> int | None:
    """Largest per-channel difference between two rasters.

    Returns ``None`` if the rasters differ in size. ``0`` means the images
    are pixel identical.
    """

    if first.size() != second.size():
        return None
    if first.isNull():
        return 0
    a = first.convertToFormat(RASTER_FORMAT)
    b = second.convertToFormat(RASTER_FORMAT)
    diff = np.abs(_bits(a).astype(np.int16) - _bits(b).astype(np.int16))
    return int(diff.max()) if diff.size else 0


class Compositor(QObject):
    """Owns the base raster; every write to it goes through this class."""

    changed = Signal()

    def __init__(self, style: OverlayStyle | None = None, parent=None):
        super().__init__(parent)
        self.style = style or OverlayStyle()
        self._image: QImage | None = None

    # ------------------------------------------------------------------
    # Surface lifecycle
    # ------------------------------------------------------------------
    def has_surface(self) -> bool:
        return self._image is not None and not self._image.isNull()

    def size(self) -> QSize:
        if not self.has_surface():
            return QSize()
        return self._image.size()

    def image(self) -> QImage | None:
        """A copy of the base raster (cheap thanks to implicit sharing)."""
        if not self.has_surface():
            return None
        return QImage(self._image)

    def load(self, image: QImage) -> None:
        self._image = image.convertToFormat(RASTER_FORMAT)
        _logger.debug("Loaded %dx%d surface", self._image.width(), self._image.height())
        self.changed.emit()

    def unload(self) -> None:
        self._image = None
        self.changed.emit()

    def restore(self, image: QImage) -> None:
        """Replace the base raster with a snapshot."""
        self.load(image)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def clear_region(self, rect: QRectF) -> None:
        if not self.has_surface():
            return
        painter = QPainter(self._image)
        painter.setRenderHint(QPainter.Antialiasing, False)
        painter.setCompositionMode(QPainter.CompositionMode_Clear)
        painter.fillRect(rect, Qt.transparent)
        painter.end()
        self.changed.emit()

    def draw_fragment(self, fragment_image: QImage, rect: QRectF) -> None:
        if not self.has_surface():
            return
        painter = QPainter(self._image)
        painter.setRenderHint(QPainter.Antialiasing, False)
        painter.setRenderHint(QPainter.SmoothPixmapTransform, False)
        painter.setCompositionMode(QPainter.CompositionMode_SourceOver)
        painter.drawImage(rect, fragment_image)
        painter.end()
        self.changed.emit()

    # ------------------------------------------------------------------
    # Encoding
    # ------------------------------------------------------------------
    def snapshot(self) -> bytes | None:
        if not self.has_surface():
            return None
        return encode_image(self._image)

    def export(self, fmt: str = "PNG") -> bytes | None:
        if not self.has_surface():
            return None
        image = self._image
        if fmt.upper() in ("JPG", "JPEG", "BMP"):
            # Formats without alpha get the transparent areas flattened onto white.
            flattened = QImage(image.size(), QImage.Format_RGB32)
            flattened.fill(Qt.white)
            painter = QPainter(flattened)
            painter.drawImage(0, 0, image)
            painter.end()
            image = flattened
        return encode_image(image, fmt)

    # ------------------------------------------------------------------
    # Display frame
    # ------------------------------------------------------------------
    def render(
        self,
        selection: Selection | None = None,
        fragment: RotatedFragment | None = None,
        fragment_image: QImage | None = None,
    ) -> QImage | None:
        """Compose a display frame: the base raster plus the selection or
        pending-fragment feedback. The base raster itself is untouched."""

        if not self.has_surface():
            return None

        frame = QImage(self._image)
        if selection is None and fragment is None:
            return frame

        painter = QPainter(frame)
        painter.setRenderHint(QPainter.Antialiasing, False)
        if fragment is not None:
            self._draw_fragment_overlay(painter, fragment, fragment_image)
        elif selection is not None:
            self._draw_selection_overlay(painter, selection)
        painter.end()
        return frame

    def _outline_pen(self) -> QPen:
        pen = QPen(QColor(self.style.color), self.style.line_width)
        pen.setDashPattern(list(self.style.dash_pattern))
        return pen

    def _draw_selection_overlay(self, painter: QPainter, selection: Selection) -> None:
        rect = selection.to_rectf()
        fill = QColor(self.style.color)
        fill.setAlphaF(self.style.fill_alpha)
        painter.fillRect(rect, fill)
        painter.setPen(self._outline_pen())
        painter.setBrush(Qt.NoBrush)
        painter.drawRect(rect)

    def _draw_fragment_overlay(
        self,
        painter: QPainter,
        fragment: RotatedFragment,
        fragment_image: QImage | None,
    ) -> None:
        rect = fragment.rect()
        if fragment_image is not None:
            painter.save()
            painter.setOpacity(self.style.fragment_opacity)
            painter.drawImage(rect, fragment_image)
            painter.restore()
        painter.setPen(self._outline_pen())
        painter.setBrush(QBrush(Qt.NoBrush))
        painter.drawRect(rect)
