from __future__ import annotations

import itertools
from dataclasses import dataclass

from PySide6.QtCore import QPointF, QRectF, Qt
from PySide6.QtGui import QImage, QPainter

from rotatelab.core.codec import RASTER_FORMAT, encode_image
from rotatelab.core.geometry import (
    FRAGMENT_PADDING,
    MIN_FRAGMENT_PADDING,
    Selection,
    centered_origin,
    clamp_rotation,
    fragment_side,
)
from rotatelab.core.logger import get_logger

_logger = get_logger("fragment")


@dataclass
class RotatedFragment:
    """A rotated copy of a selected region waiting to be committed.

    ``image_data`` already contains the rotation; ``(x, y)`` is where the
    square buffer's top-left lands on the base raster.
    """

    id: int
    image_data: bytes
    x: float
    y: float
    width: int
    height: int
    rotation_degrees: int = 0

    def top_left(self) -> QPointF:
        return QPointF(self.x, self.y)

    def rect(self) -> QRectF:
        return QRectF(self.x, self.y, self.width, self.height)

    def contains(self, point: QPointF) -> bool:
        # Edges count as inside.
        return (
            self.x <= point.x() <= self.x + self.width
            and self.y <= point.y() <= self.y + self.height
        )

    def move_to(self, top_left: QPointF) -> None:
        self.x = top_left.x()
        self.y = top_left.y()


class FragmentExtractor:
    """Lifts a selection out of a raster into a rotated, padded fragment."""

    def __init__(self, padding: float = FRAGMENT_PADDING):
        if not padding >= MIN_FRAGMENT_PADDING:
            raise ValueError(f"padding must be at least {MIN_FRAGMENT_PADDING:.4f}, got {padding}")
        self.padding = padding
        self._ids = itertools.count(1)

    def render(self, base: QImage, selection: Selection, angle: float) -> QImage:
        """Draw the selected region of *base* rotated about its center into a
        fresh transparent square surface."""

        side = fragment_side(selection.width, selection.height, self.padding)
        surface = QImage(side, side, RASTER_FORMAT)
        surface.fill(Qt.transparent)

        painter = QPainter(surface)
        painter.setRenderHint(QPainter.Antialiasing, False)
        painter.setRenderHint(QPainter.SmoothPixmapTransform, False)
        painter.translate(side / 2, side / 2)
        painter.rotate(angle)
        target = QRectF(
            -selection.width / 2,
            -selection.height / 2,
            selection.width,
            selection.height,
        )
        painter.drawImage(target, base, selection.to_rectf())
        painter.end()
        return surface

    def extract(
        self, base: QImage | None, selection: Selection | None, angle: float = 0
    ) -> RotatedFragment | None:
        """Return a fragment for *selection*, or ``None`` when there is
        nothing to extract from.

        The base raster is only read; lifting the region out of it is the
        caller's job.
        """

        if selection is None or base is None or base.isNull():
            return None

        degrees = clamp_rotation(angle)
        surface = self.render(base, selection, degrees)
        side = surface.width()
        origin = centered_origin(selection, side)
        fragment = RotatedFragment(
            id=next(self._ids),
            image_data=encode_image(surface),
            x=origin.x(),
            y=origin.y(),
            width=side,
            height=side,
            rotation_degrees=degrees,
        )
        _logger.debug(
            "Extracted fragment %d: %dx%d at (%.1f, %.1f), %d°",
            fragment.id,
            side,
            side,
            fragment.x,
            fragment.y,
            degrees,
        )
        return fragment
