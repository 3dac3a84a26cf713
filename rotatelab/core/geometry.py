"""Geometry shared by the selection, fragment and placement stages.

All coordinates are in raster (source image) pixels unless a function says
otherwise. Points are :class:`QPointF` so sub-pixel pointer positions survive
the display-to-raster conversion.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from PySide6.QtCore import QPointF, QRectF, QSize, QSizeF

MIN_SELECTION_SIZE = 10
FRAGMENT_PADDING = 1.5
# Smallest padding that keeps every corner inside the buffer at 45 degrees.
MIN_FRAGMENT_PADDING = math.sqrt(2)
MIN_ROTATION = -180
MAX_ROTATION = 180


@dataclass(frozen=True)
class Selection:
    """Axis-aligned selection rectangle with ``(x, y)`` at the top-left."""

    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_points(cls, start: QPointF, current: QPointF) -> "Selection":
        """Return the normalized box spanning *start* and *current*.

        The result is independent of drag direction: dragging up/left from
        ``start`` yields the same box as dragging down/right to it.
        """

        return cls(
            x=min(start.x(), current.x()),
            y=min(start.y(), current.y()),
            width=abs(current.x() - start.x()),
            height=abs(current.y() - start.y()),
        )

    def exceeds(self, threshold: float = MIN_SELECTION_SIZE) -> bool:
        return self.width > threshold and self.height > threshold

    def center(self) -> QPointF:
        return QPointF(self.x + self.width / 2, self.y + self.height / 2)

    def to_rectf(self) -> QRectF:
        return QRectF(self.x, self.y, self.width, self.height)


def map_to_raster(
    client_pos: QPointF,
    canvas_top_left: QPointF,
    rendered_size: QSizeF | QSize,
    backing_size: QSizeF | QSize,
) -> QPointF:
    """Convert a pointer position in display pixels to raster pixels.

    ``rendered_size`` is the size the raster occupies on screen and
    ``backing_size`` the raster's own pixel size; they differ whenever the
    view scales the image. A collapsed rendered axis maps to ``0``.
    """

    rendered_w = float(rendered_size.width())
    rendered_h = float(rendered_size.height())
    scale_x = backing_size.width() / rendered_w if rendered_w > 0 else 0.0
    scale_y = backing_size.height() / rendered_h if rendered_h > 0 else 0.0
    return QPointF(
        (client_pos.x() - canvas_top_left.x()) * scale_x,
        (client_pos.y() - canvas_top_left.y()) * scale_y,
    )


def fragment_side(width: float, height: float, padding: float = FRAGMENT_PADDING) -> int:
    """Side of the square buffer that holds a ``width`` x ``height`` region
    at any rotation without clipping its corners."""

    return int(math.ceil(max(width, height) * padding))


def centered_origin(selection: Selection, side: float) -> QPointF:
    """Top-left of a ``side``-sized square sharing the selection's center."""

    center = selection.center()
    return QPointF(center.x() - side / 2, center.y() - side / 2)


def clamp_rotation(degrees) -> int:
    """Round to whole degrees and clamp into ``[-180, 180]``."""

    value = int(round(float(degrees)))
    return max(MIN_ROTATION, min(MAX_ROTATION, value))
