import os
import sys

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import numpy as np
import pytest
from PySide6.QtCore import QRect, Qt
from PySide6.QtGui import QColor, QImage, QPainter
from PySide6.QtWidgets import QApplication

RED = QColor(255, 0, 0)
GREEN = QColor(0, 255, 0)
BLUE = QColor(0, 0, 255)
YELLOW = QColor(255, 255, 0)
WHITE = QColor(255, 255, 255)


@pytest.fixture
def qapp():
    """
    Creates a QApplication for each test function, reusing one if it exists.
    """
    app = QApplication.instance()
    if app is None:
        app = QApplication(sys.argv)
    yield app
    app.quit()


def make_quadrant_image(size=200, origin=50, cell=20):
    """White raster with a 2x2 block of colored cells whose top-left is
    ``(origin, origin)``: red, green on top; blue, yellow below."""
    image = QImage(size, size, QImage.Format_ARGB32)
    image.fill(Qt.white)
    painter = QPainter(image)
    painter.fillRect(QRect(origin, origin, cell, cell), RED)
    painter.fillRect(QRect(origin + cell, origin, cell, cell), GREEN)
    painter.fillRect(QRect(origin, origin + cell, cell, cell), BLUE)
    painter.fillRect(QRect(origin + cell, origin + cell, cell, cell), YELLOW)
    painter.end()
    return image


def make_gradient_image(width=120, height=120):
    """Opaque raster where every pixel differs from its neighbours."""
    ys, xs = np.mgrid[0:height, 0:width].astype(np.uint32)
    pixels = (
        np.uint32(0xFF000000)
        | ((xs * 2) % 256) << 16
        | ((ys * 2) % 256) << 8
        | (xs + ys) % 256
    ).astype(np.uint32)
    data = pixels.tobytes()
    return QImage(data, width, height, width * 4, QImage.Format_ARGB32).copy()


@pytest.fixture
def quadrant_image(qapp):
    return make_quadrant_image()


@pytest.fixture
def gradient_image(qapp):
    return make_gradient_image()
