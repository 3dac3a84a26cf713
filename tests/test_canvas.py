import pytest
from PySide6.QtCore import QPoint, QPointF, Qt

from conftest import make_quadrant_image
from rotatelab.core.engine import RotationEngine
from rotatelab.core.geometry import Selection
from rotatelab.core.state import ToolMode
from rotatelab.ui.canvas import ImageCanvas


@pytest.fixture
def canvas(qtbot, quadrant_image):
    engine = RotationEngine()
    engine.load_image(quadrant_image)
    widget = ImageCanvas(engine)
    qtbot.addWidget(widget)
    widget.resize(400, 300)
    return widget


@pytest.fixture
def scaled_canvas(qtbot, qapp):
    engine = RotationEngine()
    engine.load_image(make_quadrant_image(size=400))
    widget = ImageCanvas(engine)
    qtbot.addWidget(widget)
    widget.resize(400, 250)
    return widget


def test_target_rect_is_centered_and_not_upscaled(canvas):
    target = canvas.target_rect()
    assert (target.x(), target.y()) == (100, 50)
    assert (target.width(), target.height()) == (200, 200)


def test_target_rect_scales_down(scaled_canvas):
    # 400x400 raster in a 400x250 widget is shown at 0.625 scale.
    target = scaled_canvas.target_rect()
    assert (target.width(), target.height()) == (250, 250)
    assert (target.x(), target.y()) == (75, 0)


def test_raster_coords_on_scaled_canvas(scaled_canvas):
    raster = scaled_canvas.get_raster_coords(QPointF(200, 125))
    assert (raster.x(), raster.y()) == pytest.approx((200, 200))
    raster = scaled_canvas.get_raster_coords(QPointF(75, 0))
    assert (raster.x(), raster.y()) == (0, 0)


def test_mouse_drag_on_scaled_canvas_selects_raster_region(qtbot, scaled_canvas):
    scaled_canvas.show()
    qtbot.mousePress(scaled_canvas, Qt.LeftButton, pos=QPoint(125, 50))
    qtbot.mouseRelease(scaled_canvas, Qt.LeftButton, pos=QPoint(225, 100))

    selection = scaled_canvas.engine.selection
    assert (selection.x, selection.y, selection.width, selection.height) == pytest.approx(
        (80, 80, 160, 80)
    )


def test_empty_canvas_has_no_target(qtbot):
    widget = ImageCanvas(RotationEngine())
    qtbot.addWidget(widget)
    assert widget.target_rect().isNull()
    assert widget.get_raster_coords(QPointF(10, 10)) == QPointF(0, 0)


def test_mouse_drag_selects_region(qtbot, canvas):
    canvas.show()
    qtbot.mousePress(canvas, Qt.LeftButton, pos=QPoint(150, 100))
    qtbot.mouseMove(canvas, QPoint(170, 120))
    qtbot.mouseRelease(canvas, Qt.LeftButton, pos=QPoint(190, 140))

    assert canvas.engine.selection == Selection(50, 50, 40, 40)
    assert canvas.engine.tool_mode is ToolMode.ROTATE


def test_right_button_is_ignored(qtbot, canvas):
    canvas.show()
    qtbot.mousePress(canvas, Qt.RightButton, pos=QPoint(150, 100))
    qtbot.mouseRelease(canvas, Qt.RightButton, pos=QPoint(190, 140))
    assert canvas.engine.selection is None


def test_cursor_tracks_tool(qtbot, canvas):
    canvas.show()
    qtbot.mousePress(canvas, Qt.LeftButton, pos=QPoint(150, 100))
    assert canvas.cursor().shape() == Qt.CrossCursor
    qtbot.mouseRelease(canvas, Qt.LeftButton, pos=QPoint(190, 140))
    assert canvas.cursor().shape() == Qt.ArrowCursor
