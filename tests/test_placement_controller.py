from PySide6.QtCore import QPointF, Qt

from rotatelab.core.fragment import RotatedFragment
from rotatelab.tools.placetool import PlacementController


def make_fragment(x=40, y=40, side=60):
    return RotatedFragment(id=1, image_data=b"", x=x, y=y, width=side, height=side)


def test_hit_test_includes_edges():
    fragment = make_fragment()
    controller = PlacementController()
    assert controller.hit_test(fragment, QPointF(40, 40))
    assert controller.hit_test(fragment, QPointF(100, 100))
    assert controller.hit_test(fragment, QPointF(70, 55))
    assert not controller.hit_test(fragment, QPointF(39.9, 70))
    assert not controller.hit_test(fragment, QPointF(70, 100.1))
    assert not controller.hit_test(None, QPointF(70, 70))


def test_press_outside_does_not_start_drag():
    controller = PlacementController()
    assert not controller.press(make_fragment(), QPointF(5, 5))
    assert not controller.dragging


def test_drag_moves_fragment_rigidly():
    fragment = make_fragment()
    controller = PlacementController()
    assert controller.press(fragment, QPointF(50, 60))
    assert controller.drag_offset == QPointF(10, 20)
    assert controller.cursor == Qt.ClosedHandCursor

    controller.move(fragment, QPointF(150, 160))
    assert (fragment.x, fragment.y) == (140, 140)
    assert (fragment.width, fragment.height) == (60, 60)

    assert controller.release()
    assert not controller.dragging
    assert (fragment.x, fragment.y) == (140, 140)
    assert controller.cursor == Qt.OpenHandCursor


def test_move_without_drag_is_ignored():
    fragment = make_fragment()
    controller = PlacementController()
    assert not controller.move(fragment, QPointF(0, 0))
    assert (fragment.x, fragment.y) == (40, 40)
    assert not controller.release()


def test_reset_ends_drag():
    fragment = make_fragment()
    controller = PlacementController()
    controller.press(fragment, QPointF(50, 50))
    controller.reset()
    assert not controller.dragging
    assert not controller.move(fragment, QPointF(0, 0))
