import pytest
from PySide6.QtCore import QPointF

from rotatelab.core.engine import RotationEngine
from rotatelab.core.errors import EngineIssue
from rotatelab.core.settings_controller import SettingsController
from rotatelab.core.state import ToolMode
from rotatelab.ui.ui import MainWindow


@pytest.fixture
def window(qtbot, tmp_path):
    settings = SettingsController(str(tmp_path / "settings.ini"))
    engine = RotationEngine(**settings.get_engine_settings())
    main_window = MainWindow(engine, settings)
    qtbot.addWidget(main_window)
    main_window.show()
    return main_window


def _select(engine):
    engine.press(QPointF(50, 50))
    engine.release(QPointF(90, 90))


def test_controls_disabled_without_image(window):
    assert not window.apply_button.isEnabled()
    assert not window.undo_button.isEnabled()
    assert not window.save_button.isEnabled()
    assert window.select_mode_button.isChecked()
    assert not window.rotate_mode_button.isEnabled()


def test_selection_enables_rotation_controls(window, quadrant_image):
    engine = window.engine
    engine.load_image(quadrant_image)
    _select(engine)

    assert window.rotate_mode_button.isChecked()
    assert window.apply_button.isEnabled()
    assert window.angle_slider.isEnabled()
    assert "40 × 40" in window.selection_info_label.text()


def test_slider_and_presets_drive_rotation(window, quadrant_image):
    engine = window.engine
    engine.load_image(quadrant_image)
    _select(engine)

    window.angle_slider.setValue(30)
    assert engine.rotation == 30
    assert window.angle_spin.value() == 30

    window.preset_buttons[0].click()
    assert engine.rotation == -90
    assert window.angle_slider.value() == -90
    assert window.angle_label.text() == "Angle: -90°"


def test_apply_commit_and_undo_buttons(qtbot, window, quadrant_image):
    engine = window.engine
    engine.load_image(quadrant_image)
    _select(engine)

    window.apply_button.click()
    assert engine.tool_mode is ToolMode.PLACE
    assert window.commit_button.isEnabled()
    assert not window.select_mode_button.isEnabled()
    assert window.history_label.text() == "History (1)"

    with qtbot.waitSignal(engine.placement_committed, timeout=2000):
        window.commit_button.click()
    assert window.undo_button.isEnabled()

    with qtbot.waitSignal(engine.undo_performed, timeout=2000):
        window.undo_button.click()
    assert window.history_label.text() == "History (0)"
    assert not window.undo_button.isEnabled()


def test_mode_button_rejected_while_placing(window, quadrant_image):
    engine = window.engine
    engine.load_image(quadrant_image)
    _select(engine)
    engine.apply_rotation()

    window.set_tool_mode(ToolMode.SELECT)
    assert engine.tool_mode is ToolMode.PLACE
    assert not window.select_mode_button.isChecked()
    assert not window.rotate_mode_button.isChecked()


def test_issues_reach_status_bar(window):
    window.engine.undo()
    assert window.statusBar().currentMessage() == "Nothing to undo"
    window.status_bar_manager.show_issue(EngineIssue.DECODE_FAILURE)
    assert window.statusBar().currentMessage() == "Could not decode image data"


def test_close_saves_settings(window, tmp_path):
    window.close()
    assert (tmp_path / "settings.ini").exists()
