import configparser

import pytest

from rotatelab.core.compositor import OverlayStyle
from rotatelab.core.settings_controller import SettingsController


def _write_settings(path, sections):
    config = configparser.ConfigParser()
    for section, values in sections.items():
        config[section] = values
    with open(path, "w") as f:
        config.write(f)


def test_defaults_without_settings_file(qapp, tmp_path):
    controller = SettingsController(str(tmp_path / "settings.ini"))

    assert controller.selection_min_size == 10
    assert controller.fragment_padding == pytest.approx(1.5)
    assert controller.fragment_preview_opacity == pytest.approx(0.6)
    assert controller.overlay_color == "#9b87f5"
    assert controller.overlay_line_width == 3
    assert controller.overlay_dash_pattern == (10.0, 5.0)
    assert controller.overlay_fill_alpha == pytest.approx(0.1)
    assert controller.export_format == "PNG"
    assert controller.get_overlay_style() == OverlayStyle()


def test_values_are_read_from_file(qapp, tmp_path):
    path = tmp_path / "settings.ini"
    _write_settings(path, {
        "General": {"last_directory": str(tmp_path)},
        "Selection": {"min_size": "24"},
        "Fragment": {"padding": "2", "preview_opacity": "0.25"},
        "Overlay": {"color": "#ff0000", "line_width": "5", "dash_pattern": "4,2,1,2", "fill_alpha": "0.5"},
        "Export": {"format": "jpg"},
    })

    controller = SettingsController(str(path))

    assert controller.last_directory == str(tmp_path)
    assert controller.selection_min_size == 24
    assert controller.fragment_padding == 2
    assert controller.overlay_dash_pattern == (4.0, 2.0, 1.0, 2.0)
    assert controller.export_format == "JPEG"

    engine_settings = controller.get_engine_settings()
    assert engine_settings["min_selection_size"] == 24
    assert engine_settings["padding"] == 2
    style = engine_settings["overlay_style"]
    assert style.color == "#ff0000"
    assert style.line_width == 5
    assert style.fill_alpha == pytest.approx(0.5)
    assert style.fragment_opacity == pytest.approx(0.25)


def test_invalid_values_fall_back(qapp, tmp_path):
    path = tmp_path / "settings.ini"
    _write_settings(path, {
        "Selection": {"min_size": "-4"},
        "Fragment": {"padding": "1.0", "preview_opacity": "3"},
        "Overlay": {"color": "not-a-color", "line_width": "wide", "dash_pattern": "0,5", "fill_alpha": "nan"},
        "Export": {"format": "tga"},
    })

    controller = SettingsController(str(path))

    assert controller.selection_min_size == 10
    # A padding below sqrt(2) would clip the corners of a 45 degree fragment.
    assert controller.fragment_padding == pytest.approx(1.5)
    assert controller.fragment_preview_opacity == 1.0
    assert controller.overlay_color == "#9b87f5"
    assert controller.overlay_line_width == 3
    assert controller.overlay_dash_pattern == (10.0, 5.0)
    assert controller.overlay_fill_alpha == pytest.approx(0.1)
    assert controller.export_format == "PNG"


def test_save_settings_roundtrip(qapp, tmp_path):
    path = tmp_path / "settings.ini"
    controller = SettingsController(str(path))
    controller.last_directory = str(tmp_path)
    controller.overlay_color = "#00ff00"
    controller.overlay_line_width = 2
    controller.overlay_fill_alpha = 0.3

    assert controller.save_settings()

    reloaded = SettingsController(str(path))
    assert reloaded.last_directory == str(tmp_path)
    assert reloaded.overlay_color == "#00ff00"
    assert reloaded.overlay_line_width == 2
    assert reloaded.overlay_fill_alpha == pytest.approx(0.3)


def test_save_settings_reports_write_failure(qapp, tmp_path):
    controller = SettingsController(str(tmp_path))
    assert controller.save_settings() is False
