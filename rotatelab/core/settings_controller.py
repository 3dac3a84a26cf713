from PySide6.QtCore import QObject
from PySide6.QtGui import QColor
import configparser
import math
import os

from rotatelab.core.compositor import OverlayStyle
from rotatelab.core.geometry import FRAGMENT_PADDING, MIN_FRAGMENT_PADDING, MIN_SELECTION_SIZE
from rotatelab.core.logger import get_logger

_logger = get_logger("settings")

DEFAULT_SETTINGS_PATH = "settings.ini"


class SettingsController(QObject):
    """Manages application settings persistence."""

    DEFAULT_SELECTION_SETTINGS = {
        "min_size": MIN_SELECTION_SIZE,
    }

    DEFAULT_FRAGMENT_SETTINGS = {
        "padding": FRAGMENT_PADDING,
        "preview_opacity": 0.6,
    }

    DEFAULT_OVERLAY_SETTINGS = {
        "color": "#9b87f5",
        "line_width": 3,
        "dash_pattern": "10,5",
        "fill_alpha": 0.1,
    }

    DEFAULT_EXPORT_SETTINGS = {
        "format": "PNG",
    }

    SUPPORTED_EXPORT_FORMATS = ("PNG", "JPEG", "BMP")

    def __init__(self, path=DEFAULT_SETTINGS_PATH):
        super().__init__()
        self.path = path
        self.config = configparser.ConfigParser()
        self.config.read(self.path)

        if not self.config.has_section('General'):
            self.config.add_section('General')
        self.last_directory = self.config.get(
            'General', 'last_directory', fallback=os.path.expanduser("~")
        )

        if not self.config.has_section('Selection'):
            self.config.add_section('Selection')
        self.selection_min_size = self._get_float(
            'Selection', 'min_size', self.DEFAULT_SELECTION_SETTINGS["min_size"], minimum=0.0
        )

        if not self.config.has_section('Fragment'):
            self.config.add_section('Fragment')
        # Anything under sqrt(2) would clip corners at 45 degrees.
        self.fragment_padding = self._get_float(
            'Fragment', 'padding', self.DEFAULT_FRAGMENT_SETTINGS["padding"], minimum=MIN_FRAGMENT_PADDING
        )
        self.fragment_preview_opacity = self._get_unit_float(
            'Fragment', 'preview_opacity', self.DEFAULT_FRAGMENT_SETTINGS["preview_opacity"]
        )

        if not self.config.has_section('Overlay'):
            self.config.add_section('Overlay')
        self.overlay_color = self._get_color(
            'Overlay', 'color', self.DEFAULT_OVERLAY_SETTINGS["color"]
        )
        self.overlay_line_width = self._get_int(
            'Overlay', 'line_width', self.DEFAULT_OVERLAY_SETTINGS["line_width"]
        )
        self.overlay_dash_pattern = self._get_dash_pattern(
            'Overlay', 'dash_pattern', self.DEFAULT_OVERLAY_SETTINGS["dash_pattern"]
        )
        self.overlay_fill_alpha = self._get_unit_float(
            'Overlay', 'fill_alpha', self.DEFAULT_OVERLAY_SETTINGS["fill_alpha"]
        )

        if not self.config.has_section('Export'):
            self.config.add_section('Export')
        raw_format = self.config.get(
            'Export', 'format', fallback=self.DEFAULT_EXPORT_SETTINGS["format"]
        ).strip().upper()
        if raw_format == "JPG":
            raw_format = "JPEG"
        if raw_format not in self.SUPPORTED_EXPORT_FORMATS:
            raw_format = self.DEFAULT_EXPORT_SETTINGS["format"]
        self.export_format = raw_format

        self._sync_to_config()

    def save_settings(self) -> bool:
        """Persist settings to disk. Returns ``False`` if the file could not be written."""
        self._sync_to_config()
        try:
            with open(self.path, 'w') as configfile:
                self.config.write(configfile)
        except OSError as e:
            _logger.error("Could not write %s: %s", self.path, e)
            return False
        return True

    def _get_float(self, section, option, fallback, minimum=None):
        try:
            value = self.config.getfloat(section, option)
        except (configparser.NoOptionError, ValueError):
            return fallback
        if not math.isfinite(value):
            return fallback
        if minimum is not None and value < minimum:
            return fallback
        return value

    def _get_unit_float(self, section, option, fallback):
        try:
            value = self.config.getfloat(section, option)
        except (configparser.NoOptionError, ValueError):
            return fallback
        if not math.isfinite(value):
            return fallback
        return max(0.0, min(1.0, value))

    def _get_int(self, section, option, fallback):
        try:
            return max(1, self.config.getint(section, option))
        except (configparser.NoOptionError, ValueError):
            return fallback

    def _get_color(self, section, option, fallback):
        raw_value = self.config.get(section, option, fallback=fallback)
        color = QColor(raw_value)
        if not color.isValid():
            color = QColor(fallback)
        return color.name()

    def _get_dash_pattern(self, section, option, fallback):
        raw_value = self.config.get(section, option, fallback=fallback)
        try:
            values = tuple(float(part) for part in raw_value.split(",") if part.strip())
        except ValueError:
            values = ()
        if len(values) < 2 or any(v <= 0 for v in values):
            values = tuple(float(part) for part in fallback.split(","))
        return values

    def _sync_to_config(self):
        for section in ('General', 'Selection', 'Fragment', 'Overlay', 'Export'):
            if not self.config.has_section(section):
                self.config.add_section(section)
        self.config.set('General', 'last_directory', self.last_directory)
        self.config.set('Selection', 'min_size', f"{self.selection_min_size:g}")
        self.config.set('Fragment', 'padding', f"{self.fragment_padding:g}")
        self.config.set('Fragment', 'preview_opacity', f"{self.fragment_preview_opacity:.3f}")
        self.config.set('Overlay', 'color', self.overlay_color)
        self.config.set('Overlay', 'line_width', str(int(self.overlay_line_width)))
        self.config.set(
            'Overlay', 'dash_pattern', ",".join(f"{v:g}" for v in self.overlay_dash_pattern)
        )
        self.config.set('Overlay', 'fill_alpha', f"{self.overlay_fill_alpha:.3f}")
        self.config.set('Export', 'format', self.export_format)

    def get_overlay_style(self) -> OverlayStyle:
        return OverlayStyle(
            color=self.overlay_color,
            line_width=int(self.overlay_line_width),
            dash_pattern=tuple(self.overlay_dash_pattern),
            fill_alpha=self.overlay_fill_alpha,
            fragment_opacity=self.fragment_preview_opacity,
        )

    def get_engine_settings(self):
        return {
            'min_selection_size': self.selection_min_size,
            'padding': self.fragment_padding,
            'overlay_style': self.get_overlay_style(),
        }

