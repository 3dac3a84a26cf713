from __future__ import annotations

import os
import time
from pathlib import Path

from PIL import Image, ImageQt
from PySide6.QtGui import QImage, QImageReader
from PySide6.QtWidgets import QFileDialog, QMessageBox

from rotatelab.core.logger import get_logger

_logger = get_logger("image_service")


class ImageService:
    """Loads source images into the engine and writes the result to disk."""

    _OPEN_FILE_FILTERS: tuple[str, ...] = (
        "Image Files (*.png *.jpg *.jpeg *.bmp *.gif *.webp *.tif *.tiff)",
        "All Files (*)",
    )

    _SAVE_FILE_FILTERS: tuple[str, ...] = (
        "PNG (*.png)",
        "JPEG (*.jpg *.jpeg)",
        "Bitmap (*.bmp)",
    )

    _IMAGE_EXTENSIONS: frozenset[str] = frozenset({
        ".png",
        ".jpg",
        ".jpeg",
        ".bmp",
        ".gif",
        ".webp",
        ".tif",
        ".tiff",
    })

    _EXPORT_FORMATS: dict[str, str] = {
        ".png": "PNG",
        ".jpg": "JPEG",
        ".jpeg": "JPEG",
        ".bmp": "BMP",
    }

    def __init__(self, engine, settings=None, parent=None):
        self.engine = engine
        self.settings = settings
        self.parent = parent

    # ------------------------------------------------------------------
    # File dialogs
    # ------------------------------------------------------------------
    def open_image(self) -> bool:
        file_path, _ = QFileDialog.getOpenFileName(
            self.parent,
            "Open Image",
            self._last_directory(),
            self._build_filter_string(self._OPEN_FILE_FILTERS),
        )
        if not file_path:
            return False
        if not self.open_path(file_path):
            self._show_message(
                QMessageBox.Warning,
                "Unable to open the selected image.",
                "The file appears to be corrupted or in an unsupported format.",
            )
            return False
        return True

    def save_image(self) -> bool:
        if not self.engine.has_image():
            return False
        default_name = self.default_export_name(self._default_format())
        file_path, selected_filter = QFileDialog.getSaveFileName(
            self.parent,
            "Save Image",
            os.path.join(self._last_directory(), default_name),
            self._build_filter_string(self._SAVE_FILE_FILTERS),
        )
        if not file_path:
            return False
        file_path = self._normalize_save_path(file_path, selected_filter)
        if not self.save_to_path(file_path):
            self._show_message(
                QMessageBox.Critical,
                "Failed to save image.",
                "An error occurred while writing the file.",
            )
            return False
        return True

    # ------------------------------------------------------------------
    # Path based operations
    # ------------------------------------------------------------------
    def open_path(self, file_path: str) -> bool:
        image = self.load_image_from_path(file_path)
        if image is None:
            _logger.warning("Could not read image %s", file_path)
            return False
        if not self.engine.load_image(image):
            return False
        self._update_last_directory(file_path)
        _logger.info("Opened %s", file_path)
        return True

    def save_to_path(self, file_path: str) -> bool:
        suffix = Path(file_path).suffix.lower()
        fmt = self._EXPORT_FORMATS.get(suffix, "PNG")
        data = self.engine.export(fmt)
        if data is None:
            return False
        try:
            with open(file_path, "wb") as f:
                f.write(data)
        except OSError as e:
            _logger.error("Could not write %s: %s", file_path, e)
            return False
        self._update_last_directory(file_path)
        _logger.info("Saved %s (%s, %d bytes)", file_path, fmt, len(data))
        return True

    @staticmethod
    def load_image_from_path(file_path: str) -> QImage | None:
        try:
            with Image.open(file_path) as img:
                return ImageQt.toqimage(img.convert("RGBA")).copy()
        except (OSError, ValueError) as e:
            _logger.debug("Pillow could not read %s (%s), trying Qt", file_path, e)

        reader = QImageReader(file_path)
        reader.setDecideFormatFromContent(True)
        image = reader.read()
        if image.isNull():
            return None
        return image

    @classmethod
    def is_supported_image(cls, file_path: str) -> bool:
        return Path(file_path).suffix.lower() in cls._IMAGE_EXTENSIONS

    @staticmethod
    def default_export_name(fmt: str = "PNG") -> str:
        suffix = {"JPEG": ".jpg", "BMP": ".bmp"}.get(fmt.upper(), ".png")
        return f"rotated-image-{int(time.time() * 1000)}{suffix}"

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _build_filter_string(filters: tuple[str, ...]) -> str:
        return ";;".join(filters)

    @staticmethod
    def _extract_extension_hint(selected_filter: str | None) -> str | None:
        if not selected_filter or "(" not in selected_filter:
            return None
        _, pattern_section = selected_filter.split("(", 1)
        for token in pattern_section.rstrip(")").split():
            if token.startswith("*.") and len(token) > 2:
                return token[1:].lower()
        return None

    def _normalize_save_path(self, file_path: str, selected_filter: str | None) -> str:
        path = Path(file_path)
        if path.suffix.lower() in self._EXPORT_FORMATS:
            return str(path)
        suffix = self._extract_extension_hint(selected_filter) or ".png"
        return str(path.with_suffix(suffix))

    def _default_format(self) -> str:
        return getattr(self.settings, "export_format", "PNG")

    def _last_directory(self) -> str:
        return getattr(self.settings, "last_directory", "") or ""

    def _update_last_directory(self, file_path: str) -> None:
        if self.settings is None:
            return
        self.settings.last_directory = os.path.dirname(os.path.abspath(file_path))

    def _show_message(
        self,
        icon: QMessageBox.Icon,
        text: str,
        informative_text: str = "",
    ) -> None:
        message_box = QMessageBox(self.parent)
        message_box.setIcon(icon)
        message_box.setText(text)
        if informative_text:
            message_box.setInformativeText(informative_text)
        message_box.exec()
