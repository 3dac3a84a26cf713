from __future__ import annotations

import functools
from typing import Callable

from PySide6.QtCore import QBuffer, QByteArray, QObject, QTimer
from PySide6.QtGui import QImage

from rotatelab.core.errors import DecodeFailureError, RasterCodecError
from rotatelab.core.logger import get_logger

_logger = get_logger("codec")

RASTER_FORMAT = QImage.Format_ARGB32


def encode_image(image: QImage, fmt: str = "PNG") -> bytes:
    """Serialize *image* into an encoded byte string (PNG by default)."""
    if image is None or image.isNull():
        raise RasterCodecError("Cannot encode a null image")
    buffer = QBuffer()
    buffer.open(QBuffer.ReadWrite)
    try:
        if not image.save(buffer, fmt):
            raise RasterCodecError(f"Qt could not encode image as {fmt}")
        return bytes(buffer.data())
    finally:
        buffer.close()


def decode_image(data: bytes) -> QImage:
    """Decode *data* into an ARGB32 :class:`QImage`.

    Raises :class:`DecodeFailureError` when the bytes are not a readable image.
    """
    if not data:
        raise DecodeFailureError("No image data to decode")
    image = QImage.fromData(QByteArray(data))
    if image.isNull():
        raise DecodeFailureError(f"Could not decode {len(data)} bytes of image data")
    return image.convertToFormat(RASTER_FORMAT)


class ImageDecoder(QObject):
    """Decodes encoded rasters on a later turn of the event loop.

    Each :meth:`submit` call resolves exactly once, through either
    ``on_decoded(image)`` or ``on_failed(error)``. Callers that may be reset
    in the meantime are expected to guard their callbacks with their own
    generation token.
    """

    def __init__(self, parent=None):
        super().__init__(parent)
        self._pending = 0

    @property
    def pending(self) -> int:
        return self._pending

    def is_idle(self) -> bool:
        return self._pending == 0

    def submit(
        self,
        data: bytes,
        on_decoded: Callable[[QImage], None],
        on_failed: Callable[[DecodeFailureError], None] | None = None,
    ) -> None:
        self._pending += 1
        QTimer.singleShot(0, functools.partial(self._run, data, on_decoded, on_failed))

    def _run(self, data, on_decoded, on_failed):
        try:
            image = decode_image(data)
        except DecodeFailureError as e:
            _logger.warning("Decode failed: %s", e)
            self._pending -= 1
            if on_failed is not None:
                on_failed(e)
            return
        self._pending -= 1
        on_decoded(image)
