import pytest
from PySide6.QtGui import QImage

from rotatelab.core.codec import ImageDecoder, decode_image, encode_image
from rotatelab.core.compositor import max_pixel_difference
from rotatelab.core.errors import DecodeFailureError, RasterCodecError


def test_encode_decode_is_lossless(gradient_image):
    data = encode_image(gradient_image)
    assert data.startswith(b"\x89PNG")
    decoded = decode_image(data)
    assert decoded.format() == QImage.Format_ARGB32
    assert max_pixel_difference(decoded, gradient_image) == 0


def test_encode_null_image_raises(qapp):
    with pytest.raises(RasterCodecError):
        encode_image(QImage())


@pytest.mark.parametrize("data", [b"", b"not an image"])
def test_decode_garbage_raises(qapp, data):
    with pytest.raises(DecodeFailureError):
        decode_image(data)


def test_decoder_defers_to_event_loop(qtbot, gradient_image):
    decoder = ImageDecoder()
    results = []
    decoder.submit(encode_image(gradient_image), results.append)

    assert results == []
    assert decoder.pending == 1
    qtbot.waitUntil(decoder.is_idle)
    assert len(results) == 1
    assert results[0].size() == gradient_image.size()


def test_decoder_reports_failure(qtbot):
    decoder = ImageDecoder()
    decoded, failed = [], []
    decoder.submit(b"junk", decoded.append, failed.append)
    qtbot.waitUntil(decoder.is_idle)
    assert decoded == []
    assert len(failed) == 1
    assert isinstance(failed[0], DecodeFailureError)
