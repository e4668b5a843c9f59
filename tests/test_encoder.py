import base64
import io

import pytest
from PIL import Image

from conftest import gradient, image_bytes
from thumbmap.core.encoder import encode_image, scaled_size
from thumbmap.errors import DecodeError


def test_landscape_jpeg_scenario():
    result = encode_image(image_bytes(400, 200, "JPEG"))
    assert (result.original_width, result.original_height) == (400, 200)
    assert (result.width, result.height) == (100, 50)


def test_preview_is_png_data_url():
    result = encode_image(image_bytes(400, 200))
    prefix = "data:image/png;base64,"
    assert result.preview_data_url.startswith(prefix)

    png = base64.b64decode(result.preview_data_url[len(prefix):])
    with Image.open(io.BytesIO(png)) as preview:
        assert preview.format == "PNG"
        assert preview.mode == "RGBA"
        assert preview.size == (32, 18)


def test_signature_is_short_base64():
    result = encode_image(image_bytes(120, 90))
    signature = base64.b64decode(result.signature_base64)
    assert 5 < len(signature) <= 32


def test_deterministic():
    data = image_bytes(300, 170, "JPEG")
    assert encode_image(data) == encode_image(data)


@pytest.mark.parametrize(
    "size, expected",
    [
        ((400, 200), (100, 50)),
        ((200, 400), (50, 100)),
        ((100, 100), (100, 100)),
        ((10, 5), (100, 50)),  # small images are scaled up
        ((1, 300), (1, 100)),
        ((300, 1), (100, 1)),
        ((1, 1), (100, 100)),
        ((3, 7), (43, 100)),
        ((1000, 3), (100, 1)),
    ],
)
def test_scaled_size(size, expected):
    assert scaled_size(*size) == expected


def test_degenerate_image_dimensions():
    result = encode_image(image_bytes(1, 300))
    assert (result.width, result.height) == (1, 100)
    assert result.original_height == 300


def test_transparent_png_sets_alpha_flag():
    result = encode_image(image_bytes(64, 64, "PNG", "RGBA"))
    assert base64.b64decode(result.signature_base64)[2] & 0x80


def test_palette_and_grayscale_png():
    for mode in ("P", "L", "LA"):
        buffer = io.BytesIO()
        gradient(50, 20).convert(mode).save(buffer, format="PNG")
        result = encode_image(buffer.getvalue())
        assert (result.width, result.height) == (100, 40)


def test_garbage_raises_decode_error():
    with pytest.raises(DecodeError):
        encode_image(b"definitely not an image")


def test_empty_bytes_raise_decode_error():
    with pytest.raises(DecodeError):
        encode_image(b"")


def test_truncated_png_raises_decode_error():
    data = image_bytes(200, 200)
    with pytest.raises(DecodeError):
        encode_image(data[: len(data) // 2])


def test_unsupported_format_raises_decode_error():
    buffer = io.BytesIO()
    gradient(20, 20).save(buffer, format="GIF")
    with pytest.raises(DecodeError, match="Unsupported"):
        encode_image(buffer.getvalue())
