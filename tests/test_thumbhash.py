import pytest

from conftest import gradient
from thumbmap.core.thumbhash import (
    rgba_to_thumbhash,
    thumbhash_to_approximate_aspect_ratio,
    thumbhash_to_average_rgba,
    thumbhash_to_rgba,
)


def solid(width, height, rgba=(255, 0, 0, 255)):
    return bytes(rgba) * (width * height)


def test_solid_landscape_layout():
    h = rgba_to_thumbhash(100, 50, solid(100, 50))
    # 5 header bytes + (18 L + 5 P + 5 Q) nibbles
    assert len(h) == 19
    assert not h[2] & 0x80  # no alpha
    assert h[4] & 0x80  # landscape
    assert thumbhash_to_approximate_aspect_ratio(h) == pytest.approx(7 / 4)


def test_portrait_and_square_aspect():
    portrait = rgba_to_thumbhash(50, 100, solid(50, 100))
    assert not portrait[4] & 0x80
    assert thumbhash_to_approximate_aspect_ratio(portrait) == pytest.approx(4 / 7)

    square = rgba_to_thumbhash(100, 100, solid(100, 100))
    assert thumbhash_to_approximate_aspect_ratio(square) == pytest.approx(1.0)


def test_average_color_of_solid_red():
    h = rgba_to_thumbhash(20, 20, solid(20, 20))
    r, g, b, a = thumbhash_to_average_rgba(h)
    assert r == pytest.approx(1.0, abs=0.02)
    assert g == pytest.approx(0.0, abs=0.02)
    assert b == pytest.approx(0.0, abs=0.02)
    assert a == 1.0


def test_alpha_flag_and_extra_byte():
    img = gradient(60, 60, "RGBA")
    h = rgba_to_thumbhash(60, 60, img.tobytes())
    assert h[2] & 0x80
    opaque = rgba_to_thumbhash(60, 60, gradient(60, 60).convert("RGBA").tobytes())
    assert not opaque[2] & 0x80
    _, _, _, a = thumbhash_to_average_rgba(h)
    assert a == pytest.approx(0.5, abs=0.1)


def test_decode_solid_color():
    w, h, rgba = thumbhash_to_rgba(rgba_to_thumbhash(100, 50, solid(100, 50)))
    assert (w, h) == (32, 18)
    assert len(rgba) == w * h * 4
    for i in range(0, len(rgba), 4):
        r, g, b, a = rgba[i : i + 4]
        assert r >= 250 and g <= 5 and b <= 5 and a == 255


@pytest.mark.parametrize(
    "size, expected",
    [((100, 100), (32, 32)), ((50, 100), (18, 32)), ((100, 10), (32, 5))],
)
def test_decoded_preview_size(size, expected):
    w, h = size
    _, _, rgba = decoded = thumbhash_to_rgba(rgba_to_thumbhash(w, h, solid(w, h)))
    assert decoded[:2] == expected
    assert len(rgba) == expected[0] * expected[1] * 4


def test_deterministic_and_content_sensitive():
    pixels = gradient(80, 60).convert("RGBA").tobytes()
    assert rgba_to_thumbhash(80, 60, pixels) == rgba_to_thumbhash(80, 60, pixels)
    assert rgba_to_thumbhash(80, 60, pixels) != rgba_to_thumbhash(80, 60, solid(80, 60))


def test_gradient_round_trip_keeps_ramp_direction():
    img = gradient(100, 100).convert("RGBA")
    w, h, rgba = thumbhash_to_rgba(rgba_to_thumbhash(100, 100, img.tobytes()))

    def red(x, y):
        return rgba[(y * w + x) * 4]

    def green(x, y):
        return rgba[(y * w + x) * 4 + 1]

    assert red(w - 1, h // 2) > red(0, h // 2)
    assert green(w // 2, h - 1) > green(w // 2, 0)


@pytest.mark.parametrize(
    "pixel, expected",
    [
        # L DC 63, P/Q DC 32, L scale 31; the AC nibbles are the sign pattern
        # of cos(k*pi/2): 0 or 15 for +-1, 7 or 8 for the float residue at odd k
        (
            (255, 255, 255, 255),
            "3f087e0700" "08f708888788708f7088f80888" "000000000000",
        ),
        # Black has no luminance to normalise, so every AC nibble is 0
        ((0, 0, 0, 255), "0008020700" + "00" * 19),
    ],
)
def test_single_pixel_vectors(pixel, expected):
    assert rgba_to_thumbhash(1, 1, bytes(pixel)).hex() == expected


def test_solid_red_header():
    h = rgba_to_thumbhash(100, 50, solid(100, 50))
    # L DC 21, P DC 47, Q DC 63, no L scale; ly 4, landscape
    assert h[:5] == bytes([0xD5, 0xFB, 0x03, 0x04, 0x80])


def test_rejects_large_images():
    with pytest.raises(ValueError, match="doesn't fit"):
        rgba_to_thumbhash(101, 1, solid(101, 1))


def test_rejects_wrong_buffer_size():
    with pytest.raises(ValueError):
        rgba_to_thumbhash(10, 10, solid(10, 9))
