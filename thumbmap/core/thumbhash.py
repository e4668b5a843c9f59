"""ThumbHash encoding and decoding.

ThumbHash stores a DCT of an image's luminance, chroma and alpha channels in a
compact byte string (roughly 20-30 bytes). The layout is:

    bytes 0-2   L DC (6 bits), P DC (6), Q DC (6), L scale (5), has alpha (1)
    bytes 3-4   L AC count on the short side (3), P scale (6), Q scale (6),
                is landscape (1)
    byte  5     A DC (4), A scale (4)            -- only when has alpha
    rest        AC coefficients, 4 bits each, low nibble first

Reference algorithm: https://github.com/evanw/thumbhash
"""

import math
from typing import Iterator

import numpy as np

# Encoding an image larger than this is slow with no benefit
MAX_ENCODE_DIMENSION = 100

# Longest side of decoded previews
PREVIEW_SIZE = 32


def _round(x: float) -> int:
    """Round half up, the same way the reference encoder rounds."""
    return int(math.floor(x + 0.5))


def _coefficient_positions(nx: int, ny: int) -> Iterator[tuple[int, int]]:
    """Yield the (cx, cy) positions of the AC terms kept for a channel.

    Only the triangle of low frequencies is kept; (0, 0) is the DC term and
    is stored separately.
    """
    for cy in range(ny):
        cx = 0 if cy else 1
        while cx * ny < nx * (ny - cy):
            yield cx, cy
            cx += 1


def _encode_channel(
    channel: np.ndarray, nx: int, ny: int
) -> tuple[float, list[float], float]:
    """Encode a (h, w) channel into DC, normalized AC terms and AC scale."""
    h, w = channel.shape
    xs = np.arange(w) + 0.5
    ys = np.arange(h) + 0.5

    dc = float(channel.mean())
    ac = []
    for cx, cy in _coefficient_positions(nx, ny):
        fx = np.cos(math.pi / w * cx * xs)
        fy = np.cos(math.pi / h * cy * ys)
        ac.append(float(fy @ channel @ fx) / (w * h))

    scale = max((abs(f) for f in ac), default=0.0)
    if scale:
        ac = [0.5 + 0.5 / scale * f for f in ac]
    return dc, ac, scale


def rgba_to_thumbhash(w: int, h: int, rgba: bytes) -> bytes:
    """Encode an RGBA image to a ThumbHash.

    Args:
        w: Image width, at most 100 pixels
        h: Image height, at most 100 pixels
        rgba: Row-major pixels, 4 bytes per pixel, alpha not premultiplied

    Returns:
        The ThumbHash bytes

    Raises:
        ValueError: If the image is too large or the buffer has the wrong size
    """
    if w > MAX_ENCODE_DIMENSION or h > MAX_ENCODE_DIMENSION:
        raise ValueError(f"{w}x{h} doesn't fit in {MAX_ENCODE_DIMENSION}x{MAX_ENCODE_DIMENSION}")
    if w < 1 or h < 1:
        raise ValueError(f"Invalid image size {w}x{h}")

    pixels = np.frombuffer(bytes(rgba), dtype=np.uint8)
    if pixels.size != w * h * 4:
        raise ValueError(f"Expected {w * h * 4} bytes of RGBA data, got {pixels.size}")
    pixels = pixels.reshape(h, w, 4).astype(np.float64)

    # Determine the average color
    alpha = pixels[..., 3] / 255
    color = pixels[..., :3] / 255
    avg_a = float(alpha.sum())
    avg_rgb = (alpha[..., None] * color).sum(axis=(0, 1))
    if avg_a:
        avg_rgb = avg_rgb / avg_a

    has_alpha = avg_a < w * h
    l_limit = 5 if has_alpha else 7  # fewer luminance bits if there's alpha
    lx = max(1, _round(l_limit * w / max(w, h)))
    ly = max(1, _round(l_limit * h / max(w, h)))

    # Convert from RGBA to LPQA, composited atop the average color
    rgb = avg_rgb * (1 - alpha[..., None]) + alpha[..., None] * color
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
    l_chan = (r + g + b) / 3
    p_chan = (r + g) / 2 - b
    q_chan = r - g

    l_dc, l_ac, l_scale = _encode_channel(l_chan, max(3, lx), max(3, ly))
    p_dc, p_ac, p_scale = _encode_channel(p_chan, 3, 3)
    q_dc, q_ac, q_scale = _encode_channel(q_chan, 3, 3)
    channels = [l_ac, p_ac, q_ac]

    is_landscape = w > h
    header24 = (
        _round(63 * l_dc)
        | (_round(31.5 + 31.5 * p_dc) << 6)
        | (_round(31.5 + 31.5 * q_dc) << 12)
        | (_round(31 * l_scale) << 18)
        | (int(has_alpha) << 23)
    )
    header16 = (
        (ly if is_landscape else lx)
        | (_round(63 * p_scale) << 3)
        | (_round(63 * q_scale) << 9)
        | (int(is_landscape) << 15)
    )
    hash_bytes = [
        header24 & 255,
        (header24 >> 8) & 255,
        header24 >> 16,
        header16 & 255,
        header16 >> 8,
    ]

    if has_alpha:
        a_dc, a_ac, a_scale = _encode_channel(alpha, 5, 5)
        hash_bytes.append(_round(15 * a_dc) | (_round(15 * a_scale) << 4))
        channels.append(a_ac)

    ac_start = len(hash_bytes)
    ac_index = 0
    for ac in channels:
        for f in ac:
            i = ac_start + (ac_index >> 1)
            if i == len(hash_bytes):
                hash_bytes.append(0)
            hash_bytes[i] |= _round(15 * f) << ((ac_index & 1) << 2)
            ac_index += 1

    return bytes(hash_bytes)


def _has_alpha(thumbhash: bytes) -> bool:
    return bool(thumbhash[2] & 0x80)


def _is_landscape(thumbhash: bytes) -> bool:
    return bool(thumbhash[4] & 0x80)


def thumbhash_to_approximate_aspect_ratio(thumbhash: bytes) -> float:
    """Extract the approximate width / height ratio stored in a ThumbHash."""
    header = thumbhash[3]
    l_max = 5 if _has_alpha(thumbhash) else 7
    if _is_landscape(thumbhash):
        lx, ly = l_max, header & 7
    else:
        lx, ly = header & 7, l_max
    return lx / ly


def thumbhash_to_average_rgba(thumbhash: bytes) -> tuple[float, float, float, float]:
    """Extract the average color of a ThumbHash as RGBA in the 0..1 range."""
    header = thumbhash[0] | (thumbhash[1] << 8) | (thumbhash[2] << 16)
    l = (header & 63) / 63
    p = ((header >> 6) & 63) / 31.5 - 1
    q = ((header >> 12) & 63) / 31.5 - 1
    a = (thumbhash[5] & 15) / 15 if header >> 23 else 1.0
    b = l - 2 / 3 * p
    r = (3 * l - b + q) / 2
    g = r - q
    return (
        max(0.0, min(1.0, r)),
        max(0.0, min(1.0, g)),
        max(0.0, min(1.0, b)),
        a,
    )


def thumbhash_to_rgba(thumbhash: bytes) -> tuple[int, int, bytes]:
    """Decode a ThumbHash to a small RGBA image.

    Returns:
        Tuple of (width, height, rgba bytes); the longer side is 32 pixels
    """
    thumbhash = bytes(thumbhash)
    if len(thumbhash) < 5:
        raise ValueError(f"ThumbHash too short: {len(thumbhash)} bytes")

    # Read the constants
    header24 = thumbhash[0] | (thumbhash[1] << 8) | (thumbhash[2] << 16)
    header16 = thumbhash[3] | (thumbhash[4] << 8)
    l_dc = (header24 & 63) / 63
    p_dc = ((header24 >> 6) & 63) / 31.5 - 1
    q_dc = ((header24 >> 12) & 63) / 31.5 - 1
    l_scale = ((header24 >> 18) & 31) / 31
    has_alpha = _has_alpha(thumbhash)
    p_scale = ((header16 >> 3) & 63) / 63
    q_scale = ((header16 >> 9) & 63) / 63
    is_landscape = _is_landscape(thumbhash)
    l_max = 5 if has_alpha else 7
    lx = max(3, l_max if is_landscape else header16 & 7)
    ly = max(3, header16 & 7 if is_landscape else l_max)
    a_dc = (thumbhash[5] & 15) / 15 if has_alpha else 1.0
    a_scale = (thumbhash[5] >> 4) / 15 if has_alpha else 0.0

    # Read the varying factors
    ac_start = 6 if has_alpha else 5
    ac_index = 0

    def decode_channel(nx: int, ny: int, scale: float) -> list[tuple[int, int, float]]:
        nonlocal ac_index
        terms = []
        for cx, cy in _coefficient_positions(nx, ny):
            i = ac_start + (ac_index >> 1)
            nibble = (thumbhash[i] >> ((ac_index & 1) << 2)) & 15 if i < len(thumbhash) else 0
            terms.append((cx, cy, (nibble / 7.5 - 1) * scale))
            ac_index += 1
        return terms

    # Boost saturation by 1.25x to compensate for quantization
    l_ac = decode_channel(lx, ly, l_scale)
    p_ac = decode_channel(3, 3, p_scale * 1.25)
    q_ac = decode_channel(3, 3, q_scale * 1.25)
    a_ac = decode_channel(5, 5, a_scale) if has_alpha else []

    ratio = thumbhash_to_approximate_aspect_ratio(thumbhash)
    w = _round(PREVIEW_SIZE if ratio > 1 else PREVIEW_SIZE * ratio)
    h = _round(PREVIEW_SIZE / ratio if ratio > 1 else PREVIEW_SIZE)

    # cos basis per column / row, indexed [pixel, frequency]
    n = max(lx, ly, 5 if has_alpha else 3)
    freqs = np.arange(n)
    fx = np.cos(math.pi / w * np.outer(np.arange(w) + 0.5, freqs))
    fy = np.cos(math.pi / h * np.outer(np.arange(h) + 0.5, freqs)) * 2

    def render(dc: float, terms: list[tuple[int, int, float]]) -> np.ndarray:
        out = np.full((h, w), dc, dtype=np.float64)
        for cx, cy, coeff in terms:
            out += coeff * np.outer(fy[:, cy], fx[:, cx])
        return out

    l_img = render(l_dc, l_ac)
    p_img = render(p_dc, p_ac)
    q_img = render(q_dc, q_ac)
    a_img = render(a_dc, a_ac)

    # Convert to RGB
    b_img = l_img - 2 / 3 * p_img
    r_img = (3 * l_img - b_img + q_img) / 2
    g_img = r_img - q_img

    rgba = np.stack([r_img, g_img, b_img, a_img], axis=-1)
    rgba = np.clip(255 * np.minimum(1, rgba), 0, 255).astype(np.uint8)
    return w, h, rgba.tobytes()
