"""Image decoding, downsampling and ThumbHash calculation.

Images are decoded with Pillow, scaled so that their longer side is exactly
``TARGET_DIMENSION`` pixels, and the resulting RGBA buffer is hashed. The
preview data URL is rendered back from the hash itself, not from the image.
"""

import base64
import io
import math

from PIL import Image

from ..errors import DecodeError
from .models import SignatureResult
from .thumbhash import rgba_to_thumbhash, thumbhash_to_rgba

# Longer side of the image the ThumbHash is calculated from
TARGET_DIMENSION = 100

# Pillow format identifiers accepted by the decoder, in sniffing order
SUPPORTED_FORMATS = ("JPEG", "PNG")


def scaled_size(
    width: int,
    height: int,
    target: int = TARGET_DIMENSION,
) -> tuple[int, int]:
    """Compute the downsampled size for an image.

    The longer side is scaled to ``target``, keeping the aspect ratio.
    Rounds half up; both sides are at least 1 and at most ``target``.
    """
    scale = target / max(width, height)

    def fit(dimension: int) -> int:
        return min(target, max(1, int(math.floor(dimension * scale + 0.5))))

    return fit(width), fit(height)


def decode_image(image_data: bytes) -> Image.Image:
    """Decode image bytes, sniffing the format among ``SUPPORTED_FORMATS``.

    Raises:
        DecodeError: If the bytes are not a supported image or are corrupt
    """
    try:
        img = Image.open(io.BytesIO(image_data), formats=SUPPORTED_FORMATS)
        # Force a full decode so that truncated data fails here
        img.load()
    except (Image.UnidentifiedImageError, Image.DecompressionBombError) as e:
        raise DecodeError(f"Unsupported image data: {e}") from e
    except (OSError, EOFError, SyntaxError, ValueError) as e:
        raise DecodeError(f"Corrupt image data: {e}") from e
    return img


def downscale_image(img: Image.Image, target: int = TARGET_DIMENSION) -> Image.Image:
    """Resample an image to RGBA with its longer side equal to ``target``.

    Unlike a thumbnail, small images are scaled up as well so that every
    ThumbHash is calculated from the same pixel budget.
    """
    size = scaled_size(img.width, img.height, target)
    if img.mode != "RGBA":
        img = img.convert("RGBA")
    # Use LANCZOS resampling for high-quality downscaling
    return img.resize(size, Image.Resampling.LANCZOS)


def rgba_to_png_base64(width: int, height: int, rgba: bytes) -> str:
    """Encode an RGBA buffer as PNG and return it as base64."""
    img = Image.frombytes("RGBA", (width, height), rgba)
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return base64.b64encode(buffer.getvalue()).decode("utf-8")


def format_image_data_url(png_base64: str) -> str:
    """Format PNG base64 data as a data URL.

    Args:
        png_base64: Base64-encoded PNG data

    Returns:
        Data URL in format: data:image/png;base64,{data}
    """
    return f"data:image/png;base64,{png_base64}"


def thumbhash_to_data_url(thumbhash: bytes) -> str:
    """Render a ThumbHash to a PNG data URL usable as an image source."""
    width, height, rgba = thumbhash_to_rgba(thumbhash)
    return format_image_data_url(rgba_to_png_base64(width, height, rgba))


def encode_image(image_data: bytes) -> SignatureResult:
    """Calculate the ThumbHash data for raw image bytes.

    Args:
        image_data: Raw bytes of a JPEG or PNG file

    Returns:
        The signature, its preview and the analyzed / original dimensions

    Raises:
        DecodeError: If the image cannot be decoded
    """
    img = decode_image(image_data)
    original_width, original_height = img.size
    if original_width < 1 or original_height < 1:
        raise DecodeError(f"Image has no pixels ({original_width}x{original_height})")

    try:
        resized = downscale_image(img)
    except (OSError, ValueError) as e:
        raise DecodeError(f"Could not resample {img.mode} image: {e}") from e
    width, height = resized.size

    thumbhash = rgba_to_thumbhash(width, height, resized.tobytes())

    return SignatureResult(
        signature_base64=base64.b64encode(thumbhash).decode("utf-8"),
        preview_data_url=thumbhash_to_data_url(thumbhash),
        width=width,
        height=height,
        original_width=original_width,
        original_height=original_height,
    )
