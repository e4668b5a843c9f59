# tests/conftest.py
from __future__ import annotations

import io
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from thumbmap.config import CONFIG_KEYS, ENV_PREFIX


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    # Keep a developer's THUMBMAP_* settings out of the tests
    for key in CONFIG_KEYS:
        monkeypatch.delenv(ENV_PREFIX + key.upper(), raising=False)


def gradient(width: int, height: int, mode: str = "RGB") -> Image.Image:
    """A deterministic image with horizontal red and vertical green ramps."""
    pixels = np.zeros((height, width, 4), dtype=np.uint8)
    pixels[..., 0] = np.linspace(0, 255, width, dtype=np.uint8)[None, :]
    pixels[..., 1] = np.linspace(0, 255, height, dtype=np.uint8)[:, None]
    pixels[..., 2] = 96
    pixels[..., 3] = 255
    if mode == "RGBA":
        # Left half fully transparent
        pixels[:, : width // 2, 3] = 0
        return Image.fromarray(pixels, "RGBA")
    return Image.fromarray(pixels[..., :3].copy(), "RGB")


def image_bytes(width: int, height: int, fmt: str = "PNG", mode: str = "RGB") -> bytes:
    buffer = io.BytesIO()
    gradient(width, height, mode).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def make_image():
    """Write a gradient image to a path, creating parent directories."""

    def _make(path: Path, width: int = 40, height: int = 30, mode: str = "RGB") -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        fmt = "JPEG" if path.suffix.lower() in (".jpg", ".jpeg") else "PNG"
        path.write_bytes(image_bytes(width, height, fmt, mode))
        return path

    return _make
