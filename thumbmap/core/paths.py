"""Path and URL resolution for image records.

Everything here is plain string manipulation on forward-slash paths; no
file-system access happens, so Windows-style inputs resolve the same way on
every host.
"""

import posixpath
import re
from dataclasses import dataclass
from pathlib import PurePath

_SLASHES = re.compile(r"/{2,}")


@dataclass(frozen=True)
class AssetPaths:
    asset_file_name: str
    asset_full_file_name: str
    asset_url: str
    asset_url_with_base: str


def normalize_path(path: str | PurePath) -> str:
    """Convert separators to ``/``, collapse repeated slashes and resolve dots."""
    path = _SLASHES.sub("/", str(path).replace("\\", "/"))
    return posixpath.normpath(path)


def join_url(*segments: str) -> str:
    """Join path segments the way URL paths are joined.

    A segment starting with ``/`` does not discard the segments before it,
    so ``join_url("/docs/", "/assets")`` is ``/docs/assets``.
    """
    parts = [str(s) for s in segments if s]
    if not parts:
        return "."
    return normalize_path("/".join(parts))


def relative_path(root_dir: str | PurePath, file_path: str | PurePath) -> str:
    """Return ``file_path`` relative to ``root_dir`` with forward slashes."""
    return posixpath.relpath(normalize_path(file_path), normalize_path(root_dir))


def resolve_asset_paths(
    root_dir: str | PurePath,
    asset_dir: str,
    base_path: str,
    file_path: str | PurePath,
) -> AssetPaths:
    """Compute the record key and public URLs of an image.

    Args:
        root_dir: Project root the record key is relative to
        asset_dir: Directory built assets are emitted to, e.g. ``assets``
        base_path: Public base path of the site, e.g. ``/docs/``
        file_path: Absolute path of the image

    Returns:
        AssetPaths; ``asset_url_with_base`` always starts with ``/``
    """
    file_name = relative_path(root_dir, file_path)

    url_with_base = join_url(base_path, asset_dir, file_name)
    # The URL is referenced from rendered HTML where the base is not applied
    if not url_with_base.startswith("/"):
        url_with_base = f"/{url_with_base}"

    return AssetPaths(
        asset_file_name=file_name,
        asset_full_file_name=normalize_path(file_path),
        asset_url=join_url(asset_dir, file_name),
        asset_url_with_base=url_with_base,
    )
