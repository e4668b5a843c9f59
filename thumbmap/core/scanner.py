"""Image discovery in a source tree."""

import logging
import os
from pathlib import Path
from typing import Iterable, Optional

from ..errors import ConfigurationError

logger = logging.getLogger(__name__)


class ImageScanner:
    """Scans directories for raster images a ThumbHash can be calculated for."""

    IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png"}

    @classmethod
    def is_image(cls, filepath: str | Path) -> bool:
        """Check if a file is an image based on extension."""
        return Path(filepath).suffix.lower() in cls.IMAGE_EXTENSIONS

    @classmethod
    def discover(
        cls,
        path: str | Path,
        exclude: Optional[Iterable[str | Path]] = None,
    ) -> list[Path]:
        """
        Recursively list image files under a directory.

        Hidden and excluded directories are pruned from the walk, so large
        ignored trees (.git, the cache dir, ...) are never traversed.

        Args:
            path: Directory to scan
            exclude: Directories whose contents are skipped (e.g. the cache dir)

        Returns:
            Sorted absolute paths of regular files with an image extension,
            outside hidden directories
        """
        path = Path(path).resolve()
        if not path.is_dir():
            raise ConfigurationError("Root is not a directory", path)

        excluded = [Path(p).resolve() for p in exclude or ()]

        def keep_dir(dirpath: Path) -> bool:
            # Hidden directories (.git, .vitepress, ...) are not site content
            if dirpath.name.startswith("."):
                return False
            if any(dirpath.is_relative_to(ex) for ex in excluded):
                logger.debug("Skipping %s (excluded)", dirpath)
                return False
            return True

        files = []
        for dirpath, dirnames, filenames in os.walk(path):
            current = Path(dirpath)
            dirnames[:] = [d for d in dirnames if keep_dir(current / d)]
            for name in filenames:
                filepath = current / name
                if name.startswith(".") or not cls.is_image(name) or not filepath.is_file():
                    continue
                files.append(filepath)

        files.sort()
        logger.debug("Found %d image(s) in %s", len(files), path)
        return files

    @classmethod
    def contains_images(cls, path: str | Path) -> bool:
        """Check whether a directory holds any image file, hidden or not."""
        for _, _, filenames in os.walk(path):
            if any(cls.is_image(name) for name in filenames):
                return True
        return False
