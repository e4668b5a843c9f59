"""On-disk storage of the ThumbHash lookup table."""

import json
import logging
import os
import shutil
import tempfile
from pathlib import Path

from ..core.models import ImageRecord, ImageTable
from ..errors import FileSystemError

logger = logging.getLogger(__name__)

MAP_FILE_NAME = "map.json"


class CacheStore:
    """Owns the cache directory that map.json is written to.

    The directory belongs to the pipeline for the duration of a run; nothing
    else should write into it.
    """

    def __init__(self, location: str | Path):
        self.location = Path(location)

    @property
    def map_path(self) -> Path:
        return self.location / MAP_FILE_NAME

    def reset(self) -> None:
        """Remove everything in the cache directory and recreate it empty.

        Succeeds when the directory does not exist. Only a directory this
        store has written to (one holding map.json) or an empty one is
        cleared.

        Raises:
            FileSystemError: If the location holds anything else
        """
        try:
            if self.location.is_dir() and not self.location.is_symlink():
                if any(self.location.iterdir()) and not self.map_path.is_file():
                    raise FileSystemError(
                        f"Refusing to clear a directory without {MAP_FILE_NAME}", self.location
                    )
                shutil.rmtree(self.location)
            elif self.location.exists() or self.location.is_symlink():
                raise FileSystemError("Cache location is not a directory", self.location)
            self.location.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FileSystemError(f"Could not reset cache directory: {e}", self.location) from e
        logger.debug("Cleared cache directory %s", self.location)

    def write(self, table: ImageTable) -> Path:
        """Write the table to map.json atomically.

        The JSON is staged in a temporary file next to map.json and renamed
        over it, so readers see either the old or the new table.

        Returns:
            Path of the written map.json
        """
        data = {key: record.to_dict() for key, record in table.items()}

        try:
            self.location.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{MAP_FILE_NAME}.", suffix=".tmp", dir=self.location
            )
        except OSError as e:
            raise FileSystemError(f"Could not create cache directory: {e}", self.location) from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            # mkstemp creates the file readable by the owner only
            os.chmod(tmp_name, 0o644)
            os.replace(tmp_name, self.map_path)
        except OSError as e:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise FileSystemError(f"Could not write {MAP_FILE_NAME}: {e}", self.map_path) from e

        logger.info("Wrote %d record(s) to %s", len(table), self.map_path)
        return self.map_path

    def load(self) -> ImageTable:
        """Load a previously written table.

        Returns:
            The table, or an empty table if map.json does not exist
        """
        try:
            with open(self.map_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except OSError as e:
            raise FileSystemError(f"Could not read {MAP_FILE_NAME}: {e}", self.map_path) from e
        except json.JSONDecodeError as e:
            raise FileSystemError(f"Malformed {MAP_FILE_NAME}: {e}", self.map_path) from e

        try:
            return {key: ImageRecord.from_dict(value) for key, value in data.items()}
        except (AttributeError, KeyError, TypeError) as e:
            raise FileSystemError(f"Malformed record in {MAP_FILE_NAME}: {e}", self.map_path) from e

    def find_by_hash(self, hash_prefix: str) -> list[ImageRecord]:
        """Find records whose full or short content hash starts with a prefix."""
        return [
            record
            for record in self.load().values()
            if record.asset_full_hash.startswith(hash_prefix)
            or record.asset_file_hash.startswith(hash_prefix)
        ]
