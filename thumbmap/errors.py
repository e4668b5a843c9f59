"""Error taxonomy for the thumbnail hash pipeline."""

from pathlib import Path
from typing import Optional


class PipelineError(Exception):
    """Base class for every failure raised by the pipeline."""

    def __init__(self, message: str, path: Optional[str | Path] = None):
        self.path = Path(path) if path is not None else None
        if self.path is not None:
            message = f"{message} ({self.path})"
        super().__init__(message)


class DecodeError(PipelineError):
    """Raised when bytes are not a supported raster image or are corrupt."""
    pass


class FileSystemError(PipelineError):
    """Raised when an image cannot be read or the cache cannot be written."""
    pass


class ConfigurationError(PipelineError):
    """Raised when required configuration values are missing or malformed."""
    pass
