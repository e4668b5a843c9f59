"""thumbmap - ThumbHash placeholders for the images of a static site.

Package structure:
    thumbmap/
    ├── cli.py              # Command-line interface
    ├── config.py           # PipelineConfig from flags, YAML and environment
    ├── errors.py           # PipelineError and subclasses
    ├── core/               # Core business logic
    │   ├── models.py       # Data models (ImageRecord)
    │   ├── fingerprint.py  # Content hashes
    │   ├── thumbhash.py    # ThumbHash codec
    │   ├── encoder.py      # Decoding, downsampling, previews
    │   ├── paths.py        # Record keys and asset URLs
    │   ├── scanner.py      # Image discovery
    │   └── pipeline.py     # Concurrent batch run
    └── storage/            # Data persistence
        └── cache_store.py  # map.json reset / write / load
"""

from .config import PipelineConfig, resolve_config
from .core.encoder import encode_image
from .core.fingerprint import Fingerprint, fingerprint
from .core.models import ImageRecord, ImageTable, SignatureResult
from .core.paths import AssetPaths, resolve_asset_paths
from .core.pipeline import RunReport, ThumbnailPipeline, run_pipeline
from .core.scanner import ImageScanner
from .core.thumbhash import (
    rgba_to_thumbhash,
    thumbhash_to_approximate_aspect_ratio,
    thumbhash_to_average_rgba,
    thumbhash_to_rgba,
)
from .errors import ConfigurationError, DecodeError, FileSystemError, PipelineError
from .storage.cache_store import CacheStore

__version__ = "0.1.0"

__all__ = [
    # Config
    "PipelineConfig",
    "resolve_config",
    # Core
    "AssetPaths",
    "Fingerprint",
    "ImageRecord",
    "ImageScanner",
    "ImageTable",
    "RunReport",
    "SignatureResult",
    "ThumbnailPipeline",
    "encode_image",
    "fingerprint",
    "resolve_asset_paths",
    "rgba_to_thumbhash",
    "run_pipeline",
    "thumbhash_to_approximate_aspect_ratio",
    "thumbhash_to_average_rgba",
    "thumbhash_to_rgba",
    # Storage
    "CacheStore",
    # Errors
    "ConfigurationError",
    "DecodeError",
    "FileSystemError",
    "PipelineError",
]
