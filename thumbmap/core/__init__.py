"""Core business logic - hashing, path resolution and the batch pipeline."""

from .encoder import encode_image
from .fingerprint import Fingerprint, fingerprint
from .models import ImageRecord, ImageTable, SignatureResult
from .paths import AssetPaths, resolve_asset_paths
from .pipeline import RunReport, ThumbnailPipeline, run_pipeline
from .scanner import ImageScanner

__all__ = [
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
    "run_pipeline",
]
