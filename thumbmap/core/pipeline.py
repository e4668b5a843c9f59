"""Batch calculation of ThumbHash records for a source tree."""

import logging
import os
import time
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from tqdm import tqdm

from ..config import PipelineConfig
from ..errors import ConfigurationError, DecodeError, FileSystemError
from ..storage.cache_store import CacheStore
from .encoder import encode_image
from .fingerprint import fingerprint
from .models import ImageRecord, ImageTable
from .paths import resolve_asset_paths
from .scanner import ImageScanner

logger = logging.getLogger(__name__)


def default_workers() -> int:
    """Default thread count, same bound as ThreadPoolExecutor's own default."""
    return min(32, (os.cpu_count() or 1) + 4)


@dataclass
class RunReport:
    """Summary of a pipeline run."""

    table: ImageTable = field(default_factory=dict)
    files: int = 0
    duplicates: list[str] = field(default_factory=list)  # keys written more than once
    elapsed: float = 0.0  # seconds
    output: Optional[Path] = None

    def __str__(self) -> str:
        lines = [f"Calculated thumbhashes for {len(self.table)} image(s)"]
        if self.duplicates:
            lines.append(f"Duplicate keys (last one kept): {len(self.duplicates)}")
        if self.output is not None:
            lines.append(f"Written to: {self.output}")
        lines.append(f"Elapsed: {self.elapsed * 1000:.0f}ms")
        return "\n".join(lines)


class ThumbnailPipeline:
    """Discovers images, calculates their records and writes map.json.

    Runs are all-or-nothing: the first failing image aborts the run and the
    previous map.json is left untouched.
    """

    def __init__(
        self,
        config: PipelineConfig,
        store: Optional[CacheStore] = None,
        progress: bool = False,
    ):
        """Initialize the pipeline.

        Args:
            config: Validated pipeline configuration
            store: Cache store to write to (defaults to one at config.cache_dir)
            progress: Show a tqdm progress bar while processing images
        """
        self.config = config
        self.store = store or CacheStore(config.cache_dir)
        self.progress = progress
        self.workers = config.workers or default_workers()

    def discover(self) -> list[Path]:
        """List the images under the project root, outside the cache directory."""
        return ImageScanner.discover(self.config.root_dir, exclude=[self.config.cache_dir])

    def process_file(self, filepath: Path) -> ImageRecord:
        """Build the record of a single image."""
        try:
            data = filepath.read_bytes()
        except OSError as e:
            raise FileSystemError(f"Could not read image: {e.strerror or e}", filepath) from e

        # Mirrors the content hash of the emitted asset, see fingerprint module
        digest = fingerprint(data)

        try:
            signature = encode_image(data)
        except DecodeError as e:
            raise DecodeError(str(e), filepath) from e

        paths = resolve_asset_paths(
            self.config.root_dir,
            self.config.asset_dir,
            self.config.base_path,
            filepath,
        )
        logger.debug(
            "%s: %dx%d -> %dx%d",
            paths.asset_file_name,
            signature.original_width,
            signature.original_height,
            signature.width,
            signature.height,
        )

        return ImageRecord(
            signature_base64=signature.signature_base64,
            preview_data_url=signature.preview_data_url,
            width=signature.width,
            height=signature.height,
            original_width=signature.original_width,
            original_height=signature.original_height,
            asset_file_name=paths.asset_file_name,
            asset_full_file_name=paths.asset_full_file_name,
            asset_full_hash=digest.full_hash,
            asset_file_hash=digest.file_hash,
            asset_url=paths.asset_url,
            asset_url_with_base=paths.asset_url_with_base,
        )

    def _process_all(self, files: list[Path]) -> list[ImageRecord]:
        """Process files concurrently; results are in the order of ``files``."""
        if not files:
            return []

        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            futures: list[Future] = [executor.submit(self.process_file, f) for f in files]
            try:
                for future in tqdm(
                    as_completed(futures),
                    total=len(futures),
                    desc="Calculating thumbhashes",
                    disable=not self.progress,
                    leave=False,
                ):
                    # Raises the first failure as soon as it completes
                    future.result()
            except BaseException:
                for future in futures:
                    future.cancel()
                raise

        return [future.result() for future in futures]

    def compute(self, files: list[Path]) -> tuple[ImageTable, list[str]]:
        """Calculate the table for the given files without writing it.

        Returns:
            Tuple of (table, keys that more than one file resolved to)
        """
        records = self._process_all(files)

        table: ImageTable = {}
        duplicates: list[str] = []
        for record in records:
            key = record.asset_file_name
            if key in table:
                logger.warning(
                    "Both %s and %s resolve to key %s; keeping the latter",
                    table[key].asset_full_file_name,
                    record.asset_full_file_name,
                    key,
                )
                duplicates.append(key)
            table[key] = record
        return table, duplicates

    def run(self) -> RunReport:
        """Rebuild map.json from scratch."""
        started = time.perf_counter()

        # The cache directory is wiped below; never take source images with it
        if ImageScanner.contains_images(self.store.location):
            raise ConfigurationError("Cache directory contains images", self.store.location)

        files = self.discover()
        logger.info(
            "Calculating thumbhashes for %d image(s) in %s (workers=%d)",
            len(files),
            self.config.root_dir,
            self.workers,
        )

        table, duplicates = self.compute(files)

        # Reset only once every record is known, so failures keep the old map
        self.store.reset()
        output = self.store.write(table)

        report = RunReport(
            table=table,
            files=len(files),
            duplicates=duplicates,
            elapsed=time.perf_counter() - started,
            output=output,
        )
        logger.info("Done. (%.0fms)", report.elapsed * 1000)
        return report


def run_pipeline(config: PipelineConfig, progress: bool = False) -> ImageTable:
    """Rebuild map.json for a project and return the written table."""
    return ThumbnailPipeline(config, progress=progress).run().table
