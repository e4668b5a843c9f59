"""Pipeline configuration.

Values come from, in order of precedence: explicit arguments (CLI flags), a
YAML config file, and environment variables. Environment variables:

    THUMBMAP_ROOT: Project root scanned for images (default: current directory)
    THUMBMAP_ASSETS_DIR: Directory built assets are served from (default: "assets")
    THUMBMAP_BASE: Public base path of the site (default: "/")
    THUMBMAP_CACHE_DIR: Directory map.json is written to
    THUMBMAP_WORKERS: Maximum number of images processed concurrently
"""

import os
from dataclasses import dataclass
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import Any, Optional

import yaml

from .errors import ConfigurationError

DEFAULT_ASSETS_DIR = "assets"
DEFAULT_BASE = "/"

# Cache location used by the VitePress plugin, relative to the project root
DEFAULT_CACHE_SUBDIR = Path(
    ".vitepress", "cache", "@nolebase", "vitepress-plugin-thumbnail-hash", "thumbhashes"
)

ENV_PREFIX = "THUMBMAP_"

# YAML key -> PipelineConfig field
CONFIG_KEYS = {
    "root": "root_dir",
    "assets_dir": "asset_dir",
    "base": "base_path",
    "cache_dir": "cache_dir",
    "workers": "workers",
}


@dataclass(frozen=True)
class PipelineConfig:
    """Validated configuration of a pipeline run."""

    root_dir: Path
    asset_dir: str
    base_path: str
    cache_dir: Path
    workers: Optional[int] = None

    def __post_init__(self):
        self.validate()
        # Keys are relative to the directory actually walked, so symlinks in
        # the root (or /tmp -> /private/tmp on macOS) must not leak into them
        object.__setattr__(self, "root_dir", self.root_dir.resolve())
        object.__setattr__(self, "cache_dir", self.cache_dir.resolve())

    def validate(self) -> None:
        """Check every field; raise ConfigurationError on the first problem."""
        if not isinstance(self.root_dir, Path) or not self.root_dir.is_absolute():
            raise ConfigurationError(f"Root directory must be an absolute path, got {self.root_dir!r}")
        if not self.root_dir.is_dir():
            raise ConfigurationError("Root directory does not exist", self.root_dir)

        if not isinstance(self.asset_dir, str):
            raise ConfigurationError(f"Assets directory must be a string, got {self.asset_dir!r}")
        if PurePosixPath(self.asset_dir).is_absolute() or PureWindowsPath(self.asset_dir).is_absolute():
            raise ConfigurationError(f"Assets directory must be relative, got {self.asset_dir!r}")

        if not isinstance(self.base_path, str):
            raise ConfigurationError(f"Base path must be a string, got {self.base_path!r}")
        if "://" in self.base_path or "?" in self.base_path or "#" in self.base_path:
            raise ConfigurationError(f"Base path must be a URL path, got {self.base_path!r}")

        if not isinstance(self.cache_dir, Path) or not self.cache_dir.is_absolute():
            raise ConfigurationError(f"Cache directory must be an absolute path, got {self.cache_dir!r}")
        # The cache directory is wiped on every run
        if self.root_dir.resolve().is_relative_to(self.cache_dir.resolve()):
            raise ConfigurationError(
                "Cache directory must not be the project root or one of its parents",
                self.cache_dir,
            )

        if self.workers is not None:
            if isinstance(self.workers, bool) or not isinstance(self.workers, int) or self.workers < 1:
                raise ConfigurationError(f"Workers must be a positive integer, got {self.workers!r}")


def load_config_file(config_path: str | Path) -> dict[str, Any]:
    """Load configuration values from a YAML file.

    Returns:
        Mapping of PipelineConfig field names to raw values
    """
    path = Path(config_path)
    if not path.exists():
        raise ConfigurationError("Config file not found", path)

    try:
        with open(path) as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in config file: {e}", path) from e

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ConfigurationError("Config file must contain a mapping", path)

    unknown = set(config) - set(CONFIG_KEYS)
    if unknown:
        raise ConfigurationError(f"Unknown config key(s): {', '.join(sorted(unknown))}", path)

    return {CONFIG_KEYS[key]: value for key, value in config.items()}


def load_env() -> dict[str, Any]:
    """Read configuration values from THUMBMAP_* environment variables."""
    values = {}
    for key, field_name in CONFIG_KEYS.items():
        value = os.environ.get(ENV_PREFIX + key.upper())
        if value is not None and value != "":
            values[field_name] = value
    return values


def _parse_workers(value: Any) -> Optional[int]:
    if value is None or isinstance(value, int):
        return value
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Workers must be a positive integer, got {value!r}")


def resolve_config(
    root: Optional[str | Path] = None,
    asset_dir: Optional[str] = None,
    base_path: Optional[str] = None,
    cache_dir: Optional[str | Path] = None,
    workers: Optional[int] = None,
    config_file: Optional[str | Path] = None,
) -> PipelineConfig:
    """Merge arguments, config file and environment into a PipelineConfig.

    Relative root and cache paths are resolved against the current directory
    and the root respectively.

    Raises:
        ConfigurationError: If a value is missing or invalid
    """
    values: dict[str, Any] = load_env()
    if config_file is not None:
        values.update(load_config_file(config_file))

    explicit = {
        "root_dir": root,
        "asset_dir": asset_dir,
        "base_path": base_path,
        "cache_dir": cache_dir,
        "workers": workers,
    }
    values.update({k: v for k, v in explicit.items() if v is not None})

    root_dir = Path(values.get("root_dir") or ".").resolve()

    cache = values.get("cache_dir")
    if cache is None:
        cache_path = root_dir / DEFAULT_CACHE_SUBDIR
    else:
        cache_path = Path(cache)
        if not cache_path.is_absolute():
            cache_path = root_dir / cache_path
    cache_path = cache_path.resolve()

    return PipelineConfig(
        root_dir=root_dir,
        asset_dir=values.get("asset_dir", DEFAULT_ASSETS_DIR),
        base_path=values.get("base_path", DEFAULT_BASE),
        cache_dir=cache_path,
        workers=_parse_workers(values.get("workers")),
    )
