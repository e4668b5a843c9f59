"""Command-line interface for building and inspecting the ThumbHash map.

Configuration can also be given through THUMBMAP_* environment variables
(a .env file in the working directory is loaded) or a YAML file passed with
--config; see thumbmap.config.
"""

import argparse
import logging
import sys

from dotenv import load_dotenv

from .config import resolve_config
from .core.pipeline import ThumbnailPipeline
from .errors import PipelineError
from .storage.cache_store import CacheStore


def _config_from_args(args):
    return resolve_config(
        root=args.root,
        asset_dir=args.assets_dir,
        base_path=args.base,
        cache_dir=args.cache_dir,
        workers=getattr(args, "workers", None),
        config_file=args.config,
    )


def build(args):
    """Calculate thumbhashes for every image and rewrite map.json."""
    config = _config_from_args(args)
    print(f"Scanning {config.root_dir} for images...")

    pipeline = ThumbnailPipeline(config, progress=not args.no_progress)
    report = pipeline.run()

    for key in report.duplicates:
        print(f"Warning: duplicate key {key}")
    print(report)


def show(args):
    """List the records of an existing map.json."""
    config = _config_from_args(args)
    store = CacheStore(config.cache_dir)
    table = store.load()

    if not table:
        print(f"No thumbhashes found at {store.map_path}")
        return

    print(f"{'File':<40} {'Hash':<12} {'Original':>11} {'Analyzed':>9}  URL")
    print("-" * 100)
    for key, r in sorted(table.items()):
        original = f"{r.original_width}x{r.original_height}"
        analyzed = f"{r.width}x{r.height}"
        print(f"{key:<40} {r.asset_file_hash:<12} {original:>11} {analyzed:>9}  {r.asset_url_with_base}")
    print(f"\nTotal: {len(table)} image(s)")


def search(args):
    """Search map.json by content hash prefix."""
    config = _config_from_args(args)
    records = CacheStore(config.cache_dir).find_by_hash(args.hash)

    if not records:
        print(f"No images found matching prefix: {args.hash}")
        return

    if len(records) > 1:
        print(f"Found {len(records)} matches for prefix '{args.hash}':\n")

    for record in records:
        print(f"File:      {record.asset_file_name}")
        print(f"  Hash:      {record.asset_full_hash}")
        print(f"  File hash: {record.asset_file_hash}")
        print(f"  Size:      {record.original_width}x{record.original_height}")
        print(f"  ThumbHash: {record.signature_base64}")
        print(f"  URL:       {record.asset_url_with_base}")
        print()


def main(argv=None):
    load_dotenv()

    parser = argparse.ArgumentParser(
        description="thumbmap - ThumbHash placeholders for the images of a static site"
    )
    parser.add_argument(
        "--config", "-c",
        default=None,
        help="YAML config file (keys: root, assets_dir, base, cache_dir, workers)"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging"
    )

    # Options shared by every command
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--assets-dir",
        default=None,
        help="Directory built assets are served from (default: assets)"
    )
    common.add_argument(
        "--base", "-b",
        default=None,
        help="Public base path of the site (default: /)"
    )
    common.add_argument(
        "--cache-dir",
        default=None,
        help="Directory map.json is written to (default: <root>/.vitepress/cache/...)"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # Build command
    build_parser = subparsers.add_parser(
        "build", parents=[common], help="Calculate thumbhashes and write map.json"
    )
    build_parser.add_argument("root", nargs="?", default=None, help="Project root to scan (default: .)")
    build_parser.add_argument(
        "--workers", "-w",
        type=int,
        default=None,
        help="Maximum number of images processed concurrently"
    )
    build_parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Do not show a progress bar"
    )
    build_parser.set_defaults(func=build)

    # Show command
    show_parser = subparsers.add_parser("show", parents=[common], help="List the records in map.json")
    show_parser.add_argument("--root", default=None, help="Project root (default: .)")
    show_parser.set_defaults(func=show)

    # Search command
    search_parser = subparsers.add_parser("search", parents=[common], help="Search map.json by hash")
    search_parser.add_argument("hash", help="Prefix of the full or short content hash")
    search_parser.add_argument("--root", default=None, help="Project root (default: .)")
    search_parser.set_defaults(func=search)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        args.func(args)
    except PipelineError as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
