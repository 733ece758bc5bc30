"""Command-line ingestion of local files into a project category."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from collections.abc import Sequence
from dataclasses import asdict
from pathlib import Path

from dotenv import load_dotenv

from asset_ingestion.constants.categories import list_categories
from asset_ingestion.models.errors import ValidationError
from asset_ingestion.models.ingestion import UploadedFile
from asset_ingestion.services.ingestion import ingest_files


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="asset-ingest",
        description="Store files for a project in an upload category.",
    )
    parser.add_argument("category", nargs="?", help="Upload category key, e.g. frontend_tiles_zip")
    parser.add_argument("project", nargs="?", help="Project id or project code")
    parser.add_argument("files", nargs="*", type=Path, help="Files to ingest")
    parser.add_argument(
        "--list-categories",
        action="store_true",
        help="Print the available categories and exit",
    )
    return parser


def _print_categories() -> None:
    for category in list_categories():
        flags = [
            name
            for name, enabled in (
                ("frontend", category.is_frontend_asset),
                ("extract", category.extract_zip),
                ("preserve", category.preserve_structure),
                ("rename", category.auto_rename),
            )
            if enabled
        ]
        extensions = " ".join(sorted(category.allowed_extensions))
        suffix = f" [{', '.join(flags)}]" if flags else ""
        print(f"{category.key:<20} max={category.max_files:<4} {extensions}{suffix}")


def _read_files(paths: Sequence[Path]) -> list[UploadedFile]:
    return [UploadedFile(original_name=path.name, data=path.read_bytes()) for path in paths]


def run_cli(argv: Sequence[str] | None = None) -> int:
    """Run the ingestion CLI.

    Returns:
        0 when every file was stored, 1 on partial failure, 2 on rejection.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.list_categories:
        _print_categories()
        return 0
    if not args.category or not args.project or not args.files:
        parser.print_usage(sys.stderr)
        print("error: category, project and at least one file are required", file=sys.stderr)
        return 2

    try:
        uploads = _read_files(args.files)
    except OSError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    try:
        batch = ingest_files(args.category, args.project, uploads)
    except ValidationError as exc:
        print(f"rejected: {exc}", file=sys.stderr)
        return 2

    print(json.dumps(asdict(batch), indent=2, default=str))
    return 0 if all(item.ok for item in batch.files) else 1


def main() -> int:
    """Entry point for the CLI application."""
    load_dotenv()
    logging.basicConfig(
        level=os.getenv("ASSET_INGEST_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return run_cli()
    except KeyboardInterrupt:
        print("\nInterrupted by user. Exiting.", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
