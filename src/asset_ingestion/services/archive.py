"""Safe archive extraction and main-file discovery."""

from __future__ import annotations

import logging
import re
import shutil
from collections.abc import Iterable, Sequence
from pathlib import Path, PurePosixPath
from zipfile import BadZipFile, ZipFile, ZipInfo

from asset_ingestion.constants.categories import MAIN_FILE_TYPES
from asset_ingestion.models.errors import ArchiveError, ParseError, SecurityError
from asset_ingestion.models.ingestion import (
    ArchiveEntry,
    CandidateMainFile,
    ExtractionResult,
    ExtractionSummary,
)
from asset_ingestion.services.tileset_heuristics import (
    ParsedTileset,
    load_tileset,
    looks_like_main_tileset,
    score_tileset,
)

logger = logging.getLogger(__name__)

MAX_SCAN_DEPTH = 3

_ARCHIVE_SIGNATURES = (
    (b"PK\x03\x04", "zip"),
    (b"PK\x05\x06", "zip"),
    (b"PK\x07\x08", "zip"),
    (b"Rar!\x1a\x07", "rar"),
    (b"7z\xbc\xaf\x27\x1c", "7z"),
)
_DRIVE_PREFIX = re.compile(r"^[A-Za-z]:")
_STREAM_CHUNK_SIZE = 1024 * 1024


def detect_archive_format(path: Path | str) -> str | None:
    """Return ``"zip"``, ``"rar"`` or ``"7z"`` based on magic bytes, or None."""
    try:
        with Path(path).open("rb") as handle:
            header = handle.read(8)
    except OSError:
        return None
    for signature, name in _ARCHIVE_SIGNATURES:
        if header.startswith(signature):
            return name
    return None


def _check_entry_name(name: str) -> PurePosixPath:
    """Return the normalized relative path of an archive entry.

    Raises:
        SecurityError: If the entry is absolute or traverses out of its root.
    """
    if name.startswith(("/", "\\")) or "\\..\\" in name or _DRIVE_PREFIX.match(name):
        raise SecurityError(f"Unsafe archive entry: {name}")
    normalized = PurePosixPath(name.replace("\\", "/"))
    if any(part == ".." for part in normalized.parts):
        raise SecurityError(f"Unsafe archive entry: {name}")
    return PurePosixPath(*(part for part in normalized.parts if part not in {"", "."}))


def _safe_target(dest_root: Path, name: str) -> Path | None:
    relative = _check_entry_name(name)
    if not relative.parts:
        return None
    target = (dest_root / Path(*relative.parts)).resolve()
    if not target.is_relative_to(dest_root):
        raise SecurityError(f"Archive entry resolves outside destination: {name}")
    return target


def summarize_entries(entries: Iterable[ArchiveEntry]) -> ExtractionSummary:
    """Count files by extension and list directories of an archive listing."""
    summary = ExtractionSummary()
    for entry in entries:
        if entry.is_directory:
            summary.directories.append(entry.path)
            continue
        summary.total_files += 1
        extension = PurePosixPath(entry.path.replace("\\", "/")).suffix.lower()
        summary.file_type_counts[extension] = summary.file_type_counts.get(extension, 0) + 1
    return summary


def list_entries(archive_path: Path | str) -> list[ArchiveEntry]:
    """Return the entries of a ZIP archive without extracting it.

    Raises:
        ArchiveError: If the file is not a readable ZIP archive.
    """
    path = Path(archive_path)
    try:
        with ZipFile(path) as archive:
            return [_to_entry(info) for info in archive.infolist()]
    except (BadZipFile, OSError) as exc:
        raise ArchiveError(f"{path.name} is not a valid ZIP archive") from exc


def _to_entry(info: ZipInfo) -> ArchiveEntry:
    return ArchiveEntry(path=info.filename, is_directory=info.is_dir(), size=info.file_size)


def extract_archive(
    archive_path: Path | str,
    dest_dir: Path | str,
    file_types: Sequence[str] | None = None,
) -> ExtractionResult:
    """Extract a ZIP archive into *dest_dir* and rank main-file candidates.

    Entries that would land outside *dest_dir* are skipped and logged;
    extraction continues with the remaining entries.

    Args:
        archive_path: Archive to extract.
        dest_dir: Directory to extract into; created if missing.
        file_types: Extensions considered when looking for main files.

    Returns:
        ExtractionResult with counts, the entry summary and ranked candidates.

    Raises:
        ArchiveError: If the archive is not a ZIP file or cannot be read.
        OSError: If writing an entry to disk fails.
    """
    path = Path(archive_path)
    dest_root = Path(dest_dir)
    dest_root.mkdir(parents=True, exist_ok=True)
    dest_root = dest_root.resolve()

    archive_format = detect_archive_format(path)
    if archive_format != "zip":
        kind = archive_format.upper() if archive_format else "unrecognised"
        raise ArchiveError(f"{path.name}: {kind} archives cannot be extracted")

    skipped: list[str] = []
    written: list[str] = []
    try:
        with ZipFile(path) as archive:
            infos = archive.infolist()
            summary = summarize_entries(_to_entry(info) for info in infos)
            logger.info(
                "Archive %s: %d files, %d directories",
                path.name,
                summary.total_files,
                len(summary.directories),
            )
            for info in infos:
                try:
                    target = _safe_target(dest_root, info.filename)
                except SecurityError as exc:
                    logger.warning("Security: skipped archive entry %r (%s)", info.filename, exc)
                    skipped.append(info.filename)
                    continue
                if target is None:
                    continue
                if info.is_dir():
                    target.mkdir(parents=True, exist_ok=True)
                    continue
                target.parent.mkdir(parents=True, exist_ok=True)
                with archive.open(info) as source, target.open("wb") as destination:
                    shutil.copyfileobj(source, destination, _STREAM_CHUNK_SIZE)
                written.append(target.relative_to(dest_root).as_posix())
    except BadZipFile as exc:
        raise ArchiveError(f"{path.name} is not a valid ZIP archive") from exc

    logger.info("Extracted %d files from %s (%d skipped)", len(written), path.name, len(skipped))
    main_files = find_main_files(dest_root, file_types or MAIN_FILE_TYPES)

    return ExtractionResult(
        success=True,
        extracted_files=len(written),
        extracted_paths=written,
        structure=summary,
        main_files=main_files,
        skipped_entries=skipped,
    )


def _parse_candidate(path: Path) -> ParsedTileset | None:
    if path.suffix.lower() != ".json":
        return None
    try:
        return load_tileset(path)
    except ParseError as exc:
        logger.warning("JSON parse error for %s: %s", path.name, exc)
        return None


def find_main_files(
    directory: Path | str, extensions: Iterable[str] = (".json",)
) -> list[CandidateMainFile]:
    """Rank files under *directory* as main-file candidates.

    The walk is bounded to :data:`MAX_SCAN_DEPTH` directory levels. Results
    are sorted by descending priority, then shallower depth, then filename.
    """
    root = Path(directory)
    wanted = {ext.lower() for ext in extensions}
    candidates: list[CandidateMainFile] = []

    stack: list[tuple[Path, int]] = [(root, 0)]
    while stack:
        current, depth = stack.pop()
        try:
            children = sorted(current.iterdir(), key=lambda child: child.name)
        except OSError:
            logger.warning("Could not scan %s", current, exc_info=True)
            continue
        for child in children:
            if child.is_symlink():
                continue
            if child.is_dir():
                if depth < MAX_SCAN_DEPTH:
                    stack.append((child, depth + 1))
                continue
            if child.suffix.lower() not in wanted:
                continue
            tileset = _parse_candidate(child)
            candidate = CandidateMainFile(
                filename=child.name,
                absolute_path=child,
                relative_path=child.relative_to(root).as_posix(),
                is_main=looks_like_main_tileset(child.name, tileset),
                priority=score_tileset(child.name, tileset),
                depth=depth,
            )
            logger.debug(
                "Found candidate %s (is_main=%s, priority=%d)",
                candidate.relative_path,
                candidate.is_main,
                candidate.priority,
            )
            candidates.append(candidate)

    candidates.sort(key=lambda c: (-c.priority, c.depth, c.filename, c.relative_path))
    return candidates


def rename_tileset_file(tileset_path: Path | str, new_name: str) -> Path:
    """Rename a tileset descriptor in place, leaving its content untouched.

    Returns:
        The new path of the file.

    Raises:
        OSError: If the rename fails.
    """
    path = Path(tileset_path)
    new_path = path.with_name(new_name)
    if new_path == path:
        return path
    logger.info("Renaming tileset %s -> %s", path.name, new_name)
    path.rename(new_path)
    return new_path
