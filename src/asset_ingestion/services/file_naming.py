"""Canonical filenames for uploaded assets and collision-free naming."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from asset_ingestion.constants.categories import UploadCategory, get_category
from asset_ingestion.models.errors import ConflictExhaustedError
from asset_ingestion.models.ingestion import NamingResult

logger = logging.getLogger(__name__)

MAX_CONFLICT_ATTEMPTS = 100
MAX_FILENAME_LENGTH = 200

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_TRAVERSAL = re.compile(r"(\.{2,}|\\|/)+")
_WHITESPACE = re.compile(r"\s+")
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


@dataclass(slots=True)
class RenameRequest:
    """A file awaiting its canonical name.

    Attributes:
        filename: Name the client uploaded the file under.
        path: Current location of the file on disk.
    """

    filename: str
    path: Path


def _as_category(category: UploadCategory | str) -> UploadCategory:
    return category if isinstance(category, UploadCategory) else get_category(category)


def _extension(filename: str) -> str:
    return PurePosixPath(filename).suffix.lower()


def sanitize_filename(name: str) -> str:
    """Reduce an uploaded filename to a safe base name.

    Path components and control characters are removed; whitespace and
    anything outside ``[A-Za-z0-9._-]`` become ``_``. The extension survives
    truncation to :data:`MAX_FILENAME_LENGTH`.
    """
    if not name:
        return "file"
    base = PurePosixPath(name.replace("\\", "/")).name
    base = _CONTROL_CHARS.sub("", base)
    base = _TRAVERSAL.sub("_", base)
    base = _WHITESPACE.sub("_", base)
    base = _UNSAFE_CHARS.sub("_", base)
    if not base.strip("._"):
        return "file"

    path = PurePosixPath(base)
    stem, suffix = path.stem, path.suffix
    if not stem or stem.startswith("."):
        # A leading dot would hide the file and swallow its extension.
        stem = f"file{stem}"
        base = f"{stem}{suffix}"
    if len(base) > MAX_FILENAME_LENGTH:
        if len(suffix) >= MAX_FILENAME_LENGTH:
            return base[:MAX_FILENAME_LENGTH]
        base = f"{stem[: MAX_FILENAME_LENGTH - len(suffix)]}{suffix}"
    return base


def resolve_name_conflict(desired_filename: str, target_dir: Path | str) -> str:
    """Return *desired_filename*, suffixed with ``_2``, ``_3``... if already taken.

    Raises:
        ConflictExhaustedError: If no free name is found within
            :data:`MAX_CONFLICT_ATTEMPTS` attempts.
    """
    directory = Path(target_dir)
    if not directory.exists() or not (directory / desired_filename).exists():
        return desired_filename

    desired = PurePosixPath(desired_filename)
    stem, suffix = desired.stem, desired.suffix
    for counter in range(2, MAX_CONFLICT_ATTEMPTS + 2):
        candidate = f"{stem}_{counter}{suffix}"
        if not (directory / candidate).exists():
            logger.info("Name conflict resolved: %s -> %s", desired_filename, candidate)
            return candidate

    raise ConflictExhaustedError(
        f"No free name for {desired_filename} after {MAX_CONFLICT_ATTEMPTS} attempts"
    )


def generate_file_name(
    category: UploadCategory | str,
    original_filename: str,
    project_code: str,
    target_dir: Path | str,
) -> NamingResult:
    """Compute the canonical filename for an upload in *category*.

    Files without a naming rule keep their original name. Otherwise the
    rule's name is computed and made unique within *target_dir*.

    Raises:
        ValidationError: If *category* is an unknown key.
        ConflictExhaustedError: If the canonical name cannot be made unique.
    """
    upload_category = _as_category(category)
    extension = _extension(original_filename)
    rule = upload_category.naming_rule_for(extension)
    if rule is None:
        return NamingResult(
            original_filename=original_filename,
            new_filename=original_filename,
            renamed=False,
            reason="No naming pattern defined",
        )

    desired = rule.apply(original_filename, project_code, extension)
    final = resolve_name_conflict(desired, target_dir)
    renamed = final != original_filename
    return NamingResult(
        original_filename=original_filename,
        new_filename=final,
        renamed=renamed,
        reason="Auto-renamed by pattern" if renamed else "No change needed",
    )


def batch_rename(
    files: Iterable[RenameRequest],
    category: UploadCategory | str,
    project_code: str,
    target_dir: Path | str,
) -> list[NamingResult]:
    """Give each file its canonical name inside *target_dir*.

    All names are computed first, then files are moved one by one. A name
    taken by an earlier move in the same batch is re-resolved at move time.
    A failure is recorded on that file's result and the batch continues.
    """
    directory = Path(target_dir)
    requests = list(files)
    results: list[NamingResult] = []

    for request in requests:
        try:
            result = generate_file_name(category, request.filename, project_code, directory)
        except ConflictExhaustedError as exc:
            result = NamingResult(
                original_filename=request.filename,
                new_filename=request.filename,
                renamed=False,
                reason="Name conflict",
                success=False,
                error=str(exc),
            )
        result.original_path = request.path
        results.append(result)

    for result in results:
        if not result.success:
            logger.error("Rename skipped for %s: %s", result.original_filename, result.error)
            continue
        source = result.original_path
        target = directory / result.new_filename
        if source is None or source == target:
            result.new_path = source
            continue
        try:
            if target.exists():
                result.new_filename = resolve_name_conflict(result.new_filename, directory)
                result.renamed = result.new_filename != result.original_filename
                target = directory / result.new_filename
            source.rename(target)
        except (OSError, ConflictExhaustedError) as exc:
            result.success = False
            result.error = str(exc)
            logger.error("Rename failed for %s: %s", result.original_filename, exc)
            continue
        result.new_path = target
        if result.renamed:
            logger.info("Renamed: %s -> %s", result.original_filename, result.new_filename)

    return results


def get_supported_extensions(category: UploadCategory | str) -> list[str]:
    """Return the extensions that have a naming rule in *category*."""
    return sorted(_as_category(category).naming_rules)


def is_valid_naming(filename: str, category: UploadCategory | str, project_code: str) -> bool:
    """Return True when *filename* already follows *category*'s naming rule."""
    extension = _extension(filename)
    rule = _as_category(category).naming_rule_for(extension)
    if rule is None:
        return True
    return filename == rule.apply(filename, project_code, extension)
