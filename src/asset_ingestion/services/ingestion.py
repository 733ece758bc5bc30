"""End-to-end ingestion of an upload batch into one category.

A batch is processed sequentially: validation (batch-fatal), staging of each
file under a temporary name, archive extraction, canonical renaming and
finally gallery indexing. Every failure after validation is scoped to the
file it happened to and reported in that file's result.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from uuid import uuid4

from asset_ingestion.constants.categories import (
    ARCHIVE_EXTENSIONS,
    MAIN_FILE_TYPES,
    UploadCategory,
    get_category,
)
from asset_ingestion.models.errors import ArchiveError, ConflictExhaustedError, ValidationError
from asset_ingestion.models.ingestion import (
    BatchResult,
    CandidateMainFile,
    ExtractionResult,
    GalleryAsset,
    IngestedFile,
    IngestionState,
    UploadedFile,
)
from asset_ingestion.services.archive import extract_archive, rename_tileset_file
from asset_ingestion.services.file_naming import (
    RenameRequest,
    batch_rename,
    resolve_name_conflict,
    sanitize_filename,
)
from asset_ingestion.services.gallery import GalleryIndexer, build_gallery_url
from asset_ingestion.services.storage import ProjectLookup, get_max_file_bytes, resolve_destination

logger = logging.getLogger(__name__)

_TEMP_PREFIX = ".upload-"


@dataclass(slots=True)
class _StagedFile:
    upload: UploadedFile
    result: IngestedFile
    safe_name: str
    temp_path: Path | None = None
    extracted: bool = False


def validate_batch(category: UploadCategory, files: list[UploadedFile]) -> None:
    """Reject a batch that does not fit *category*.

    Raises:
        ValidationError: If the batch is empty, has too many files, or any
            file has a disallowed extension or exceeds the size limit.
    """
    if not files:
        raise ValidationError("No files uploaded")
    if len(files) > category.max_files:
        raise ValidationError(
            f"Too many files for category {category.key}: "
            f"{len(files)} > {category.max_files}"
        )

    max_bytes = get_max_file_bytes()
    allowed = ", ".join(sorted(category.allowed_extensions))
    for upload in files:
        if not category.allows(upload.extension):
            raise ValidationError(
                f"File {upload.original_name} has invalid extension for category "
                f"{category.key}. Allowed: {allowed}"
            )
        if upload.size > max_bytes:
            raise ValidationError(
                f"File {upload.original_name} exceeds the {max_bytes} byte upload limit"
            )


def _discard(path: Path | None) -> None:
    if path is None:
        return
    try:
        path.unlink(missing_ok=True)
    except OSError:
        logger.warning("Could not remove temporary file %s", path, exc_info=True)


def _stage(upload: UploadedFile, category: UploadCategory, destination: Path) -> _StagedFile:
    safe_name = sanitize_filename(upload.original_name)
    staged = _StagedFile(
        upload=upload,
        result=IngestedFile(original_name=upload.original_name, category=category.key),
        safe_name=safe_name,
    )
    temp_path = destination / f"{_TEMP_PREFIX}{uuid4().hex}-{safe_name}"
    try:
        temp_path.write_bytes(upload.data)
    except OSError as exc:
        logger.error("Failed to write %s: %s", upload.original_name, exc)
        staged.result.error = f"Write failed: {exc}"
        _discard(temp_path)
        return staged
    staged.temp_path = temp_path
    return staged


def select_main_file(extraction: ExtractionResult) -> CandidateMainFile | None:
    """Pick the JSON file to promote as the main file of an extraction.

    The highest-ranked candidate flagged as main wins. When no JSON file
    matches the heuristics, the lexically first extracted JSON is used.
    """
    written = set(extraction.extracted_paths)
    json_files = [
        candidate
        for candidate in extraction.main_files
        if candidate.relative_path in written and candidate.filename.lower().endswith(".json")
    ]
    for candidate in json_files:
        if candidate.is_main:
            return candidate
    if not json_files:
        return None
    fallback = min(json_files, key=lambda candidate: candidate.relative_path)
    logger.info("No main JSON matched heuristics; taking first JSON %s", fallback.relative_path)
    return fallback


def _promote_main_file(
    staged: _StagedFile,
    extraction: ExtractionResult,
    category: UploadCategory,
    project_code: str,
) -> None:
    result = staged.result
    target_name = category.main_file_name(project_code)
    main = select_main_file(extraction)
    if main is None or target_name is None:
        logger.warning("No main JSON file found in %s", staged.upload.original_name)
        return

    relative_dir = Path(main.relative_path).parent
    final_name = main.filename
    if main.filename != target_name:
        try:
            final_name = resolve_name_conflict(target_name, main.absolute_path.parent)
            if final_name != target_name:
                logger.warning(
                    "Main file name %s already taken in %s; stored as %s",
                    target_name,
                    relative_dir.as_posix(),
                    final_name,
                )
            rename_tileset_file(main.absolute_path, final_name)
        except (OSError, ConflictExhaustedError) as exc:
            logger.error("Failed to rename main file %s: %s", main.relative_path, exc)
            result.error = f"Main file rename failed: {exc}"
            final_name = main.filename
        else:
            result.renamed = True
            logger.info("Main file renamed: %s -> %s", main.relative_path, final_name)

    result.main_file = (relative_dir / final_name).as_posix()
    result.final_name = final_name
    result.path = category.public_path(project_code, result.main_file)


def _extract(
    staged: _StagedFile, category: UploadCategory, project_code: str, destination: Path
) -> None:
    result = staged.result
    if staged.temp_path is None:
        return
    try:
        extraction = extract_archive(staged.temp_path, destination, MAIN_FILE_TYPES)
    except (ArchiveError, OSError) as exc:
        logger.error("Extraction failed for %s: %s", staged.upload.original_name, exc)
        result.error = f"Extraction failed: {exc}"
        return

    staged.extracted = True
    result.extracted = True
    result.extracted_files = extraction.extracted_files
    _discard(staged.temp_path)
    staged.temp_path = None
    logger.info("Archive deleted after extraction: %s", staged.upload.original_name)

    result.final_name = staged.upload.original_name
    result.path = category.public_path(project_code, "")
    if category.preserve_structure:
        _promote_main_file(staged, extraction, category, project_code)


def _rename(
    pending: list[_StagedFile], category: UploadCategory, project_code: str, destination: Path
) -> None:
    requests = [RenameRequest(filename=item.safe_name, path=item.temp_path) for item in pending]
    outcomes = batch_rename(requests, category, project_code, destination)
    for item, outcome in zip(pending, outcomes, strict=True):
        if not outcome.success:
            item.result.error = item.result.error or f"Rename failed: {outcome.error}"
            _discard(item.temp_path)
            item.temp_path = None
            continue
        _finish(item, outcome.new_filename, category, project_code)


def _move(
    pending: list[_StagedFile], category: UploadCategory, project_code: str, destination: Path
) -> None:
    for item in pending:
        try:
            final_name = resolve_name_conflict(item.safe_name, destination)
            item.temp_path.rename(destination / final_name)
        except (OSError, ConflictExhaustedError) as exc:
            logger.error("Failed to store %s: %s", item.upload.original_name, exc)
            item.result.error = item.result.error or f"Store failed: {exc}"
            _discard(item.temp_path)
            item.temp_path = None
            continue
        _finish(item, final_name, category, project_code)


def _finish(
    item: _StagedFile, final_name: str, category: UploadCategory, project_code: str
) -> None:
    item.temp_path = None
    item.result.final_name = final_name
    item.result.path = category.public_path(project_code, final_name)
    item.result.renamed = final_name != item.upload.original_name


def _index(
    staged: list[_StagedFile],
    category: UploadCategory,
    project_code: str,
    indexer: GalleryIndexer,
) -> None:
    if category.is_frontend_asset:
        return
    assets = [
        GalleryAsset(
            album=category.key,
            filename=item.result.final_name,
            url=build_gallery_url(project_code, category.key, item.result.final_name),
            title=item.upload.original_name,
            project_id=project_code,
        )
        for item in staged
        if item.result.ok and item.result.final_name and not item.extracted
    ]
    if not assets:
        return
    try:
        indexer.record(assets)
    except Exception:
        # Files stay on disk; the index is best-effort.
        logger.exception(
            "Failed to index %d assets for %s/%s", len(assets), project_code, category.key
        )


def ingest_files(
    category_key: str,
    project_ref: str | int,
    files: Iterable[UploadedFile],
    *,
    indexer: GalleryIndexer | None = None,
    project_lookup: ProjectLookup | None = None,
) -> BatchResult:
    """Ingest a batch of uploaded files into *category_key* for a project.

    Args:
        category_key: Upload category key.
        project_ref: Numeric project id or human project code.
        files: Uploaded files, processed in order.
        indexer: Gallery index collaborator; defaults to the database indexer.
        project_lookup: Project-code lookup for numeric references.

    Returns:
        BatchResult enumerating every input file.

    Raises:
        ValidationError: If the category, project reference or any file is
            rejected. Nothing is written in that case.
    """
    uploads = list(files)
    try:
        category = get_category(category_key)
        validate_batch(category, uploads)
    except ValidationError as exc:
        logger.warning("Batch rejected for %s: %s", category_key, exc)
        raise

    project_code, destination = resolve_destination(project_ref, category, project_lookup)
    logger.info(
        "Ingesting %d files into %s for project %s", len(uploads), category.key, project_code
    )

    staged = [_stage(upload, category, destination) for upload in uploads]

    if category.extract_zip:
        for item in staged:
            if item.temp_path is not None and item.upload.extension in ARCHIVE_EXTENSIONS:
                _extract(item, category, project_code, destination)
        logger.debug("Batch %s/%s: %s", project_code, category.key, IngestionState.EXTRACTED)

    pending = [item for item in staged if item.temp_path is not None]
    if category.auto_rename:
        _rename(pending, category, project_code, destination)
        logger.debug("Batch %s/%s: %s", project_code, category.key, IngestionState.RENAMED)
    else:
        _move(pending, category, project_code, destination)

    _index(staged, category, project_code, indexer or GalleryIndexer())
    logger.debug("Batch %s/%s: %s", project_code, category.key, IngestionState.INDEXED)

    results = [item.result for item in staged]
    failed = sum(1 for result in results if not result.ok)
    state = IngestionState.PARTIAL_FAILURE if failed else IngestionState.DONE
    if failed:
        logger.warning("%d of %d files failed in %s", failed, len(results), category.key)

    return BatchResult(
        project_code=project_code, category=category.key, files=results, state=state
    )
