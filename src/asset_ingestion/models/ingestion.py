"""Data models for the asset ingestion pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from pathlib import Path, PurePosixPath


class IngestionState(StrEnum):
    """Lifecycle states a batch moves through."""

    RECEIVED = "received"
    VALIDATED = "validated"
    EXTRACTED = "extracted"
    RENAMED = "renamed"
    INDEXED = "indexed"
    DONE = "done"
    REJECTED = "rejected"
    PARTIAL_FAILURE = "partial_failure"


@dataclass(slots=True)
class UploadedFile:
    """A single file received from the upload layer.

    Attributes:
        original_name: Filename as supplied by the client.
        data: Raw file content.
    """

    original_name: str
    data: bytes

    @property
    def extension(self) -> str:
        """Lower-case extension including the leading dot, or an empty string."""
        return PurePosixPath(self.original_name.replace("\\", "/")).suffix.lower()

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True, slots=True)
class ArchiveEntry:
    """One entry inside an archive.

    Attributes:
        path: Entry name as stored in the archive.
        is_directory: Whether the entry is a directory marker.
        size: Uncompressed size in bytes.
    """

    path: str
    is_directory: bool
    size: int = 0


@dataclass(slots=True)
class ExtractionSummary:
    """Diagnostic breakdown of an archive's entries."""

    total_files: int = 0
    directories: list[str] = field(default_factory=list)
    file_type_counts: dict[str, int] = field(default_factory=dict)


@dataclass(slots=True)
class CandidateMainFile:
    """A JSON/glTF file found after extraction, ranked as a main-file candidate.

    Attributes:
        filename: Base name of the file.
        absolute_path: Location on disk.
        relative_path: POSIX path relative to the extraction directory.
        is_main: Whether naming or content heuristics mark it as a root file.
        priority: Ranking score; higher means more likely the root tileset.
        depth: Directory depth below the extraction directory.
    """

    filename: str
    absolute_path: Path
    relative_path: str
    is_main: bool
    priority: int
    depth: int = 0


@dataclass(slots=True)
class ExtractionResult:
    """Outcome of extracting one archive."""

    success: bool
    extracted_files: int
    structure: ExtractionSummary
    main_files: list[CandidateMainFile] = field(default_factory=list)
    extracted_paths: list[str] = field(default_factory=list)
    skipped_entries: list[str] = field(default_factory=list)


@dataclass(slots=True)
class NamingResult:
    """Outcome of computing (and optionally applying) a canonical filename.

    ``original_path``, ``new_path``, ``success`` and ``error`` are only
    populated by :func:`asset_ingestion.services.file_naming.batch_rename`.
    """

    original_filename: str
    new_filename: str
    renamed: bool
    reason: str
    original_path: Path | None = None
    new_path: Path | None = None
    success: bool = True
    error: str | None = None


@dataclass(frozen=True, slots=True)
class GalleryAsset:
    """An accepted file registered in the gallery index."""

    album: str
    filename: str
    url: str
    title: str
    project_id: str
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass(slots=True)
class IngestedFile:
    """Per-file entry of a batch result; either a success descriptor or an error."""

    original_name: str
    category: str
    final_name: str | None = None
    path: str | None = None
    extracted: bool = False
    renamed: bool = False
    extracted_files: int = 0
    main_file: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class BatchResult:
    """Result of ingesting one batch of files into one category."""

    project_code: str
    category: str
    files: list[IngestedFile] = field(default_factory=list)
    state: IngestionState = IngestionState.DONE
