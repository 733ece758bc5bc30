"""Data models and type definitions"""

from asset_ingestion.models.errors import (
    ArchiveError,
    ConflictExhaustedError,
    IngestionError,
    ParseError,
    SecurityError,
    ValidationError,
)
from asset_ingestion.models.ingestion import (
    ArchiveEntry,
    BatchResult,
    CandidateMainFile,
    ExtractionResult,
    ExtractionSummary,
    GalleryAsset,
    IngestedFile,
    IngestionState,
    NamingResult,
    UploadedFile,
)

__all__ = [
    "ArchiveEntry",
    "ArchiveError",
    "BatchResult",
    "CandidateMainFile",
    "ConflictExhaustedError",
    "ExtractionResult",
    "ExtractionSummary",
    "GalleryAsset",
    "IngestedFile",
    "IngestionError",
    "IngestionState",
    "NamingResult",
    "ParseError",
    "SecurityError",
    "UploadedFile",
    "ValidationError",
]
