"""Exception taxonomy for the ingestion pipeline.

Validation errors are batch-fatal and raised before any disk I/O. Every
other error is scoped to a single file (or a single archive entry) and is
collected into the per-file results instead of aborting the batch.
"""

from __future__ import annotations


class IngestionError(Exception):
    """Base class for all ingestion pipeline errors."""


class ValidationError(IngestionError):
    """Raised when a request is rejected: unknown category, disallowed extension, bad project."""


class SecurityError(IngestionError):
    """Raised when an archive entry attempts to escape its destination directory."""


class ArchiveError(IngestionError):
    """Raised when an archive is corrupt or in a container format that cannot be extracted."""


class ParseError(IngestionError):
    """Raised when a JSON document cannot be read or parsed for main-file heuristics."""


class ConflictExhaustedError(IngestionError):
    """Raised when no free filename is found within the conflict-resolution attempt limit."""
