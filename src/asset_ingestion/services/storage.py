"""Storage roots and destination resolution for uploaded assets."""

from __future__ import annotations

import logging
import os
import re
import threading
from collections.abc import Callable
from concurrent.futures import Future
from concurrent.futures import TimeoutError as LookupTimeoutError
from pathlib import Path

from asset_ingestion.constants.categories import UploadCategory
from asset_ingestion.models.errors import ValidationError

logger = logging.getLogger(__name__)

ProjectLookup = Callable[[int], str | None]

DEFAULT_LOOKUP_TIMEOUT_SECONDS = 2.0
DEFAULT_MAX_FILE_BYTES = 100 * 1024 * 1024

_CODE_HINT = re.compile(r"[A-Za-z_]")
_SAFE_CODE = re.compile(r"^[A-Za-z0-9_-]+$")


def _project_root() -> Path:
    return Path(__file__).resolve().parents[3]


def get_uploads_root() -> Path:
    """Return the root directory for backend-served uploads."""
    env_root = os.getenv("ASSET_INGEST_UPLOADS_DIR")
    if env_root:
        return Path(env_root).expanduser().resolve()
    return _project_root() / "uploads"


def get_frontend_public_root() -> Path:
    """Return the frontend ``public`` directory that serves frontend assets."""
    env_root = os.getenv("ASSET_INGEST_FRONTEND_PUBLIC_DIR")
    if env_root:
        return Path(env_root).expanduser().resolve()
    return _project_root() / "frontend" / "public"


def get_max_file_bytes() -> int:
    """Return the per-file upload size limit in bytes."""
    raw = os.getenv("ASSET_INGEST_MAX_FILE_BYTES")
    if not raw:
        return DEFAULT_MAX_FILE_BYTES
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring invalid ASSET_INGEST_MAX_FILE_BYTES=%r", raw)
        return DEFAULT_MAX_FILE_BYTES


def get_lookup_timeout() -> float:
    """Return the project-code lookup timeout in seconds."""
    raw = os.getenv("ASSET_INGEST_LOOKUP_TIMEOUT")
    if not raw:
        return DEFAULT_LOOKUP_TIMEOUT_SECONDS
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring invalid ASSET_INGEST_LOOKUP_TIMEOUT=%r", raw)
        return DEFAULT_LOOKUP_TIMEOUT_SECONDS


def lookup_project_code(project_id: int) -> str | None:
    """Return the project code stored for *project_id*, or None if unknown."""
    from asset_ingestion.data.db import get_session
    from asset_ingestion.data.models import Project

    with get_session() as session:
        project = session.get(Project, project_id)
        return project.project_code if project else None


def _start_lookup(project_id: int, lookup: ProjectLookup) -> Future[str | None]:
    """Run *lookup* on a daemon thread so a hung lookup never blocks shutdown."""
    future: Future[str | None] = Future()

    def _target() -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            future.set_result(lookup(project_id))
        except Exception as exc:
            future.set_exception(exc)

    threading.Thread(target=_target, name=f"project-lookup-{project_id}", daemon=True).start()
    return future


def _lookup_with_fallback(project_id: int, lookup: ProjectLookup) -> str:
    fallback = str(project_id)
    future = _start_lookup(project_id, lookup)
    try:
        code = future.result(timeout=get_lookup_timeout())
    except LookupTimeoutError:
        logger.warning("Project lookup for %d timed out; using raw id", project_id)
        return fallback
    except Exception:
        logger.warning("Project lookup for %d failed; using raw id", project_id, exc_info=True)
        return fallback

    if not code:
        return fallback
    code = str(code)
    if not _SAFE_CODE.match(code):
        logger.warning("Project %d has unusable code %r; using raw id", project_id, code)
        return fallback
    return code


def resolve_project_code(project_ref: str | int, lookup: ProjectLookup | None = None) -> str:
    """Resolve a project reference (numeric id or human code) to a path segment.

    Codes (references containing letters or underscores) are used directly.
    Numeric ids go through *lookup*; any lookup failure falls back to the
    stringified id.

    Raises:
        ValidationError: If the reference is empty, malformed or non-positive.
    """
    if isinstance(project_ref, bool):
        raise ValidationError(f"Invalid project reference: {project_ref!r}")
    if isinstance(project_ref, int):
        project_id = project_ref
    else:
        ref = str(project_ref).strip()
        if not ref:
            raise ValidationError("Project reference is required")
        if _CODE_HINT.search(ref):
            if not _SAFE_CODE.match(ref):
                raise ValidationError(f"Invalid project code: {ref!r}")
            return ref
        if not ref.isdigit():
            raise ValidationError(f"Invalid project id: {ref!r}")
        project_id = int(ref)

    if project_id <= 0:
        raise ValidationError(f"Invalid project id: {project_id}")
    return _lookup_with_fallback(project_id, lookup or lookup_project_code)


def resolve_destination(
    project_ref: str | int,
    category: UploadCategory,
    lookup: ProjectLookup | None = None,
) -> tuple[str, Path]:
    """Return ``(project_code, destination_dir)``, creating the directory if absent."""
    project_code = resolve_project_code(project_ref, lookup)
    destination = category.destination(project_code)
    destination.mkdir(parents=True, exist_ok=True)
    return project_code, destination
