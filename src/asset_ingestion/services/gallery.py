"""Gallery index persistence for ingested assets.

Index writes are not transactional with the filesystem: files are written
first and indexed afterwards, so a failed index write leaves files on disk
without a gallery record.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from sqlalchemy import select

from asset_ingestion.data.db import get_session
from asset_ingestion.data.models import GalleryImage
from asset_ingestion.models.ingestion import GalleryAsset

logger = logging.getLogger(__name__)


def build_gallery_url(project_code: str, album: str, filename: str) -> str:
    """Return the public URL a backend-served asset is reachable at."""
    return f"/upload/projects/{project_code}/{album}/{filename}"


def _to_asset(row: GalleryImage) -> GalleryAsset:
    return GalleryAsset(
        album=row.album,
        filename=row.filename,
        url=row.url,
        title=row.title,
        project_id=row.project_id,
        created_at=row.created_at,
    )


class GalleryIndexer:
    """Stores accepted assets as rows of the ``gallery_images`` table."""

    def record(self, assets: Sequence[GalleryAsset]) -> list[int]:
        """Persist *assets* in one transaction and return their row ids."""
        if not assets:
            return []
        with get_session() as session:
            rows = [
                GalleryImage(
                    album=asset.album,
                    filename=asset.filename,
                    url=asset.url,
                    title=asset.title,
                    project_id=asset.project_id,
                    created_at=asset.created_at,
                )
                for asset in assets
            ]
            session.add_all(rows)
            session.flush()
            ids = [row.id for row in rows]
        logger.info("Indexed %d gallery assets", len(ids))
        return ids

    def list_album(self, project_id: str, album: str) -> list[tuple[int, GalleryAsset]]:
        """Return ``(id, asset)`` pairs of an album, newest first."""
        with get_session() as session:
            rows = session.scalars(
                select(GalleryImage)
                .where(GalleryImage.project_id == project_id, GalleryImage.album == album)
                .order_by(GalleryImage.created_at.desc(), GalleryImage.id.desc())
            ).all()
            return [(row.id, _to_asset(row)) for row in rows]

    def delete(self, project_id: str, album: str, asset_id: int) -> GalleryAsset | None:
        """Delete one record; returns the removed asset or None if it did not exist."""
        with get_session() as session:
            row = session.scalars(
                select(GalleryImage).where(
                    GalleryImage.id == asset_id,
                    GalleryImage.project_id == project_id,
                    GalleryImage.album == album,
                )
            ).first()
            if row is None:
                return None
            asset = _to_asset(row)
            session.delete(row)
        return asset


def delete_gallery_asset(
    project_id: str,
    album: str,
    asset_id: int,
    directory: Path,
    indexer: GalleryIndexer | None = None,
) -> bool:
    """Remove a gallery record together with its file in *directory*.

    Returns:
        False if no matching record exists, True otherwise.
    """
    removed = (indexer or GalleryIndexer()).delete(project_id, album, asset_id)
    if removed is None:
        return False
    path = directory / removed.filename
    try:
        path.unlink(missing_ok=True)
    except OSError:
        logger.exception("Failed to delete file %s for gallery asset %d", path, asset_id)
    return True
