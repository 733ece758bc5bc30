"""ORM model for indexed gallery assets.

Each row corresponds to one accepted, backend-served file written by the
ingestion pipeline. Rows are immutable after creation; they are removed
together with their backing file through the gallery deletion endpoint.
"""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from asset_ingestion.data.db import Base


class GalleryImage(Base):
    """Persisted gallery index record.

    Attributes:
        id: Auto-incrementing primary key.
        album: Album (upload category) the asset belongs to.
        filename: Final on-disk filename.
        url: Public URL the asset is served from.
        title: Display title, the original upload name.
        project_id: Project code the asset belongs to.
        created_at: UTC timestamp of when the asset was indexed.
    """

    __tablename__ = "gallery_images"
    __table_args__ = (Index("ix_gallery_images_project_album", "project_id", "album"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    album: Mapped[str] = mapped_column(String, nullable=False)
    filename: Mapped[str] = mapped_column(String, nullable=False)
    url: Mapped[str] = mapped_column(String, nullable=False)
    title: Mapped[str] = mapped_column(String, nullable=False, default="")
    project_id: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )
