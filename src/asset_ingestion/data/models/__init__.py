"""ORM models package for database tables.

This package provides SQLAlchemy ORM models representing database tables:
- Project: Project identity, mapping numeric ids to human project codes
- GalleryImage: Indexed gallery assets produced by the ingestion pipeline

All models inherit from the shared Base declarative class defined in data.db.
"""

from asset_ingestion.data.db import Base
from asset_ingestion.data.models.gallery_image import GalleryImage
from asset_ingestion.data.models.project import Project

__all__ = ["Base", "GalleryImage", "Project"]
