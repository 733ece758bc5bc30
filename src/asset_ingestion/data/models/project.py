"""ORM model mapping numeric project ids to human-readable project codes."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from asset_ingestion.data.db import Base


class Project(Base):
    """Project identity consumed by the storage resolver.

    Attributes:
        id: Auto-incrementing primary key (the numeric project reference).
        project_code: Human-readable code used as the storage path segment,
            e.g. ``400_111``.
        name: Display name of the project.
        created_at: UTC timestamp of when the project was registered.
    """

    __tablename__ = "projects"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_code: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String, nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )
