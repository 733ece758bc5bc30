"""Pydantic schemas for upload and gallery API responses."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class IngestedFileResponse(BaseModel):
    """Outcome for one uploaded file: a success descriptor or an error."""

    model_config = ConfigDict(from_attributes=True)

    original_name: str
    final_name: str | None = None
    path: str | None = None
    category: str
    extracted: bool = False
    extracted_files: int = 0
    main_file: str | None = None
    renamed: bool = False
    error: str | None = None


class UploadBatchResponse(BaseModel):
    """Response schema for the category upload endpoint."""

    model_config = ConfigDict(from_attributes=True)

    project_code: str
    category: str
    state: str = Field(description="Final batch state: 'done' or 'partial_failure'")
    files: list[IngestedFileResponse]


class CategorySummary(BaseModel):
    """Public description of an upload category."""

    key: str
    allowed_extensions: list[str]
    max_files: int
    is_frontend_asset: bool
    extract_zip: bool
    preserve_structure: bool
    auto_rename: bool


class GalleryAssetResponse(BaseModel):
    """A gallery index record."""

    id: int
    album: str
    filename: str
    url: str
    title: str
    project_id: str
    created_at: datetime
