"""Category upload routes for the API."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, File, HTTPException, UploadFile, status
from fastapi.concurrency import run_in_threadpool

from asset_ingestion.api.schemas.uploads import (
    CategorySummary,
    IngestedFileResponse,
    UploadBatchResponse,
)
from asset_ingestion.constants.categories import UploadCategory, list_categories
from asset_ingestion.models.errors import ValidationError
from asset_ingestion.models.ingestion import BatchResult, UploadedFile
from asset_ingestion.services.ingestion import ingest_files

router = APIRouter(tags=["uploads"])


def _category_to_summary(category: UploadCategory) -> CategorySummary:
    return CategorySummary(
        key=category.key,
        allowed_extensions=sorted(category.allowed_extensions),
        max_files=category.max_files,
        is_frontend_asset=category.is_frontend_asset,
        extract_zip=category.extract_zip,
        preserve_structure=category.preserve_structure,
        auto_rename=category.auto_rename,
    )


def _batch_to_response(batch: BatchResult) -> UploadBatchResponse:
    return UploadBatchResponse(
        project_code=batch.project_code,
        category=batch.category,
        state=str(batch.state),
        files=[IngestedFileResponse.model_validate(item) for item in batch.files],
    )


@router.get("/categories", response_model=list[CategorySummary])
def get_categories() -> list[CategorySummary]:
    """List the upload categories and their rules."""
    return [_category_to_summary(category) for category in list_categories()]


@router.post(
    "/projects/{project_ref}/uploads/{category}",
    response_model=UploadBatchResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload files into a category",
    description=(
        "Store files for a project in the given category. Archives in extracting "
        "categories are unpacked and their main tileset renamed."
    ),
    responses={
        400: {"description": "Unknown category, bad project or disallowed file"},
    },
)
async def upload_category_files(
    project_ref: str,
    category: str,
    files: Annotated[list[UploadFile], File(description="Files to ingest")],
) -> UploadBatchResponse:
    uploads: list[UploadedFile] = []
    for upload in files:
        data = await upload.read()
        uploads.append(UploadedFile(original_name=upload.filename or "upload", data=data))

    try:
        batch = await run_in_threadpool(ingest_files, category, project_ref, uploads)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc

    return _batch_to_response(batch)
