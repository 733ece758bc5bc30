"""Gallery routes for the API."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Response, status

from asset_ingestion.api.schemas.uploads import GalleryAssetResponse
from asset_ingestion.constants.categories import get_category
from asset_ingestion.models.errors import ValidationError
from asset_ingestion.services.gallery import GalleryIndexer, delete_gallery_asset
from asset_ingestion.services.storage import resolve_project_code

router = APIRouter(prefix="/projects/{project_ref}/gallery", tags=["gallery"])


def _project_code(project_ref: str) -> str:
    try:
        return resolve_project_code(project_ref)
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.get("/{album}", response_model=list[GalleryAssetResponse])
def list_album(project_ref: str, album: str) -> list[GalleryAssetResponse]:
    """List indexed assets of an album, newest first."""
    project_code = _project_code(project_ref)
    return [
        GalleryAssetResponse(
            id=asset_id,
            album=asset.album,
            filename=asset.filename,
            url=asset.url,
            title=asset.title,
            project_id=asset.project_id,
            created_at=asset.created_at,
        )
        for asset_id, asset in GalleryIndexer().list_album(project_code, album)
    ]


@router.delete("/{album}/{asset_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_album_asset(project_ref: str, album: str, asset_id: int) -> Response:
    """Delete an indexed asset and its backing file."""
    project_code = _project_code(project_ref)
    try:
        category = get_category(album)
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    deleted = delete_gallery_asset(
        project_code, album, asset_id, category.destination(project_code)
    )
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Gallery asset not found",
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
