"""Services"""

from asset_ingestion.services.archive import (
    detect_archive_format,
    extract_archive,
    find_main_files,
    rename_tileset_file,
)
from asset_ingestion.services.file_naming import (
    batch_rename,
    generate_file_name,
    resolve_name_conflict,
    sanitize_filename,
)
from asset_ingestion.services.gallery import GalleryIndexer
from asset_ingestion.services.ingestion import ingest_files
from asset_ingestion.services.storage import resolve_destination, resolve_project_code
from asset_ingestion.services.tileset_heuristics import (
    get_tileset_priority,
    is_main_tileset_file,
)

__all__ = [
    "GalleryIndexer",
    "batch_rename",
    "detect_archive_format",
    "extract_archive",
    "find_main_files",
    "generate_file_name",
    "get_tileset_priority",
    "ingest_files",
    "is_main_tileset_file",
    "rename_tileset_file",
    "resolve_destination",
    "resolve_name_conflict",
    "resolve_project_code",
    "sanitize_filename",
]
