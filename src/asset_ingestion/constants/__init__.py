from __future__ import annotations

from asset_ingestion.constants.categories import (
    ARCHIVE_EXTENSIONS,
    MAIN_FILE_TYPES,
    UPLOAD_CATEGORIES,
    NamingRule,
    NamingStrategy,
    UploadCategory,
    get_category,
    list_categories,
)

__all__ = [
    "ARCHIVE_EXTENSIONS",
    "MAIN_FILE_TYPES",
    "NamingRule",
    "NamingStrategy",
    "UPLOAD_CATEGORIES",
    "UploadCategory",
    "get_category",
    "list_categories",
]
