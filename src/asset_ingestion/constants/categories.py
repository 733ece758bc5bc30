"""Upload category registry.

Each upload category maps to a destination directory template, an extension
allow-list, a per-request file limit and a set of behaviour flags. Naming
conventions are expressed as data (a strategy tag plus a stem) so that the
registry stays a plain, immutable table.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path, PurePosixPath
from types import MappingProxyType

from asset_ingestion.models.errors import ValidationError

ARCHIVE_EXTENSIONS = frozenset({".zip", ".rar", ".7z"})

# Extensions scanned for main-file candidates after an archive is extracted.
MAIN_FILE_TYPES = (
    ".json",
    ".gltf",
    ".glb",
    ".b3dm",
    ".i3dm",
    ".pnts",
    ".cmpt",
    ".jpg",
    ".png",
    ".bin",
)


class NamingStrategy(StrEnum):
    """How a canonical filename is derived from the upload."""

    EXACT_NAME = "exact_name"
    PASS_THROUGH = "pass_through"
    PREFIXED_WITH_CODE = "prefixed_with_code"


@dataclass(frozen=True, slots=True)
class NamingRule:
    """A naming strategy with its stem, applied to one extension.

    ``EXACT_NAME`` yields ``<stem><ext>``, ``PREFIXED_WITH_CODE`` yields
    ``<stem>_<project_code><ext>`` and ``PASS_THROUGH`` keeps the original name.
    """

    strategy: NamingStrategy
    stem: str = ""

    def apply(self, original_filename: str, project_code: str, extension: str) -> str:
        if self.strategy is NamingStrategy.EXACT_NAME:
            return f"{self.stem}{extension}"
        if self.strategy is NamingStrategy.PREFIXED_WITH_CODE:
            return f"{self.stem}_{project_code}{extension}"
        return original_filename


PASS_THROUGH = NamingRule(NamingStrategy.PASS_THROUGH)


@dataclass(frozen=True, slots=True)
class UploadCategory:
    """Static description of one upload category.

    Attributes:
        key: Category identifier used by clients.
        allowed_extensions: Lower-case extensions (with dot) accepted for upload.
        max_files: Maximum number of files per request.
        is_frontend_asset: Whether files are served by the frontend rather than
            indexed in the gallery.
        subdir: Directory name below the project folder; defaults to ``key``.
        extract_zip: Whether archives are unpacked on arrival.
        preserve_structure: Whether the archive layout is kept and a single
            main file is renamed.
        auto_rename: Whether non-extracted files get canonical names.
        naming_rules: Per-extension naming rules.
        main_file_rule: Rule for the main file of an extracted archive.
    """

    key: str
    allowed_extensions: frozenset[str]
    max_files: int
    is_frontend_asset: bool = False
    subdir: str = ""
    extract_zip: bool = False
    preserve_structure: bool = False
    auto_rename: bool = False
    naming_rules: Mapping[str, NamingRule] = field(default_factory=dict)
    main_file_rule: NamingRule | None = None

    @property
    def directory_name(self) -> str:
        return self.subdir or self.key

    def destination(self, project_code: str) -> Path:
        """Return the absolute destination directory for *project_code*."""
        from asset_ingestion.services.storage import get_frontend_public_root, get_uploads_root

        if self.is_frontend_asset:
            return get_frontend_public_root() / f"{project_code}_project" / self.directory_name
        return get_uploads_root() / "projects" / project_code / self.directory_name

    def public_path(self, project_code: str, filename: str) -> str:
        """Return the repository-relative path reported to clients for a stored file."""
        if self.is_frontend_asset:
            base = PurePosixPath("frontend", "public", f"{project_code}_project")
        else:
            base = PurePosixPath("uploads", "projects", project_code)
        return str(base / self.directory_name / filename)

    def allows(self, extension: str) -> bool:
        return extension.lower() in self.allowed_extensions

    def naming_rule_for(self, extension: str) -> NamingRule | None:
        return self.naming_rules.get(extension.lower())

    def main_file_name(self, project_code: str) -> str | None:
        if self.main_file_rule is None:
            return None
        return self.main_file_rule.apply("", project_code, ".json")


def _extensions(*values: str) -> frozenset[str]:
    return frozenset(values)


def _rules(**rules: NamingRule) -> Mapping[str, NamingRule]:
    return MappingProxyType({f".{ext}": rule for ext, rule in rules.items()})


_IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".tiff", ".tif")
_TILE_EXTENSIONS = (".json", ".bin", ".b3dm", ".i3dm", ".pnts", ".cmpt")

_CATEGORY_LIST: tuple[UploadCategory, ...] = (
    UploadCategory("drone_photos", _extensions(*_IMAGE_EXTENSIONS), max_files=50),
    UploadCategory("floor_plans", _extensions(".jpg", ".jpeg", ".png", ".pdf"), max_files=30),
    UploadCategory("orthophoto", _extensions(*_IMAGE_EXTENSIONS), max_files=20),
    UploadCategory("view_360", _extensions(".jpg", ".jpeg", ".png"), max_files=20),
    UploadCategory("fbx_model_file", _extensions(".zip", ".rar", ".fbx", ".obj"), max_files=10),
    UploadCategory("drone_photos_file", _extensions(".zip", ".rar", ".7z"), max_files=20),
    UploadCategory("floor_plans_file", _extensions(".dwg", ".dxf", ".zip", ".rar"), max_files=20),
    UploadCategory("other", _extensions(".pdf", ".doc", ".docx", ".dwg", ".dxf"), max_files=20),
    UploadCategory(
        "muteahhit",
        _extensions(".pdf", ".doc", ".docx", ".dwg", ".dxf", ".zip", ".rar"),
        max_files=50,
    ),
    UploadCategory(
        "contractor_depot",
        _extensions(
            ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx",
            ".dwg", ".dxf", ".zip", ".rar", ".7z",
            ".jpg", ".jpeg", ".png", ".gif", ".tiff", ".tif",
            ".txt", ".rtf", ".csv",
        ),
        max_files=50,
    ),
    UploadCategory(
        "frontend_models",
        _extensions(".gltf", ".glb", ".bin"),
        max_files=10,
        is_frontend_asset=True,
        subdir="models",
        auto_rename=True,
        naming_rules=_rules(
            gltf=NamingRule(NamingStrategy.EXACT_NAME, "bina_model"),
            glb=NamingRule(NamingStrategy.EXACT_NAME, "bina_model"),
            bin=PASS_THROUGH,
        ),
    ),
    UploadCategory(
        "frontend_tiles",
        _extensions(*_TILE_EXTENSIONS),
        max_files=100,
        is_frontend_asset=True,
        subdir="tiles",
        auto_rename=True,
        naming_rules=_rules(
            json=NamingRule(NamingStrategy.PREFIXED_WITH_CODE, "sezyum"),
            b3dm=PASS_THROUGH,
            i3dm=PASS_THROUGH,
            pnts=PASS_THROUGH,
            cmpt=PASS_THROUGH,
            bin=PASS_THROUGH,
        ),
    ),
    UploadCategory(
        "frontend_360views",
        _extensions(".jpg", ".jpeg", ".png", ".gltf", ".glb"),
        max_files=20,
        is_frontend_asset=True,
        subdir="360views",
        auto_rename=True,
        naming_rules=_rules(
            gltf=NamingRule(NamingStrategy.PREFIXED_WITH_CODE, "panorama"),
            glb=NamingRule(NamingStrategy.PREFIXED_WITH_CODE, "panorama"),
            jpg=PASS_THROUGH,
            jpeg=PASS_THROUGH,
            png=PASS_THROUGH,
        ),
    ),
    UploadCategory(
        "frontend_tiles_zip",
        _extensions(*ARCHIVE_EXTENSIONS),
        max_files=1,
        is_frontend_asset=True,
        subdir="tiles",
        extract_zip=True,
        preserve_structure=True,
        auto_rename=True,
        main_file_rule=NamingRule(NamingStrategy.PREFIXED_WITH_CODE, "sezyum"),
    ),
)

UPLOAD_CATEGORIES: Mapping[str, UploadCategory] = MappingProxyType(
    {category.key: category for category in _CATEGORY_LIST}
)


def get_category(key: str) -> UploadCategory:
    """Look up an upload category by key.

    Raises:
        ValidationError: If *key* is not a registered category.
    """
    try:
        return UPLOAD_CATEGORIES[key]
    except KeyError:
        raise ValidationError(f"Unknown category: {key}") from None


def list_categories() -> list[UploadCategory]:
    """Return all registered categories in declaration order."""
    return list(_CATEGORY_LIST)
