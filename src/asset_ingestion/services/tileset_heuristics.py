"""Heuristics for recognising the root file of a fragmented 3D-tileset.

Extracted tileset archives typically contain one root descriptor (the file a
viewer loads) and many sub-tile descriptors. The functions here rank JSON and
glTF files by how likely they are to be that root, using naming conventions
and a shallow look at the 3D Tiles / glTF document structure.

Scoring is split into a parsing step (:func:`load_tileset`, which raises
:class:`ParseError`) and pure functions over ``(filename, ParsedTileset |
None)``, so a malformed document only ever means "no content bonus".
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from asset_ingestion.models.errors import ParseError

logger = logging.getLogger(__name__)

MAIN_FILE_NAMES = frozenset({"tileset.json", "scene.json", "root.json", "production.json"})
MAIN_FILE_PREFIXES = ("production", "master", "main")

EXACT_NAME_PRIORITY = {
    "tileset.json": 1000,
    "scene.json": 900,
    "root.json": 800,
}
BASE_PRIORITY = 10
PREFIX_BONUSES = (("production", 700), ("master", 650), ("main", 600))
SUBSTRING_BONUSES = (("tileset", 500), ("scene", 450), ("root", 400))
GEOMETRIC_ERROR_TIERS = ((500, 300), (200, 200), (50, 100))
MULTIPLE_CHILDREN_BONUS = 250
LARGE_SPHERE_BONUS = 150
SUB_TILE_PENALTY = 100
JSON_BONUS = 50

MASTER_GEOMETRIC_ERROR = 200
MASTER_SPHERE_RADIUS = 300
SUB_TILE_URI_PREFIX = "Data/"


def _number(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return 0.0
    return float(value)


@dataclass(frozen=True, slots=True)
class ParsedTileset:
    """The parts of a JSON document the heuristics look at."""

    has_root: bool
    has_asset_version: bool
    geometric_error: float
    child_count: int
    sphere_radius: float | None
    content_uri: str | None
    is_gltf_scene: bool

    @property
    def is_tileset(self) -> bool:
        return self.has_asset_version and self.has_root

    @classmethod
    def from_document(cls, document: Any) -> ParsedTileset:
        if not isinstance(document, dict):
            raise ParseError("JSON document is not an object")

        root = document.get("root")
        root_node = root if isinstance(root, dict) else {}
        asset = document.get("asset")
        has_version = isinstance(asset, dict) and bool(asset.get("version"))

        geometric_error = _number(document.get("geometricError")) or _number(
            root_node.get("geometricError")
        )

        children = root_node.get("children")
        child_count = len(children) if isinstance(children, list) else 0

        sphere_radius = None
        volume = root_node.get("boundingVolume")
        sphere = volume.get("sphere") if isinstance(volume, dict) else None
        if isinstance(sphere, list) and len(sphere) >= 4:
            sphere_radius = _number(sphere[3])

        content_uri = None
        content = root_node.get("content")
        if isinstance(content, dict) and isinstance(content.get("uri"), str):
            content_uri = content["uri"]

        return cls(
            has_root=bool(root),
            has_asset_version=has_version,
            geometric_error=geometric_error,
            child_count=child_count,
            sphere_radius=sphere_radius,
            content_uri=content_uri,
            is_gltf_scene="scene" in document and bool(document.get("scenes")),
        )


def load_tileset(path: Path | str) -> ParsedTileset:
    """Read and parse a JSON document for scoring.

    Raises:
        ParseError: If the file cannot be read, is not valid JSON or is not
            a JSON object.
    """
    try:
        document = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ParseError(f"{Path(path).name}: {exc}") from exc
    return ParsedTileset.from_document(document)


def _try_load(filename: str, path: Path | str | None) -> ParsedTileset | None:
    if path is None or not filename.lower().endswith(".json"):
        return None
    try:
        return load_tileset(path)
    except ParseError as exc:
        logger.warning("JSON parse error for %s: %s", filename, exc)
        return None


def looks_like_main_tileset(filename: str, tileset: ParsedTileset | None) -> bool:
    """Decide whether *filename* (with its parsed content) is a root file."""
    lower_name = filename.lower()
    if lower_name in MAIN_FILE_NAMES:
        return True
    if lower_name.startswith(MAIN_FILE_PREFIXES):
        return True
    if tileset is None or not lower_name.endswith(".json"):
        return False

    if tileset.is_tileset:
        if tileset.geometric_error > MASTER_GEOMETRIC_ERROR:
            return True
        if tileset.child_count > 1:
            return True
        if tileset.sphere_radius is not None and tileset.sphere_radius > MASTER_SPHERE_RADIUS:
            return True
        # Root content under Data/ marks a sub-tile descriptor.
        if tileset.content_uri and tileset.content_uri.startswith(SUB_TILE_URI_PREFIX):
            return False
        return True

    return tileset.is_gltf_scene


def score_tileset(filename: str, tileset: ParsedTileset | None) -> int:
    """Return the main-file priority of *filename*; higher ranks first."""
    lower_name = filename.lower()
    if lower_name in EXACT_NAME_PRIORITY:
        return EXACT_NAME_PRIORITY[lower_name]

    priority = BASE_PRIORITY
    for prefix, bonus in PREFIX_BONUSES:
        if lower_name.startswith(prefix):
            priority += bonus
    for fragment, bonus in SUBSTRING_BONUSES:
        if fragment in lower_name:
            priority += bonus

    if tileset is not None and tileset.has_root and lower_name.endswith(".json"):
        for threshold, bonus in GEOMETRIC_ERROR_TIERS:
            if tileset.geometric_error > threshold:
                priority += bonus
                break
        if tileset.child_count > 1:
            priority += MULTIPLE_CHILDREN_BONUS
        if tileset.sphere_radius is not None and tileset.sphere_radius > MASTER_SPHERE_RADIUS:
            priority += LARGE_SPHERE_BONUS

    if "tile_" in lower_name and "tileset" not in lower_name:
        priority -= SUB_TILE_PENALTY

    if lower_name.endswith(".json"):
        priority += JSON_BONUS

    return priority


def is_main_tileset_file(filename: str, path: Path | str | None = None) -> bool:
    """Path-based wrapper around :func:`looks_like_main_tileset`. Never raises."""
    return looks_like_main_tileset(filename, _try_load(filename, path))


def get_tileset_priority(filename: str, path: Path | str | None = None) -> int:
    """Path-based wrapper around :func:`score_tileset`. Never raises."""
    if filename.lower() in EXACT_NAME_PRIORITY:
        return EXACT_NAME_PRIORITY[filename.lower()]
    return score_tileset(filename, _try_load(filename, path))
