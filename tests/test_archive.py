from __future__ import annotations

import json
from collections.abc import Iterable
from pathlib import Path
from zipfile import ZIP_DEFLATED, ZipFile

import pytest

from asset_ingestion.models.errors import ArchiveError
from asset_ingestion.models.ingestion import ArchiveEntry
from asset_ingestion.services.archive import (
    detect_archive_format,
    extract_archive,
    find_main_files,
    list_entries,
    rename_tileset_file,
    summarize_entries,
)


def _create_zip(zip_path: Path, entries: Iterable[tuple[str, bytes]]) -> Path:
    with ZipFile(zip_path, mode="w", compression=ZIP_DEFLATED) as archive:
        for relative_path, data in entries:
            archive.writestr(relative_path, data)
    return zip_path


def _tileset_bytes(geometric_error: float = 10, content_uri: str | None = None) -> bytes:
    root: dict = {"geometricError": geometric_error}
    if content_uri:
        root["content"] = {"uri": content_uri}
    return json.dumps({"asset": {"version": "1.0"}, "root": root}).encode()


def test_extract_skips_traversal_entries(tmp_path: Path) -> None:
    archive = _create_zip(
        tmp_path / "evil.zip",
        [
            ("../evil.txt", b"x"),
            ("/abs.txt", b"x"),
            ("C:/drive.txt", b"x"),
            ("nested/..\\..\\win.txt", b"x"),
            ("ok/../../escape.txt", b"x"),
            ("safe/tileset.json", _tileset_bytes()),
        ],
    )
    dest = tmp_path / "out" / "tiles"

    result = extract_archive(archive, dest)

    assert result.success
    assert result.extracted_files == 1
    assert result.extracted_paths == ["safe/tileset.json"]
    assert len(result.skipped_entries) == 5
    assert (dest / "safe" / "tileset.json").is_file()
    assert not (tmp_path / "out" / "evil.txt").exists()
    assert not (tmp_path / "escape.txt").exists()
    assert not (tmp_path / "evil.txt").exists()


def test_extract_reports_structure_and_ranks_candidates(tmp_path: Path) -> None:
    archive = _create_zip(
        tmp_path / "tiles.zip",
        [
            ("Data/", b""),
            ("Data/Tile_+0+0.json", _tileset_bytes(content_uri="Data/Tile_+0+0.b3dm")),
            ("Data/Tile_+0+0.b3dm", b"b3dm"),
            ("Production.json", _tileset_bytes(geometric_error=800)),
        ],
    )

    result = extract_archive(archive, tmp_path / "out", [".json"])

    assert result.structure.total_files == 3
    assert result.structure.directories == ["Data/"]
    assert result.structure.file_type_counts == {".json": 2, ".b3dm": 1}
    assert [c.relative_path for c in result.main_files] == [
        "Production.json",
        "Data/Tile_+0+0.json",
    ]
    production, sub_tile = result.main_files
    assert production.is_main and production.depth == 0
    assert not sub_tile.is_main and sub_tile.depth == 1
    assert production.priority > sub_tile.priority


def test_main_files_prefer_shallower_on_equal_priority(tmp_path: Path) -> None:
    for relative in ("b/tileset.json", "tileset.json", "a/b/tileset.json"):
        target = tmp_path / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(_tileset_bytes())

    candidates = find_main_files(tmp_path)

    assert [c.relative_path for c in candidates] == [
        "tileset.json",
        "b/tileset.json",
        "a/b/tileset.json",
    ]


def test_find_main_files_respects_depth_limit(tmp_path: Path) -> None:
    limit = tmp_path / "a" / "b" / "c"
    (limit / "d").mkdir(parents=True)
    (limit / "ok.json").write_text("{}", encoding="utf-8")
    (limit / "d" / "deep.json").write_text("{}", encoding="utf-8")

    names = {c.filename for c in find_main_files(tmp_path)}

    assert names == {"ok.json"}


def test_malformed_json_does_not_abort_scan(tmp_path: Path) -> None:
    archive = _create_zip(
        tmp_path / "mixed.zip",
        [("broken.json", b"{not json"), ("city.json", _tileset_bytes(geometric_error=300))],
    )

    result = extract_archive(archive, tmp_path / "out")

    by_name = {c.filename: c for c in result.main_files}
    assert set(by_name) == {"broken.json", "city.json"}
    assert not by_name["broken.json"].is_main
    assert by_name["city.json"].is_main


def test_rar_archives_are_rejected(tmp_path: Path) -> None:
    archive = tmp_path / "tiles.rar"
    archive.write_bytes(b"Rar!\x1a\x07\x00" + b"\x00" * 32)

    assert detect_archive_format(archive) == "rar"
    with pytest.raises(ArchiveError, match="RAR"):
        extract_archive(archive, tmp_path / "out")


def test_corrupt_zip_raises_archive_error(tmp_path: Path) -> None:
    archive = tmp_path / "broken.zip"
    archive.write_bytes(b"PK\x03\x04" + b"garbage" * 10)

    with pytest.raises(ArchiveError):
        extract_archive(archive, tmp_path / "out")


def test_detect_archive_format(tmp_path: Path) -> None:
    seven = tmp_path / "a.7z"
    seven.write_bytes(b"7z\xbc\xaf\x27\x1c\x00\x04")
    text = tmp_path / "a.txt"
    text.write_text("hello", encoding="utf-8")
    archive = _create_zip(tmp_path / "a.zip", [("x.txt", b"x")])

    assert detect_archive_format(seven) == "7z"
    assert detect_archive_format(text) is None
    assert detect_archive_format(archive) == "zip"
    assert detect_archive_format(tmp_path / "missing.zip") is None


def test_list_entries_and_summary(tmp_path: Path) -> None:
    archive = _create_zip(
        tmp_path / "a.zip", [("docs/", b""), ("docs/a.PDF", b"12345"), ("b.json", b"{}")]
    )

    entries = list_entries(archive)

    assert ArchiveEntry(path="docs/a.PDF", is_directory=False, size=5) in entries
    summary = summarize_entries(entries)
    assert summary.total_files == 2
    assert summary.file_type_counts == {".pdf": 1, ".json": 1}


def test_list_entries_rejects_non_zip(tmp_path: Path) -> None:
    path = tmp_path / "a.zip"
    path.write_text("not a zip", encoding="utf-8")

    with pytest.raises(ArchiveError):
        list_entries(path)


def test_rename_tileset_file_keeps_content(tmp_path: Path) -> None:
    path = tmp_path / "Production.json"
    path.write_bytes(b'{"root": {}}')

    new_path = rename_tileset_file(path, "sezyum_400_111.json")

    assert new_path == tmp_path / "sezyum_400_111.json"
    assert new_path.read_bytes() == b'{"root": {}}'
    assert not path.exists()


def test_root_tileset_outranks_sub_tile(tmp_path: Path) -> None:
    root = {
        "asset": {"version": "1.0"},
        "geometricError": 600,
        "root": {"geometricError": 600, "children": [{}, {}]},
    }
    archive = _create_zip(
        tmp_path / "city.zip",
        [
            ("tileset.json", json.dumps(root).encode()),
            ("tile_0_0.json", json.dumps({"asset": {"version": "1.0"}}).encode()),
        ],
    )

    result = extract_archive(archive, tmp_path / "out", [".json"])

    first, second = result.main_files
    assert first.filename == "tileset.json"
    assert first.is_main
    assert second.filename == "tile_0_0.json"
    assert not second.is_main
    assert first.priority > second.priority
