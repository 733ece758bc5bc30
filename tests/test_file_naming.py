from __future__ import annotations

from pathlib import Path

import pytest

from asset_ingestion.models.errors import ConflictExhaustedError, ValidationError
from asset_ingestion.services import file_naming
from asset_ingestion.services.file_naming import (
    RenameRequest,
    batch_rename,
    generate_file_name,
    get_supported_extensions,
    is_valid_naming,
    resolve_name_conflict,
    sanitize_filename,
)


def test_prefixed_rule_uses_project_code(tmp_path: Path) -> None:
    result = generate_file_name("frontend_tiles", "Production.JSON", "400_111", tmp_path)

    assert result.new_filename == "sezyum_400_111.json"
    assert result.renamed
    assert result.reason == "Auto-renamed by pattern"


def test_exact_rule_ignores_original_name(tmp_path: Path) -> None:
    result = generate_file_name("frontend_models", "building v2.glb", "400_111", tmp_path)

    assert result.new_filename == "bina_model.glb"


def test_pass_through_keeps_name(tmp_path: Path) -> None:
    result = generate_file_name("frontend_tiles", "Tile_0.b3dm", "400_111", tmp_path)

    assert result.new_filename == "Tile_0.b3dm"
    assert not result.renamed
    assert result.reason == "No change needed"


def test_category_without_rules_keeps_name(tmp_path: Path) -> None:
    (tmp_path / "plan.pdf").write_bytes(b"taken")

    result = generate_file_name("floor_plans", "plan.pdf", "400_111", tmp_path)

    assert result.new_filename == "plan.pdf"
    assert result.reason == "No naming pattern defined"


def test_generated_name_avoids_existing_files(tmp_path: Path) -> None:
    (tmp_path / "sezyum_400_111.json").write_text("{}", encoding="utf-8")
    (tmp_path / "sezyum_400_111_2.json").write_text("{}", encoding="utf-8")

    result = generate_file_name("frontend_tiles", "a.json", "400_111", tmp_path)

    assert result.new_filename == "sezyum_400_111_3.json"


def test_unknown_category_raises(tmp_path: Path) -> None:
    with pytest.raises(ValidationError):
        generate_file_name("nope", "a.json", "400_111", tmp_path)


def test_resolve_name_conflict(tmp_path: Path) -> None:
    assert resolve_name_conflict("panorama.jpg", tmp_path) == "panorama.jpg"
    assert resolve_name_conflict("panorama.jpg", tmp_path / "missing") == "panorama.jpg"

    (tmp_path / "panorama.jpg").write_bytes(b"1")
    assert resolve_name_conflict("panorama.jpg", tmp_path) == "panorama_2.jpg"

    (tmp_path / "panorama_2.jpg").write_bytes(b"2")
    assert resolve_name_conflict("panorama.jpg", tmp_path) == "panorama_3.jpg"


def test_resolve_name_conflict_gives_up(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(file_naming, "MAX_CONFLICT_ATTEMPTS", 3)
    for name in ("doc.pdf", "doc_2.pdf", "doc_3.pdf", "doc_4.pdf"):
        (tmp_path / name).write_bytes(b"x")

    with pytest.raises(ConflictExhaustedError):
        resolve_name_conflict("doc.pdf", tmp_path)


def test_batch_rename_keeps_names_unique(tmp_path: Path) -> None:
    staging = tmp_path / "staging"
    staging.mkdir()
    target = tmp_path / "tiles"
    target.mkdir()
    requests = []
    for name in ("first.json", "second.json", "tile.b3dm"):
        path = staging / name
        path.write_text(name, encoding="utf-8")
        requests.append(RenameRequest(filename=name, path=path))

    results = batch_rename(requests, "frontend_tiles", "400_111", target)

    assert [r.new_filename for r in results] == [
        "sezyum_400_111.json",
        "sezyum_400_111_2.json",
        "tile.b3dm",
    ]
    assert all(r.success for r in results)
    assert (target / "sezyum_400_111.json").read_text(encoding="utf-8") == "first.json"
    assert (target / "sezyum_400_111_2.json").read_text(encoding="utf-8") == "second.json"
    assert results[2].new_path == target / "tile.b3dm"
    assert not any(staging.iterdir())


def test_batch_rename_records_failures_and_continues(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(file_naming, "MAX_CONFLICT_ATTEMPTS", 1)
    target = tmp_path / "models"
    target.mkdir()
    (target / "bina_model.glb").write_bytes(b"old")
    (target / "bina_model_2.glb").write_bytes(b"old")
    staged_glb = tmp_path / "new.glb"
    staged_glb.write_bytes(b"new")
    staged_bin = tmp_path / "buffer.bin"
    staged_bin.write_bytes(b"bin")

    results = batch_rename(
        [RenameRequest("new.glb", staged_glb), RenameRequest("buffer.bin", staged_bin)],
        "frontend_models",
        "400_111",
        target,
    )

    assert not results[0].success
    assert results[0].error
    assert staged_glb.exists()
    assert results[1].success
    assert (target / "buffer.bin").read_bytes() == b"bin"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("../../etc/passwd", "passwd"),
        ("C:\\Users\\me\\plan.pdf", "plan.pdf"),
        ("my file (1).png", "my_file__1_.png"),
        ("r\u00e9sum\u00e9.pdf", "r_sum_.pdf"),
        ("\u015f\u015f.json", "__.json"),
        (".json", "file.json"),
        (".bashrc", "file.bashrc"),
        ("evil\x00name.pdf", "evilname.pdf"),
        ("a..b.jpg", "a_b.jpg"),
        ("..", "file"),
        ("", "file"),
    ],
)
def test_sanitize_filename(raw: str, expected: str) -> None:
    assert sanitize_filename(raw) == expected


def test_sanitize_filename_truncates_long_names_keeping_extension() -> None:
    name = sanitize_filename("a" * 500 + ".jpg")

    assert len(name) == file_naming.MAX_FILENAME_LENGTH
    assert name.endswith(".jpg")
    assert name.startswith("a")


def test_renaming_is_idempotent(tmp_path: Path) -> None:
    first = generate_file_name("frontend_tiles", "sezyum_400_111.json", "400_111", tmp_path)
    second = generate_file_name("frontend_tiles", "sezyum_400_111.json", "400_111", tmp_path)

    assert first.new_filename == second.new_filename == "sezyum_400_111.json"
    assert not first.renamed
    assert not second.renamed
    assert second.reason == "No change needed"


def test_supported_extensions_and_naming_checks() -> None:
    assert get_supported_extensions("frontend_models") == [".bin", ".glb", ".gltf"]
    assert get_supported_extensions("floor_plans") == []

    assert is_valid_naming("sezyum_400_111.json", "frontend_tiles", "400_111")
    assert not is_valid_naming("tileset.json", "frontend_tiles", "400_111")
    assert is_valid_naming("Tile_0.b3dm", "frontend_tiles", "400_111")
    assert is_valid_naming("anything.pdf", "floor_plans", "400_111")
