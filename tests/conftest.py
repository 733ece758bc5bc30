from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

import asset_ingestion.data.db as app_db
from asset_ingestion.data.db import init_db


@pytest.fixture(autouse=True)
def storage_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[Path]:
    """Point storage roots and the ORM at temporary locations."""
    monkeypatch.setenv("ASSET_INGEST_UPLOADS_DIR", (tmp_path / "uploads").as_posix())
    frontend_root = tmp_path / "frontend" / "public"
    monkeypatch.setenv("ASSET_INGEST_FRONTEND_PUBLIC_DIR", frontend_root.as_posix())
    monkeypatch.setenv("DB_URL", f"sqlite:///{(tmp_path / 'test.db').as_posix()}")
    app_db.reset_engine()
    yield tmp_path
    app_db.reset_engine()


@pytest.fixture
def api_db(storage_env: Path) -> Iterator[None]:
    """Create the schema up front for API tests."""
    init_db()
    yield


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Automatically add api_db fixture to tests in API test files."""
    for item in items:
        test_file_path = Path(str(item.fspath))
        if "api" in test_file_path.stem.lower():
            item.add_marker(pytest.mark.usefixtures("api_db"))
