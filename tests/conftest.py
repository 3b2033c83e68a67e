"""Shared pytest fixtures: isolated storage roots, services and an API client."""

from datetime import datetime, timezone
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from filelink.api_server.api import create_api_app
from filelink.core.sandbox import StorageSandbox
from filelink.services.backup_service import BackupService
from filelink.services.file_service import FileService

FIXED_NOW = datetime(2025, 9, 27, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def storage_root(tmp_path: Path) -> Path:
    root = tmp_path / "storage"
    root.mkdir()
    return root


@pytest.fixture
def sandbox(storage_root: Path) -> StorageSandbox:
    return StorageSandbox(storage_root)


@pytest.fixture
def file_service(sandbox: StorageSandbox) -> FileService:
    return FileService(sandbox, chunk_size=4)


@pytest.fixture
def backup_dir(tmp_path: Path) -> Path:
    return tmp_path / "Desktop"


@pytest.fixture
def backup_service(sandbox: StorageSandbox, backup_dir: Path) -> BackupService:
    return BackupService(
        sandbox.root,
        destination_dir=backup_dir,
        username_provider=lambda: "alice",
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def upload_dir(tmp_path: Path) -> Path:
    return tmp_path / "uploads"


@pytest.fixture
def client(sandbox, backup_service, upload_dir):
    app = create_api_app(sandbox, backup_service=backup_service, upload_dir=upload_dir)
    with TestClient(app) as test_client:
        yield test_client
