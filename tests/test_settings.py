from __future__ import annotations

from pathlib import Path

import pytest

from candidate_store.exceptions import ConfigurationError
from candidate_store.settings import Settings
from candidate_store.storage.facade import create_storage
from candidate_store.storage.local import LocalStorage
from candidate_store.storage.s3 import S3Storage
from tests.utils_store import FakeS3Client


def _write_config(tmp_path: Path, body: str) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(body, encoding="utf-8")
    return path


def test_load_yaml_configuration(tmp_path, monkeypatch) -> None:
    monkeypatch.delenv("STORAGE_TYPE", raising=False)
    path = _write_config(
        tmp_path,
        "timezone: Europe/Berlin\nstorage:\n  type: filesystem\n  prefix: /interviews/\n  filesystem:\n    root: data\n",
    )

    settings = Settings.load(path)

    assert settings.timezone == "Europe/Berlin"
    assert settings.storage.prefix == "interviews"
    assert settings.storage.filesystem.root == Path("data")
    assert settings.storage.strict_listing is False


def test_storage_type_env_override(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("STORAGE_TYPE", "s3")
    path = _write_config(tmp_path, "storage:\n  type: filesystem\n  s3:\n    bucket: interviews\n")

    settings = Settings.load(path)

    assert settings.storage.type == "s3"
    assert settings.storage.s3.bucket == "interviews"


def test_missing_file_and_invalid_values(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        Settings.load(tmp_path / "missing.yaml")
    with pytest.raises(ValueError):
        Settings.load(_write_config(tmp_path, "timezone: Mars/Olympus\n"))


def test_s3_credentials_resolved_from_env(monkeypatch) -> None:
    monkeypatch.setenv("S3_ACCESS_KEY_ID", "AKIA")
    monkeypatch.delenv("S3_SECRET_ACCESS_KEY", raising=False)

    settings = Settings()

    assert settings.storage.s3.access_key_id == "AKIA"
    assert settings.storage.s3.secret_access_key is None


def test_factory_selects_backend_once(tmp_path) -> None:
    local = create_storage(Settings(storage={"type": "filesystem", "filesystem": {"root": str(tmp_path)}}))
    remote = create_storage(Settings(storage={"type": "s3", "s3": {"bucket": "b"}}), client=FakeS3Client("b"))

    assert isinstance(local.backend, LocalStorage)
    assert isinstance(remote.backend, S3Storage)
    assert remote.storage_type == "s3"


def test_factory_rejects_unknown_backend_and_missing_bucket() -> None:
    with pytest.raises(ConfigurationError):
        create_storage(Settings(storage={"type": "gcs"}))
    with pytest.raises(ConfigurationError):
        create_storage(Settings(storage={"type": "s3"}))
