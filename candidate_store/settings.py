from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

# Load .env file from project root
_env_path = Path(__file__).parent.parent / ".env"
if _env_path.exists():
    load_dotenv(_env_path)


class FilesystemSettings(BaseModel):
    root: Path = Path(".")


class S3Settings(BaseModel):
    bucket: str = ""
    region: str = "us-east-1"
    endpoint_url: str | None = None
    access_key_id_env: str = "S3_ACCESS_KEY_ID"
    secret_access_key_env: str = "S3_SECRET_ACCESS_KEY"

    @property
    def access_key_id(self) -> str | None:
        return os.getenv(self.access_key_id_env) or None

    @property
    def secret_access_key(self) -> str | None:
        return os.getenv(self.secret_access_key_env) or None


class StorageSettings(BaseModel):
    type: str = "filesystem"
    prefix: str = "candidate-data"
    strict_listing: bool = False
    filesystem: FilesystemSettings = Field(default_factory=FilesystemSettings)
    s3: S3Settings = Field(default_factory=S3Settings)

    @field_validator("prefix")
    @classmethod
    def _strip_prefix(cls, value: str) -> str:
        cleaned = (value or "").strip("/")
        if not cleaned:
            raise ValueError("storage.prefix must not be empty")
        return cleaned


class Settings(BaseModel):
    timezone: str = "Asia/Kolkata"
    zone_suffix: str | None = None
    storage: StorageSettings = Field(default_factory=StorageSettings)

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @classmethod
    def load(cls, path: Path | None = None) -> "Settings":
        """Load settings from YAML configuration file.

        Args:
            path: Optional path to configuration file. If not provided, uses
                CANDIDATE_STORE_CONFIG environment variable or defaults to config/default.yaml.

        Returns:
            Settings instance with loaded configuration. ``STORAGE_TYPE`` in the
            environment overrides ``storage.type``.

        Raises:
            FileNotFoundError: If configuration file does not exist.
            ValueError: If configuration is invalid.
        """
        config_path = path or Path(os.getenv("CANDIDATE_STORE_CONFIG", "config/default.yaml"))
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        with config_path.open("r", encoding="utf-8") as fp:
            payload: dict[str, Any] = yaml.safe_load(fp) or {}
        storage_type = os.getenv("STORAGE_TYPE")
        if storage_type:
            payload.setdefault("storage", {})["type"] = storage_type
        try:
            return cls(**payload)
        except Exception as exc:
            raise ValueError(f"Invalid configuration: {exc}") from exc


@lru_cache(maxsize=1)
def get_settings(path: str | None = None) -> Settings:
    return Settings.load(Path(path) if path else None)


__all__ = [
    "Settings",
    "StorageSettings",
    "FilesystemSettings",
    "S3Settings",
    "get_settings",
]
