"""Storage abstraction (S3 or local filesystem) for candidate session artifacts."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol


class StorageBackend(Protocol):
    kind: str

    async def write_bytes(self, key: str, data: bytes, content_type: str) -> str:  # returns locator
        ...

    async def write_file(self, key: str, src_path: Path, content_type: str) -> str:  # returns locator
        ...

    async def read_bytes(self, key: str) -> bytes:
        ...

    async def list_children(self, prefix: str) -> list[str]:  # immediate "directory" names
        ...

    async def list_objects(self, prefix: str) -> list[str]:  # keys of stored artifacts
        ...

    def locator(self, key: str) -> str:
        ...

    def public_link(self, key: str) -> str:
        ...

    def describe(self) -> dict[str, str]:
        ...
