from __future__ import annotations

import asyncio
import shutil
from pathlib import Path

from candidate_store.exceptions import StorageListingError, StorageWriteError
from candidate_store.storage.keys import join_key

FILES_ROUTE = "/files"


class LocalStorage:
    """Directory tree rooted at ``root``; keys map 1:1 onto relative paths."""

    kind = "filesystem"

    def __init__(self, root: Path) -> None:
        self.root = root

    def _path(self, key: str) -> Path:
        return self.root.joinpath(*[part for part in key.split("/") if part])

    def locator(self, key: str) -> str:
        return str(self._path(key))

    def public_link(self, key: str) -> str:
        return f"{FILES_ROUTE}/{key}"

    def describe(self) -> dict[str, str]:
        return {"root": str(self.root)}

    async def write_bytes(self, key: str, data: bytes, content_type: str) -> str:
        path = self._path(key)

        def _write() -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)

        try:
            await asyncio.to_thread(_write)
        except OSError as exc:
            raise StorageWriteError(f"Failed to write {key}: {exc}", {"key": key}) from exc
        return str(path)

    async def write_file(self, key: str, src_path: Path, content_type: str) -> str:
        target = self._path(key)

        def _copy() -> None:
            target.parent.mkdir(parents=True, exist_ok=True)
            if src_path.resolve() != target.resolve():
                shutil.copyfile(src_path, target)

        try:
            await asyncio.to_thread(_copy)
        except OSError as exc:
            raise StorageWriteError(f"Failed to copy {src_path} to {key}: {exc}", {"key": key}) from exc
        return str(target)

    async def read_bytes(self, key: str) -> bytes:
        return await asyncio.to_thread(self._path(key).read_bytes)

    async def list_children(self, prefix: str) -> list[str]:
        directory = self._path(prefix)

        def _scan() -> list[str]:
            return sorted(entry.name for entry in directory.iterdir() if entry.is_dir())

        try:
            return await asyncio.to_thread(_scan)
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise StorageListingError(f"Failed to list {directory}: {exc}", {"prefix": prefix}) from exc

    async def list_objects(self, prefix: str) -> list[str]:
        directory = self._path(prefix)

        def _scan() -> list[str]:
            return sorted(join_key(prefix, entry.name) for entry in directory.iterdir() if entry.is_file())

        try:
            return await asyncio.to_thread(_scan)
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise StorageListingError(f"Failed to list {directory}: {exc}", {"prefix": prefix}) from exc


__all__ = ["LocalStorage", "FILES_ROUTE"]
