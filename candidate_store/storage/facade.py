"""Single entry point for persisting and listing candidate interview data."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable
from datetime import datetime
from pathlib import Path, PurePosixPath
from typing import Any
from zoneinfo import ZoneInfo

from loguru import logger

from candidate_store.exceptions import (
    AccessDeniedError,
    ConfigurationError,
    FileNotFoundError,
    StorageListingError,
    StorageWriteError,
    UnsupportedOperationError,
)
from candidate_store.settings import Settings
from candidate_store.storage import StorageBackend
from candidate_store.storage.keys import (
    artifact_key,
    candidate_key,
    content_type_for,
    generate_session_id,
    generated_filename,
    join_key,
    session_key,
)
from candidate_store.storage.local import LocalStorage
from candidate_store.storage.materializer import list_sessions
from candidate_store.storage.models import (
    ArtifactKind,
    CandidateRecord,
    GeneratedArtifact,
    SessionRecord,
    StorageResult,
    UploadedAudio,
)
from candidate_store.storage.roster import build_roster
from candidate_store.storage.s3 import S3Storage


def _dump_json(document: dict[str, Any]) -> bytes:
    return json.dumps(document, indent=2, ensure_ascii=False).encode("utf-8")


class CandidateStorage:
    def __init__(
        self,
        backend: StorageBackend,
        *,
        prefix: str = "candidate-data",
        tz: ZoneInfo | None = None,
        zone_suffix: str | None = None,
        strict_listing: bool = False,
    ) -> None:
        self.backend = backend
        self.prefix = prefix.strip("/")
        self.tz = tz or ZoneInfo("Asia/Kolkata")
        self.zone_suffix = zone_suffix
        self.strict_listing = strict_listing

    @property
    def storage_type(self) -> str:
        return self.backend.kind

    def new_session_id(self, now: datetime | None = None) -> str:
        return generate_session_id(self.tz, now, self.zone_suffix)

    def report_filename(self, candidate_name: str | None, ext: str, now: datetime | None = None) -> str:
        """Filename for a rendered profile report, e.g. ``Jane_Doe_profile_20240101-120000.pdf``."""
        return generated_filename(candidate_name, ext, self.tz, now)

    async def _settle(self, writes: dict[str, Awaitable[str]]) -> dict[str, str]:
        names = list(writes)
        outcomes = await asyncio.gather(*writes.values(), return_exceptions=True)
        failures = [outcome for outcome in outcomes if isinstance(outcome, BaseException)]
        if failures:
            first = failures[0]
            if isinstance(first, StorageWriteError):
                raise first
            raise StorageWriteError(f"Failed to store artifact: {first}") from first
        return dict(zip(names, outcomes))

    def _generated_writes(self, base_key: str, generated: dict[ArtifactKind, GeneratedArtifact]) -> dict[str, Awaitable[str]]:
        unsupported = [kind.value for kind in generated if kind not in (ArtifactKind.HTML, ArtifactKind.PDF)]
        if unsupported:
            raise ValueError(f"Only html and pdf can be attached, got {unsupported}")
        empty = [kind.value for kind, artifact in generated.items() if artifact.content is None and artifact.path is None]
        if empty:
            raise ValueError(f"Generated artifacts need content or a path, missing for {empty}")
        writes: dict[str, Awaitable[str]] = {}
        for kind, artifact in generated.items():
            key = artifact_key(base_key, kind, artifact.filename)
            content_type = content_type_for(kind)
            if artifact.content is not None:
                writes[kind.value] = self.backend.write_bytes(key, artifact.content, content_type)
            elif artifact.path is not None:
                writes[kind.value] = self.backend.write_file(key, artifact.path, content_type)
        return writes

    async def save_candidate_data(
        self,
        candidate_id: str,
        transcript: str,
        profile: dict[str, Any],
        metadata: dict[str, Any],
        generated: dict[ArtifactKind, GeneratedArtifact] | None = None,
        audio: UploadedAudio | None = None,
        *,
        now: datetime | None = None,
    ) -> StorageResult:
        session_id = self.new_session_id(now)
        base_key = session_key(self.prefix, candidate_id, session_id)
        stored_metadata = {**metadata, "session_id": session_id}
        generated_writes = self._generated_writes(base_key, generated) if generated else {}

        writes: dict[str, Awaitable[str]] = {
            ArtifactKind.TRANSCRIPT.value: self.backend.write_bytes(
                artifact_key(base_key, ArtifactKind.TRANSCRIPT),
                transcript.encode("utf-8"),
                content_type_for(ArtifactKind.TRANSCRIPT),
            ),
            ArtifactKind.PROFILE.value: self.backend.write_bytes(
                artifact_key(base_key, ArtifactKind.PROFILE),
                _dump_json(profile),
                content_type_for(ArtifactKind.PROFILE),
            ),
            ArtifactKind.METADATA.value: self.backend.write_bytes(
                artifact_key(base_key, ArtifactKind.METADATA),
                _dump_json(stored_metadata),
                content_type_for(ArtifactKind.METADATA),
            ),
        }
        if audio is not None:
            writes[ArtifactKind.AUDIO.value] = self.backend.write_file(
                artifact_key(base_key, ArtifactKind.AUDIO, audio.original_filename),
                audio.path,
                content_type_for(ArtifactKind.AUDIO, audio.content_type),
            )
        writes.update(generated_writes)

        paths = await self._settle(writes)
        paths["folder"] = self.backend.locator(base_key)
        logger.info(
            "Stored session {session_id} for candidate {candidate_id} ({count} artifacts, {backend})",
            session_id=session_id,
            candidate_id=candidate_id,
            count=len(writes),
            backend=self.storage_type,
        )
        return StorageResult(
            storage_type=self.storage_type,
            candidate_id=candidate_id,
            session_id=session_id,
            paths=paths,
            bucket=self.backend.describe().get("bucket"),
        )

    async def attach_generated_artifacts(
        self,
        candidate_id: str,
        session_id: str,
        generated: dict[ArtifactKind, GeneratedArtifact],
    ) -> dict[str, str]:
        """Store rendered reports for a session that already exists."""
        base_key = session_key(self.prefix, candidate_id, session_id)
        paths = await self._settle(self._generated_writes(base_key, generated))
        logger.info(
            "Attached {kinds} to session {session_id} of candidate {candidate_id}",
            kinds=sorted(paths),
            session_id=session_id,
            candidate_id=candidate_id,
        )
        return paths

    async def list_candidates(self) -> list[CandidateRecord]:
        try:
            return await build_roster(self.backend, self.prefix)
        except StorageListingError as exc:
            if self.strict_listing:
                raise
            logger.error("Failed to list candidates: {error}", error=exc.message, details=exc.details)
            return []

    async def list_candidate_sessions(self, candidate_id: str) -> list[SessionRecord]:
        prefix = candidate_key(self.prefix, candidate_id)
        try:
            return await list_sessions(self.backend, prefix, candidate_id)
        except StorageListingError as exc:
            if self.strict_listing:
                raise
            logger.error(
                "Failed to list sessions for candidate {candidate_id}: {error}",
                candidate_id=candidate_id,
                error=exc.message,
                details=exc.details,
            )
            return []

    async def upload_raw(self, key: str, data: bytes, content_type: str) -> None:
        if not isinstance(self.backend, S3Storage):
            raise UnsupportedOperationError(
                "Raw uploads are only available with the s3 storage backend",
                {"storage_type": self.storage_type},
            )
        await self.backend.write_bytes(key, data, content_type)

    def resolve_local_file(self, relative_path: str) -> Path:
        """Map a ``/files/...`` request path onto a stored file of the filesystem backend."""
        if not isinstance(self.backend, LocalStorage):
            raise UnsupportedOperationError(
                "Files are served directly from the object store",
                {"storage_type": self.storage_type},
            )
        cleaned = (relative_path or "").replace("\\", "/").lstrip("/")
        parts = PurePosixPath(cleaned).parts
        if not cleaned.startswith(f"{self.prefix}/") or ".." in parts:
            raise AccessDeniedError("File access is restricted to candidate data", {"path": relative_path})
        root = self.backend.root.resolve()
        candidate = (root / Path(*parts)).resolve()
        if root not in candidate.parents:
            raise AccessDeniedError("File access is restricted to candidate data", {"path": relative_path})
        if not candidate.is_file():
            raise FileNotFoundError("The requested file does not exist", {"path": relative_path})
        return candidate


def create_backend(settings: Settings, client: Any = None) -> StorageBackend:
    storage = settings.storage
    if storage.type == "filesystem":
        return LocalStorage(storage.filesystem.root)
    if storage.type == "s3":
        if not storage.s3.bucket:
            raise ConfigurationError("storage.s3.bucket is required for s3 storage", {"setting": "storage.s3.bucket"})
        return S3Storage(
            bucket=storage.s3.bucket,
            region=storage.s3.region,
            client=client,
            endpoint_url=storage.s3.endpoint_url,
            access_key_id=storage.s3.access_key_id,
            secret_access_key=storage.s3.secret_access_key,
        )
    raise ConfigurationError(f"Unsupported storage type: {storage.type}", {"storage_type": storage.type})


def create_storage(settings: Settings, client: Any = None) -> CandidateStorage:
    backend = create_backend(settings, client)
    logger.info("Candidate storage initialised with {backend} backend", backend=backend.kind)
    return CandidateStorage(
        backend,
        prefix=settings.storage.prefix,
        tz=settings.tz,
        zone_suffix=settings.zone_suffix,
        strict_listing=settings.storage.strict_listing,
    )


__all__ = ["CandidateStorage", "create_backend", "create_storage"]
