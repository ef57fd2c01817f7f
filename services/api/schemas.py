from __future__ import annotations

from dataclasses import asdict
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from candidate_store.storage.models import CandidateRecord, SessionRecord, StorageResult


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProfileSummaryOut(CamelModel):
    name: str | None = None
    location: str | None = None
    experience: float | str | None = None
    summary: str | None = None


class CandidateOut(CamelModel):
    candidate_id: str
    session_count: int
    last_activity: str | None = None
    name: str | None = None
    location: str | None = None
    experience: float | str | None = None

    @classmethod
    def from_record(cls, record: CandidateRecord) -> "CandidateOut":
        return cls(
            candidate_id=record.candidate_id,
            session_count=record.session_count,
            last_activity=record.last_activity,
            name=record.name,
            location=record.location,
            experience=record.experience,
        )


class SessionOut(CamelModel):
    session_id: str
    candidate_id: str
    storage_type: str
    session_path: str
    bucket: str | None = None
    files: dict[str, str | None]
    links: dict[str, str | None]
    metadata: dict[str, Any] = Field(default_factory=dict)
    candidate_profile: ProfileSummaryOut
    created_at: str | None = None
    original_filename: str | None = None

    @classmethod
    def from_record(cls, record: SessionRecord) -> "SessionOut":
        return cls(
            session_id=record.session_id,
            candidate_id=record.candidate_id,
            storage_type=record.storage_type,
            session_path=record.session_locator,
            bucket=record.bucket,
            files={kind.value: value for kind, value in record.files.items()},
            links={kind.value: value for kind, value in record.links.items()},
            metadata=record.metadata,
            candidate_profile=ProfileSummaryOut(**asdict(record.candidate_profile)),
            created_at=record.created_at,
            original_filename=record.original_filename,
        )


class StorageResultOut(CamelModel):
    storage_type: str
    candidate_id: str
    session_id: str
    paths: dict[str, str]
    bucket: str | None = None

    @classmethod
    def from_result(cls, result: StorageResult) -> "StorageResultOut":
        return cls(
            storage_type=result.storage_type,
            candidate_id=result.candidate_id,
            session_id=result.session_id,
            paths=result.paths,
            bucket=result.bucket,
        )


class CandidateListResponse(CamelModel):
    success: bool = True
    candidate_count: int
    candidates: list[CandidateOut]
    storage_type: str


class SessionListResponse(CamelModel):
    success: bool = True
    candidate_id: str
    sessions_count: int
    sessions: list[SessionOut]
    storage_type: str


class SaveSessionResponse(CamelModel):
    success: bool = True
    storage: StorageResultOut
