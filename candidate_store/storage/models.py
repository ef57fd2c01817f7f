from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any


class ArtifactKind(str, Enum):
    AUDIO = "audio"
    TRANSCRIPT = "transcript"
    PROFILE = "profile"
    METADATA = "metadata"
    HTML = "html"
    PDF = "pdf"


def empty_slots() -> dict[ArtifactKind, str | None]:
    return {kind: None for kind in ArtifactKind}


def _text(value: Any) -> str | None:
    return value if isinstance(value, str) else None


@dataclass
class ProfileSummary:
    name: str | None = None
    location: str | None = None
    experience: float | str | None = None
    summary: str | None = None

    @classmethod
    def from_profile(cls, profile: dict[str, Any]) -> "ProfileSummary":
        """Project the listing fields, dropping values of an unexpected type."""
        contact = profile.get("contact")
        location = contact.get("location") if isinstance(contact, dict) else None
        experience = profile.get("total_experience_years")
        if isinstance(experience, bool) or not isinstance(experience, (int, float, str)):
            experience = None
        return cls(
            name=_text(profile.get("candidate_name")),
            location=_text(location),
            experience=experience,
            summary=_text(profile.get("summary")),
        )


@dataclass
class SessionRecord:
    candidate_id: str
    session_id: str
    storage_type: str
    session_locator: str
    files: dict[ArtifactKind, str | None] = field(default_factory=empty_slots)
    links: dict[ArtifactKind, str | None] = field(default_factory=empty_slots)
    metadata: dict[str, Any] = field(default_factory=dict)
    candidate_profile: ProfileSummary = field(default_factory=ProfileSummary)
    created_at: str | None = None
    original_filename: str | None = None
    bucket: str | None = None


@dataclass
class CandidateRecord:
    candidate_id: str
    session_count: int = 0
    last_activity: str | None = None
    name: str | None = None
    location: str | None = None
    experience: float | str | None = None


@dataclass
class StorageResult:
    storage_type: str
    candidate_id: str
    session_id: str
    paths: dict[str, str] = field(default_factory=dict)
    bucket: str | None = None


@dataclass
class UploadedAudio:
    """Audio spooled to a local temp file by the upload handler."""

    path: Path
    original_filename: str
    content_type: str | None = None


@dataclass
class GeneratedArtifact:
    """Rendered HTML or PDF report, either in memory or already on disk."""

    filename: str
    content: bytes | None = None
    path: Path | None = None


__all__ = [
    "ArtifactKind",
    "ProfileSummary",
    "SessionRecord",
    "CandidateRecord",
    "StorageResult",
    "UploadedAudio",
    "GeneratedArtifact",
    "empty_slots",
]
