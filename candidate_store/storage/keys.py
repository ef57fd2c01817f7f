"""Logical key scheme shared by every storage backend.

Keys are POSIX-style strings ``<prefix>/<candidate_id>/<session_id>/<file>``.
The filesystem backend maps them onto a directory tree, the object store uses
them verbatim as object keys.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from datetime import datetime, tzinfo
from pathlib import PurePosixPath

from candidate_store.exceptions import InvalidCandidateIdError
from candidate_store.storage.models import ArtifactKind

TRANSCRIPT_FILENAME = "transcript.txt"
PROFILE_FILENAME = "candidate_profile.json"
METADATA_FILENAME = "metadata.json"
AUDIO_PREFIX = "audio_"
DEFAULT_AUDIO_EXT = ".mp3"
FALLBACK_CANDIDATE_NAME = "candidate"

_FIXED_FILENAMES = {
    ArtifactKind.TRANSCRIPT: TRANSCRIPT_FILENAME,
    ArtifactKind.PROFILE: PROFILE_FILENAME,
    ArtifactKind.METADATA: METADATA_FILENAME,
}

_CONTENT_TYPES = {
    ArtifactKind.AUDIO: "audio/mpeg",
    ArtifactKind.TRANSCRIPT: "text/plain",
    ArtifactKind.PROFILE: "application/json",
    ArtifactKind.METADATA: "application/json",
    ArtifactKind.HTML: "text/html",
    ArtifactKind.PDF: "application/pdf",
}

_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9_]")

# Evaluated in order, first match wins.
CLASSIFICATION_RULES: tuple[tuple[Callable[[str], bool], ArtifactKind], ...] = (
    (lambda name: name.startswith(AUDIO_PREFIX) and name.endswith(DEFAULT_AUDIO_EXT), ArtifactKind.AUDIO),
    (lambda name: name == TRANSCRIPT_FILENAME, ArtifactKind.TRANSCRIPT),
    (lambda name: name == PROFILE_FILENAME, ArtifactKind.PROFILE),
    (lambda name: name == METADATA_FILENAME, ArtifactKind.METADATA),
    (lambda name: name.endswith(".html"), ArtifactKind.HTML),
    (lambda name: name.endswith(".pdf"), ArtifactKind.PDF),
)


def validate_candidate_id(candidate_id: str) -> str:
    value = candidate_id or ""
    if (
        not value.strip()
        or value in {".", ".."}
        or ".." in value
        or value.startswith("/")
        or "/" in value
        or "\\" in value
    ):
        raise InvalidCandidateIdError(
            f"Invalid candidate id: {candidate_id!r}",
            {"candidate_id": str(candidate_id)},
        )
    return value


def join_key(*parts: str) -> str:
    return "/".join(part.strip("/") for part in parts if part and part.strip("/"))


def basename(key: str) -> str:
    return PurePosixPath(key).name


def candidate_key(prefix: str, candidate_id: str) -> str:
    return join_key(prefix, validate_candidate_id(candidate_id))


def session_key(prefix: str, candidate_id: str, session_id: str) -> str:
    return join_key(candidate_key(prefix, candidate_id), session_id)


def audio_filename(session_id: str, original_filename: str | None = None) -> str:
    ext = PurePosixPath(original_filename or "").suffix or DEFAULT_AUDIO_EXT
    return f"{AUDIO_PREFIX}{session_id}{ext}"


def artifact_filename(kind: ArtifactKind, session_id: str, ext_or_filename: str | None = None) -> str:
    """Return the stored filename of an artifact.

    Transcript, profile and metadata have fixed names. Audio is named after the
    session and keeps the uploaded extension. HTML and PDF reports keep the
    filename the renderer chose.
    """
    if kind in _FIXED_FILENAMES:
        return _FIXED_FILENAMES[kind]
    if kind is ArtifactKind.AUDIO:
        return audio_filename(session_id, ext_or_filename)
    if not ext_or_filename:
        raise ValueError(f"A filename is required for {kind.value} artifacts")
    return basename(ext_or_filename)


def artifact_key(base_key: str, kind: ArtifactKind, ext_or_filename: str | None = None) -> str:
    session_id = basename(base_key)
    return join_key(base_key, artifact_filename(kind, session_id, ext_or_filename))


def classify(filename: str) -> ArtifactKind | None:
    for predicate, kind in CLASSIFICATION_RULES:
        if predicate(filename):
            return kind
    return None


def sanitize_name(name: str | None) -> str:
    if not name or not name.strip():
        return FALLBACK_CANDIDATE_NAME
    return _UNSAFE_NAME_CHARS.sub("_", name)


def format_timestamp(tz: tzinfo, now: datetime | None = None) -> str:
    moment = now.astimezone(tz) if now else datetime.now(tz)
    return moment.strftime("%Y%m%d-%H%M%S")


def generated_filename(candidate_name: str | None, ext: str, tz: tzinfo, now: datetime | None = None) -> str:
    return f"{sanitize_name(candidate_name)}_profile_{format_timestamp(tz, now)}.{ext.lstrip('.')}"


def zone_abbreviation(tz: tzinfo, now: datetime | None = None) -> str:
    moment = now.astimezone(tz) if now else datetime.now(tz)
    return moment.strftime("%Z") or "UTC"


def generate_session_id(tz: tzinfo, now: datetime | None = None, zone_suffix: str | None = None) -> str:
    suffix = zone_suffix or zone_abbreviation(tz, now)
    return f"{format_timestamp(tz, now)}-{suffix}"


def content_type_for(kind: ArtifactKind, uploaded: str | None = None) -> str:
    if kind is ArtifactKind.AUDIO and uploaded:
        return uploaded
    return _CONTENT_TYPES[kind]


__all__ = [
    "TRANSCRIPT_FILENAME",
    "PROFILE_FILENAME",
    "METADATA_FILENAME",
    "CLASSIFICATION_RULES",
    "validate_candidate_id",
    "join_key",
    "basename",
    "candidate_key",
    "session_key",
    "audio_filename",
    "artifact_filename",
    "artifact_key",
    "classify",
    "sanitize_name",
    "format_timestamp",
    "generated_filename",
    "generate_session_id",
    "content_type_for",
]
