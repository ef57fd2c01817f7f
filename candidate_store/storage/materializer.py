"""Rebuild session records from an unordered listing of stored artifacts."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable, Iterable, Sequence
from datetime import datetime, timezone
from typing import Any, TypeVar

from loguru import logger

from candidate_store.exceptions import StorageListingError
from candidate_store.storage import StorageBackend
from candidate_store.storage.keys import basename, classify, join_key
from candidate_store.storage.models import ArtifactKind, ProfileSummary, SessionRecord

T = TypeVar("T")


def parse_timestamp(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = f"{text[:-1]}+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def sort_newest_first(items: Sequence[T], timestamp_of: Callable[[T], str | None]) -> list[T]:
    """Order items newest first without moving entries that lack a timestamp.

    Undated entries stay at their original index; dated entries are sorted
    descending into the remaining positions.
    """
    dated: list[tuple[datetime, T]] = []
    slots: list[int] = []
    result: list[T] = list(items)
    for index, item in enumerate(items):
        moment = parse_timestamp(timestamp_of(item))
        if moment is None:
            continue
        dated.append((moment, item))
        slots.append(index)
    dated.sort(key=lambda pair: pair[0], reverse=True)
    for index, (_, item) in zip(slots, dated):
        result[index] = item
    return result


def _first_str(document: dict[str, Any], *names: str) -> str | None:
    for name in names:
        value = document.get(name)
        if isinstance(value, str) and value:
            return value
    return None


async def _load_document(backend: StorageBackend, key: str | None, label: str, session_id: str) -> dict[str, Any]:
    if key is None:
        return {}
    try:
        raw = await backend.read_bytes(key)
        document = json.loads(raw.decode("utf-8"))
    except Exception as exc:
        logger.warning("Could not read {label} for session {session_id}: {error}", label=label, session_id=session_id, error=exc)
        return {}
    if not isinstance(document, dict):
        logger.warning("Ignoring non-object {label} for session {session_id}", label=label, session_id=session_id)
        return {}
    return document


def classify_entries(keys: Iterable[str]) -> dict[ArtifactKind, str]:
    slots: dict[ArtifactKind, str] = {}
    for key in keys:
        kind = classify(basename(key))
        if kind is not None:
            slots[kind] = key
    return slots


async def materialize_session(
    backend: StorageBackend,
    candidate_prefix: str,
    candidate_id: str,
    session_id: str,
) -> SessionRecord:
    session_prefix = join_key(candidate_prefix, session_id)
    keys = await backend.list_objects(session_prefix)
    slots = classify_entries(keys)

    record = SessionRecord(
        candidate_id=candidate_id,
        session_id=session_id,
        storage_type=backend.kind,
        session_locator=backend.locator(session_prefix),
        bucket=backend.describe().get("bucket"),
    )
    for kind, key in slots.items():
        record.files[kind] = backend.locator(key)
        record.links[kind] = backend.public_link(key)

    # Sequential per session; sessions themselves run concurrently.
    metadata = await _load_document(backend, slots.get(ArtifactKind.METADATA), "metadata", session_id)
    profile = await _load_document(backend, slots.get(ArtifactKind.PROFILE), "profile", session_id)

    record.metadata = metadata
    record.candidate_profile = ProfileSummary.from_profile(profile)
    record.created_at = _first_str(metadata, "processed_at", "processedAt")
    record.original_filename = _first_str(metadata, "original_filename", "originalFilename")
    return record


async def list_sessions(backend: StorageBackend, candidate_prefix: str, candidate_id: str) -> list[SessionRecord]:
    session_ids = await backend.list_children(candidate_prefix)
    outcomes = await asyncio.gather(
        *(materialize_session(backend, candidate_prefix, candidate_id, session_id) for session_id in session_ids),
        return_exceptions=True,
    )
    records: list[SessionRecord] = []
    for session_id, outcome in zip(session_ids, outcomes):
        if isinstance(outcome, StorageListingError):
            logger.warning(
                "Skipping session {session_id} of candidate {candidate_id}: {error}",
                session_id=session_id,
                candidate_id=candidate_id,
                error=outcome.message,
            )
            continue
        if isinstance(outcome, BaseException):
            raise outcome
        records.append(outcome)
    return sort_newest_first(records, lambda record: record.created_at)


__all__ = [
    "parse_timestamp",
    "sort_newest_first",
    "classify_entries",
    "materialize_session",
    "list_sessions",
]
