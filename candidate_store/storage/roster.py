from __future__ import annotations

import asyncio

from loguru import logger

from candidate_store.exceptions import StorageListingError
from candidate_store.storage import StorageBackend
from candidate_store.storage.keys import join_key
from candidate_store.storage.materializer import list_sessions, parse_timestamp, sort_newest_first
from candidate_store.storage.models import CandidateRecord


async def summarize_candidate(backend: StorageBackend, prefix: str, candidate_id: str) -> CandidateRecord:
    sessions = await list_sessions(backend, join_key(prefix, candidate_id), candidate_id)
    record = CandidateRecord(candidate_id=candidate_id, session_count=len(sessions))
    if sessions:
        # First dated session is the newest one.
        latest = next((session for session in sessions if parse_timestamp(session.created_at)), sessions[0])
        record.last_activity = latest.created_at
        record.name = latest.candidate_profile.name
        record.location = latest.candidate_profile.location
        record.experience = latest.candidate_profile.experience
    return record


async def build_roster(backend: StorageBackend, prefix: str) -> list[CandidateRecord]:
    candidate_ids = await backend.list_children(prefix)
    outcomes = await asyncio.gather(
        *(summarize_candidate(backend, prefix, candidate_id) for candidate_id in candidate_ids),
        return_exceptions=True,
    )
    records: list[CandidateRecord] = []
    for candidate_id, outcome in zip(candidate_ids, outcomes):
        if isinstance(outcome, StorageListingError):
            logger.warning("Skipping candidate {candidate_id}: {error}", candidate_id=candidate_id, error=outcome.message)
            continue
        if isinstance(outcome, BaseException):
            raise outcome
        records.append(outcome)
    return sort_newest_first(records, lambda record: record.last_activity)


__all__ = ["summarize_candidate", "build_roster"]
