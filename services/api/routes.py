from __future__ import annotations

import asyncio
import json
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Annotated, Any

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import FileResponse
from loguru import logger

from candidate_store.exceptions import UnsupportedOperationError
from candidate_store.storage.facade import CandidateStorage
from candidate_store.storage.models import UploadedAudio
from services.api.schemas import (
    CandidateListResponse,
    CandidateOut,
    SaveSessionResponse,
    SessionListResponse,
    SessionOut,
    StorageResultOut,
)


router = APIRouter(prefix="/v1")
files_router = APIRouter()

MAX_AUDIO_BYTES = 50 * 1024 * 1024
AUDIO_MIME_TYPES = {"audio/mpeg", "audio/mp3"}
MEDIA_TYPES = {
    ".mp3": "audio/mpeg",
    ".txt": "text/plain",
    ".json": "application/json",
    ".html": "text/html",
    ".pdf": "application/pdf",
}


def get_storage(request: Request) -> CandidateStorage:
    return request.app.state.storage


StorageDep = Annotated[CandidateStorage, Depends(get_storage)]


def _json_object(raw: str | None, field: str) -> dict[str, Any]:
    if raw is None or not raw.strip():
        return {}
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise HTTPException(status_code=400, detail=f"{field} is not valid JSON: {exc}") from exc
    if not isinstance(value, dict):
        raise HTTPException(status_code=400, detail=f"{field} must be a JSON object")
    return value


async def _spool_audio(upload: UploadFile) -> tuple[Path, int]:
    filename = upload.filename or ""
    suffix = Path(filename).suffix.lower()
    if upload.content_type not in AUDIO_MIME_TYPES and suffix != ".mp3":
        raise HTTPException(status_code=400, detail="Only MP3 files are allowed")
    payload = await upload.read()
    if not payload:
        raise HTTPException(status_code=400, detail="The uploaded audio file is empty")
    if len(payload) > MAX_AUDIO_BYTES:
        raise HTTPException(status_code=400, detail="MP3 file must be smaller than 50MB")
    with tempfile.NamedTemporaryFile(delete=False, suffix=suffix or ".mp3") as tmp:
        tmp.write(payload)
        return Path(tmp.name), len(payload)


@router.get("/api/candidates", response_model=CandidateListResponse, tags=["candidates"])
async def get_candidates(storage: StorageDep) -> CandidateListResponse:
    logger.debug("Retrieving all candidates")
    records = await storage.list_candidates()
    return CandidateListResponse(
        candidate_count=len(records),
        candidates=[CandidateOut.from_record(record) for record in records],
        storage_type=storage.storage_type,
    )


@router.get("/api/candidates/{candidate_id}/sessions", response_model=SessionListResponse, tags=["candidates"])
async def get_candidate_sessions(candidate_id: str, storage: StorageDep) -> SessionListResponse:
    logger.debug("Retrieving sessions for candidate {candidate_id}", candidate_id=candidate_id)
    records = await storage.list_candidate_sessions(candidate_id)
    return SessionListResponse(
        candidate_id=candidate_id,
        sessions_count=len(records),
        sessions=[SessionOut.from_record(record) for record in records],
        storage_type=storage.storage_type,
    )


@router.post("/api/candidates/{candidate_id}/sessions", response_model=SaveSessionResponse, tags=["candidates"])
async def create_candidate_session(
    candidate_id: str,
    storage: StorageDep,
    transcript: Annotated[str, Form(description="Transcript text")],
    profile: Annotated[str, Form(description="Extracted candidate profile as JSON object")],
    metadata: Annotated[str | None, Form(description="Additional processing metadata as JSON object")] = None,
    audio: Annotated[UploadFile | None, File(description="Interview recording (MP3)")] = None,
) -> SaveSessionResponse:
    profile_doc = _json_object(profile, "profile")
    metadata_doc = {
        "candidate_id": candidate_id,
        "processed_at": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "transcript_length": len(transcript),
        "storage_type": storage.storage_type,
        "environment": os.getenv("ENVIRONMENT", "local"),
    }
    metadata_doc.update(_json_object(metadata, "metadata"))

    uploaded: UploadedAudio | None = None
    if audio is not None and audio.filename:
        temp_path, size = await _spool_audio(audio)
        uploaded = UploadedAudio(path=temp_path, original_filename=audio.filename, content_type=audio.content_type)
        metadata_doc.setdefault("original_filename", audio.filename)
        metadata_doc.setdefault("file_size", size)

    try:
        result = await storage.save_candidate_data(candidate_id, transcript, profile_doc, metadata_doc, audio=uploaded)
    finally:
        if uploaded is not None:
            await asyncio.to_thread(uploaded.path.unlink, True)

    return SaveSessionResponse(storage=StorageResultOut.from_result(result))


@files_router.get("/files/{file_path:path}", tags=["files"])
async def serve_file(file_path: str, storage: StorageDep) -> FileResponse:
    try:
        path = storage.resolve_local_file(file_path)
    except UnsupportedOperationError as exc:
        raise HTTPException(status_code=400, detail=exc.message) from exc
    return FileResponse(
        path,
        media_type=MEDIA_TYPES.get(path.suffix.lower(), "application/octet-stream"),
        filename=path.name,
        content_disposition_type="inline",
    )


__all__ = ["router", "files_router", "get_storage"]
