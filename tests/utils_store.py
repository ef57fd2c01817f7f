from __future__ import annotations

import json
from io import BytesIO
from pathlib import Path
from typing import Any

from botocore.exceptions import ClientError

from candidate_store.settings import Settings


class _Paginator:
    def __init__(self, client: "FakeS3Client", page_size: int) -> None:
        self.client = client
        self.page_size = page_size

    def paginate(self, Bucket: str, Prefix: str = "", Delimiter: str | None = None):
        self.client._check("ListObjectsV2", Bucket)
        if Prefix in self.client.fail_prefixes:
            raise ClientError({"Error": {"Code": "AccessDenied", "Message": Prefix}}, "ListObjectsV2")
        keys = sorted(key for key in self.client.objects if key.startswith(Prefix))
        contents: list[str] = []
        prefixes: list[str] = []
        for key in keys:
            rest = key[len(Prefix):]
            if Delimiter and Delimiter in rest:
                common = Prefix + rest.split(Delimiter, 1)[0] + Delimiter
                if common not in prefixes:
                    prefixes.append(common)
            else:
                contents.append(key)
        entries = [("Contents", key) for key in contents] + [("CommonPrefixes", prefix) for prefix in prefixes]
        if not entries:
            yield {"KeyCount": 0}
            return
        for start in range(0, len(entries), self.page_size):
            page: dict[str, Any] = {}
            for section, value in entries[start:start + self.page_size]:
                item = {"Key": value} if section == "Contents" else {"Prefix": value}
                page.setdefault(section, []).append(item)
            yield page


class FakeS3Client:
    """In-memory stand-in for the subset of the boto3 S3 client the store uses."""

    def __init__(self, bucket: str = "test-bucket", page_size: int = 1000) -> None:
        self.bucket = bucket
        self.page_size = page_size
        self.objects: dict[str, bytes] = {}
        self.content_types: dict[str, str] = {}
        self.fail_operations: set[str] = set()
        self.fail_prefixes: set[str] = set()

    def _check(self, operation: str, bucket: str) -> None:
        if operation in self.fail_operations:
            raise ClientError({"Error": {"Code": "InternalError", "Message": "boom"}}, operation)
        if bucket != self.bucket:
            raise ClientError({"Error": {"Code": "NoSuchBucket", "Message": bucket}}, operation)

    def put_object(self, Bucket: str, Key: str, Body: bytes, ContentType: str) -> dict[str, Any]:
        self._check("PutObject", Bucket)
        self.objects[Key] = Body if isinstance(Body, bytes) else Body.encode("utf-8")
        self.content_types[Key] = ContentType
        return {"ETag": "etag"}

    def upload_file(self, Filename: str, Bucket: str, Key: str, ExtraArgs: dict[str, str] | None = None) -> None:
        self._check("PutObject", Bucket)
        self.objects[Key] = Path(Filename).read_bytes()
        self.content_types[Key] = (ExtraArgs or {}).get("ContentType", "binary/octet-stream")

    def get_object(self, Bucket: str, Key: str) -> dict[str, Any]:
        self._check("GetObject", Bucket)
        if Key not in self.objects:
            raise ClientError({"Error": {"Code": "NoSuchKey", "Message": Key}}, "GetObject")
        return {"Body": BytesIO(self.objects[Key])}

    def get_paginator(self, operation: str) -> _Paginator:
        assert operation == "list_objects_v2"
        return _Paginator(self, self.page_size)


def filesystem_settings(root: Path, **overrides: Any) -> Settings:
    storage = {"type": "filesystem", "filesystem": {"root": str(root)}}
    storage.update(overrides.pop("storage", {}))
    return Settings(storage=storage, **overrides)


def s3_settings(bucket: str = "test-bucket", **overrides: Any) -> Settings:
    storage = {"type": "s3", "s3": {"bucket": bucket, "region": "ap-south-1"}}
    storage.update(overrides.pop("storage", {}))
    return Settings(storage=storage, **overrides)


def write_session_dir(root: Path, candidate_id: str, session_id: str, files: dict[str, Any]) -> Path:
    """Lay out a session directory by hand; dict values are dumped as JSON."""
    folder = root / "candidate-data" / candidate_id / session_id
    folder.mkdir(parents=True, exist_ok=True)
    for name, content in files.items():
        if isinstance(content, dict):
            (folder / name).write_text(json.dumps(content), encoding="utf-8")
        elif isinstance(content, bytes):
            (folder / name).write_bytes(content)
        else:
            (folder / name).write_text(str(content), encoding="utf-8")
    return folder


def sample_profile(name: str = "Jane Doe", location: str = "Pune", years: float = 5) -> dict[str, Any]:
    return {
        "candidate_name": name,
        "contact": {"email": "jane@example.com", "location": location},
        "total_experience_years": years,
        "summary": f"{name} is a backend engineer.",
        "skills": [{"name": "python", "level": "advanced"}],
    }
