from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from candidate_store.exceptions import StorageListingError, StorageWriteError


class S3Storage:
    """Bucket-backed storage; "directories" are emulated with delimiter listings."""

    kind = "s3"

    def __init__(
        self,
        bucket: str,
        region: Optional[str] = None,
        *,
        client: Any = None,
        endpoint_url: Optional[str] = None,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
    ) -> None:
        self.bucket = bucket
        self.region = region or "us-east-1"
        if client is None:
            session = boto3.session.Session(
                region_name=self.region,
                aws_access_key_id=access_key_id,
                aws_secret_access_key=secret_access_key,
            )
            client = session.client("s3", endpoint_url=endpoint_url)
        self.client = client

    def locator(self, key: str) -> str:
        return key

    def public_link(self, key: str) -> str:
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    def describe(self) -> dict[str, str]:
        return {"bucket": self.bucket, "region": self.region}

    async def write_bytes(self, key: str, data: bytes, content_type: str) -> str:
        try:
            await asyncio.to_thread(
                self.client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageWriteError(f"Failed to upload s3://{self.bucket}/{key}: {exc}", {"key": key}) from exc
        return key

    async def write_file(self, key: str, src_path: Path, content_type: str) -> str:
        try:
            await asyncio.to_thread(
                self.client.upload_file,
                str(src_path),
                self.bucket,
                key,
                ExtraArgs={"ContentType": content_type},
            )
        except (BotoCoreError, ClientError, OSError) as exc:
            raise StorageWriteError(f"Failed to upload {src_path} to s3://{self.bucket}/{key}: {exc}", {"key": key}) from exc
        return key

    async def read_bytes(self, key: str) -> bytes:
        def _get() -> bytes:
            response = self.client.get_object(Bucket=self.bucket, Key=key)
            return response["Body"].read()

        return await asyncio.to_thread(_get)

    def _paginate(self, **kwargs: Any) -> list[dict[str, Any]]:
        paginator = self.client.get_paginator("list_objects_v2")
        return list(paginator.paginate(Bucket=self.bucket, **kwargs))

    async def list_children(self, prefix: str) -> list[str]:
        folder = f"{prefix.rstrip('/')}/"
        try:
            pages = await asyncio.to_thread(self._paginate, Prefix=folder, Delimiter="/")
        except (BotoCoreError, ClientError) as exc:
            raise StorageListingError(
                f"Failed to list s3://{self.bucket}/{folder}: {exc}",
                {"bucket": self.bucket, "prefix": folder},
            ) from exc
        children: list[str] = []
        for page in pages:
            for common in page.get("CommonPrefixes") or []:
                name = common["Prefix"][len(folder):].strip("/")
                if name:
                    children.append(name)
        return children

    async def list_objects(self, prefix: str) -> list[str]:
        folder = f"{prefix.rstrip('/')}/"
        try:
            pages = await asyncio.to_thread(self._paginate, Prefix=folder)
        except (BotoCoreError, ClientError) as exc:
            raise StorageListingError(
                f"Failed to list s3://{self.bucket}/{folder}: {exc}",
                {"bucket": self.bucket, "prefix": folder},
            ) from exc
        return [obj["Key"] for page in pages for obj in page.get("Contents") or [] if obj.get("Key")]


__all__ = ["S3Storage"]
