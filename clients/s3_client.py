"""
S3 client for course note documents.
upload -> public URL, delete -> bool. boto3 is synchronous,
so the async helpers run it in a worker thread.
"""

import os
import logging
import asyncio
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from utils.exceptions import CollaboratorError

logger = logging.getLogger(__name__)

NOTES_PREFIX = "notes"

_s3_clients = {}


def _get_s3_client(region: str):
    if region not in _s3_clients:
        _s3_clients[region] = boto3.client("s3", region_name=region)
    return _s3_clients[region]


# Content type mapping for the note file types we accept
CONTENT_TYPES = {
    ".pdf": "application/pdf",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".txt": "text/plain",
}


def get_content_type(filename: str) -> str:
    """Get content type from filename extension."""
    ext = os.path.splitext(filename)[1].lower() if filename else ""
    return CONTENT_TYPES.get(ext, "application/octet-stream")


def build_note_key(course_id: str, filename: str) -> str:
    """Deterministic key: notes/{course_id}/{filename}"""
    return f"{NOTES_PREFIX}/{course_id}/{filename}"


class ObjectStorage:
    """Upload and delete objects in S3 buckets"""

    def __init__(self, default_bucket: Optional[str], region: str = "us-east-1", client=None):
        self.default_bucket = default_bucket
        self.region = region
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = _get_s3_client(self.region)
        return self._client

    def _bucket(self, bucket: Optional[str]) -> str:
        bucket = bucket or self.default_bucket
        if not bucket:
            raise CollaboratorError("No storage bucket configured", error_code="STORAGE_UNAVAILABLE")
        return bucket

    def public_url(self, bucket: Optional[str], path: str) -> str:
        return f"https://{self._bucket(bucket)}.s3.{self.region}.amazonaws.com/{path}"

    def object_key(self, url: str, bucket: Optional[str] = None) -> Optional[str]:
        """Key of the object behind one of our public URLs; None for URLs outside the bucket"""
        bucket = bucket or self.default_bucket
        if not bucket or not url:
            return None
        prefix = self.public_url(bucket, "")
        return url[len(prefix):] if url.startswith(prefix) and len(url) > len(prefix) else None

    def upload(self, data: bytes, path: str, bucket: Optional[str] = None, content_type: Optional[str] = None) -> str:
        """Upload bytes and return the object's public URL"""
        bucket = self._bucket(bucket)
        try:
            self.client.put_object(
                Bucket=bucket,
                Key=path,
                Body=data,
                ContentType=content_type or get_content_type(path),
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"S3 upload failed for {path}: {e}")
            raise CollaboratorError(f"Upload failed: {e}", error_code="STORAGE_UNAVAILABLE") from e
        logger.info(f"S3 upload success: {path} ({len(data)} bytes)")
        return self.public_url(bucket, path)

    def delete(self, path: str, bucket: Optional[str] = None) -> bool:
        try:
            self.client.delete_object(Bucket=self._bucket(bucket), Key=path)
            return True
        except (ClientError, BotoCoreError) as e:
            logger.error(f"S3 delete failed for {path}: {e}")
            return False

    async def upload_async(self, data: bytes, path: str, bucket: Optional[str] = None, content_type: Optional[str] = None) -> str:
        """Async wrapper that runs the sync upload in a thread."""
        return await asyncio.to_thread(self.upload, data, path, bucket, content_type)

    async def delete_async(self, path: str, bucket: Optional[str] = None) -> bool:
        return await asyncio.to_thread(self.delete, path, bucket)
