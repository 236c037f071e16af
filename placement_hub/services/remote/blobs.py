"""
Blob Store - file uploads kept in MongoDB GridFS.

A stored object is addressed by (bucket, path). The path is the GridFS
filename; the newest revision wins when a path is overwritten.
"""

import logging
from typing import Optional, Tuple
from urllib.parse import quote

from gridfs.errors import NoFile
from pymongo.errors import PyMongoError

from placement_hub.core.config import get_settings
from placement_hub.core.exceptions import ConflictError, PermissionDeniedError, RemoteError
from placement_hub.db.mongodb import get_bucket
from placement_hub.services.remote.policies import Actor, can_write_object

logger = logging.getLogger(__name__)

settings = get_settings()


class BlobStore:
    def _bucket(self, name: str):
        if name not in settings.buckets:
            raise RemoteError(f"Bucket not found: {name}")
        return get_bucket(name)

    def upload(
        self,
        bucket: str,
        path: str,
        data: bytes,
        content_type: Optional[str] = None,
        upsert: bool = False,
        actor: Optional[Actor] = None,
    ) -> str:
        """Store bytes under bucket/path and return the stored path."""
        if actor is not None and not can_write_object(actor, bucket, path):
            raise PermissionDeniedError(f"Not allowed to write {bucket}/{path}")

        fs = self._bucket(bucket)
        try:
            existing = list(fs.find({"filename": path}))
            if existing and not upsert:
                raise ConflictError(f"The resource already exists: {bucket}/{path}")
            fs.upload_from_stream(path, data, metadata={"contentType": content_type})
            for old in existing:
                fs.delete(old._id)
        except PyMongoError as e:
            logger.error(f"[BLOBS] upload to {bucket}/{path} failed: {e}", exc_info=True)
            raise RemoteError(f"Upload failed for {path}") from e

        logger.info(f"[BLOBS] stored {bucket}/{path} ({len(data)} bytes)")
        return path

    def download(self, bucket: str, path: str) -> Optional[Tuple[bytes, Optional[str]]]:
        """Latest revision of an object as (bytes, content type), or None."""
        fs = self._bucket(bucket)
        try:
            stream = fs.open_download_stream_by_name(path)
        except NoFile:
            return None
        except PyMongoError as e:
            logger.error(f"[BLOBS] download of {bucket}/{path} failed: {e}", exc_info=True)
            raise RemoteError(f"Download failed for {path}") from e

        metadata = stream.metadata or {}
        return stream.read(), metadata.get("contentType")

    def get_public_url(self, bucket: str, path: str) -> str:
        self._bucket(bucket)
        base = settings.public_base_url.rstrip("/")
        return f"{base}/api/files/{bucket}/{quote(path)}"
