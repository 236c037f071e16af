"""
File Routes

GET /files/{bucket}/{path} - Public download of a stored object
"""

from fastapi import APIRouter, Depends, Response

from placement_hub.core.auth import get_remote
from placement_hub.core.config import get_settings
from placement_hub.core.exceptions import NotFoundError

settings = get_settings()

router = APIRouter(prefix="/files", tags=["Files"])


@router.get("/{bucket}/{path:path}")
async def download_file(bucket: str, path: str, remote=Depends(get_remote)):
    """Target of the public URLs stored on student rows."""
    if bucket not in settings.buckets:
        raise NotFoundError("Bucket", bucket)

    found = await remote.download(bucket, path)
    if found is None:
        raise NotFoundError("File", path)

    data, content_type = found
    return Response(content=data, media_type=content_type or "application/octet-stream")
