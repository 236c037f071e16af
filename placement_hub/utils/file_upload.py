"""
File Upload Utility - Read files selected on the profile form into memory.

Supported formats:
- Profile image: .jpg .jpeg .png .webp .gif
- Certificates: .pdf .jpg .jpeg .png

Max file size: settings.max_upload_size_mb (5MB by default)
"""

from typing import List, Optional

from fastapi import UploadFile

from placement_hub.core.config import get_settings
from placement_hub.core.exceptions import ValidationFailedError
from placement_hub.schemas.schemas import FieldViolation, UploadedFile

settings = get_settings()

PROFILE_IMAGE = "profile_image"
CERTIFICATE = "certificates"

ALLOWED_EXTENSIONS = {
    PROFILE_IMAGE: {'.jpg', '.jpeg', '.png', '.webp', '.gif'},
    CERTIFICATE: {'.pdf', '.jpg', '.jpeg', '.png'},
}


def get_file_extension(filename: str) -> str:
    """Get lowercase file extension."""
    if '.' not in filename:
        return ''
    return '.' + filename.rsplit('.', 1)[1].lower()


def _reject(kind: str, message: str) -> ValidationFailedError:
    return ValidationFailedError([FieldViolation(field=kind, message=message)])


async def read_upload(file: UploadFile, kind: str) -> UploadedFile:
    """
    Read and check one uploaded file.

    Args:
        file: FastAPI UploadFile
        kind: PROFILE_IMAGE or CERTIFICATE

    Raises:
        ValidationFailedError on a missing name, wrong type or oversized file
    """
    if not file.filename:
        raise _reject(kind, "No filename provided")

    ext = get_file_extension(file.filename)
    allowed = ALLOWED_EXTENSIONS[kind]
    if ext not in allowed:
        raise _reject(
            kind,
            f"Unsupported file type '{ext}' for {file.filename}. Allowed: {', '.join(sorted(allowed))}"
        )

    content = await file.read()

    max_bytes = settings.max_upload_size_mb * 1024 * 1024
    if len(content) > max_bytes:
        raise _reject(kind, f"{file.filename} is too large. Maximum size: {settings.max_upload_size_mb}MB")
    if not content:
        raise _reject(kind, f"{file.filename} is empty")

    return UploadedFile(filename=file.filename, content_type=file.content_type, data=content)


async def read_optional_upload(file: Optional[UploadFile], kind: str) -> Optional[UploadedFile]:
    # browsers send an empty part when no file was picked
    if file is None or not file.filename:
        return None
    return await read_upload(file, kind)


async def read_uploads(files: Optional[List[UploadFile]], kind: str) -> List[UploadedFile]:
    return [await read_upload(f, kind) for f in (files or []) if f.filename]
