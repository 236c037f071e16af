"""
Student Routes

GET /students/profile - Get own profile as form state
PUT /students/profile - Save profile (multipart, with optional image and certificates)
POST /students/resume - Generate AI resume from the saved profile
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile
from fastapi.responses import JSONResponse

from placement_hub.core.auth import get_session_context
from placement_hub.core.session import SessionContext
from placement_hub.schemas.schemas import (
    ActionResponse, ProfileSaveResponse, ResumeGenerationResponse, StudentProfileView
)
from placement_hub.services.profile_sync import ProfileEditor, ProfileSynchronizer
from placement_hub.utils.file_upload import (
    CERTIFICATE, PROFILE_IMAGE, read_optional_upload, read_uploads
)

router = APIRouter(prefix="/students", tags=["Students"])


def get_profile_editor(session: SessionContext = Depends(get_session_context)):
    """Editor bound to the caller's scoped client, disposed after the request."""
    editor = ProfileEditor(session, ProfileSynchronizer(session.client))
    try:
        yield editor
    finally:
        editor.dispose()


def _status(result: ActionResponse, response: Response) -> None:
    if not result.success:
        response.status_code = 422 if result.violations else 400


def _load_failed(notification) -> JSONResponse:
    body = ActionResponse(success=False, notification=notification)
    return JSONResponse(status_code=502, content=body.model_dump(mode="json"))


@router.get("/profile", response_model=StudentProfileView)
async def get_profile(editor: ProfileEditor = Depends(get_profile_editor)):
    """Stored profile of the caller; exists=false for a first-time user."""
    notice = await editor.load()
    if notice:
        return _load_failed(notice)
    return editor.view()


@router.put("/profile", response_model=ProfileSaveResponse)
async def update_profile(
    response: Response,
    full_name: Optional[str] = Form(None),
    about_yourself: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    college_roll_no: Optional[str] = Form(None),
    stream: Optional[str] = Form(None),
    year: Optional[str] = Form(None),
    skills: Optional[str] = Form(None),
    expertise: Optional[str] = Form(None),
    past_experience: Optional[str] = Form(None),
    preferred_job_role: Optional[str] = Form(None),
    past_education: Optional[str] = Form(None),
    courses: Optional[str] = Form(None),
    profile_image: Optional[UploadFile] = File(None),
    certificates: Optional[List[UploadFile]] = File(None),
    editor: ProfileEditor = Depends(get_profile_editor),
):
    """
    Save the profile form. List fields are comma separated, past education
    is one "qualification | institution | year | score" entry per line.
    New certificates are added to the ones already stored.
    """
    fields = {
        "full_name": full_name,
        "about_yourself": about_yourself,
        "email": email,
        "phone": phone,
        "college_roll_no": college_roll_no,
        "stream": stream,
        "year": year,
        "skills": skills,
        "expertise": expertise,
        "past_experience": past_experience,
        "preferred_job_role": preferred_job_role,
        "past_education": past_education,
        "courses": courses,
    }
    payload = {key: value for key, value in fields.items() if value is not None}

    image = await read_optional_upload(profile_image, PROFILE_IMAGE)
    files = await read_uploads(certificates, CERTIFICATE)

    result = await editor.submit(payload, image, files)
    _status(result, response)
    return result


@router.post("/resume", response_model=ResumeGenerationResponse)
async def generate_resume(response: Response, editor: ProfileEditor = Depends(get_profile_editor)):
    """Generate a resume from the saved profile. Requires an existing profile."""
    notice = await editor.load()
    if notice:
        return _load_failed(notice)
    result = await editor.generate_resume()
    _status(result, response)
    return result
