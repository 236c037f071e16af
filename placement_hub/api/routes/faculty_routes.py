"""
Faculty Routes (faculty and admin only)

GET /faculty/students - Active students, filtered, with summary stats
GET /faculty/students/{user_id}/export - Download one student as JSON
"""

from urllib.parse import quote

from fastapi import APIRouter, Depends, Query, Response
from fastapi.responses import JSONResponse

from placement_hub.core.auth import get_session_context
from placement_hub.core.exceptions import NotFoundError
from placement_hub.core.session import SessionContext
from placement_hub.schemas.schemas import FILTER_ALL, DirectoryResponse, FilterState
from placement_hub.services.directory import (
    FacultyDashboard, FacultyDirectory, export_document, export_filename
)

router = APIRouter(prefix="/faculty", tags=["Faculty"])


def get_directory(session: SessionContext = Depends(get_session_context)) -> FacultyDirectory:
    return FacultyDirectory(session.client)


@router.get("/students", response_model=DirectoryResponse)
async def list_students(
    search: str = Query(""),
    stream: str = Query(FILTER_ALL),
    year: str = Query(FILTER_ALL),
    session: SessionContext = Depends(get_session_context),
    directory: FacultyDirectory = Depends(get_directory),
):
    """
    Search matches name, roll number, email or any skill (case-insensitive).
    stream and year are exact matches; "all" disables them.
    """
    await directory.require_staff(session)

    dashboard = FacultyDashboard(session, directory)
    dashboard.set_filters(FilterState(search=search, stream=stream, year=year))
    notice = await dashboard.load()
    dashboard.dispose()

    if notice:
        return JSONResponse(
            status_code=502, content=dashboard.response(notice).model_dump(mode="json")
        )
    return dashboard.response()


@router.get("/students/{user_id}/export")
async def export_student_profile(
    user_id: str,
    session: SessionContext = Depends(get_session_context),
    directory: FacultyDirectory = Depends(get_directory),
):
    record = await directory.get_student(session, user_id)
    if record is None:
        raise NotFoundError("Student", user_id)

    filename = export_filename(record)
    return Response(
        content=export_document(record),
        media_type="application/json",
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(filename)}"},
    )
