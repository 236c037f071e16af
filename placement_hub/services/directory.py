"""
Directory Filter - faculty view over the active student records.

filter_students() is a pure function of (records, filter state): search text
OR-ed across name, roll number, email and skills, AND-ed with exact stream
and year matches. "all" switches a constraint off. Input order is kept.
"""

import json
import logging
from typing import List, Optional, Sequence

from placement_hub.core.exceptions import PermissionDeniedError
from placement_hub.core.session import SessionContext
from placement_hub.schemas.schemas import (
    FILTER_ALL,
    STAFF_ROLES,
    DirectoryResponse,
    DirectoryStats,
    FilterState,
    Notification,
    StudentExport,
    StudentRecord,
)
from placement_hub.services.role_resolver import RoleResolver

logger = logging.getLogger(__name__)

ACCESS_DENIED = "You don't have permission to access this dashboard."


def matches_search(record: StudentRecord, search: str) -> bool:
    if not search:
        return True
    term = search.lower()
    fields = (record.full_name, record.college_roll_no, record.email)
    if any(term in (value or "").lower() for value in fields):
        return True
    return any(term in skill.lower() for skill in record.skills)


def matches_stream(record: StudentRecord, stream: str) -> bool:
    return stream == FILTER_ALL or record.stream == stream


def matches_year(record: StudentRecord, year: str) -> bool:
    return year == FILTER_ALL or str(record.year) == str(year)


def filter_students(records: Sequence[StudentRecord], state: FilterState) -> List[StudentRecord]:
    return [
        record for record in records
        if matches_search(record, state.search)
        and matches_stream(record, state.stream)
        and matches_year(record, state.year)
    ]


def directory_stats(records: Sequence[StudentRecord]) -> DirectoryStats:
    streams: List[str] = []
    for record in records:
        if record.stream and record.stream not in streams:
            streams.append(record.stream)
    return DirectoryStats(
        total_students=len(records),
        active_profiles=sum(1 for r in records if r.full_name and r.college_roll_no),
        streams=streams,
    )


def export_student(record: StudentRecord) -> StudentExport:
    return StudentExport(
        name=record.full_name,
        email=record.email,
        rollNo=record.college_roll_no,
        stream=record.stream,
        year=record.year,
        skills=record.skills,
        expertise=record.expertise,
        preferredRole=record.preferred_job_role,
    )


def export_filename(record: StudentRecord) -> str:
    return f"{record.full_name}_profile.json"


def export_document(record: StudentRecord) -> str:
    return json.dumps(export_student(record).model_dump(), indent=2)


class FacultyDirectory:
    """Role-gated fetch of the student list."""

    def __init__(self, remote, resolver: Optional[RoleResolver] = None):
        self.remote = remote
        self.resolver = resolver or RoleResolver(remote)

    async def require_staff(self, session: SessionContext) -> None:
        role = await self.resolver.role_for(session)
        if role not in STAFF_ROLES:
            logger.warning(f"[DIRECTORY] {session.user_id} with role {role.value} denied")
            raise PermissionDeniedError(ACCESS_DENIED)

    async def load(self, session: SessionContext) -> List[StudentRecord]:
        """Active students, newest first. The role check runs before any fetch."""
        await self.require_staff(session)
        rows = await self.remote.select(
            "students", {"is_active": True}, order_by="created_at", descending=True
        )
        return [StudentRecord.model_validate(row) for row in rows]

    async def get_student(self, session: SessionContext, user_id: str) -> Optional[StudentRecord]:
        await self.require_staff(session)
        row = await self.remote.maybe_single("students", user_id=user_id)
        return StudentRecord.model_validate(row) if row else None


class FacultyDashboard:
    """
    Stateful dashboard component: fetched records plus filter state, with the
    filtered view recomputed whenever either changes.
    """

    def __init__(self, session: SessionContext, directory: FacultyDirectory):
        self.session = session
        self.directory = directory
        self.students: List[StudentRecord] = []
        self.filters = FilterState()
        self.filtered: List[StudentRecord] = []
        self.stats = directory_stats([])
        self.busy = False
        self.disposed = False

    def dispose(self) -> None:
        self.disposed = True

    def _recompute(self) -> None:
        self.filtered = filter_students(self.students, self.filters)

    def set_filters(self, state: FilterState) -> None:
        self.filters = state
        self._recompute()

    async def load(self) -> Optional[Notification]:
        self.busy = True
        try:
            records = await self.directory.load(self.session)
        except PermissionDeniedError as e:
            return e.to_notification()
        except Exception as e:
            logger.error(f"[DIRECTORY] loading students failed: {e}", exc_info=True)
            return Notification.error("Error", "Failed to load student data.")
        finally:
            self.busy = False

        if self.disposed:
            logger.debug("[DIRECTORY] dashboard disposed, dropping result")
            return None
        self.students = records
        self.stats = directory_stats(records)
        self._recompute()
        return None

    def response(self, notification: Optional[Notification] = None) -> DirectoryResponse:
        return DirectoryResponse(
            students=self.filtered,
            total=len(self.filtered),
            stats=self.stats,
            filters=self.filters,
            notification=notification,
        )
