"""
Profile Synchronizer

Moves a student's profile between the students row (lists, JSON blob, file
URLs) and the editable form (comma separated text), and persists edits
together with newly selected files.

ProfileSynchronizer raises typed PortalErrors. ProfileEditor is the
per-session component on top of it: it holds local state, tracks the busy
flag and turns every failure into a Notification.
"""

import asyncio
import logging
import os
import re
import time
from contextlib import asynccontextmanager
from typing import Callable, List, Optional, Sequence

from pydantic import ValidationError

from placement_hub.core.config import get_settings
from placement_hub.core.exceptions import PortalError, RemoteError, TransformError
from placement_hub.core.session import SessionContext
from placement_hub.schemas.schemas import (
    Notification,
    ProfileSaveResponse,
    ResumeGenerationResponse,
    StudentProfileForm,
    StudentProfileView,
    StudentRecord,
    StudentWritePayload,
    UploadedFile,
)
from placement_hub.services.codecs import education_codec, list_codec
from placement_hub.services.remote import GENERATE_RESUME
from placement_hub.services.role_resolver import RoleResolver
from placement_hub.services.validation import validate_profile

logger = logging.getLogger(__name__)

settings = get_settings()

LIST_FIELDS = ("skills", "expertise", "courses")
OPTIONAL_TEXT = ("about_yourself", "phone", "past_experience", "preferred_job_role")


def _safe_name(filename: str) -> str:
    name = os.path.basename(filename or "file")
    return re.sub(r"[^A-Za-z0-9._-]", "_", name) or "file"


def _extension(filename: str) -> str:
    return os.path.splitext(filename or "")[1].lower()


async def _join_all(coroutines: Sequence) -> List:
    """
    Run coroutines concurrently and wait for all of them.
    The first failure cancels whatever is still pending and is re-raised.
    """
    tasks = [asyncio.ensure_future(c) for c in coroutines]
    if not tasks:
        return []
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class ProfileSynchronizer:
    def __init__(self, remote, resolver: Optional[RoleResolver] = None, clock: Callable[[], float] = time.time):
        self.remote = remote
        self.resolver = resolver or RoleResolver(remote)
        self.clock = clock

    # ---------------- read ----------------

    async def load(self, identity: str) -> Optional[StudentRecord]:
        """
        The student's row, or None for a first-time user.
        Transport errors are logged and raised, never reported as "no row".
        """
        try:
            row = await self.remote.maybe_single("students", user_id=identity)
        except RemoteError:
            logger.error(f"[PROFILE] loading profile of {identity} failed", exc_info=True)
            raise
        if row is None:
            return None
        try:
            return StudentRecord.model_validate(row)
        except ValidationError as e:
            raise TransformError(f"Stored profile data is malformed: {e.errors()[0]['msg']}") from e

    # ---------------- transforms ----------------

    def to_form(self, record: StudentRecord) -> StudentProfileForm:
        """Form state for editing. Stored values are not re-validated here."""
        return StudentProfileForm.model_construct(
            full_name=record.full_name,
            about_yourself=record.about_yourself or "",
            email=record.email,
            phone=record.phone or "",
            college_roll_no=record.college_roll_no,
            stream=record.stream,
            year=record.year,
            skills=list_codec.encode(record.skills),
            expertise=list_codec.encode(record.expertise),
            past_experience=record.past_experience or "",
            preferred_job_role=record.preferred_job_role or "",
            past_education=education_codec.to_text(record.past_education),
            courses=list_codec.encode(record.courses),
        )

    def from_form(self, form: StudentProfileForm) -> StudentWritePayload:
        """Wire payload from a validated form. Raises TransformError on bad education text."""
        optional = {name: (getattr(form, name) or "").strip() or None for name in OPTIONAL_TEXT}
        lists = {name: list_codec.decode(getattr(form, name)) for name in LIST_FIELDS}
        return StudentWritePayload(
            full_name=form.full_name.strip(),
            email=str(form.email),
            college_roll_no=form.college_roll_no.strip(),
            stream=form.stream,
            year=form.year,
            past_education=education_codec.parse(form.past_education),
            **optional,
            **lists,
        )

    # ---------------- write ----------------

    async def _upload(self, bucket: str, path: str, file: UploadedFile, upsert: bool) -> str:
        stored = await self.remote.upload(bucket, path, file.data, file.content_type, upsert)
        return await self.remote.get_public_url(bucket, stored)

    async def save(
        self,
        identity: str,
        form: StudentProfileForm,
        profile_image: Optional[UploadedFile] = None,
        certificates: Sequence[UploadedFile] = (),
    ) -> Optional[StudentRecord]:
        """
        Persist the form plus any new files, then re-read the row.

        Order: transform (nothing written on failure), profile row, all
        uploads concurrently, one upsert. A failed upload aborts the save
        before the row is touched, so the stored image and certificate
        references stay as they were.
        """
        payload = self.from_form(form)
        await self.resolver.ensure_profile(identity)
        current = await self.load(identity)

        stamp = int(self.clock() * 1000)
        uploads = []
        if profile_image is not None:
            path = f"{identity}/profile-{stamp}{_extension(profile_image.filename)}"
            uploads.append(self._upload(settings.profile_image_bucket, path, profile_image, upsert=True))
        for number, certificate in enumerate(certificates, start=1):
            path = f"{identity}/{stamp}-{number}-{_safe_name(certificate.filename)}"
            uploads.append(self._upload(settings.certificate_bucket, path, certificate, upsert=False))

        try:
            urls = await _join_all(uploads)
        except RemoteError:
            logger.error(f"[PROFILE] upload failed for {identity}, profile not saved", exc_info=True)
            raise

        image_url = current.profile_image_url if current else None
        if profile_image is not None:
            image_url, urls = urls[0], urls[1:]

        row = payload.model_dump()
        row["past_education"] = education_codec.to_wire(payload.past_education)
        row.update(
            user_id=identity,
            profile_image_url=image_url,
            certificate_urls=(current.certificate_urls if current else []) + list(urls),
            resume_url=current.resume_url if current else None,
            is_active=current.is_active if current else True,
        )
        await self.remote.upsert("students", row, on_conflict="user_id")
        logger.info(f"[PROFILE] saved profile of {identity} ({len(urls)} new certificate(s))")

        return await self.load(identity)

    async def generate_resume_request(self, form: StudentProfileForm) -> dict:
        """Send the filled-in fields to the generate-resume function. No retry."""
        payload = {
            key: value for key, value in {
                "full_name": form.full_name,
                "email": str(form.email),
                "phone": form.phone,
                "college_roll_no": form.college_roll_no,
                "stream": form.stream,
                "year": form.year,
                "about_yourself": form.about_yourself,
                "past_experience": form.past_experience,
                "preferred_job_role": form.preferred_job_role,
            }.items() if value not in (None, "")
        }
        for name in LIST_FIELDS:
            payload[name] = list_codec.decode(getattr(form, name))
        payload["past_education"] = education_codec.to_wire(education_codec.parse(form.past_education))

        return await self.remote.invoke(GENERATE_RESUME, payload)


class ProfileEditor:
    """
    Stateful student-profile component for one session.

    Results that arrive after dispose() are dropped instead of being applied
    to local state.
    """

    def __init__(self, session: SessionContext, synchronizer: ProfileSynchronizer):
        self.session = session
        self.sync = synchronizer
        self.record: Optional[StudentRecord] = None
        self.form: Optional[StudentProfileForm] = None
        self.busy = False
        self.disposed = False

    @asynccontextmanager
    async def _busy(self):
        self.busy = True
        try:
            yield
        finally:
            self.busy = False

    def dispose(self) -> None:
        self.disposed = True

    def _apply(self, record: Optional[StudentRecord]) -> bool:
        if self.disposed:
            logger.debug(f"[PROFILE] editor for {self.session.user_id} disposed, dropping result")
            return False
        form = self.sync.to_form(record) if record else None
        self.record, self.form = record, form
        return True

    def _failure(self, title: str, fallback: str, error: Exception) -> Notification:
        if isinstance(error, RemoteError) or not isinstance(error, PortalError):
            logger.error(f"[PROFILE] {title}: {error}", exc_info=True)
            return Notification.error("Error", fallback)
        logger.warning(f"[PROFILE] {title}: {error.message}")
        return error.to_notification()

    def view(self) -> StudentProfileView:
        if self.record is None:
            return StudentProfileView(exists=False)
        return StudentProfileView(
            exists=True,
            form=self.form,
            profile_image_url=self.record.profile_image_url,
            certificate_urls=self.record.certificate_urls,
            resume_url=self.record.resume_url,
        )

    async def load(self) -> Optional[Notification]:
        """Load the stored profile into local state; returns a notice on failure."""
        async with self._busy():
            try:
                record = await self.sync.load(self.session.user_id)
                self._apply(record)
            except Exception as e:
                return self._failure("load failed", "Failed to load your profile.", e)
        return None

    async def submit(
        self,
        payload: dict,
        profile_image: Optional[UploadedFile] = None,
        certificates: Sequence[UploadedFile] = (),
    ) -> ProfileSaveResponse:
        result = validate_profile(payload)
        if not result.ok:
            return ProfileSaveResponse(
                success=False,
                notification=Notification.error("Invalid input", "Please correct the highlighted fields."),
                violations=result.violations,
            )

        async with self._busy():
            try:
                record = await self.sync.save(
                    self.session.user_id, result.value, profile_image, certificates
                )
                self._apply(record)
            except Exception as e:
                return ProfileSaveResponse(
                    success=False,
                    notification=self._failure("save failed", "Failed to save profile. Please try again.", e),
                )

        return ProfileSaveResponse(
            success=True,
            notification=Notification.success(
                "Profile Updated!", "Your student profile has been successfully saved."
            ),
            profile=self.view(),
        )

    async def generate_resume(self) -> ResumeGenerationResponse:
        if self.record is None or self.form is None:
            return ResumeGenerationResponse(
                success=False,
                notification=Notification.error(
                    "Profile required", "Save your profile before generating a resume."
                ),
            )

        async with self._busy():
            try:
                result = await self.sync.generate_resume_request(self.form)
            except Exception as e:
                return ResumeGenerationResponse(
                    success=False,
                    notification=self._failure(
                        "resume generation failed", "Failed to generate resume. Please try again.", e
                    ),
                )

        if not self.disposed and self.record is not None:
            self.record = self.record.model_copy(update={"resume_url": result.get("resume_url")})
        return ResumeGenerationResponse(
            success=True,
            notification=Notification.success("Resume Generated!", "Your AI-generated resume is ready."),
            resume_url=result.get("resume_url"),
            content=result.get("content"),
        )
