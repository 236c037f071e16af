"""
Unit tests for the Profile Synchronizer and the per-session ProfileEditor.

Tests cover:
1. Loading (first-time user, transport failure, malformed rows)
2. Record <-> form transforms
3. Saving with uploads, certificate accumulation, failure atomicity
4. Editor notifications, busy flag and dispose handling
"""

import asyncio

import pytest
from conftest import student_row

from placement_hub.core.exceptions import RemoteError, TransformError
from placement_hub.schemas.schemas import StudentRecord, UploadedFile
from placement_hub.services.profile_sync import ProfileEditor, ProfileSynchronizer, _join_all
from placement_hub.services.remote import GENERATE_RESUME
from placement_hub.services.validation import validate_profile

NOW = 1700000000.0
STAMP = 1700000000000


def form_payload(**overrides):
    payload = {
        "full_name": "Asha Verma",
        "email": "asha@college.edu",
        "college_roll_no": "CS-2021-014",
        "stream": "Computer Science",
        "year": "3",
        "skills": "Python, React",
        "expertise": "APIs",
        "past_education": "HSC | City College | 2019 | 88%",
    }
    payload.update(overrides)
    return payload


def make_form(**overrides):
    return validate_profile(form_payload(**overrides)).unwrap()


def image(name="me.png"):
    return UploadedFile(filename=name, content_type="image/png", data=b"\x89PNG")


def certificate(name="aws cert.pdf"):
    return UploadedFile(filename=name, content_type="application/pdf", data=b"%PDF-1.4")


@pytest.fixture
def sync(session):
    return ProfileSynchronizer(session.client, clock=lambda: NOW)


@pytest.fixture
def editor(session, sync):
    return ProfileEditor(session, sync)


class TestLoad:
    async def test_first_time_user(self, sync):
        assert await sync.load("user-1") is None

    async def test_transport_failure_is_not_reported_as_missing(self, remote, sync):
        remote.fail("maybe_single", RemoteError("timeout"), target="students")

        with pytest.raises(RemoteError):
            await sync.load("user-1")

    async def test_malformed_row(self, remote, sync):
        remote.seed("students", **student_row(year=9))

        with pytest.raises(TransformError):
            await sync.load("user-1")

    async def test_null_lists_become_empty(self, remote, sync):
        remote.seed("students", **student_row(skills=None, certificate_urls=None))

        record = await sync.load("user-1")

        assert record.skills == []
        assert record.certificate_urls == []


class TestTransforms:
    def test_to_form(self, sync):
        record = StudentRecord.model_validate(student_row(
            past_education=[{"qualification": "HSC", "institution": "City College", "year": 2019}],
        ))

        form = sync.to_form(record)

        assert form.skills == "Python, React"
        assert form.courses == ""
        assert form.phone == ""
        assert form.past_education == "HSC | City College | 2019"

    def test_to_form_rejects_malformed_education(self, sync):
        record = StudentRecord.model_validate(student_row(past_education=[{"year": 2019}]))

        with pytest.raises(TransformError):
            sync.to_form(record)

    def test_from_form(self, sync):
        payload = sync.from_form(make_form(skills=" Python,, React ,", phone="  "))

        assert payload.skills == ["Python", "React"]
        assert payload.courses == []
        assert payload.phone is None
        assert payload.year == 3
        assert payload.past_education[0].institution == "City College"

    def test_repeated_fields_survive_form_round_trip(self, sync):
        record = StudentRecord.model_validate(student_row(
            skills=[" Python", "React "], expertise=["APIs", "Cloud"], courses=["DBMS"],
        ))

        payload = sync.from_form(validate_profile(sync.to_form(record).model_dump()).unwrap())

        assert set(payload.skills) == {"Python", "React"}
        assert set(payload.expertise) == {"APIs", "Cloud"}
        assert payload.courses == ["DBMS"]

    def test_from_form_bad_education(self, sync):
        with pytest.raises(TransformError):
            sync.from_form(make_form(past_education="a | b | 2020 | d | e"))


class TestSave:
    async def test_first_save_creates_profile_and_row(self, remote, sync):
        record = await sync.save("user-1", make_form())

        assert remote.tables["profiles"][0]["role"] == "student"
        assert record.full_name == "Asha Verma"
        assert record.is_active is True
        assert record.certificate_urls == []
        assert record.past_education == [
            {"qualification": "HSC", "institution": "City College", "year": 2019, "score": "88%"}
        ]

    async def test_uploads_files_under_owner_folder(self, remote, sync):
        record = await sync.save("user-1", make_form(), image(), [certificate(), certificate("b.png")])

        assert ("profile-images", f"user-1/profile-{STAMP}.png") in remote.blobs
        assert ("certificates", f"user-1/{STAMP}-1-aws_cert.pdf") in remote.blobs
        assert ("certificates", f"user-1/{STAMP}-2-b.png") in remote.blobs
        assert record.profile_image_url == f"https://files.test/profile-images/user-1/profile-{STAMP}.png"
        assert len(record.certificate_urls) == 2

    async def test_certificates_accumulate(self, remote, sync):
        remote.seed("students", **student_row(certificate_urls=["https://files.test/certificates/old.pdf"]))

        record = await sync.save("user-1", make_form(), certificates=[certificate()])

        assert record.certificate_urls == [
            "https://files.test/certificates/old.pdf",
            f"https://files.test/certificates/user-1/{STAMP}-1-aws_cert.pdf",
        ]

    async def test_existing_references_kept_without_new_files(self, remote, sync):
        remote.seed("students", **student_row(
            profile_image_url="https://files.test/old.png",
            resume_url="https://files.test/resume.md",
            is_active=False,
        ))

        record = await sync.save("user-1", make_form(full_name="Asha V."))

        assert record.full_name == "Asha V."
        assert record.profile_image_url == "https://files.test/old.png"
        assert record.resume_url == "https://files.test/resume.md"
        assert record.is_active is False

    async def test_image_upload_failure_leaves_row_untouched(self, remote, sync):
        remote.seed("students", **student_row(
            profile_image_url="https://files.test/old.png",
            certificate_urls=["https://files.test/certificates/old.pdf"],
        ))
        remote.fail("upload", RemoteError("disk full"), target="profile-images")

        with pytest.raises(RemoteError):
            await sync.save("user-1", make_form(full_name="Changed"), image(), [certificate()])

        stored = remote.tables["students"][0]
        assert stored["profile_image_url"] == "https://files.test/old.png"
        assert stored["certificate_urls"] == ["https://files.test/certificates/old.pdf"]
        assert stored["full_name"] == "Asha Verma"
        assert remote.calls_to("upsert") == []

    async def test_certificate_upload_failure_aborts_save(self, remote, sync):
        remote.seed("students", **student_row(certificate_urls=["https://files.test/certificates/old.pdf"]))
        remote.fail("upload", RemoteError("disk full"), target="certificates")

        with pytest.raises(RemoteError):
            await sync.save("user-1", make_form(full_name="Changed"), certificates=[certificate()])

        stored = remote.tables["students"][0]
        assert stored["certificate_urls"] == ["https://files.test/certificates/old.pdf"]
        assert stored["full_name"] == "Asha Verma"
        assert remote.calls_to("upsert") == []

    async def test_transform_error_touches_nothing(self, remote, sync):
        with pytest.raises(TransformError):
            await sync.save("user-1", make_form(past_education=" | no qualification"), image())

        assert remote.calls == []
        assert remote.blobs == {}

    async def test_generate_resume_request_sends_filled_fields(self, remote, sync):
        remote.backend.function_results[GENERATE_RESUME] = {"resume_url": "u", "content": "# Asha"}

        result = await sync.generate_resume_request(make_form())

        name, payload, user_id = remote.backend.invocations[0]
        assert (name, user_id) == (GENERATE_RESUME, "user-1")
        assert "phone" not in payload
        assert payload["skills"] == ["Python", "React"]
        assert payload["courses"] == []
        assert payload["past_education"][0]["qualification"] == "HSC"
        assert result["content"] == "# Asha"


class TestJoinAll:
    async def test_results_in_order(self):
        async def value(n):
            await asyncio.sleep(0)
            return n

        assert await _join_all([value(1), value(2)]) == [1, 2]
        assert await _join_all([]) == []

    async def test_first_failure_cancels_pending(self):
        started = asyncio.Event()
        cancelled = []

        async def slow():
            started.set()
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.append(True)
                raise

        async def failing():
            await started.wait()
            raise RemoteError("boom")

        with pytest.raises(RemoteError):
            await _join_all([slow(), failing()])
        assert cancelled == [True]


class TestProfileEditor:
    async def test_load_fills_form(self, remote, editor):
        remote.seed("students", **student_row())

        assert await editor.load() is None

        view = editor.view()
        assert view.exists
        assert view.form.skills == "Python, React"

    async def test_load_failure_notifies(self, remote, editor):
        remote.fail("maybe_single", RemoteError("timeout"))

        notice = await editor.load()

        assert notice.title == "Error"
        assert notice.description == "Failed to load your profile."
        assert not editor.busy

    async def test_submit_invalid_input(self, remote, editor):
        response = await editor.submit(form_payload(year="7"))

        assert not response.success
        assert response.notification.title == "Invalid input"
        assert response.violations[0].field == "year"
        assert remote.calls == []

    async def test_submit_success(self, editor):
        response = await editor.submit(form_payload(), certificates=[certificate()])

        assert response.success
        assert response.notification.title == "Profile Updated!"
        assert response.notification.description == "Your student profile has been successfully saved."
        assert response.profile.form.skills == "Python, React"
        assert len(response.profile.certificate_urls) == 1

    async def test_submit_remote_failure(self, remote, editor):
        remote.fail("upsert", RemoteError("connection reset"))

        response = await editor.submit(form_payload())

        assert not response.success
        assert response.notification.variant == "destructive"
        assert response.notification.description == "Failed to save profile. Please try again."
        assert not editor.busy

    async def test_submit_transform_error_shows_reason(self, editor):
        response = await editor.submit(form_payload(past_education=" | City College"))

        assert not response.success
        assert response.notification.title == "Invalid profile data"
        assert "missing the qualification" in response.notification.description

    async def test_profile_setup_failure(self, remote, editor):
        remote.fail("insert", RemoteError("connection reset"), target="profiles")

        response = await editor.submit(form_payload())

        assert response.notification.title == "Setting up your account"

    async def test_busy_while_saving(self, editor):
        task = asyncio.create_task(editor.submit(form_payload()))
        await asyncio.sleep(0)

        assert editor.busy
        await task
        assert not editor.busy

    async def test_result_dropped_after_dispose(self, remote, editor):
        task = asyncio.create_task(editor.submit(form_payload()))
        await asyncio.sleep(0)
        editor.dispose()

        await task

        assert editor.record is None
        assert editor.form is None
        assert len(remote.tables["students"]) == 1

    async def test_generate_resume_requires_profile(self, remote, editor):
        response = await editor.generate_resume()

        assert not response.success
        assert response.notification.title == "Profile required"
        assert remote.calls_to("invoke") == []

    async def test_generate_resume(self, remote, editor):
        remote.seed("students", **student_row())
        remote.backend.function_results[GENERATE_RESUME] = {
            "resume_url": "https://files.test/resumes/user-1/resume.md",
            "content": "# Asha Verma",
        }
        await editor.load()

        response = await editor.generate_resume()

        assert response.success
        assert response.notification.title == "Resume Generated!"
        assert response.content == "# Asha Verma"
        assert editor.record.resume_url == "https://files.test/resumes/user-1/resume.md"

    async def test_generate_resume_failure(self, remote, editor):
        remote.seed("students", **student_row())
        await editor.load()
        remote.fail("invoke", RemoteError("function crashed"))

        response = await editor.generate_resume()

        assert not response.success
        assert response.notification.description == "Failed to generate resume. Please try again."
