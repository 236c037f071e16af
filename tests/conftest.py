"""
Shared fixtures: an in-memory stand-in for the Remote Data Client.

FakeRemote keeps rows, blobs and identities in dicts and records every call.
Failures are injected per operation, optionally narrowed to one collection
or bucket:

    remote.fail("upload", RemoteError("disk full"), target="profile-images")

Every async call yields to the event loop once so concurrent callers
interleave the way they would against a real backend.
"""

import asyncio
import itertools
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import pytest

from placement_hub.core.exceptions import AuthenticationError, ConflictError, RemoteError
from placement_hub.core.session import SIGNED_IN, SIGNED_OUT, SessionContext
from placement_hub.schemas.schemas import Identity
from placement_hub.services.remote.identity import SessionEvents

UNIQUE_COLUMNS = {"profiles": "user_id", "students": "user_id"}
BASE_TIME = datetime(2024, 6, 1, 9, 0, 0)


class FakeBackend:
    """State shared by every client scoped from the same FakeRemote."""

    def __init__(self):
        self.tables: Dict[str, List[dict]] = {"profiles": [], "students": []}
        self.blobs: Dict[tuple, tuple] = {}
        self.users: Dict[str, dict] = {}
        self.tokens: Dict[str, Identity] = {}
        self.calls: List[tuple] = []
        self.invocations: List[tuple] = []
        self.failures: Dict[tuple, Exception] = {}
        self.function_results: Dict[str, dict] = {}
        self.events = SessionEvents()
        self.ids = itertools.count(1)


class FakeRemote:
    def __init__(self, backend: Optional[FakeBackend] = None, user_id: Optional[str] = None):
        self.backend = backend or FakeBackend()
        self.user_id = user_id

    # ---------------- test helpers ----------------

    @property
    def tables(self):
        return self.backend.tables

    @property
    def blobs(self):
        return self.backend.blobs

    @property
    def calls(self):
        return self.backend.calls

    def fail(self, op: str, error: Exception, target: Optional[str] = None) -> None:
        self.backend.failures[(op, target)] = error

    def calls_to(self, op: str) -> List[tuple]:
        return [call for call in self.backend.calls if call[0] == op]

    def seed(self, collection: str, **row: Any) -> dict:
        return self._store(collection, dict(row))

    def _store(self, collection: str, row: dict) -> dict:
        n = next(self.backend.ids)
        row.setdefault("id", f"{collection}-{n}")
        row.setdefault("created_at", BASE_TIME + timedelta(minutes=n))
        self.backend.tables.setdefault(collection, []).append(row)
        return dict(row)

    async def _enter(self, op: str, target: str) -> None:
        await asyncio.sleep(0)
        self.backend.calls.append((op, target, self.user_id))
        error = self.backend.failures.get((op, target)) or self.backend.failures.get((op, None))
        if error is not None:
            raise error

    def _matching(self, collection: str, filters: Dict[str, Any]) -> List[dict]:
        rows = self.backend.tables.get(collection, [])
        return [r for r in rows if all(r.get(k) == v for k, v in filters.items())]

    # ---------------- client surface ----------------

    def for_user(self, user_id: str) -> "FakeRemote":
        return FakeRemote(self.backend, user_id)

    def on_session_change(self, listener):
        return self.backend.events.subscribe(listener)

    async def sign_up(self, email: str, password: str, metadata: dict) -> Identity:
        await self._enter("sign_up", "users")
        if email in self.backend.users:
            raise ConflictError("User already registered")
        identity = Identity(user_id=f"user-{next(self.backend.ids)}", email=email, metadata=metadata)
        self.backend.users[email] = {"password": password, "identity": identity}
        return identity

    async def sign_in(self, email: str, password: str):
        await self._enter("sign_in", "users")
        user = self.backend.users.get(email)
        if user is None or user["password"] != password:
            raise AuthenticationError("Invalid login credentials")
        identity = user["identity"]
        token = f"token-{identity.user_id}"
        self.backend.tokens[token] = identity
        self.backend.events.emit(SIGNED_IN, identity)
        return identity, token

    async def get_session(self, token: str) -> Optional[Identity]:
        return self.backend.tokens.get(token)

    async def sign_out(self, identity: Identity) -> None:
        self.backend.events.emit(SIGNED_OUT, identity)

    async def maybe_single(self, collection: str, **filters: Any) -> Optional[dict]:
        await self._enter("maybe_single", collection)
        rows = self._matching(collection, filters)
        if len(rows) > 1:
            raise RemoteError(f"Expected at most one row in {collection}")
        return dict(rows[0]) if rows else None

    async def select(self, collection, filters=None, order_by=None, descending=False) -> List[dict]:
        await self._enter("select", collection)
        rows = [dict(r) for r in self._matching(collection, filters or {})]
        if order_by:
            rows.sort(key=lambda r: r[order_by], reverse=descending)
        return rows

    async def insert(self, collection: str, row: Dict[str, Any]) -> dict:
        await self._enter("insert", collection)
        unique = UNIQUE_COLUMNS.get(collection)
        if unique and self._matching(collection, {unique: row.get(unique)}):
            raise ConflictError(f"duplicate key value violates unique constraint on {collection}")
        return self._store(collection, dict(row))

    async def update(self, collection: str, values: Dict[str, Any], **filters: Any) -> List[dict]:
        await self._enter("update", collection)
        rows = self._matching(collection, filters)
        for row in rows:
            row.update(values)
        return [dict(r) for r in rows]

    async def upsert(self, collection: str, row: Dict[str, Any], on_conflict: str = "user_id") -> dict:
        await self._enter("upsert", collection)
        existing = self._matching(collection, {on_conflict: row.get(on_conflict)})
        if existing:
            existing[0].update(row)
            return dict(existing[0])
        return self._store(collection, dict(row))

    async def upload(self, bucket, path, data, content_type=None, upsert=False) -> str:
        await self._enter("upload", bucket)
        if (bucket, path) in self.backend.blobs and not upsert:
            raise ConflictError(f"The resource already exists: {path}")
        self.backend.blobs[(bucket, path)] = (data, content_type)
        return path

    async def get_public_url(self, bucket: str, path: str) -> str:
        return f"https://files.test/{bucket}/{path}"

    async def download(self, bucket: str, path: str):
        await self._enter("download", bucket)
        return self.backend.blobs.get((bucket, path))

    async def invoke(self, name: str, payload: dict) -> dict:
        await self._enter("invoke", name)
        self.backend.invocations.append((name, payload, self.user_id))
        return self.backend.function_results.get(name, {})


def student_row(user_id: str = "user-1", **overrides: Any) -> dict:
    """A students row as the backend returns it."""
    row = {
        "user_id": user_id,
        "full_name": "Asha Verma",
        "email": "asha@college.edu",
        "phone": None,
        "college_roll_no": "CS-2021-014",
        "stream": "Computer Science",
        "year": 3,
        "about_yourself": None,
        "past_experience": None,
        "preferred_job_role": "Backend Developer",
        "past_education": [],
        "skills": ["Python", "React"],
        "expertise": ["APIs"],
        "courses": [],
        "certificate_urls": [],
        "profile_image_url": None,
        "resume_url": None,
        "is_active": True,
    }
    row.update(overrides)
    return row


@pytest.fixture
def remote():
    return FakeRemote()


@pytest.fixture
def identity():
    return Identity(user_id="user-1", email="asha@college.edu")


@pytest.fixture
def faculty_identity():
    return Identity(user_id="fac-1", email="rao@college.edu")


@pytest.fixture
def session(remote, identity):
    context = SessionContext(identity, remote)
    yield context
    context.close()


@pytest.fixture
def faculty_session(remote, faculty_identity):
    remote.seed("profiles", user_id=faculty_identity.user_id, role="faculty")
    context = SessionContext(faculty_identity, remote)
    yield context
    context.close()
