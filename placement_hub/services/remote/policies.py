"""
Access policies enforced by the row and blob stores.

One policy per collection. These are the server-side counterpart of the
role checks the service layer makes before calling out (the service-layer
check only decides what to show; this is what actually guards the data).
The same rules are written as Postgres RLS statements in db/schema.sql.

Selects filter out rows the actor may not see; refused writes raise
PermissionDeniedError.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Optional

STAFF_ROLE_VALUES = ("faculty", "admin")


@dataclass
class Actor:
    """The identity a scoped client acts for. role is filled in by the store."""
    user_id: str
    role: Optional[str] = None

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLE_VALUES


Check = Callable[[Actor, dict], bool]


@dataclass(frozen=True)
class CollectionPolicy:
    owner_column: str
    select: Check
    insert: Check
    update: Check


def _owns(column: str) -> Check:
    return lambda actor, row: str(row.get(column)) == actor.user_id


def _owns_or_staff(column: str) -> Check:
    owns = _owns(column)
    return lambda actor, row: actor.is_staff or owns(actor, row)


def _staff_only(actor: Actor, row: dict) -> bool:
    return actor.is_staff


def _anyone(actor: Actor, row: dict) -> bool:
    return True


def _nobody(actor: Actor, row: dict) -> bool:
    return False


def _own_student_profile(actor: Actor, row: dict) -> bool:
    # self-service inserts may only ever create a student profile
    return _owns("user_id")(actor, row) and row.get("role", "student") == "student"


POLICIES: Dict[str, CollectionPolicy] = {
    "profiles": CollectionPolicy(
        owner_column="user_id",
        select=_owns_or_staff("user_id"),
        insert=_own_student_profile,
        update=_nobody,  # role changes are an administrative action
    ),
    "students": CollectionPolicy(
        owner_column="user_id",
        select=_owns_or_staff("user_id"),
        insert=_owns("user_id"),
        update=_owns("user_id"),
    ),
    "job_postings": CollectionPolicy(
        owner_column="posted_by",
        select=_anyone,
        insert=_staff_only,
        update=_staff_only,
    ),
    "applications": CollectionPolicy(
        owner_column="student_id",
        select=_owns_or_staff("student_id"),
        insert=_owns("student_id"),
        update=_staff_only,
    ),
}


def get_policy(collection: str) -> CollectionPolicy:
    return POLICIES[collection]


def can_write_object(actor: Actor, bucket: str, path: str) -> bool:
    """Objects live under a folder named after their owner."""
    return path.split("/", 1)[0] == actor.user_id
