"""Unit tests for the per-collection access policies."""

import pytest

from placement_hub.services.remote.policies import Actor, can_write_object, get_policy


def student(user_id="user-1"):
    return Actor(user_id, role="student")


def faculty(user_id="fac-1"):
    return Actor(user_id, role="faculty")


class TestActor:
    @pytest.mark.parametrize("role,expected", [
        ("student", False), ("faculty", True), ("admin", True), (None, False),
    ])
    def test_is_staff(self, role, expected):
        assert Actor("u", role=role).is_staff is expected


class TestProfilesPolicy:
    policy = get_policy("profiles")

    def test_read_own_or_staff(self):
        row = {"user_id": "user-1", "role": "student"}

        assert self.policy.select(student(), row)
        assert self.policy.select(faculty(), row)
        assert not self.policy.select(student("user-2"), row)

    def test_only_own_student_profile_may_be_inserted(self):
        assert self.policy.insert(student(), {"user_id": "user-1", "role": "student"})
        assert self.policy.insert(student(), {"user_id": "user-1"})
        assert not self.policy.insert(student(), {"user_id": "user-1", "role": "faculty"})
        assert not self.policy.insert(student(), {"user_id": "user-2", "role": "student"})

    def test_roles_are_not_self_service(self):
        assert not self.policy.update(student(), {"user_id": "user-1"})
        assert not self.policy.update(faculty(), {"user_id": "fac-1"})


class TestStudentsPolicy:
    policy = get_policy("students")

    def test_staff_read_everyone(self):
        assert self.policy.select(faculty(), {"user_id": "user-9"})
        assert self.policy.select(Actor("adm", role="admin"), {"user_id": "user-9"})

    def test_students_read_only_their_row(self):
        assert self.policy.select(student(), {"user_id": "user-1"})
        assert not self.policy.select(student(), {"user_id": "user-9"})

    def test_writes_are_owner_only(self):
        assert self.policy.insert(student(), {"user_id": "user-1"})
        assert self.policy.update(student(), {"user_id": "user-1"})
        assert not self.policy.update(faculty(), {"user_id": "user-1"})


class TestPlacementTablesPolicies:
    def test_job_postings(self):
        policy = get_policy("job_postings")

        assert policy.select(student(), {"posted_by": "fac-1"})
        assert policy.insert(faculty(), {"posted_by": "fac-1"})
        assert not policy.insert(student(), {"posted_by": "user-1"})

    def test_applications(self):
        policy = get_policy("applications")
        row = {"student_id": "user-1"}

        assert policy.select(student(), row)
        assert policy.select(faculty(), row)
        assert not policy.select(student("user-2"), row)
        assert policy.insert(student(), row)
        assert not policy.update(student(), row)
        assert policy.update(faculty(), row)

    def test_unknown_collection(self):
        with pytest.raises(KeyError):
            get_policy("companies")


class TestObjectWrites:
    def test_own_folder_only(self):
        assert can_write_object(student(), "certificates", "user-1/123-1-cert.pdf")
        assert not can_write_object(student(), "certificates", "user-2/123-1-cert.pdf")
        assert not can_write_object(student(), "certificates", "cert.pdf")
