"""Unit tests for the PasswordResetLifecycle"""

import pytest

from requestdesk.auth.roles import UserRole
from requestdesk.domain.errors import InvalidTransitionError, UnauthorizedError
from requestdesk.notifications.models import EventType
from requestdesk.password_resets.lifecycle import PasswordResetLifecycle
from requestdesk.password_resets.status import PasswordResetStatus


@pytest.fixture
def lifecycle(clock):
    return PasswordResetLifecycle(clock=clock, id_factory=lambda: "pr-1")


@pytest.fixture
def reset(lifecycle):
    return lifecycle.create(
        role=UserRole.STUDENT,
        first_name="Sam",
        last_name="Student",
        email="Sam@School.org",
        admission_number="A123",
        gender="F",
    ).record


class TestCreate:

    def test_student_request(self, lifecycle):
        transition = lifecycle.create(
            role=UserRole.STUDENT,
            first_name=" Sam ",
            last_name="Student",
            email="Sam@School.org",
            admission_number="A123",
            gender="F",
            designation="ignored",
        )

        record = transition.record
        assert record.id == "pr-1"
        assert record.status == PasswordResetStatus.PENDING
        assert record.first_name == "Sam"
        assert record.email == "sam@school.org"
        assert record.admission_number == "A123"
        assert record.designation is None
        [event] = transition.events
        assert event.type == EventType.PASSWORD_RESET_CREATED
        assert event.actor is None

    def test_staff_request_drops_student_fields(self, lifecycle):
        record = lifecycle.create(
            role=UserRole.STAFF,
            first_name="Alan",
            last_name="Turing",
            email="alan@school.org",
            admission_number="A999",
            gender="M",
            designation="Exams Officer",
        ).record
        assert record.admission_number is None
        assert record.gender is None
        assert record.designation == "Exams Officer"

    def test_student_needs_admission_number(self, lifecycle):
        with pytest.raises(InvalidTransitionError):
            lifecycle.create(role=UserRole.STUDENT, first_name="A", last_name="B", email="a@b.test")

    @pytest.mark.parametrize("missing", ["first_name", "last_name", "email"])
    def test_identity_fields_required(self, lifecycle, missing):
        fields = {"first_name": "Alan", "last_name": "Turing", "email": "alan@school.org"}
        fields[missing] = ""
        with pytest.raises(InvalidTransitionError):
            lifecycle.create(role=UserRole.STAFF, **fields)


class TestAssignAndStatus:

    def test_assign(self, lifecycle, reset, people, profiles):
        transition = lifecycle.assign(people.super_admin, reset, profiles.admin)
        assert transition.record.status == PasswordResetStatus.ASSIGNED
        assert transition.record.assigned_to_name == "Ada Lovelace"
        assert transition.events[0].type == EventType.PASSWORD_RESET_ASSIGNED

    def test_only_super_admin_assigns(self, lifecycle, reset, people, profiles):
        with pytest.raises(UnauthorizedError):
            lifecycle.assign(people.admin, reset, profiles.staff)

    def test_status_change_notifies_nobody(self, lifecycle, reset, people, profiles):
        assigned = lifecycle.assign(people.super_admin, reset, profiles.staff).record
        transition = lifecycle.set_status(people.staff, assigned, PasswordResetStatus.COMPLETED)
        assert transition.record.status == PasswordResetStatus.COMPLETED
        assert transition.changes == {"status": "COMPLETED"}
        assert transition.events == []

    def test_completed_can_be_reopened(self, lifecycle, reset, people):
        completed = lifecycle.set_status(people.super_admin, reset, PasswordResetStatus.COMPLETED).record
        reopened = lifecycle.set_status(people.super_admin, completed, PasswordResetStatus.IN_PROGRESS)
        assert reopened.record.status == PasswordResetStatus.IN_PROGRESS

    def test_same_status_is_noop(self, lifecycle, reset, people):
        assert lifecycle.set_status(people.super_admin, reset, PasswordResetStatus.PENDING).is_noop

    def test_staff_limited_to_assigned_resets(self, lifecycle, reset, people, profiles):
        with pytest.raises(UnauthorizedError):
            lifecycle.set_status(people.admin, reset, PasswordResetStatus.IN_PROGRESS)

        assigned = lifecycle.assign(people.super_admin, reset, profiles.staff).record
        with pytest.raises(UnauthorizedError):
            lifecycle.set_status(people.staff_2, assigned, PasswordResetStatus.IN_PROGRESS)
        with pytest.raises(UnauthorizedError):
            lifecycle.set_status(people.admin, assigned, PasswordResetStatus.IN_PROGRESS)

    def test_students_cannot_change_status(self, lifecycle, reset, people):
        with pytest.raises(UnauthorizedError):
            lifecycle.set_status(people.student, reset, PasswordResetStatus.COMPLETED)
