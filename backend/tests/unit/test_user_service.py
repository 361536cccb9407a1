"""Unit tests for UserService (profile management and super admin seeding)"""

import pytest

from requestdesk.auth.roles import UserRole
from requestdesk.domain.errors import AlreadyExistsError, NotFoundError, UnauthorizedError
from requestdesk.users.service import UserService


@pytest.fixture
def users(store, directory) -> UserService:
    return UserService(store, directory)


class TestListing:

    def test_lists_everyone_sorted_by_name(self, users, people):
        listed = users.list_users(people.super_admin)
        assert len(listed) == 8
        assert listed[0].last_name == "Away"
        assert listed[-1].last_name == "Turing"

    def test_role_filter(self, users, people):
        students = users.list_users(people.super_admin, UserRole.STUDENT)
        assert {u.id for u in students} == {"stu-1", "stu-2"}

    def test_admin_filter_includes_super_admins(self, users, people):
        admins = users.list_users(people.super_admin, UserRole.ADMIN)
        assert {u.id for u in admins} == {"admin-1", "sa-1", "sa-2"}

    @pytest.mark.parametrize("name", ["admin", "staff", "student"])
    def test_only_super_admin(self, users, people, name):
        with pytest.raises(UnauthorizedError):
            users.list_users(getattr(people, name))

    def test_unknown_user(self, users, people):
        with pytest.raises(NotFoundError):
            users.get_user(people.super_admin, "ghost")


class TestCreate:

    def test_student_profile(self, users, people, directory):
        user = users.create_user(
            people.super_admin,
            email="New.Student@school.org",
            first_name="Nia",
            last_name="New",
            role=UserRole.STUDENT,
            user_id="stu-3",
            admission_number="C789",
            gender="F",
            designation="ignored",
        )

        assert user.email == "new.student@school.org"
        assert user.admission_number == "C789"
        assert user.designation is None
        assert directory.get_user("stu-3") == user
        assert user.to_identity().admission_number == "C789"

    def test_staff_profile_gets_generated_id(self, users, people):
        user = users.create_user(
            people.super_admin,
            email="kat@school.org",
            first_name="Katherine",
            last_name="Johnson",
            role=UserRole.STAFF,
            admission_number="ignored",
            designation="Maths",
        )
        assert user.id
        assert user.admission_number is None
        assert user.designation == "Maths"

    def test_duplicate_email(self, users, people):
        with pytest.raises(AlreadyExistsError):
            users.create_user(
                people.super_admin, email="ALAN@school.org", first_name="A", last_name="T",
                role=UserRole.STAFF,
            )

    def test_duplicate_id(self, users, people):
        with pytest.raises(AlreadyExistsError):
            users.create_user(
                people.super_admin, email="x@school.org", first_name="X", last_name="Y",
                role=UserRole.STAFF, user_id="staff-1",
            )

    def test_cannot_create_super_admin(self, users, people):
        with pytest.raises(UnauthorizedError):
            users.create_user(
                people.super_admin, email="boss@school.org", first_name="B", last_name="Oss",
                role=UserRole.SUPER_ADMIN,
            )


class TestUpdate:

    def test_change_role_and_designation(self, users, people, directory):
        updated = users.update_user(
            people.super_admin, "staff-1", {"role": "ADMIN", "designation": "Head of Exams"}
        )

        assert updated.role == UserRole.ADMIN
        assert directory.get_user("staff-1").designation == "Head of Exams"

    def test_deactivate_removes_from_assignees(self, users, people, directory):
        users.update_user(people.super_admin, "staff-2", {"is_active": False})

        assert directory.get_user("staff-2").is_active is False
        assert "staff-2" not in {u.id for u in directory.potential_assignees()}

    def test_cannot_promote_to_super_admin(self, users, people):
        with pytest.raises(UnauthorizedError):
            users.update_user(people.super_admin, "admin-1", {"role": UserRole.SUPER_ADMIN})

    def test_super_admin_profiles_are_protected(self, users, people):
        with pytest.raises(UnauthorizedError):
            users.update_user(people.super_admin, "sa-2", {"is_active": False})
        with pytest.raises(UnauthorizedError):
            users.delete_user(people.super_admin, "sa-2")

    def test_email_taken_by_someone_else(self, users, people):
        with pytest.raises(AlreadyExistsError):
            users.update_user(people.super_admin, "staff-1", {"email": "ada@school.org"})

    def test_keeping_own_email_is_fine(self, users, people):
        updated = users.update_user(people.super_admin, "staff-1", {"email": "Alan@school.org"})
        assert updated.email == "alan@school.org"

    def test_unknown_field(self, users, people):
        with pytest.raises(ValueError):
            users.update_user(people.super_admin, "staff-1", {"id": "other"})

    def test_only_super_admin(self, users, people):
        with pytest.raises(UnauthorizedError):
            users.update_user(people.admin, "staff-1", {"designation": "x"})


class TestDelete:

    def test_delete(self, users, people, directory):
        users.delete_user(people.super_admin, "stu-2")
        assert directory.get_user("stu-2") is None

    def test_delete_unknown(self, users, people):
        with pytest.raises(NotFoundError):
            users.delete_user(people.super_admin, "ghost")


class TestSeedSuperAdmin:

    def test_creates_missing_profile(self, store):
        users = UserService(store)

        seeded = users.seed_super_admin("root-1", "Administration@School.org")

        assert seeded.role == UserRole.SUPER_ADMIN
        assert seeded.email == "administration@school.org"
        assert users.directory.super_admin_ids() == ["root-1"]

    def test_idempotent(self, users, directory):
        first = users.seed_super_admin("root-1", "administration@school.org")
        second = users.seed_super_admin("root-1", "administration@school.org", first_name="Other")
        assert first == second

    def test_restores_demoted_profile(self, users, directory):
        seeded = users.seed_super_admin("staff-9", "gone@school.org")

        assert seeded.role == UserRole.SUPER_ADMIN
        assert seeded.is_active is True
        assert seeded.first_name == "Gone"
