"""HTTP API tests using FastAPI TestClient

Tests cover:
- Authentication (missing, invalid and unknown-user tokens)
- Request lifecycle endpoints and domain error mapping
- Attachment upload through the blob store
- Password reset, notification and dashboard endpoints
- User management and the super admin seed
- Health and metrics
"""

import pytest
from fastapi.testclient import TestClient

from requestdesk.auth.identity import IdentityFacts
from requestdesk.auth.roles import UserRole

pytestmark = pytest.mark.integration

API = "/api/v1"


@pytest.fixture
def as_user(client, auth_headers, people):
    """Call the API as one of the seeded users: as_user("staff").get(...)"""

    class Caller:
        def __init__(self, identity):
            self.headers = auth_headers(identity)

        def get(self, path, **kwargs):
            return client.get(API + path, headers=self.headers, **kwargs)

        def post(self, path, **kwargs):
            return client.post(API + path, headers=self.headers, **kwargs)

        def patch(self, path, **kwargs):
            return client.patch(API + path, headers=self.headers, **kwargs)

        def delete(self, path, **kwargs):
            return client.delete(API + path, headers=self.headers, **kwargs)

    return lambda name: Caller(getattr(people, name))


@pytest.fixture
def created(as_user):
    response = as_user("student").post(
        "/requests", data={"document_type": "Reference Letter", "details": "For UCAS"}
    )
    assert response.status_code == 201
    return response.json()


class TestAuthentication:

    def test_missing_token(self, client):
        assert client.get(f"{API}/requests").status_code in (401, 403)

    def test_invalid_token(self, client):
        response = client.get(f"{API}/requests", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    def test_unknown_user(self, client, auth_headers):
        stranger = IdentityFacts(id="nobody", role=UserRole.SUPER_ADMIN)
        response = client.get(f"{API}/requests", headers=auth_headers(stranger))
        assert response.status_code == 401

    def test_inactive_user(self, client, auth_headers, people):
        response = client.get(f"{API}/requests", headers=auth_headers(people.inactive_staff))
        assert response.status_code == 403

    def test_role_taken_from_directory(self, client, auth_headers, people):
        forged = IdentityFacts(id=people.student.id, role=UserRole.SUPER_ADMIN, first_name="Sam")
        response = client.get(f"{API}/requests/assignees", headers=auth_headers(forged))
        assert response.status_code == 403


class TestRequestEndpoints:

    def test_create(self, created):
        assert created["id"].startswith("A123_001_")
        assert created["status"] == "PENDING"
        assert created["document_type"] == "Reference Letter"
        assert created["attachments"] == []

    def test_create_with_reference_file(self, as_user, blob_store):
        response = as_user("student").post(
            "/requests",
            data={"document_type": "Other", "details": "See form"},
            files={"file": ("form.pdf", b"%PDF form", "application/pdf")},
        )
        assert response.status_code == 201
        body = response.json()
        [attachment] = body["attachments"]
        assert attachment["status"] == "PENDING"
        assert attachment["blob_ref"] == f"memory://blobs/requests/{body['id']}/form.pdf"
        assert blob_store.blobs[f"requests/{body['id']}/form.pdf"] == b"%PDF form"

    def test_staff_cannot_create(self, as_user):
        response = as_user("staff").post("/requests", data={"document_type": "Other"})
        assert response.status_code == 403
        assert response.json()["error"] == "unauthorized"

    def test_list_and_get(self, as_user, created):
        listing = as_user("student").get("/requests").json()
        assert listing["total"] == 1
        assert as_user("other_student").get("/requests").json()["total"] == 0

        assert as_user("student").get(f"/requests/{created['id']}").status_code == 200
        assert as_user("other_student").get(f"/requests/{created['id']}").status_code == 403
        assert as_user("student").get("/requests/missing").status_code == 404

    def test_list_filters(self, as_user, created):
        assert as_user("super_admin").get("/requests", params={"tab": "completed"}).json()["total"] == 0
        assert as_user("super_admin").get("/requests", params={"status": "PENDING"}).json()["total"] == 1
        assert as_user("super_admin").get("/requests", params={"search": "sam"}).json()["total"] == 1

    def test_assign_and_status(self, as_user, created):
        rid = created["id"]
        assigned = as_user("super_admin").post(f"/requests/{rid}/assign", json={"assignee_id": "staff-1"})
        assert assigned.status_code == 200
        assert assigned.json()["assigned_to_name"] == "Alan Turing"

        progressed = as_user("staff").post(f"/requests/{rid}/status", json={"status": "IN_PROGRESS"})
        assert progressed.json()["status"] == "IN_PROGRESS"

    def test_assign_requires_super_admin(self, as_user, created):
        response = as_user("admin").post(f"/requests/{created['id']}/assign", json={"assignee_id": "staff-1"})
        assert response.status_code == 403

    def test_manual_completion_conflicts(self, as_user, created):
        response = as_user("super_admin").post(f"/requests/{created['id']}/status", json={"status": "COMPLETED"})
        assert response.status_code == 409
        assert response.json()["error"] == "invalid_transition"

    def test_expected_date(self, as_user, created):
        response = as_user("super_admin").post(
            f"/requests/{created['id']}/expected-date", json={"expected_completion_date": "2025-04-01"}
        )
        assert response.json()["expected_completion_date"] == "2025-04-01"

    def test_comments_filtered_per_viewer(self, as_user, created):
        rid = created["id"]
        as_user("admin").post(f"/requests/{rid}/comments", json={"content": "check archive", "kind": "INTERNAL"})
        response = as_user("student").post(f"/requests/{rid}/comments", json={"content": "any news?"})

        assert response.status_code == 201
        assert [c["content"] for c in response.json()["comments"]] == ["any news?"]
        admin_view = as_user("admin").get(f"/requests/{rid}").json()
        assert len(admin_view["comments"]) == 2

    def test_unknown_body_fields_rejected(self, as_user, created):
        response = as_user("staff").post(
            f"/requests/{created['id']}/status", json={"status": "IN_PROGRESS", "force": True}
        )
        assert response.status_code == 422
        assert response.json()["error"] == "validation_error"

    def test_assignees(self, as_user):
        assignees = as_user("staff").get("/requests/assignees").json()
        assert {a["id"] for a in assignees} == {"sa-1", "sa-2", "admin-1", "staff-1", "staff-2"}
        assert as_user("student").get("/requests/assignees").status_code == 403


class TestAttachmentEndpoints:

    def _upload(self, caller, rid, content=b"%PDF letter"):
        return caller.post(
            f"/requests/{rid}/attachments",
            files={"file": ("letter.pdf", content, "application/pdf")},
        )

    def test_review_cycle(self, as_user, created):
        rid = created["id"]
        as_user("super_admin").post(f"/requests/{rid}/assign", json={"assignee_id": "staff-1"})

        uploaded = self._upload(as_user("staff"), rid)
        assert uploaded.status_code == 201
        attachment_id = uploaded.json()["attachments"][0]["id"]

        rejected = as_user("super_admin").post(
            f"/requests/{rid}/attachments/{attachment_id}/reject", json={"reason": "blurry scan"}
        )
        assert rejected.json()["status"] == "ACTION_NEEDED"

        approve = as_user("super_admin").post(f"/requests/{rid}/attachments/{attachment_id}/approve")
        assert approve.status_code == 409

    def test_super_admin_upload_completes(self, as_user, created):
        response = self._upload(as_user("super_admin"), created["id"])
        assert response.json()["status"] == "COMPLETED"
        assert response.json()["attachments"][0]["status"] == "APPROVED"

    def test_student_cannot_upload(self, as_user, created):
        assert self._upload(as_user("student"), created["id"]).status_code == 403

    def test_empty_and_oversized_files(self, as_user, created):
        assert self._upload(as_user("staff"), created["id"], b"").status_code == 400
        assert self._upload(as_user("staff"), created["id"], b"x" * 2048).status_code == 413

    def test_unknown_attachment(self, as_user, created):
        response = as_user("super_admin").post(f"/requests/{created['id']}/attachments/nope/approve")
        assert response.status_code == 404


class TestDeletionEndpoints:

    def test_soft_and_hard_delete(self, as_user, created):
        rid = created["id"]
        assert as_user("student").delete(f"/requests/{rid}").status_code == 204
        assert as_user("student").get("/requests").json()["total"] == 0
        assert as_user("super_admin").get("/requests").json()["total"] == 1

        assert as_user("super_admin").delete(f"/requests/{rid}").status_code == 204
        assert as_user("super_admin").get("/requests").json()["total"] == 0

    def test_clear_displayed_in_chunks(self, as_user):
        for _ in range(5):
            as_user("student").post("/requests", data={"document_type": "Other"})

        response = as_user("super_admin").post("/requests/clear")

        assert response.json()["count"] == 5
        assert as_user("super_admin").get("/requests").json()["total"] == 0

    def test_hide_from_dashboard(self, as_user, created):
        assert as_user("student").post(f"/requests/{created['id']}/hide-from-dashboard").status_code == 204
        dashboard = as_user("student").get("/dashboard").json()
        assert dashboard["recent_requests"] == []
        assert dashboard["stats"]["total"] == 1


class TestPasswordResetEndpoints:

    def test_public_submission_and_handling(self, client, as_user):
        response = client.post(f"{API}/password-resets", json={
            "role": "STAFF",
            "first_name": "Alan",
            "last_name": "Turing",
            "email": "alan@school.org",
            "designation": "Exams Officer",
        })
        assert response.status_code == 201
        reset_id = response.json()["id"]
        assert response.json()["status"] == "PENDING"

        assert [r["id"] for r in as_user("super_admin").get("/password-resets").json()] == [reset_id]
        assert as_user("admin").get("/password-resets").json() == []

        assigned = as_user("super_admin").post(f"/password-resets/{reset_id}/assign", json={"assignee_id": "admin-1"})
        assert assigned.json()["status"] == "ASSIGNED"

        not_assigned = as_user("staff").post(f"/password-resets/{reset_id}/status", json={"status": "COMPLETED"})
        assert not_assigned.status_code == 403

        done = as_user("admin").post(f"/password-resets/{reset_id}/status", json={"status": "COMPLETED"})
        assert done.json()["status"] == "COMPLETED"

    def test_invalid_submission(self, client):
        response = client.post(f"{API}/password-resets", json={
            "role": "STUDENT", "first_name": "Sam", "last_name": "Student", "email": "sam@school.org",
        })
        assert response.status_code == 409

    def test_invalid_email(self, client):
        response = client.post(f"{API}/password-resets", json={
            "role": "STAFF", "first_name": "A", "last_name": "B", "email": "not-an-email",
        })
        assert response.status_code == 422


class TestNotificationEndpoints:

    def test_inbox(self, as_user, created):
        inbox = as_user("super_admin").get("/notifications").json()
        assert inbox["unread_count"] == 1
        notification_id = inbox["items"][0]["id"]
        assert inbox["items"][0]["link"] == f"/requests/{created['id']}"

        assert as_user("admin").post(f"/notifications/{notification_id}/read").status_code == 403

        read = as_user("super_admin").post(f"/notifications/{notification_id}/read")
        assert read.json()["is_read"] is True
        assert as_user("super_admin").get("/notifications", params={"unread_only": True}).json()["items"] == []

    def test_bulk_operations(self, as_user):
        for _ in range(3):
            as_user("student").post("/requests", data={"document_type": "Other"})

        assert as_user("super_admin_2").post("/notifications/read-all").json() == {"count": 3}
        assert as_user("super_admin_2").delete("/notifications").json() == {"count": 3}
        assert as_user("super_admin_2").get("/notifications").json()["items"] == []
        assert as_user("super_admin").get("/notifications").json()["unread_count"] == 3

    def test_delete_one(self, as_user, created):
        notification_id = as_user("super_admin").get("/notifications").json()["items"][0]["id"]
        assert as_user("super_admin").delete(f"/notifications/{notification_id}").status_code == 204
        assert as_user("super_admin").delete(f"/notifications/{notification_id}").status_code == 404


class TestDashboardEndpoints:

    def test_overview_and_clear(self, as_user):
        for _ in range(6):
            as_user("student").post("/requests", data={"document_type": "Other"})

        dashboard = as_user("super_admin").get("/dashboard").json()
        assert dashboard["stats"]["total"] == 6
        assert len(dashboard["recent_requests"]) == 5

        cleared = as_user("super_admin").post("/dashboard/requests/clear").json()
        assert cleared["count"] == 5
        after = as_user("super_admin").get("/dashboard").json()
        assert len(after["recent_requests"]) == 1
        assert as_user("super_admin").get("/requests").json()["total"] == 6

    def test_unknown_panel(self, as_user):
        assert as_user("super_admin").post("/dashboard/everything/clear").status_code == 422


class TestUserEndpoints:

    def test_register_profile_then_sign_in(self, client, as_user, auth_headers):
        response = as_user("super_admin").post("/users", json={
            "id": "stu-3",
            "email": "nia@school.org",
            "first_name": "Nia",
            "last_name": "New",
            "role": "STUDENT",
            "admission_number": "C789",
            "gender": "F",
        })
        assert response.status_code == 201
        assert response.json()["is_active"] is True

        nia = IdentityFacts(id="stu-3", role=UserRole.STUDENT)
        created = client.post(
            f"{API}/requests", data={"document_type": "Other"}, headers=auth_headers(nia)
        )
        assert created.status_code == 201
        assert created.json()["id"].startswith("C789_001_")

    def test_duplicate_email_conflicts(self, as_user):
        response = as_user("super_admin").post("/users", json={
            "email": "alan@school.org", "first_name": "A", "last_name": "T", "role": "STAFF",
        })
        assert response.status_code == 409
        assert response.json()["error"] == "already_exists"

    def test_list_and_filter(self, as_user):
        everyone = as_user("super_admin").get("/users").json()
        assert everyone["total"] == 8

        staff = as_user("super_admin").get("/users", params={"role": "STAFF"}).json()
        assert {u["id"] for u in staff["users"]} == {"staff-1", "staff-2", "staff-9"}

    @pytest.mark.parametrize("name", ["admin", "staff", "student"])
    def test_super_admin_only(self, as_user, name):
        assert as_user(name).get("/users").status_code == 403

    def test_update_role_and_deactivate(self, as_user):
        promoted = as_user("super_admin").patch("/users/staff-2", json={"role": "ADMIN", "designation": "Deputy Head"})
        assert promoted.json()["role"] == "ADMIN"
        assert promoted.json()["designation"] == "Deputy Head"

        as_user("super_admin").patch("/users/staff-2", json={"is_active": False})
        assert as_user("staff_2").get("/requests").status_code == 403

    def test_role_change_applies_to_existing_tokens(self, as_user):
        assert as_user("other_student").get("/requests/assignees").status_code == 403
        as_user("super_admin").patch("/users/stu-2", json={"role": "STAFF"})
        assert as_user("other_student").get("/requests/assignees").status_code == 200

    def test_super_admin_profiles_are_read_only(self, as_user):
        assert as_user("super_admin").patch("/users/sa-2", json={"is_active": False}).status_code == 403
        assert as_user("super_admin").delete("/users/sa-2").status_code == 403
        assert as_user("super_admin").patch("/users/admin-1", json={"role": "SUPER_ADMIN"}).status_code == 403

    def test_unknown_fields_rejected(self, as_user):
        response = as_user("super_admin").patch("/users/staff-1", json={"password": "hunter2"})
        assert response.status_code == 422

    def test_delete_revokes_access(self, as_user):
        assert as_user("super_admin").get("/users/stu-2").json()["email"] == "olive@school.org"
        assert as_user("super_admin").delete("/users/stu-2").status_code == 204
        assert as_user("other_student").get("/requests").status_code == 401
        assert as_user("super_admin").get("/users/stu-2").status_code == 404


class TestSuperAdminSeed:

    @pytest.fixture
    def fresh_client(self, jwt_env):
        """Client for an app started on an empty store with extra settings."""
        from requestdesk.config import Settings
        from requestdesk.infrastructure.store.memory_store import MemoryStore
        from requestdesk.main import create_app

        def factory(**overrides):
            settings = Settings(LOG_JSON=False, LOG_LEVEL="WARNING", ENVIRONMENT="test", **overrides)
            return TestClient(create_app(settings=settings, store=MemoryStore()))

        return factory

    def test_fresh_deployment_has_a_super_admin(self, fresh_client, auth_headers):
        root = IdentityFacts(id="root-1", role=UserRole.SUPER_ADMIN)

        with fresh_client(SUPER_ADMIN_ID="root-1", SUPER_ADMIN_EMAIL="administration@school.org") as client:
            response = client.get(f"{API}/users", headers=auth_headers(root))

        assert response.status_code == 200
        [seeded] = response.json()["users"]
        assert seeded["role"] == "SUPER_ADMIN"
        assert seeded["email"] == "administration@school.org"

    def test_no_seed_configured(self, fresh_client, auth_headers):
        root = IdentityFacts(id="root-1", role=UserRole.SUPER_ADMIN)

        with fresh_client() as client:
            assert client.get(f"{API}/users", headers=auth_headers(root)).status_code == 401


class TestObservability:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["components"]["store"]["status"] == "healthy"

    def test_metrics(self, client, as_user, created):
        body = client.get("/metrics").text
        assert "requestdesk_transitions_total" in body

    def test_request_id_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "abc-123"})
        assert response.headers["X-Request-ID"] == "abc-123"
