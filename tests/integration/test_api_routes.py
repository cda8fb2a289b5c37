"""
API integration tests using FastAPI TestClient with in-memory DB.
"""
import pytest
from fastapi.testclient import TestClient

from lms.models.models import Module, ModuleProgress


def module_ids(phase: dict) -> list[str]:
    return [m["id"] for s in phase["sections"] for m in s["modules"]]


@pytest.mark.integration
class TestHealthRoutes:
    def test_root_returns_healthy(self, api_client: TestClient):
        response = api_client.get("/")
        assert response.status_code == 200
        assert "Healthy" in response.json()["message"]

    def test_request_id_echoed(self, api_client: TestClient):
        response = api_client.get("/", headers={"x-request-id": "abc-123"})
        assert response.headers.get("x-request-id") == "abc-123"


@pytest.mark.integration
class TestAuthRoutes:
    def test_login_sets_cookie(self, api_client: TestClient, student):
        response = api_client.post("/auth/login", json={"email": student.email, "password": "testpass123"})
        assert response.status_code == 200
        assert response.json()["token_set"] is True
        assert "access_token" in response.cookies

        me = api_client.get("/auth/me")
        assert me.status_code == 200
        assert me.json()["role"] == "student"

    def test_login_wrong_password(self, api_client: TestClient, student):
        response = api_client.post("/auth/login", json={"email": student.email, "password": "nope"})
        assert response.status_code == 401

    def test_logout(self, api_client: TestClient):
        assert api_client.post("/auth/logout").status_code == 200

    def test_curriculum_requires_token(self, api_client: TestClient):
        assert api_client.get("/lms/curriculum").status_code == 401

    def test_garbage_token_rejected(self, api_client: TestClient):
        api_client.cookies.set("access_token", "not-a-jwt")
        assert api_client.get("/lms/curriculum").status_code == 401


@pytest.mark.integration
class TestCurriculumRoutes:
    def test_student_tree(self, student_client: TestClient, curriculum):
        response = student_client.get("/lms/curriculum")
        assert response.status_code == 200
        data = response.json()
        assert [p["id"] for p in data["phases"]] == ["p1", "p2"]
        assert module_ids(data["phases"][0]) == ["m1", "m2", "m3", "m4"]
        assert data["progress"] == {"total": 5, "completed": 0, "percentage": 0.0}

    def test_instructor_tree_includes_unpublished(self, instructor_client: TestClient, curriculum):
        data = instructor_client.get("/lms/curriculum").json()
        assert module_ids(data["phases"][0]) == ["m1", "m2", "m3", "m4", "m5"]

    def test_student_cannot_author(self, student_client: TestClient, curriculum):
        assert student_client.post("/lms/phases", json={"title": "X"}).status_code == 403
        assert student_client.post("/lms/sections/s1/modules/reorder", json={"moved_id": "m3", "to_index": 0}).status_code == 403

    def test_create_phase_section_module(self, instructor_client: TestClient, curriculum):
        phase = instructor_client.post("/lms/phases", json={"title": "Capstone", "description": "Wrap up"}).json()
        assert phase["order_index"] == 3
        section = instructor_client.post(f"/lms/phases/{phase['id']}/sections", json={"title": "Project"}).json()
        assert section["order_index"] == 1
        module = instructor_client.post(
            f"/lms/sections/{section['id']}/modules",
            json={"title": "Brief", "content_type": "external_link", "external_url": "https://example.com/brief"},
        )
        assert module.status_code == 200
        assert module.json()["order_index"] == 1
        assert module.json()["content"] == ""

    def test_external_link_without_url_rejected(self, instructor_client: TestClient, curriculum):
        response = instructor_client.post(
            "/lms/sections/s1/modules",
            json={"title": "Link", "content_type": "external_link", "external_url": ""},
        )
        assert response.status_code == 400
        assert "external_url" in response.json()["detail"]

    def test_blank_titles_rejected(self, instructor_client: TestClient, curriculum):
        assert instructor_client.post("/lms/phases", json={"title": "   "}).status_code == 400
        assert instructor_client.post("/lms/phases/p1/sections", json={"title": "   "}).status_code == 400
        assert instructor_client.patch("/lms/sections/s1", json={"title": " "}).status_code == 400
        tree = instructor_client.get("/lms/curriculum").json()
        assert [s["title"] for s in tree["phases"][0]["sections"]] == ["Basics", "Tooling"]
        assert len(tree["phases"]) == 2

    def test_reorder_modules(self, instructor_client: TestClient, db_session, curriculum):
        response = instructor_client.post("/lms/sections/s1/modules/reorder", json={"moved_id": "m3", "to_index": 0})
        assert response.status_code == 200
        assert response.json()["ids"] == ["m3", "m1", "m2"]
        db_session.expire_all()
        orders = {m.id: m.order_index for m in db_session.query(Module).filter(Module.section_id == "s1")}
        assert orders == {"m3": 1, "m1": 2, "m2": 3}

        tree = instructor_client.get("/lms/curriculum").json()
        assert module_ids(tree["phases"][0])[:3] == ["m3", "m1", "m2"]

    def test_reorder_sections(self, instructor_client: TestClient, curriculum):
        response = instructor_client.post("/lms/phases/p1/sections/reorder", json={"moved_id": "s2", "to_index": 0})
        assert response.json()["ids"] == ["s2", "s1"]
        tree = instructor_client.get("/lms/curriculum").json()
        assert [s["id"] for s in tree["phases"][0]["sections"]] == ["s2", "s1"]

    def test_reorder_out_of_range(self, instructor_client: TestClient, curriculum):
        response = instructor_client.post("/lms/sections/s1/modules/reorder", json={"moved_id": "m1", "to_index": 7})
        assert response.status_code == 400

    def test_reorder_unknown_section(self, instructor_client: TestClient, curriculum):
        response = instructor_client.post("/lms/sections/nope/modules/reorder", json={"moved_id": "m1", "to_index": 0})
        assert response.status_code == 404

    def test_update_section(self, instructor_client: TestClient, curriculum):
        response = instructor_client.patch("/lms/sections/s2", json={"title": "Tools", "description": "IDEs"})
        assert response.status_code == 200
        assert response.json()["title"] == "Tools"
        assert [m["id"] for m in response.json()["modules"]] == ["m4", "m5"]

    def test_delete_section_requires_exact_title(self, instructor_client: TestClient, curriculum):
        wrong = instructor_client.request("DELETE", "/lms/sections/s1", json={"confirm_title": "basics"})
        assert wrong.status_code == 409
        ok = instructor_client.request("DELETE", "/lms/sections/s1", json={"confirm_title": "Basics"})
        assert ok.status_code == 200
        tree = instructor_client.get("/lms/curriculum").json()
        assert [s["id"] for s in tree["phases"][0]["sections"]] == ["s2"]

    def test_delete_phase(self, instructor_client: TestClient, curriculum):
        response = instructor_client.request("DELETE", "/lms/phases/p2", json={"confirm_title": "Advanced"})
        assert response.status_code == 200
        assert [p["id"] for p in instructor_client.get("/lms/curriculum").json()["phases"]] == ["p1"]


@pytest.mark.integration
class TestModuleRoutes:
    def test_module_detail_navigation(self, student_client: TestClient, curriculum):
        data = student_client.get("/lms/modules/m1").json()
        assert data["module"]["id"] == "m1"
        assert data["prev"] is None
        assert data["next"]["id"] == "m2"
        assert [s["id"] for s in data["phase"]["sections"]] == ["s1", "s2"]

    def test_unpublished_module_hidden_from_student(self, student_client: TestClient, curriculum):
        assert student_client.get("/lms/modules/m5").status_code == 404
        assert student_client.post("/lms/modules/m5/progress/toggle").status_code == 404

    def test_toggle_completion_round_trip(self, student_client: TestClient, db_session, student, curriculum):
        first = student_client.post("/lms/modules/m2/progress/toggle").json()
        assert first["is_completed"] is True and first["completed_at"] is not None
        second = student_client.post("/lms/modules/m2/progress/toggle").json()
        assert second == {"is_completed": False, "completed_at": None}
        third = student_client.post("/lms/modules/m2/progress/toggle").json()
        assert third["is_completed"] is True
        assert db_session.query(ModuleProgress).filter_by(user_id=student.id, module_id="m2").count() == 1

        tree = student_client.get("/lms/curriculum").json()
        assert tree["progress"]["completed"] == 1

    def test_update_metadata(self, instructor_client: TestClient, curriculum):
        response = instructor_client.patch(
            "/lms/modules/m2",
            json={"title": "Loops", "description": "for/while", "content_type": "text", "deadline": "2030-01-01T00:00:00"},
        )
        assert response.status_code == 200
        assert response.json()["deadline"] == "2030-01-01T00:00:00Z"

    def test_offset_deadline_returned_in_utc(self, instructor_client: TestClient, curriculum):
        response = instructor_client.patch(
            "/lms/modules/m2",
            json={"title": "Loops", "content_type": "text", "deadline": "2030-01-01T00:00:00+05:00"},
        )
        assert response.status_code == 200
        assert response.json()["deadline"] == "2029-12-31T19:00:00Z"

    def test_update_metadata_link_without_url(self, instructor_client: TestClient, curriculum):
        response = instructor_client.patch("/lms/modules/m2", json={"title": "Loops", "content_type": "external_link"})
        assert response.status_code == 400

    def test_update_content(self, instructor_client: TestClient, curriculum):
        response = instructor_client.patch("/lms/modules/m1/content", json={"content": "# Updated"})
        assert response.json()["content"] == "# Updated"

    def test_update_content_keeps_link_when_url_omitted(self, instructor_client: TestClient, curriculum):
        response = instructor_client.patch("/lms/modules/m4/content", json={"content": "See the editors page"})
        assert response.status_code == 200
        assert response.json()["external_url"] == "https://example.com/editors"

    def test_delete_module(self, instructor_client: TestClient, student_client: TestClient, db_session, curriculum):
        student_client.post("/lms/modules/m1/progress/toggle")
        response = instructor_client.request("DELETE", "/lms/modules/m1", json={"confirm_title": "Variables"})
        assert response.status_code == 200
        assert db_session.query(ModuleProgress).filter_by(module_id="m1").count() == 0
        assert student_client.get("/lms/modules/m1").status_code == 404


@pytest.mark.integration
class TestDashboardRoutes:
    def test_student_dashboard(self, student_client: TestClient, curriculum):
        student_client.post("/lms/modules/m1/progress/toggle")
        data = student_client.get("/lms/dashboard/student").json()
        assert data["progress"]["completed"] == 1
        assert data["progress"]["total"] == 5
        assert [m["module_id"] for m in data["upcoming"]] == ["m2", "m3", "m6"]

    def test_instructor_dashboard(self, instructor_client: TestClient, student, curriculum):
        data = instructor_client.get("/lms/dashboard/instructor").json()
        assert data["students_count"] == 1
        assert data["missed_deadlines"][0]["module_id"] == "m1"

    def test_instructor_dashboard_forbidden_for_students(self, student_client: TestClient):
        assert student_client.get("/lms/dashboard/instructor").status_code == 403
