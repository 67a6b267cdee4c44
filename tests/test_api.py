import pytest
from fastapi.testclient import TestClient

from gradebook.errors import TransientFailure
from gradebook.services.auth import AuthenticationGateway

from conftest import auth_headers


def _register_teacher(client: TestClient, email: str = "ana@school.test") -> dict:
    response = client.post(
        "/api/v2/auth/register",
        json={"name": "Ana Torres", "email": email, "password": "secret-ana"},
    )
    assert response.status_code == 201, response.text
    return response.json()


def _register_student(client: TestClient, headers: dict, username: str = "sofia") -> dict:
    response = client.post(
        "/api/v2/students/",
        json={
            "name": "Sofia Ruiz",
            "username": username,
            "password": "secret-sofia",
            "grade_level": "7A",
            "subjects": ["Math"],
        },
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def admin_headers(client: TestClient, gateway) -> dict:
    gateway.register_admin("Root", "root@school.test", "secret-root")
    return auth_headers(client, "root@school.test", "secret-root")


def test_health(client: TestClient):
    assert client.get("/health").json() == {"status": "ok"}


def test_register_and_login_teacher(client: TestClient):
    teacher = _register_teacher(client)
    assert teacher["role"] == "teacher"
    assert teacher["is_active"] is True
    assert "password" not in teacher and "password_hash" not in teacher

    response = client.post(
        "/api/v2/auth/login",
        data={"username": "ana@school.test", "password": "secret-ana"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["session"]["principal"]["id"] == teacher["id"]

    me = client.get(
        "/api/v2/auth/me", headers={"Authorization": f"Bearer {data['access_token']}"}
    )
    assert me.json()["principal"]["role"] == "teacher"


def test_register_duplicate_teacher(client: TestClient):
    _register_teacher(client)

    response = client.post(
        "/api/v2/auth/register",
        json={"name": "Again", "email": "ana@school.test", "password": "x"},
    )
    assert response.status_code == 409
    assert response.json()["error"] == "duplicate_credential"


def test_login_errors_are_distinct(client: TestClient, admin_headers):
    teacher = _register_teacher(client)

    wrong = client.post(
        "/api/v2/auth/login", data={"username": "ana@school.test", "password": "nope"}
    )
    assert wrong.status_code == 401
    assert wrong.json()["error"] == "invalid_credentials"

    client.post(f"/api/v2/admin/teachers/{teacher['id']}/toggle-active", headers=admin_headers)
    disabled = client.post(
        "/api/v2/auth/login", data={"username": "ana@school.test", "password": "secret-ana"}
    )
    assert disabled.status_code == 403
    assert disabled.json()["error"] == "account_disabled"


def test_transient_failure_sets_connectivity_banner(client: TestClient, monkeypatch):
    def unavailable(self, identifier, password):
        raise TransientFailure()

    monkeypatch.setattr(AuthenticationGateway, "login", unavailable)

    response = client.post("/api/v2/auth/login", data={"username": "x", "password": "y"})
    assert response.status_code == 503
    assert response.json()["banner"] == "connectivity"
    assert response.headers["Retry-After"] == "30"


def test_requests_without_token_are_rejected(client: TestClient):
    assert client.get("/api/v2/students/").status_code == 401
    response = client.get("/api/v2/students/", headers={"Authorization": "Bearer forged.token"})
    assert response.status_code == 401


def test_logout_revokes_token(client: TestClient):
    _register_teacher(client)
    headers = auth_headers(client, "ana@school.test", "secret-ana")
    assert client.get("/api/v2/auth/me", headers=headers).status_code == 200

    assert client.post("/api/v2/auth/logout", headers=headers).status_code == 200

    assert client.get("/api/v2/auth/me", headers=headers).status_code == 401
    assert client.get("/api/v2/students/", headers=headers).status_code == 401
    fresh = auth_headers(client, "ana@school.test", "secret-ana")
    assert client.get("/api/v2/auth/me", headers=fresh).status_code == 200


def test_password_reset_revokes_old_token(client: TestClient, admin_headers):
    teacher = _register_teacher(client)
    headers = auth_headers(client, "ana@school.test", "secret-ana")

    client.put(
        f"/api/v2/admin/teachers/{teacher['id']}/password",
        json={"password": "fresh"},
        headers=admin_headers,
    )

    assert client.get("/api/v2/auth/me", headers=headers).status_code == 401


def test_disabled_teacher_token_stops_working(client: TestClient, admin_headers):
    teacher = _register_teacher(client)
    headers = auth_headers(client, "ana@school.test", "secret-ana")

    client.post(f"/api/v2/admin/teachers/{teacher['id']}/toggle-active", headers=admin_headers)

    assert client.get("/api/v2/students/", headers=headers).status_code == 403


def test_student_registration_flow(client: TestClient):
    _register_teacher(client)
    headers = auth_headers(client, "ana@school.test", "secret-ana")

    student = _register_student(client, headers)
    assert student["role"] == "student"
    assert student["grade_level"] == "7A"

    bad = client.post(
        "/api/v2/students/",
        json={"name": "X", "username": "a@b.com", "password": "pw", "subjects": ["Math"]},
        headers=headers,
    )
    assert bad.status_code == 422
    assert bad.json()["error"] == "invalid_username_format"

    listed = client.get("/api/v2/students/", headers=headers).json()
    assert [s["username"] for s in listed] == ["sofia"]


def test_teacher_cannot_touch_another_teachers_student(client: TestClient):
    _register_teacher(client)
    _register_teacher(client, "luis@school.test")
    ana = auth_headers(client, "ana@school.test", "secret-ana")
    luis = auth_headers(client, "luis@school.test", "secret-ana")
    student = _register_student(client, ana)

    assert client.get(f"/api/v2/students/{student['id']}", headers=luis).status_code == 403
    response = client.patch(
        f"/api/v2/students/{student['id']}", json={"name": "Hacked"}, headers=luis
    )
    assert response.status_code == 403
    assert response.json()["error"] == "permission_denied"


def test_delete_student_refused_then_cascade(client: TestClient):
    _register_teacher(client)
    headers = auth_headers(client, "ana@school.test", "secret-ana")
    student = _register_student(client, headers)

    refused = client.delete(f"/api/v2/students/{student['id']}", headers=headers)
    assert refused.status_code == 409
    assert refused.json()["error"] == "has_dependent_records"
    assert client.get(f"/api/v2/students/{student['id']}", headers=headers).status_code == 200

    deleted = client.delete(f"/api/v2/students/{student['id']}?cascade=true", headers=headers)
    assert deleted.status_code == 204
    assert client.get(f"/api/v2/students/{student['id']}", headers=headers).status_code == 404


def test_transfer_by_email(client: TestClient):
    _register_teacher(client)
    luis = _register_teacher(client, "luis@school.test")
    headers = auth_headers(client, "ana@school.test", "secret-ana")
    student = _register_student(client, headers)

    response = client.post(
        f"/api/v2/students/{student['id']}/transfer",
        json={"teacher_email": "luis@school.test"},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["teacher_id"] == luis["id"]

    luis_headers = auth_headers(client, "luis@school.test", "secret-ana")
    subjects = client.get(f"/api/v2/students/{student['id']}/subjects", headers=luis_headers).json()
    assert [s["teacher_id"] for s in subjects] == [luis["id"]]


def test_grade_sheet_flow(client: TestClient):
    _register_teacher(client)
    headers = auth_headers(client, "ana@school.test", "secret-ana")
    student = _register_student(client, headers)
    subject = client.get(f"/api/v2/students/{student['id']}/subjects", headers=headers).json()[0]
    url = f"/api/v2/grades/{subject['id']}/2024/Period 1"

    saved = client.put(
        url,
        json={"tasks": [8, "", 8, None], "exams": [6, None, None], "presentations": [10, None, None]},
        headers=headers,
    )
    assert saved.status_code == 200, saved.text
    summary = saved.json()["summary"]
    assert float(summary["final_grade"]) == 7.6
    assert summary["status"] == {"label": "Good", "tier": 2}

    cleared = client.put(
        f"{url}/tasks/0", json={"value": None}, headers=headers
    ).json()
    assert cleared["grades"]["tasks"][0] is None

    student_headers = auth_headers(client, "sofia", "secret-sofia")
    assert client.get(url, headers=student_headers).status_code == 200
    assert client.put(url, json={}, headers=student_headers).status_code == 403

    overview = client.get("/api/v2/grades/overview/me", headers=student_headers).json()
    assert overview[0]["name"] == "Math"
    assert overview[0]["years"][0]["year"] == 2024


def test_grade_sheet_rejects_out_of_range(client: TestClient):
    _register_teacher(client)
    headers = auth_headers(client, "ana@school.test", "secret-ana")
    student = _register_student(client, headers)
    subject = client.get(f"/api/v2/students/{student['id']}/subjects", headers=headers).json()[0]

    response = client.put(
        f"/api/v2/grades/{subject['id']}/2024/Period 1",
        json={"exams": [12, None, None]},
        headers=headers,
    )
    assert response.status_code == 422


def test_summary_endpoint(client: TestClient):
    _register_teacher(client)
    headers = auth_headers(client, "ana@school.test", "secret-ana")

    response = client.post(
        "/api/v2/grades/summary",
        json={"tasks": [10, 10, 10, 10], "exams": [10, 10, 10], "presentations": [9, None, None]},
        headers=headers,
    )
    assert float(response.json()["final_grade"]) == 9.8
    assert response.json()["status"]["label"] == "Excellent"


def test_admin_panel(client: TestClient, admin_headers):
    teacher = _register_teacher(client)
    ana = auth_headers(client, "ana@school.test", "secret-ana")
    _register_student(client, ana)

    panel = client.get("/api/v2/admin/teachers", headers=admin_headers).json()
    assert panel[0]["teacher"]["id"] == teacher["id"]
    assert [s["username"] for s in panel[0]["students"]] == ["sofia"]

    assert client.get("/api/v2/admin/teachers", headers=ana).status_code == 403

    reset = client.put(
        f"/api/v2/admin/teachers/{teacher['id']}/password",
        json={"password": "fresh"},
        headers=admin_headers,
    )
    assert reset.status_code == 200
    auth_headers(client, "ana@school.test", "fresh")

    deleted = client.delete(f"/api/v2/admin/teachers/{teacher['id']}", headers=admin_headers)
    assert deleted.status_code == 204
    failed = client.post("/api/v2/auth/login", data={"username": "sofia", "password": "secret-sofia"})
    assert failed.status_code == 401



def test_startup_creates_tables(monkeypatch) -> None:
    from gradebook import main

    calls = []
    monkeypatch.setattr(main, "init_models", lambda: calls.append("init"))

    with TestClient(main.create_app()) as c:
        assert calls == ["init"]
        assert c.get("/health").status_code == 200


def test_api_endpoints_run_in_threadpool() -> None:
    import inspect

    from fastapi.routing import APIRoute

    from gradebook.main import app

    endpoints = [route.endpoint for route in app.routes if isinstance(route, APIRoute)]
    assert endpoints
    assert not [e.__name__ for e in endpoints if inspect.iscoroutinefunction(e)]
