"""Superfície HTTP: envelope de erro, autenticação e fluxo básico de turmas."""
import pytest

from app.db.init_db import init_db
from app.models.audit import AuditLog
from tests.factories import make_admin

PASSWORD = "segredo123"


@pytest.fixture
def catalog(db):
    init_db(db)


def _auth(token):
    return {"Authorization": f"Bearer {token}"}


def _register(client, email="maria@teste.com"):
    resp = client.post("/api/v1/auth/register", json={
        "name": "Maria Souza",
        "email": email,
        "password": PASSWORD,
        "confirm_password": PASSWORD,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()["access_token"]


@pytest.fixture
def admin_token(client, db):
    make_admin(db, email="secretaria@teste.com")
    resp = client.post("/api/v1/auth/login", json={"email": "secretaria@teste.com", "password": PASSWORD})
    assert resp.status_code == 200, resp.text
    return resp.json()["access_token"]


def _session_id(client, course_id, code):
    courses = client.get("/api/v1/courses").json()
    course = next(c for c in courses if c["id"] == course_id)
    return next(s["id"] for s in course["sessions"] if s["code"] == code)


def test_healthz(client):
    assert client.get("/healthz").json() == {"status": "ok"}


class TestAuth:
    def test_register_returns_student_token(self, client):
        resp = client.post("/api/v1/auth/register", json={
            "name": "João", "email": "JOAO@Teste.com", "password": PASSWORD, "confirm_password": PASSWORD,
        })

        body = resp.json()
        assert body["user"]["email"] == "joao@teste.com"
        assert body["user"]["role"] == "STUDENT"
        assert body["token_type"] == "bearer"

    def test_duplicate_email(self, client):
        _register(client)

        resp = client.post("/api/v1/auth/register", json={
            "name": "Maria Souza", "email": "maria@teste.com", "password": PASSWORD, "confirm_password": PASSWORD,
        })

        assert resp.status_code == 400
        assert resp.json()["code"] == "INVALID_REQUEST"

    def test_wrong_password(self, client):
        _register(client)

        resp = client.post("/api/v1/auth/login", json={"email": "maria@teste.com", "password": "errada"})

        assert resp.status_code == 401
        assert resp.json()["code"] == "UNAUTHENTICATED"

    def test_missing_bearer(self, client):
        resp = client.get("/api/v1/pre-enrollment")

        assert resp.status_code == 401
        assert set(resp.json()) == {"code", "message", "details"}


class TestCourses:
    def test_lists_catalog_with_stats_and_plans(self, client, catalog):
        courses = client.get("/api/v1/courses").json()

        redacao = next(c for c in courses if c["id"] == "redacao")
        assert redacao["bonus_limit"] == 10
        assert len(redacao["sessions"]) == 9
        r1 = next(s for s in redacao["sessions"] if s["code"] == "R1")
        assert (r1["capacity"], r1["available"], r1["reserved"], r1["waitlist"]) == (18, 18, 0, 0)
        assert {p["id"] for p in redacao["plans"]} >= {"redacao-mensal"}


class TestStudentFlow:
    def test_select_then_attach_plan(self, client, catalog):
        token = _register(client)
        session_id = _session_id(client, "redacao", "R1")

        resp = client.post(
            "/api/v1/pre-enrollment/selections",
            json={"course_id": "redacao", "session_id": session_id},
            headers=_auth(token),
        )
        assert resp.status_code == 201, resp.text
        body = resp.json()
        assert body["status"] == "RESERVED"
        assert body["waitlist_position"] is None

        resp = client.put(
            f"/api/v1/pre-enrollment/selections/{body['selection_id']}/plan",
            json={"plan_id": "redacao-mensal"},
            headers=_auth(token),
        )
        assert resp.status_code == 200, resp.text
        enrollment = resp.json()
        assert enrollment["status"] == "DRAFT"
        assert enrollment["selections"][0]["plan"]["id"] == "redacao-mensal"

    def test_incompatible_plan(self, client, catalog):
        token = _register(client)
        session_id = _session_id(client, "redacao", "R1")
        selection_id = client.post(
            "/api/v1/pre-enrollment/selections",
            json={"course_id": "redacao", "session_id": session_id},
            headers=_auth(token),
        ).json()["selection_id"]

        resp = client.put(
            f"/api/v1/pre-enrollment/selections/{selection_id}/plan",
            json={"plan_id": "exatas-mensal"},
            headers=_auth(token),
        )

        assert resp.status_code == 422
        assert resp.json()["code"] == "INCOMPATIBLE_PLAN"

    def test_cannot_remove_someone_elses_selection(self, client, catalog):
        owner = _register(client, "dono@teste.com")
        intruder = _register(client, "outro@teste.com")
        session_id = _session_id(client, "gramatica", "G1")
        selection_id = client.post(
            "/api/v1/pre-enrollment/selections",
            json={"course_id": "gramatica", "session_id": session_id},
            headers=_auth(owner),
        ).json()["selection_id"]

        resp = client.delete(f"/api/v1/pre-enrollment/selections/{selection_id}", headers=_auth(intruder))

        assert resp.status_code == 403
        assert resp.json()["code"] == "PERMISSION_DENIED"

    def test_session_from_other_course(self, client, catalog):
        token = _register(client)
        session_id = _session_id(client, "exatas", "EX1")

        resp = client.post(
            "/api/v1/pre-enrollment/selections",
            json={"course_id": "redacao", "session_id": session_id},
            headers=_auth(token),
        )

        assert resp.status_code == 404
        assert resp.json()["code"] == "NOT_FOUND"


class TestAdmin:
    def test_student_cannot_use_admin_routes(self, client, catalog):
        token = _register(client)

        resp = client.get("/api/v1/admin/enrollments", headers=_auth(token))

        assert resp.status_code == 403

    def test_capacity_must_be_positive(self, client, catalog, admin_token):
        session_id = _session_id(client, "gramatica", "G1")

        resp = client.put(
            f"/api/v1/admin/sessions/{session_id}/capacity", json={"capacity": 0}, headers=_auth(admin_token),
        )

        assert resp.status_code == 422
        assert resp.json()["code"] == "INVALID_CAPACITY"

    def test_waitlist_only_and_waitlist_listing(self, client, catalog, admin_token):
        session_id = _session_id(client, "gramatica", "G1")

        resp = client.post(f"/api/v1/admin/sessions/{session_id}/waitlist-only", headers=_auth(admin_token))
        assert resp.status_code == 200, resp.text
        assert resp.json()["capacity"] == 0

        waitlist = client.get(f"/api/v1/admin/sessions/{session_id}/waitlist", headers=_auth(admin_token))
        assert waitlist.json() == []

    def test_update_session_details_validates_time(self, client, catalog, admin_token):
        session_id = _session_id(client, "gramatica", "G1")

        resp = client.put(
            f"/api/v1/admin/sessions/{session_id}",
            json={"capacity": 10, "weekday": "Sexta-feira", "start_time": "25:00", "end_time": "21:00", "level": "EM"},
            headers=_auth(admin_token),
        )

        assert resp.status_code == 422

    def test_bonus_awarded_above_limit(self, client, catalog, admin_token):
        resp = client.put(
            "/api/v1/admin/courses/redacao/bonus-awarded", json={"value": 11}, headers=_auth(admin_token),
        )

        assert resp.status_code == 400
        assert resp.json()["details"] == {"bonus_limit": 10, "value": 11}

    def test_move_unknown_selection(self, client, catalog, admin_token):
        resp = client.post(
            "/api/v1/admin/selections/999/move", json={"session_id": 1}, headers=_auth(admin_token),
        )

        assert resp.status_code == 404


class TestAdminUsers:
    def _student_id(self, client, email="ana@teste.com"):
        resp = client.post("/api/v1/auth/register", json={
            "name": "Ana Lima", "email": email, "password": PASSWORD, "confirm_password": PASSWORD,
        })
        assert resp.status_code == 201, resp.text
        return resp.json()["user"]["id"]

    def test_edit_name_email_and_password(self, client, db, admin_token):
        user_id = self._student_id(client)

        resp = client.put(
            f"/api/v1/admin/users/{user_id}",
            json={"name": "Ana Lima Souza", "email": "ANA.SOUZA@teste.com", "password": "novasenha"},
            headers=_auth(admin_token),
        )

        assert resp.status_code == 200, resp.text
        assert resp.json()["email"] == "ana.souza@teste.com"
        assert resp.json()["name"] == "Ana Lima Souza"
        login = client.post("/api/v1/auth/login", json={"email": "ana.souza@teste.com", "password": "novasenha"})
        assert login.status_code == 200
        db.expire_all()
        audit = db.query(AuditLog).filter(AuditLog.entity == "user").one()
        assert audit.diff_json == {"fields": ["name", "email", "password"]}

    def test_blank_password_keeps_current(self, client, admin_token):
        user_id = self._student_id(client)

        resp = client.put(
            f"/api/v1/admin/users/{user_id}",
            json={"name": "Ana Lima", "email": "ana@teste.com", "password": ""},
            headers=_auth(admin_token),
        )

        assert resp.status_code == 200, resp.text
        login = client.post("/api/v1/auth/login", json={"email": "ana@teste.com", "password": PASSWORD})
        assert login.status_code == 200

    def test_email_in_use_by_another_user(self, client, admin_token):
        user_id = self._student_id(client)

        resp = client.put(
            f"/api/v1/admin/users/{user_id}",
            json={"name": "Ana Lima", "email": "secretaria@teste.com"},
            headers=_auth(admin_token),
        )

        assert resp.status_code == 400
        assert resp.json()["code"] == "INVALID_REQUEST"

    def test_unknown_user(self, client, admin_token):
        resp = client.put(
            "/api/v1/admin/users/999", json={"name": "Ninguém", "email": "x@teste.com"}, headers=_auth(admin_token),
        )

        assert resp.status_code == 404

    def test_students_cannot_edit_accounts(self, client):
        user_id = self._student_id(client)
        token = _register(client)

        resp = client.put(
            f"/api/v1/admin/users/{user_id}", json={"name": "Ana Lima", "email": "ana@teste.com"}, headers=_auth(token),
        )

        assert resp.status_code == 403
