from __future__ import annotations

from datetime import timedelta

import pytest
from werkzeug.security import generate_password_hash

from qr_attendance.container import assemble
from qr_attendance.core.enums import Role
from qr_attendance.core.exceptions import ConfigurationError
from qr_attendance.main import create_app
from qr_attendance.sessions.model import ClassSession
from qr_attendance.tokens.policy import TokenPolicy
from qr_attendance.users.model import User

from .fakes import FACULTY_ID, InMemoryUsers

STUDENT_ID = 100


@pytest.fixture
def users():
    return InMemoryUsers(
        {
            "faculty": User(FACULTY_ID, "Faculty", "faculty", generate_password_hash("faculty123"), Role.FACULTY),
            "student": User(STUDENT_ID, "Student", "student", generate_password_hash("student123"), Role.STUDENT),
        }
    )


@pytest.fixture
def container(users, sessions, tokens, attendance, audit, policy, clock):
    return assemble(
        users_repo=users,
        sessions_repo=sessions,
        tokens_repo=tokens,
        attendance_repo=attendance,
        audit_repo=audit,
        policy=policy,
        grace_minutes=10,
        clock=clock,
    )


@pytest.fixture
def client(container):
    app = create_app(container, settings_module="qr_attendance.config.testing")
    return app.test_client()


def _login_as(client, user_id: int, role: Role) -> None:
    with client.session_transaction() as sess:
        sess["user_id"] = user_id
        sess["role"] = role.value


def _display_token(client) -> str:
    _login_as(client, FACULTY_ID, Role.FACULTY)
    resp = client.get("/api/sessions/1/token")
    assert resp.status_code == 200
    return resp.get_json()["token"]


def test_login_sets_session(client):
    resp = client.post("/api/login", json={"username": "student", "password": "student123"})
    assert resp.status_code == 200
    assert resp.get_json()["role"] == "student"

    me = client.get("/api/me")
    assert me.status_code == 200
    assert me.get_json()["user_id"] == STUDENT_ID


def test_login_wrong_password_is_401(client):
    resp = client.post("/api/login", json={"username": "student", "password": "nope"})
    assert resp.status_code == 401


def test_token_endpoint_returns_display_payload(client, clock):
    _login_as(client, FACULTY_ID, Role.FACULTY)

    resp = client.get("/api/sessions/1/token")

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["sessionId"] == 1
    assert body["token"]
    assert body["expiresAt"] == "2026-03-02T09:01:30Z"
    assert body["rotationIntervalSeconds"] == 60


def test_token_endpoint_status_codes(client, sessions, fixed_now):
    sessions.add(
        ClassSession(
            session_id=2,
            course_code="OLD",
            faculty_id=FACULTY_ID,
            start_time=fixed_now - timedelta(hours=3),
            end_time=fixed_now - timedelta(hours=1),
        )
    )
    _login_as(client, FACULTY_ID, Role.FACULTY)

    assert client.get("/api/sessions/99/token").status_code == 404
    assert client.get("/api/sessions/2/token").status_code == 409


def test_token_endpoint_requires_owner_or_admin(client):
    _login_as(client, FACULTY_ID + 1, Role.FACULTY)
    assert client.get("/api/sessions/1/token").status_code == 403

    _login_as(client, 1, Role.ADMIN)
    assert client.get("/api/sessions/1/token").status_code == 200

    _login_as(client, STUDENT_ID, Role.STUDENT)
    assert client.get("/api/sessions/1/token").status_code == 403


def test_token_endpoint_requires_login(client):
    assert client.get("/api/sessions/1/token").status_code == 401


def test_manual_rotate_issues_new_token(client, clock):
    first = _display_token(client)
    clock.advance(5)

    resp = client.post("/api/sessions/1/token/rotate")

    assert resp.status_code == 200
    assert resp.get_json()["token"] != first


def test_qr_png(client):
    _login_as(client, FACULTY_ID, Role.FACULTY)

    resp = client.get("/api/sessions/1/token/qr.png")

    assert resp.status_code == 200
    assert resp.mimetype == "image/png"
    assert resp.headers["Cache-Control"] == "no-store"
    assert resp.data.startswith(b"\x89PNG")


def test_checkin_then_rescan(client, clock):
    token = _display_token(client)
    clock.advance(20)
    _login_as(client, STUDENT_ID, Role.STUDENT)

    first = client.post("/api/attendance/checkin", json={"token": token, "studentId": STUDENT_ID})
    again = client.post("/api/attendance/checkin", json={"token": token})

    assert first.status_code == 200
    assert first.get_json()["created"] is True
    assert first.get_json()["status"] == "PRESENT"
    assert again.status_code == 200
    assert again.get_json()["created"] is False


def test_checkin_error_codes(client, clock, container):
    old = _display_token(client)
    clock.advance(60)
    container.token_service.rotate(1)
    _login_as(client, STUDENT_ID, Role.STUDENT)

    unknown = client.post("/api/attendance/checkin", json={"token": "not-a-token"})
    superseded = client.post("/api/attendance/checkin", json={"token": old})
    missing = client.post("/api/attendance/checkin", json={})

    assert unknown.status_code == 404
    assert superseded.status_code == 410
    assert missing.status_code == 400


def test_checkin_after_session_end_is_409(client, clock, sessions, fixed_now):
    sessions.add(
        ClassSession(
            session_id=3,
            course_code="SHORT",
            faculty_id=FACULTY_ID,
            start_time=fixed_now,
            end_time=fixed_now + timedelta(seconds=30),
        )
    )
    _login_as(client, FACULTY_ID, Role.FACULTY)
    token = client.get("/api/sessions/3/token").get_json()["token"]
    clock.advance(45)
    _login_as(client, STUDENT_ID, Role.STUDENT)

    resp = client.post("/api/attendance/checkin", json={"token": token})

    assert resp.status_code == 409


def test_checkin_for_other_student_is_403(client):
    token = _display_token(client)
    _login_as(client, STUDENT_ID, Role.STUDENT)

    resp = client.post("/api/attendance/checkin", json={"token": token, "studentId": STUDENT_ID + 1})

    assert resp.status_code == 403


def test_checkin_requires_student_role(client):
    token = _display_token(client)

    resp = client.post("/api/attendance/checkin", json={"token": token})

    assert resp.status_code == 403


def test_list_and_correct_attendance(client, clock, attendance):
    _display_token(client)
    clock.advance(15 * 60)
    client.post("/api/sessions/1/token/rotate")
    _login_as(client, STUDENT_ID, Role.STUDENT)
    token = client.application.extensions["qr_attendance"].token_service.get_or_create_active_token(1).token
    assert client.post("/api/attendance/checkin", json={"token": token}).get_json()["status"] == "LATE"

    _login_as(client, FACULTY_ID, Role.FACULTY)
    listing = client.get("/api/sessions/1/attendance").get_json()
    assert [r["studentId"] for r in listing["records"]] == [STUDENT_ID]

    resp = client.post(
        f"/api/sessions/1/attendance/{STUDENT_ID}/correct",
        json={"status": "present", "reason": "bus strike"},
    )

    assert resp.status_code == 200
    assert resp.get_json()["record"]["status"] == "PRESENT"
    assert resp.get_json()["record"]["markedBy"] == "FACULTY"
    assert attendance.corrections[0]["reason"] == "bus strike"


def test_correct_rejects_unknown_status(client):
    _login_as(client, FACULTY_ID, Role.FACULTY)

    resp = client.post(f"/api/sessions/1/attendance/{STUDENT_ID}/correct", json={"status": "MAYBE", "reason": "x"})

    assert resp.status_code == 400


def test_assemble_refuses_jitter_that_overruns_expiry(users, sessions, tokens, attendance, audit):
    with pytest.raises(ConfigurationError):
        assemble(
            users_repo=users,
            sessions_repo=sessions,
            tokens_repo=tokens,
            attendance_repo=attendance,
            audit_repo=audit,
            policy=TokenPolicy(rotation_interval_seconds=90, expiry_window_seconds=90, jitter_seconds=5),
        )
