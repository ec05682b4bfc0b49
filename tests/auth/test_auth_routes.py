"""
Tests for the authentication endpoints.
"""
from datetime import datetime, timezone

from fastapi import Depends

from hospital_api.auth.dependencies import (
    require_all_roles,
    require_medical_staff,
)
from hospital_api.auth.models import AccountStatus, UserRole

STRONG_PASSWORD = "Str0ng!Pass"

REGISTER_URL = "/api/v1/auth/register"
LOGIN_URL = "/api/v1/auth/login"
ME_URL = "/api/v1/auth/me"


def registration(**overrides):
    data = {
        "email": "a@x.com",
        "password": STRONG_PASSWORD,
        "first_name": "Ada",
        "last_name": "Lovelace",
    }
    data.update(overrides)
    return data


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


def test_register_login_me_flow(client):
    response = client.post(REGISTER_URL, json=registration())
    assert response.status_code == 201
    body = response.json()
    assert body["user"]["role"] == "PATIENT"
    assert body["user"]["email"] == "a@x.com"
    assert body["token_type"] == "bearer"
    assert body["expires_in"] == 86400
    assert "password_hash" not in body["user"]

    response = client.post(LOGIN_URL, json={"email": "a@x.com", "password": STRONG_PASSWORD})
    assert response.status_code == 200
    tokens = response.json()
    assert tokens["access_token"] and tokens["refresh_token"]

    response = client.get(ME_URL, headers=bearer(tokens["access_token"]))
    assert response.status_code == 200
    assert response.json()["email"] == "a@x.com"


def test_register_duplicate_is_conflict(client):
    client.post(REGISTER_URL, json=registration())
    response = client.post(REGISTER_URL, json=registration())
    assert response.status_code == 409
    body = response.json()
    assert body["success"] is False
    assert body["code"] == "USER_EXISTS"


def test_register_weak_password(client):
    response = client.post(REGISTER_URL, json=registration(password="abc"))
    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "WEAK_PASSWORD"
    assert len(body["details"]["reasons"]) == 4


def test_register_missing_field_is_validation_error(client):
    data = registration()
    del data["last_name"]
    response = client.post(REGISTER_URL, json=data)
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_register_invalid_email_is_validation_error(client):
    response = client.post(REGISTER_URL, json=registration(email="not-an-email"))
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_register_with_role(client):
    response = client.post(REGISTER_URL, json=registration(role="DOCTOR"))
    assert response.status_code == 201
    assert response.json()["user"]["role"] == "DOCTOR"


def test_register_admin_role_when_disabled(app, client):
    app.state.settings = app.state.settings.model_copy(update={"allow_admin_self_registration": False})
    response = client.post(REGISTER_URL, json=registration(role="SUPER_ADMIN"))
    assert response.status_code == 403
    assert response.json()["code"] == "FORBIDDEN"


def test_register_overlong_password_is_weak(client):
    response = client.post(REGISTER_URL, json=registration(password="Aa1!" + "x" * 80))
    assert response.status_code == 400
    assert response.json()["code"] == "WEAK_PASSWORD"


def test_login_wrong_password(client, make_user):
    make_user(email="a@x.com")
    response = client.post(LOGIN_URL, json={"email": "a@x.com", "password": "Wr0ng!Pass"})
    assert response.status_code == 401
    assert response.json()["code"] == "INVALID_CREDENTIALS"


def test_login_empty_password_is_validation_error(client, make_user):
    make_user(email="a@x.com")
    response = client.post(LOGIN_URL, json={"email": "a@x.com", "password": ""})
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_login_missing_password_is_validation_error(client):
    response = client.post(LOGIN_URL, json={"email": "a@x.com"})
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_login_suspended_account(client, make_user):
    make_user(email="a@x.com", status=AccountStatus.SUSPENDED)
    response = client.post(LOGIN_URL, json={"email": "a@x.com", "password": STRONG_PASSWORD})
    assert response.status_code == 403
    body = response.json()
    assert body["code"] == "USER_INACTIVE"
    assert body["details"]["status"] == "SUSPENDED"


def test_login_deleted_account(client, make_user):
    make_user(email="a@x.com", deleted=True)
    response = client.post(LOGIN_URL, json={"email": "a@x.com", "password": STRONG_PASSWORD})
    assert response.status_code == 401
    assert response.json()["code"] == "INVALID_CREDENTIALS"


def test_me_without_token(client):
    response = client.get(ME_URL)
    assert response.status_code == 401
    assert response.json()["code"] == "UNAUTHENTICATED"
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_me_with_invalid_token(client):
    response = client.get(ME_URL, headers=bearer("garbage"))
    assert response.status_code == 401
    assert response.json()["code"] == "INVALID_TOKEN"


def test_me_rejects_refresh_token(client, make_user, tokens):
    user = make_user()
    response = client.get(ME_URL, headers=bearer(tokens.issue_refresh_token(user.id)))
    assert response.status_code == 401
    assert response.json()["code"] == "INVALID_TOKEN"


def test_me_after_account_deleted(client, make_user, auth_headers, db):
    user = make_user()
    headers = auth_headers(user)
    user.deleted_at = datetime.now(timezone.utc)
    db.commit()

    response = client.get(ME_URL, headers=headers)
    assert response.status_code == 404
    assert response.json()["code"] == "USER_NOT_FOUND"


def test_me_reflects_current_role(client, make_user, auth_headers, db):
    user = make_user(role=UserRole.NURSE)
    headers = auth_headers(user)
    user.role = UserRole.DOCTOR
    db.commit()

    response = client.get(ME_URL, headers=headers)
    assert response.json()["role"] == "DOCTOR"


def test_refresh_endpoint(client, make_user):
    make_user(email="a@x.com")
    login = client.post(LOGIN_URL, json={"email": "a@x.com", "password": STRONG_PASSWORD}).json()

    response = client.post("/api/v1/auth/refresh", json={"refresh_token": login["refresh_token"]})
    assert response.status_code == 200
    assert response.json()["access_token"]

    response = client.post("/api/v1/auth/refresh", json={"refresh_token": login["access_token"]})
    assert response.status_code == 401
    assert response.json()["code"] == "INVALID_TOKEN"


def test_logout_is_stateless(client, make_user, auth_headers):
    user = make_user()
    headers = auth_headers(user)

    response = client.post("/api/v1/auth/logout", headers=headers)
    assert response.status_code == 200
    assert response.json()["message"] == "Logged out successfully"

    assert client.get(ME_URL, headers=headers).status_code == 200


def test_logout_requires_token(client):
    response = client.post("/api/v1/auth/logout")
    assert response.status_code == 401


def test_role_dependencies(app, client, make_user, auth_headers):
    @app.get("/api/v1/test/medical")
    def medical(claims=Depends(require_medical_staff)):
        return {"role": claims.role}

    @app.get("/api/v1/test/doctor-only")
    def doctor_only(claims=Depends(require_all_roles(UserRole.DOCTOR))):
        return {"role": claims.role}

    doctor = auth_headers(make_user(role=UserRole.DOCTOR))
    receptionist = auth_headers(make_user(role=UserRole.RECEPTIONIST))

    assert client.get("/api/v1/test/medical", headers=doctor).status_code == 200
    response = client.get("/api/v1/test/medical", headers=receptionist)
    assert response.status_code == 403
    assert response.json()["code"] == "FORBIDDEN"
    assert client.get("/api/v1/test/medical").status_code == 401

    assert client.get("/api/v1/test/doctor-only", headers=doctor).status_code == 200
    assert client.get("/api/v1/test/doctor-only", headers=receptionist).status_code == 403

