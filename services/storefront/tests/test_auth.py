from datetime import datetime, timedelta, timezone
from uuid import UUID

import jwt
import pytest
from sqlalchemy.exc import SQLAlchemyError

from storefront.config import settings
from storefront.models import User, UserSession, UserProfile
from storefront.services import auth_service
from storefront.services.auth_service import AuthService
from conftest import API, PASSWORD, sign_in, sign_up_and_in


def test_sign_up_creates_confirmed_user_and_customer_profile(client, db):
    response = client.post(f"{API}/auth/sign-up", json={
        "email": "Ani@Example.com", "password": PASSWORD, "full_name": "Ani"
    })

    assert response.status_code == 201
    body = response.json()
    assert body["email"] == "ani@example.com"
    assert body["email_confirmed_at"] is not None

    profile = db.query(UserProfile).filter(UserProfile.email == "ani@example.com").one()
    assert profile.role == "customer"
    assert profile.full_name == "Ani"


def test_sign_up_rejects_duplicate_email(client):
    payload = {"email": "dup@example.com", "password": PASSWORD}
    assert client.post(f"{API}/auth/sign-up", json=payload).status_code == 201

    response = client.post(f"{API}/auth/sign-up", json={**payload, "email": "DUP@example.com"})

    assert response.status_code == 409
    assert response.json()["detail"] == "User already registered"


def test_concurrent_sign_up_reports_duplicate(db, monkeypatch):
    real_hash = auth_service.hash_password

    def hash_after_competing_sign_up(password):
        db.add(User(email="race@example.com", password_hash=real_hash(password)))
        db.commit()
        return real_hash(password)

    monkeypatch.setattr(auth_service, "hash_password", hash_after_competing_sign_up)

    with pytest.raises(ValueError, match="User already registered"):
        AuthService(db).sign_up("race@example.com", PASSWORD)

    assert db.query(User).filter(User.email == "race@example.com").count() == 1
    assert db.query(UserProfile).count() == 0


def test_sign_up_validates_email_and_password(client):
    assert client.post(f"{API}/auth/sign-up", json={"email": "nope", "password": PASSWORD}).status_code == 422
    assert client.post(f"{API}/auth/sign-up", json={"email": "a@b.co", "password": "123"}).status_code == 422


def test_sign_in_returns_token_with_session_claims(client, db):
    client.post(f"{API}/auth/sign-up", json={"email": "budi@example.com", "password": PASSWORD})

    response = client.post(f"{API}/auth/sign-in", json={"email": "budi@example.com", "password": PASSWORD})

    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["expires_in"] == settings.access_token_ttl_seconds

    claims = jwt.decode(body["access_token"], settings.jwt_secret, algorithms=["HS256"], issuer=settings.jwt_issuer)
    assert claims["email"] == "budi@example.com"
    assert claims["role"] == "customer"
    assert db.query(UserSession).filter(UserSession.id == UUID(claims["sid"])).count() == 1


def test_sign_in_with_wrong_password(client):
    client.post(f"{API}/auth/sign-up", json={"email": "budi@example.com", "password": PASSWORD})

    wrong_password = client.post(f"{API}/auth/sign-in", json={"email": "budi@example.com", "password": "wrong-one"})
    unknown_email = client.post(f"{API}/auth/sign-in", json={"email": "ghost@example.com", "password": PASSWORD})

    assert wrong_password.status_code == 401
    assert wrong_password.json()["detail"] == "Invalid login credentials"
    assert unknown_email.status_code == 401


def test_me_returns_user_and_profile(client, customer):
    response = client.get(f"{API}/auth/me", headers=customer)

    assert response.status_code == 200
    body = response.json()
    assert body["user"]["email"] == "customer@example.com"
    assert body["profile"]["role"] == "customer"
    assert body["profile"]["full_name"] == "Budi Santoso"
    assert body["profile"]["is_fallback"] is False


def test_missing_token_is_rejected(client):
    response = client.get(f"{API}/auth/me")

    assert response.status_code == 401
    assert response.json()["detail"] == "Authorization header missing"


def test_tampered_token_is_rejected(client, customer):
    token = customer["Authorization"].split(" ", 1)[1]
    forged = jwt.encode(jwt.decode(token, options={"verify_signature": False}), "other-secret", algorithm="HS256")

    response = client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {forged}"})

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid authentication credentials"


def test_sign_out_revokes_the_session(client, customer):
    assert client.post(f"{API}/auth/sign-out", headers=customer).status_code == 204

    response = client.get(f"{API}/auth/me", headers=customer)

    assert response.status_code == 401
    assert response.json()["detail"] == "Session is no longer valid"


def test_sign_out_leaves_other_sessions_open(client, customer):
    second = sign_in(client, "customer@example.com")

    client.post(f"{API}/auth/sign-out", headers=customer)

    assert client.get(f"{API}/auth/me", headers=second).status_code == 200


def test_expired_session_is_rejected(client, db, customer):
    db.query(UserSession).update({UserSession.expires_at: datetime.now(timezone.utc) - timedelta(minutes=1)})
    db.commit()

    response = client.get(f"{API}/auth/me", headers=customer)

    assert response.status_code == 401
    assert response.json()["detail"] == "Session expired"


def test_me_recreates_missing_profile(client, db):
    headers = sign_up_and_in(client, "noprofile@example.com")
    db.query(UserProfile).delete()
    db.commit()

    response = client.get(f"{API}/auth/me", headers=headers)

    assert response.status_code == 200
    profile = response.json()["profile"]
    assert profile["role"] == "customer"
    assert profile["full_name"] == "User"
    assert db.query(UserProfile).count() == 1


def test_get_profile_falls_back_when_insert_fails(db, monkeypatch):
    user = User(email="flaky@example.com", password_hash="x", full_name=None)
    db.add(user)
    db.commit()

    def failing_commit():
        raise SQLAlchemyError("insert failed")

    service = AuthService(db)
    monkeypatch.setattr(db, "commit", failing_commit)
    profile = service.get_profile(user)

    assert profile.is_fallback is True
    assert profile.role == "customer"
    assert profile.full_name == "User"


def test_admin_routes_require_admin_role(client, customer, admin):
    assert client.get(f"{API}/admin/stats").status_code == 401

    forbidden = client.get(f"{API}/admin/stats", headers=customer)
    assert forbidden.status_code == 403
    assert forbidden.json()["detail"] == "Requires admin role"

    assert client.get(f"{API}/admin/stats", headers=admin).status_code == 200
