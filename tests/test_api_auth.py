"""Tests for registration, login, sessions and role checks over HTTP."""

from datetime import timedelta

from fastapi.testclient import TestClient

from storefront.config import settings
from storefront.main import app
from storefront.models.log import Log
from storefront.models.users import Session, UserRole, UserStatus

PASSWORD = "password123"


class TestRegister:
    def test_register_signs_in(self, client):
        response = client.post("/auth/register", json={
            "email": "New.Customer@Shop.com", "name": "New Customer", "password": "longenough",
        })
        assert response.status_code == 201
        body = response.json()
        assert body["user"]["email"] == "new.customer@shop.com"
        assert body["user"]["role"] == "USER"
        assert settings.SESSION_COOKIE_NAME in response.cookies

        me = client.get("/auth/me")
        assert me.status_code == 200
        assert me.json()["name"] == "New Customer"

    def test_duplicate_email(self, client, customer):
        response = client.post("/auth/register", json={
            "email": customer.email.upper(), "name": "Again", "password": "longenough",
        })
        assert response.status_code == 409

    def test_short_password_is_bad_request(self, client):
        response = client.post("/auth/register", json={
            "email": "short@shop.com", "name": "Short", "password": "abc",
        })
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid request"


class TestLogin:
    def test_wrong_password(self, client, customer, db):
        response = client.post("/auth/login", json={"email": customer.email, "password": "nope"})
        assert response.status_code == 401
        assert db.query(Log).filter(Log.action == "LOGIN", Log.status == "FAIL").count() == 1

    def test_unknown_email(self, client):
        response = client.post("/auth/login", json={"email": "ghost@shop.com", "password": PASSWORD})
        assert response.status_code == 401

    def test_suspended_account(self, client, make_user):
        user = make_user(email="blocked@shop.com", status=UserStatus.SUSPENDED)
        response = client.post("/auth/login", json={"email": user.email, "password": PASSWORD})
        assert response.status_code == 403

    def test_bearer_token(self, client, customer):
        token = client.post("/auth/login", json={"email": customer.email, "password": PASSWORD}).json()["access_token"]
        fresh = TestClient(app)
        response = fresh.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200
        assert response.json()["email"] == customer.email

    def test_logout_ends_session(self, customer_client, db):
        assert customer_client.post("/auth/logout").status_code == 200
        assert db.query(Session).count() == 0
        assert customer_client.get("/auth/me").status_code == 401


class TestSessions:
    def test_anonymous(self, client):
        assert client.get("/auth/me").status_code == 401

    def test_garbage_token(self, client):
        response = client.get("/auth/me", headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == 401

    def test_expired_session_is_removed(self, customer_client, db):
        session = db.query(Session).one()
        session.expires_at = session.expires_at - timedelta(days=settings.SESSION_EXPIRE_DAYS + 1)
        db.commit()

        assert customer_client.get("/auth/me").status_code == 401
        assert db.query(Session).count() == 0

    def test_update_profile(self, customer_client):
        response = customer_client.put("/auth/me", json={"city": "Chicago", "role": "ADMIN"})
        assert response.status_code == 200
        assert response.json()["city"] == "Chicago"
        assert response.json()["role"] == "USER"


class TestAdminAccess:
    def test_customer_is_forbidden(self, customer_client):
        assert customer_client.get("/admin/users").status_code == 403
        assert customer_client.get("/admin/orders").status_code == 403

    def test_admin_login_rejects_customer(self, client, customer):
        response = client.post("/admin/auth/login", json={"email": customer.email, "password": PASSWORD})
        assert response.status_code == 403

    def test_admin_login(self, client, admin):
        response = client.post("/admin/auth/login", json={"email": admin.email, "password": PASSWORD})
        assert response.status_code == 200
        assert response.json()["user"]["role"] == UserRole.ADMIN.value
        assert client.get("/admin/auth/me").status_code == 200

    def test_suspended_mid_session(self, customer_client, customer, db):
        customer.status = UserStatus.SUSPENDED
        db.commit()
        assert customer_client.get("/auth/me").status_code == 403
