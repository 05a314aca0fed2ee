"""
Tests for authentication endpoints and bearer-token resolution.
"""
import json
import logging
from datetime import timedelta

from heartspace.auth import create_access_token


class TestAuthEndpoints:
    """Test auth endpoints."""

    def test_signup(self, client):
        """Test user registration returns a usable token."""
        response = client.post(
            "/api/auth/signup",
            json={
                "email": "newuser@example.com",
                "password": "securepassword123",
                "name": "New User",
            },
        )
        assert response.status_code == 201
        data = response.json()
        assert data["user"]["email"] == "newuser@example.com"
        assert data["user"]["name"] == "New User"
        assert "password" not in data["user"]
        assert "hashed_password" not in data["user"]

        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {data['token']}"})
        assert me.status_code == 200
        assert me.json()["id"] == data["user"]["id"]

    def test_signup_duplicate_email(self, client, test_user):
        """Test registration with existing email fails."""
        response = client.post(
            "/api/auth/signup",
            json={
                "email": "test@example.com",
                "password": "anotherpassword",
                "name": "Another User",
            },
        )
        assert response.status_code == 400
        assert response.json()["error"] == "User already exists"

    def test_signup_missing_fields(self, client):
        """Missing name is a validation error, reported as 400."""
        response = client.post(
            "/api/auth/signup",
            json={"email": "x@example.com", "password": "securepassword123"},
        )
        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    def test_rejected_password_is_not_logged(self, client, caplog):
        """A too-short password is reported by field, never echoed into the logs."""
        api_log = logging.getLogger("heartspace.api")
        api_log.addHandler(caplog.handler)
        try:
            response = client.post(
                "/api/auth/signup",
                json={"email": "short@example.com", "password": "hunter2", "name": "Short"},
            )
        finally:
            api_log.removeHandler(caplog.handler)

        assert response.status_code == 400
        assert response.json()["error"].startswith("password:")
        assert "hunter2" not in response.text

        warnings = [r for r in caplog.records if r.getMessage().startswith("Validation error")]
        assert warnings
        for record in warnings:
            assert "hunter2" not in json.dumps(record.context, default=str)

    def test_signin_success(self, client, test_user):
        """Test successful sign-in."""
        response = client.post(
            "/api/auth/signin",
            json={"email": "test@example.com", "password": "testpassword123"},
        )
        assert response.status_code == 200
        data = response.json()
        assert "token" in data
        assert data["user"]["id"] == test_user.id

    def test_signin_wrong_password(self, client, test_user):
        """Test sign-in with wrong password fails."""
        response = client.post(
            "/api/auth/signin",
            json={"email": "test@example.com", "password": "wrongpassword"},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid credentials"

    def test_signin_nonexistent_user(self, client):
        """Test sign-in with non-existent user fails the same way."""
        response = client.post(
            "/api/auth/signin",
            json={"email": "nobody@example.com", "password": "anypassword"},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid credentials"


class TestTokenResolution:
    """Missing tokens are 401, unusable ones are 403."""

    def test_missing_token(self, client):
        response = client.get("/api/auth/me")
        assert response.status_code == 401
        assert response.json()["error"] == "Access denied. No token provided."

    def test_garbage_token(self, client, db):
        response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 403
        assert response.json()["error"] == "Invalid token"

    def test_expired_token(self, client, test_user):
        token = create_access_token(test_user.id, expires_delta=timedelta(seconds=-1))
        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 403

    def test_token_for_deleted_user(self, client, test_user, db):
        token = create_access_token(test_user.id)
        db.delete(test_user)
        db.commit()

        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 403

    def test_mutating_endpoint_requires_token(self, client, db):
        response = client.post(
            "/api/sessions",
            json={"title": "Yoga", "date": "2025-01-10", "time": "09:00", "maxAttendees": 5},
        )
        assert response.status_code == 401
