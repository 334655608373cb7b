# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for the authentication middleware."""

from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient
from pydantic import SecretStr

from src.api.middleware.auth import AuthMiddleware, get_current_user
from src.domains.auth.jwt import JWTManager


@pytest.fixture
def jwt_settings() -> MagicMock:
    """Create mock JWT settings."""
    settings = MagicMock()
    settings.secret_key = SecretStr("test-secret-key-for-jwt-testing")
    settings.algorithm = "HS256"
    settings.access_token_expire_minutes = 30
    return settings


@pytest.fixture
def jwt_manager(jwt_settings: MagicMock) -> JWTManager:
    """Create JWT manager with test settings."""
    return JWTManager(jwt_settings)


@pytest.fixture
def client(jwt_settings: MagicMock) -> TestClient:
    """App that echoes the authenticated user."""
    with patch("src.api.middleware.auth.get_settings") as mock_settings:
        mock_settings.return_value.jwt = jwt_settings

        app = FastAPI()
        app.add_middleware(AuthMiddleware)

        @app.get("/api/whoami")
        async def whoami(request: Request) -> dict:
            user = get_current_user(request)
            if user is None:
                return {"user_id": None}
            return {"user_id": str(user.id), "is_student": user.is_student}

        @app.get("/health")
        async def health(request: Request) -> dict:
            return {"user": get_current_user(request)}

        # Middleware is instantiated lazily on the first request
        test_client = TestClient(app)
        test_client.get("/health")
        yield test_client


class TestAuthMiddleware:
    """Tests for AuthMiddleware."""

    def test_valid_token_sets_user(self, client: TestClient, jwt_manager: JWTManager) -> None:
        """Test that a valid token populates request.state.user."""
        user_id = uuid4()
        token = jwt_manager.create_access_token(user_id=user_id, user_type="student")

        response = client.get("/api/whoami", headers={"Authorization": f"Bearer {token}"})

        assert response.json() == {"user_id": str(user_id), "is_student": True}

    def test_missing_token_leaves_user_empty(self, client: TestClient) -> None:
        """Test that anonymous requests continue with no user."""
        response = client.get("/api/whoami")

        assert response.status_code == 200
        assert response.json() == {"user_id": None}

    def test_non_bearer_scheme_is_ignored(self, client: TestClient, jwt_manager: JWTManager) -> None:
        """Test that only Bearer tokens are accepted."""
        token = jwt_manager.create_access_token(user_id=uuid4())

        response = client.get("/api/whoami", headers={"Authorization": f"Token {token}"})

        assert response.json() == {"user_id": None}

    def test_non_uuid_subject_is_rejected(
        self, client: TestClient, jwt_manager: JWTManager
    ) -> None:
        """Test that a token whose subject is not a user id authenticates nobody."""
        token = jwt_manager.create_access_token(user_id="service-account")

        response = client.get("/api/whoami", headers={"Authorization": f"Bearer {token}"})

        assert response.json() == {"user_id": None}

    def test_public_path_skips_authentication(
        self, client: TestClient, jwt_manager: JWTManager
    ) -> None:
        """Test that tokens are not decoded on public paths."""
        token = jwt_manager.create_access_token(user_id=uuid4())

        response = client.get("/health", headers={"Authorization": f"Bearer {token}"})

        assert response.json() == {"user": None}
