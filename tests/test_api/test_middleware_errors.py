"""Tests for request middleware and error rendering."""

import uuid

import pytest
from httpx import ASGITransport, AsyncClient
from starlette.testclient import TestClient

from post_oracle.main import create_app
from post_oracle.middleware.correlation import valid_correlation_id


class TestCorrelation:
    """X-Request-ID handling."""

    def test_should_echo_valid_request_id(self, test_app_client: TestClient):
        request_id = str(uuid.uuid4())

        response = test_app_client.get("/health", headers={"X-Request-ID": request_id})

        assert response.headers["X-Request-ID"] == request_id

    def test_should_replace_invalid_request_id(self, test_app_client: TestClient):
        response = test_app_client.get("/health", headers={"X-Request-ID": "bogus"})

        generated = response.headers["X-Request-ID"]
        assert generated != "bogus"
        assert valid_correlation_id(generated)

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("test-abc", True),
            ("123e4567-e89b-12d3-a456-426614174000", True),
            ("not-a-uuid", False),
            ("", False),
            (None, False),
        ],
    )
    def test_valid_correlation_id(self, value, expected):
        assert valid_correlation_id(value) is expected


class TestErrorResponses:
    """Errors rendered as {success: false, error}."""

    def test_should_render_not_found(self, test_app_client: TestClient):
        response = test_app_client.get("/missing")

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Not Found"}

    def test_should_render_validation_errors_with_request_id(
        self, test_app_client: TestClient
    ):
        response = test_app_client.post(
            "/store-content", json={}, headers={"X-Request-ID": "test-123"}
        )

        assert response.status_code == 422
        assert response.headers["X-Request-ID"] == "test-123"
        assert response.json()["error"].count("Field required") == 4

    @pytest.mark.asyncio
    async def test_should_render_unhandled_errors_as_500(self, test_settings):
        app = create_app(config=test_settings)
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as client:
            response = await client.get("/health")

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "error": "Oracle is not initialized",
        }


class TestCors:
    """Browser clients pushing content from their own origin."""

    @pytest.mark.parametrize(
        "origin", ["http://localhost:5173", "https://posts.example.org"]
    )
    def test_should_allow_preflight_from_any_origin(
        self, test_app_client: TestClient, origin: str
    ):
        response = test_app_client.options(
            "/store-content",
            headers={
                "Origin": origin,
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "Content-Type",
            },
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"

    def test_should_allow_cross_origin_push(self, test_app_client: TestClient):
        response = test_app_client.post(
            "/store-content",
            json={
                "postId": 5,
                "content": "hello",
                "username": "alice",
                "walletAddress": "0xabc",
            },
            headers={"Origin": "https://posts.example.org"},
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"
