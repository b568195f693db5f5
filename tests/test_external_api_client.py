"""
Unit tests for the external API clients.

Tests cover:
- Retry logic on 5xx errors
- No retry on 4xx errors
- Async context manager
- Brigade registry coordinate extraction
- Identity service verification
"""
import pytest
import httpx
import respx
from unittest.mock import AsyncMock

from app.domain.errors import InvalidArgumentError
from app.infrastructure.brigade_client import (
    BrigadeClient,
    BrigadeNotFoundError,
    extract_coordinates,
)
from app.infrastructure.external_api_client import ExternalAPIClient, ExternalAPIError
from app.infrastructure.identity_client import IdentityClient, IdentityServiceError

BASE_URL = "https://service.test"


# ============================================================
# Base Client Tests
# ============================================================

class TestAsyncContextManager:
    """Tests for async context manager functionality."""

    @pytest.mark.asyncio
    async def test_context_manager_enter(self):
        """__aenter__ should return the client instance."""
        client = ExternalAPIClient(BASE_URL)

        async with client as ctx_client:
            assert ctx_client is client

    @pytest.mark.asyncio
    async def test_context_manager_exit_closes_client(self):
        """__aexit__ should close the HTTP client."""
        client = ExternalAPIClient(BASE_URL)
        client.close = AsyncMock()

        async with client:
            pass

        client.close.assert_called_once()


class TestErrorHandling:
    """Tests for retry and error handling."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_successful_get_request(self):
        respx.get(f"{BASE_URL}/test").mock(
            return_value=httpx.Response(200, json={"result": "success"})
        )

        async with ExternalAPIClient(BASE_URL) as client:
            result = await client._make_request("GET", "/test")

        assert result == {"result": "success"}

    @pytest.mark.asyncio
    @respx.mock
    async def test_empty_response_returns_none(self):
        respx.delete(f"{BASE_URL}/test").mock(return_value=httpx.Response(204))

        async with ExternalAPIClient(BASE_URL) as client:
            assert await client._make_request("DELETE", "/test") is None

    @pytest.mark.asyncio
    @respx.mock
    async def test_4xx_error_no_retry(self):
        """4xx errors should not trigger retry."""
        route = respx.get(f"{BASE_URL}/test").mock(
            return_value=httpx.Response(404, text="Not Found")
        )

        async with ExternalAPIClient(BASE_URL) as client:
            with pytest.raises(ExternalAPIError, match="404") as exc_info:
                await client._make_request("GET", "/test")

        assert exc_info.value.status_code == 404
        assert route.call_count == 1

    @pytest.mark.asyncio
    @respx.mock
    async def test_5xx_error_triggers_retry(self):
        """5xx errors should trigger retry."""
        route = respx.get(f"{BASE_URL}/test")
        route.side_effect = [
            httpx.Response(500, text="Internal Server Error"),
            httpx.Response(200, json={"result": "success"}),
        ]

        async with ExternalAPIClient(BASE_URL) as client:
            result = await client._make_request("GET", "/test")

        assert result == {"result": "success"}
        assert route.call_count == 2

    @pytest.mark.asyncio
    @respx.mock
    async def test_persistent_5xx_becomes_bad_gateway(self):
        route = respx.get(f"{BASE_URL}/test").mock(
            return_value=httpx.Response(503, text="Unavailable")
        )

        async with ExternalAPIClient(BASE_URL) as client:
            with pytest.raises(ExternalAPIError) as exc_info:
                await client._make_request("GET", "/test")

        assert exc_info.value.status_code == 502
        assert route.call_count == 3

    @pytest.mark.asyncio
    @respx.mock
    async def test_transport_error_retried(self):
        route = respx.get(f"{BASE_URL}/test")
        route.side_effect = [
            httpx.ConnectError("connection refused"),
            httpx.Response(200, json={"ok": True}),
        ]

        async with ExternalAPIClient(BASE_URL) as client:
            result = await client._make_request("GET", "/test")

        assert result == {"ok": True}
        assert route.call_count == 2


# ============================================================
# Brigade Registry Tests
# ============================================================

class TestExtractCoordinates:

    def test_nested_coordinates(self):
        payload = {"data": {"coordenadas": {"latitud": 6.2442, "longitud": -75.5812}}}

        assert extract_coordinates(payload) == (6.2442, -75.5812)

    def test_flat_string_coordinates(self):
        payload = {"data": {"latitud": "4.6097", "longitud": "-74.0817"}}

        assert extract_coordinates(payload) == (4.6097, -74.0817)

    def test_missing_coordinates(self):
        with pytest.raises(InvalidArgumentError):
            extract_coordinates({"data": {"code": "CONG-001"}})

    def test_non_numeric_coordinates(self):
        with pytest.raises(InvalidArgumentError):
            extract_coordinates({"data": {"latitud": "north", "longitud": "west"}})


class TestBrigadeClient:

    @pytest.mark.asyncio
    @respx.mock
    async def test_get_coordinates(self):
        respx.get(f"{BASE_URL}/api/conglomerados/3").mock(
            return_value=httpx.Response(200, json={
                "data": {"id": 3, "coordenadas": {"latitud": 6.25, "longitud": -75.56}}
            })
        )

        async with BrigadeClient(base_url=BASE_URL) as client:
            assert await client.get_conglomerate_coordinates(3) == (6.25, -75.56)

    @pytest.mark.asyncio
    @respx.mock
    async def test_unknown_conglomerate(self):
        respx.get(f"{BASE_URL}/api/conglomerados/404").mock(
            return_value=httpx.Response(404, json={"error": "not found"})
        )

        async with BrigadeClient(base_url=BASE_URL) as client:
            with pytest.raises(BrigadeNotFoundError):
                await client.get_conglomerate_coordinates(404)


# ============================================================
# Identity Service Tests
# ============================================================

class TestIdentityClient:

    @pytest.mark.asyncio
    @respx.mock
    async def test_accepted_token(self):
        route = respx.get(f"{BASE_URL}/verify").mock(
            return_value=httpx.Response(200, json={
                "user": {"id": "u-1", "email": "field@example.org"}
            })
        )

        async with IdentityClient(base_url=BASE_URL, verify_path="/verify") as client:
            user = await client.verify("good-token")

        assert user.id == "u-1"
        assert user.email == "field@example.org"
        assert route.calls.last.request.headers["Authorization"] == "Bearer good-token"

    @pytest.mark.asyncio
    @respx.mock
    async def test_subject_claim_accepted(self):
        respx.get(f"{BASE_URL}/verify").mock(
            return_value=httpx.Response(200, json={"sub": "u-2"})
        )

        async with IdentityClient(base_url=BASE_URL, verify_path="/verify") as client:
            user = await client.verify("token")

        assert user.id == "u-2"

    @pytest.mark.asyncio
    @respx.mock
    @pytest.mark.parametrize("status_code", [401, 403])
    async def test_rejected_token(self, status_code):
        respx.get(f"{BASE_URL}/verify").mock(return_value=httpx.Response(status_code))

        async with IdentityClient(base_url=BASE_URL, verify_path="/verify") as client:
            assert await client.verify("bad-token") is None

    @pytest.mark.asyncio
    @respx.mock
    async def test_service_down(self):
        respx.get(f"{BASE_URL}/verify").mock(return_value=httpx.Response(500))

        async with IdentityClient(base_url=BASE_URL, verify_path="/verify") as client:
            with pytest.raises(IdentityServiceError):
                await client.verify("token")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
