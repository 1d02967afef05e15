"""
Unit tests for the school backend client.
"""

import pytest
import httpx
import json
from datetime import date, time
from unittest.mock import AsyncMock, patch

from shared.errors import BackendError
from service_console.app.adapters.backend_client import BackendClient, serialize_params

BASE_URL = "http://backend.test"


def _response(status_code: int, body=None, method: str = "GET", path: str = "/v1/vehicle", content=None):
    """Canned backend response."""
    if content is None:
        content = json.dumps(body) if body is not None else b""
    return httpx.Response(
        status_code=status_code,
        content=content,
        request=httpx.Request(method, f"{BASE_URL}{path}")
    )


class TestBackendClient:
    """Test cases for BackendClient."""

    @pytest.fixture
    def backend_client(self, metrics):
        """Create BackendClient instance that does not retry."""
        return BackendClient(BASE_URL, retry_attempts=1, retry_base_delay=0, failure_threshold=3, metrics=metrics)

    @pytest.mark.asyncio
    async def test_request_returns_decoded_body(self, backend_client):
        """Test successful responses are decoded from JSON."""
        with patch.object(backend_client._client, "request",
                          AsyncMock(return_value=_response(200, {"vehicles": []}))) as mock_request:
            result = await backend_client.get("/v1/vehicle")

        assert result == {"vehicles": []}
        mock_request.assert_awaited_once()
        assert mock_request.await_args.args == ("GET", "/v1/vehicle")

    @pytest.mark.asyncio
    async def test_empty_body_returns_none(self, backend_client):
        """Test an empty successful body decodes to None."""
        with patch.object(backend_client._client, "request", AsyncMock(return_value=_response(204))):
            assert await backend_client.delete("/v1/vehicle/1") is None

    @pytest.mark.asyncio
    async def test_params_are_serialized(self, backend_client):
        """Test dates, booleans and None params are rendered for the backend."""
        with patch.object(backend_client._client, "request",
                          AsyncMock(return_value=_response(200, {}))) as mock_request:
            await backend_client.get(
                "/v1/employee/attendance",
                params={"date": date(2024, 5, 1), "ascending": False, "q": None}
            )

        assert mock_request.await_args.kwargs["params"] == {"date": "2024-05-01", "ascending": "false"}

    @pytest.mark.asyncio
    async def test_client_error_uses_backend_error_text(self, backend_client):
        """Test 4xx responses surface the backend's error field."""
        response = _response(409, {"error": "Employee is already an admin"}, method="POST")
        with patch.object(backend_client._client, "request", AsyncMock(return_value=response)):
            with pytest.raises(BackendError) as exc_info:
                await backend_client.post("/v1/employee/1/make-admin", json={})

        assert exc_info.value.reason == "Employee is already an admin"
        assert exc_info.value.backend_status == 409
        assert exc_info.value.is_conflict
        assert exc_info.value.body == {"error": "Employee is already an admin"}

    @pytest.mark.asyncio
    async def test_client_error_without_body(self, backend_client):
        """Test 4xx responses without a body get a generic reason."""
        with patch.object(backend_client._client, "request", AsyncMock(return_value=_response(404))):
            with pytest.raises(BackendError) as exc_info:
                await backend_client.get("/v1/vehicle/missing")

        assert exc_info.value.reason == "School backend responded with 404"

    @pytest.mark.asyncio
    async def test_client_errors_do_not_open_circuit(self, backend_client):
        """Test 4xx responses are not counted as backend failures."""
        with patch.object(backend_client._client, "request",
                          AsyncMock(return_value=_response(400, {"error": "bad"}))):
            for _ in range(5):
                with pytest.raises(BackendError):
                    await backend_client.get("/v1/vehicle")

        assert not backend_client.circuit_breaker.is_open()

    @pytest.mark.asyncio
    async def test_server_error_is_backend_error(self, backend_client):
        """Test 5xx responses map to BackendError with status."""
        with patch.object(backend_client._client, "request",
                          AsyncMock(return_value=_response(500, {"message": "db down"}))):
            with pytest.raises(BackendError) as exc_info:
                await backend_client.get("/v1/vehicle")

        assert exc_info.value.backend_status == 500
        assert exc_info.value.reason == "db down"

    @pytest.mark.asyncio
    async def test_server_errors_open_circuit(self, backend_client):
        """Test repeated 5xx responses open the circuit and block calls."""
        mock_request = AsyncMock(return_value=_response(503))
        with patch.object(backend_client._client, "request", mock_request):
            for _ in range(3):
                with pytest.raises(BackendError):
                    await backend_client.get("/v1/vehicle")

            with pytest.raises(BackendError) as exc_info:
                await backend_client.get("/v1/vehicle")

        assert backend_client.circuit_breaker.is_open()
        assert exc_info.value.reason == "School backend temporarily unavailable"
        assert exc_info.value.backend_status is None
        assert mock_request.await_count == 3

    @pytest.mark.asyncio
    async def test_transport_error_maps_to_unreachable(self, backend_client):
        """Test connection failures surface without a backend status."""
        with patch.object(backend_client._client, "request",
                          AsyncMock(side_effect=httpx.ConnectError("connection refused"))):
            with pytest.raises(BackendError) as exc_info:
                await backend_client.get("/v1/vehicle")

        assert exc_info.value.reason == "School backend unreachable"
        assert exc_info.value.backend_status is None

    @pytest.mark.asyncio
    async def test_reads_retry_transport_errors(self, metrics):
        """Test GET requests are retried after a transport error."""
        backend_client = BackendClient(BASE_URL, retry_attempts=3, retry_base_delay=0, metrics=metrics)
        mock_request = AsyncMock(side_effect=[httpx.ReadTimeout("timeout"), _response(200, {"ok": True})])

        with patch.object(backend_client._client, "request", mock_request):
            assert await backend_client.get("/v1/vehicle") == {"ok": True}

        assert mock_request.await_count == 2

    @pytest.mark.asyncio
    async def test_mutations_are_not_retried(self, metrics):
        """Test non-GET requests are sent exactly once."""
        backend_client = BackendClient(BASE_URL, retry_attempts=3, retry_base_delay=0, metrics=metrics)
        mock_request = AsyncMock(side_effect=httpx.ReadTimeout("timeout"))

        with patch.object(backend_client._client, "request", mock_request):
            with pytest.raises(BackendError):
                await backend_client.post("/v1/vehicle", json={"vehicleNumber": "KA-01"})

        assert mock_request.await_count == 1

    @pytest.mark.asyncio
    async def test_malformed_body(self, backend_client):
        """Test undecodable success bodies are reported with the response status."""
        with patch.object(backend_client._client, "request",
                          AsyncMock(return_value=_response(200, content=b"<html>"))):
            with pytest.raises(BackendError) as exc_info:
                await backend_client.get("/v1/vehicle")

        assert exc_info.value.backend_status == 200
        assert exc_info.value.body == "<html>"

    @pytest.mark.asyncio
    async def test_undecodable_content_encoding(self, metrics):
        """Test a body that fails content decoding surfaces as BackendError."""
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, headers={"Content-Encoding": "gzip"}, content=b"not-gzip")

        backend_client = BackendClient(BASE_URL, retry_attempts=1, retry_base_delay=0,
                                       transport=httpx.MockTransport(handler), metrics=metrics)
        try:
            with pytest.raises(BackendError) as exc_info:
                await backend_client.get("/v1/vehicle")
        finally:
            await backend_client.close()

        assert exc_info.value.reason == "Malformed response from school backend"
        assert exc_info.value.backend_status is None
        assert ("backend_requests_total", {"method": "GET", "outcome": "protocol_error"}) in metrics.counters

    @pytest.mark.asyncio
    async def test_http_errors_outside_transport_are_mapped(self, backend_client):
        """Test any httpx error raised by the exchange becomes BackendError."""
        request = httpx.Request("GET", f"{BASE_URL}/v1/vehicle")
        with patch.object(backend_client._client, "request",
                          AsyncMock(side_effect=httpx.DecodingError("bad chunk", request=request))):
            with pytest.raises(BackendError) as exc_info:
                await backend_client.get("/v1/vehicle")

        assert exc_info.value.details["error"] == "bad chunk"

    @pytest.mark.asyncio
    async def test_records_outcome_metrics(self, backend_client, metrics):
        """Test each call records its outcome."""
        with patch.object(backend_client._client, "request", AsyncMock(return_value=_response(200, {}))):
            await backend_client.get("/v1/vehicle")

        assert ("backend_requests_total", {"method": "GET", "outcome": "ok"}) in metrics.counters

    @pytest.mark.asyncio
    async def test_mock_transport_round_trip(self):
        """Test the client works over an injected httpx transport."""
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/v1/vehicle"
            assert request.headers["Cache-Control"] == "no-store"
            return httpx.Response(200, json={"vehicles": [{"id": "v1"}]})

        backend_client = BackendClient(BASE_URL, transport=httpx.MockTransport(handler))
        try:
            result = await backend_client.get("/v1/vehicle", headers={"Cache-Control": "no-store"})
        finally:
            await backend_client.close()

        assert result == {"vehicles": [{"id": "v1"}]}


class TestSerializeParams:
    """Test cases for query parameter rendering."""

    def test_empty(self):
        """Test no params renders as None."""
        assert serialize_params(None) is None
        assert serialize_params({}) is None

    def test_values(self):
        """Test each supported value type."""
        rendered = serialize_params({
            "activeOnly": True,
            "page": 2,
            "at": time(9, 30),
            "q": "ann",
            "skip": None,
        })

        assert rendered == {"activeOnly": "true", "page": 2, "at": "09:30:00", "q": "ann"}
