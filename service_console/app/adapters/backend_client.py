"""
School backend client for the Console.
"""

import time
from datetime import date, time as dt_time
from typing import Any, Dict, Optional, TYPE_CHECKING

import httpx

from shared.logging import get_logger
from shared.errors import BackendError
from shared.circuit_breaker import CircuitBreaker, CircuitBreakerOpenException
from shared.retry import retry_on_exception, RetryConfig, RetryError

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


class _ServerFailure(Exception):
    """5xx response, raised inside the circuit breaker so it counts as a failure."""

    def __init__(self, response: httpx.Response):
        super().__init__(f"Backend responded with {response.status_code}")
        self.response = response


def serialize_params(params: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Render query parameters the way the backend parses them."""
    if not params:
        return None

    rendered: Dict[str, Any] = {}
    for name, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            rendered[name] = "true" if value else "false"
        elif isinstance(value, (date, dt_time)):
            rendered[name] = value.isoformat()
        else:
            rendered[name] = value
    return rendered


class BackendClient:
    """Client for the external school backend REST API.

    Every failure surfaces as ``BackendError``, including HTTP error statuses,
    transport and decoding errors and calls refused by the open circuit.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        retry_attempts: int = 3,
        retry_base_delay: float = 0.5,
        failure_threshold: int = 5,
        recovery_timeout: float = 30.0,
        metrics: Optional["MetricsCollector"] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.logger = get_logger("console.backend_client")
        self.metrics = metrics
        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)

        self.circuit_breaker = CircuitBreaker(
            failure_threshold=failure_threshold,
            recovery_timeout=recovery_timeout,
            name="school_backend",
        )

        # Reads are idempotent and may be retried; mutations are sent once
        self.read_retry_config = RetryConfig(
            max_attempts=retry_attempts,
            base_delay=retry_base_delay,
            max_delay=5.0,
            exponential_base=2.0,
            jitter=True
        )
        self.write_retry_config = RetryConfig(max_attempts=1)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None, **kwargs) -> Any:
        return await self.request("GET", path, params=params, **kwargs)

    async def post(self, path: str, json: Any = None, **kwargs) -> Any:
        return await self.request("POST", path, json=json, **kwargs)

    async def put(self, path: str, json: Any = None, **kwargs) -> Any:
        return await self.request("PUT", path, json=json, **kwargs)

    async def patch(self, path: str, json: Any = None, **kwargs) -> Any:
        return await self.request("PATCH", path, json=json, **kwargs)

    async def delete(self, path: str, params: Optional[Dict[str, Any]] = None, **kwargs) -> Any:
        return await self.request("DELETE", path, params=params, **kwargs)

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        files: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """Send a request and return the decoded JSON body (``None`` when empty)."""
        config = self.read_retry_config if method == "GET" else self.write_retry_config
        send = retry_on_exception((httpx.TransportError,), config=config)(self._send)
        start = time.perf_counter()

        try:
            response = await self.circuit_breaker.call(
                send, method, path,
                params=serialize_params(params), json=json, files=files, headers=headers
            )
        except CircuitBreakerOpenException as exc:
            self._record(method, "circuit_open", start)
            raise BackendError("School backend temporarily unavailable", details={"error": str(exc)}) from exc
        except RetryError as exc:
            self._record(method, "transport_error", start)
            self.logger.error(
                "School backend unreachable",
                method=method,
                path=path,
                attempts=exc.attempts,
                error=str(exc.last_exception)
            )
            raise BackendError("School backend unreachable", details={"error": str(exc.last_exception)}) from exc
        except _ServerFailure as exc:
            self._record(method, "server_error", start)
            raise self._error_from_response(exc.response) from exc
        except httpx.HTTPError as exc:
            # Undecodable content or a malformed exchange; counted as a breaker failure like a 5xx
            self._record(method, "protocol_error", start)
            self.logger.error("School backend exchange failed", method=method, path=path, error=str(exc))
            raise BackendError("Malformed response from school backend", details={"error": str(exc)}) from exc

        if response.is_error:
            self._record(method, "client_error", start)
            raise self._error_from_response(response)

        self._record(method, "ok", start)
        return self._decode(response)

    async def _send(self, method: str, path: str, **kwargs) -> httpx.Response:
        response = await self._client.request(method, path, **kwargs)
        if response.status_code >= 500:
            raise _ServerFailure(response)
        return response

    def _decode(self, response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise BackendError(
                "Malformed response from school backend",
                backend_status=response.status_code,
                body=response.text
            ) from exc

    def _error_from_response(self, response: httpx.Response) -> BackendError:
        try:
            body = response.json() if response.content else None
        except ValueError:
            body = response.text

        reason = None
        if isinstance(body, dict):
            reason = body.get("error") or body.get("message")
        if not reason:
            reason = f"School backend responded with {response.status_code}"

        return BackendError(reason, backend_status=response.status_code, body=body)

    def _record(self, method: str, outcome: str, start: float) -> None:
        if not self.metrics:
            return
        self.metrics.increment_counter("backend_requests_total", method=method, outcome=outcome)
        self.metrics.observe_histogram("backend_request_duration_seconds", time.perf_counter() - start, method=method)
