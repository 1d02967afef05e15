"""
Common plumbing for backend-facing console actions.
"""

from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

from shared.config import BaseConfig
from shared.errors import BackendError
from shared.logging import get_logger
from service_console.app.adapters.backend_client import BackendClient
from service_console.app.caching.response_cache import ResponseCache
from service_console.app.domain.envelope import ResponseEnvelope, error

MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 10


def clamp_pagination(page: int, limit: int) -> Tuple[int, int]:
    """Bring paging arguments into the range the backend accepts."""
    if page < 1:
        page = 1
    if limit < 1:
        limit = DEFAULT_PAGE_SIZE
    if limit > MAX_PAGE_SIZE:
        limit = MAX_PAGE_SIZE
    return page, limit


def field(body: Any, name: str, default: Any = None) -> Any:
    """Read one top-level field of a backend JSON body."""
    if isinstance(body, dict):
        return body.get(name, default)
    return default


def image_upload(filename: str, content: bytes, content_type: Optional[str]) -> Dict[str, Any]:
    """Multipart field layout the backend expects for profile images."""
    return {"profile_img": (filename, content, content_type or "application/octet-stream")}


class BackendActions:
    """Base class for one resource's backend calls.

    Subclasses expose one coroutine per backend endpoint. Each returns a
    ``ResponseEnvelope`` and never lets a ``BackendError`` escape.
    """

    resource = "backend"

    def __init__(self, backend: BackendClient, cache: ResponseCache, config: BaseConfig):
        self.backend = backend
        self.cache = cache
        self.config = config
        self.logger = get_logger(f"console.actions.{self.resource}")

    @property
    def list_ttl(self) -> int:
        return self.config.list_cache_ttl

    @property
    def detail_ttl(self) -> int:
        return self.config.detail_cache_ttl

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        *,
        on_success: Callable[[Any], ResponseEnvelope],
        failure_message: str,
        **kwargs,
    ) -> ResponseEnvelope:
        """Call the backend and shape the outcome into an envelope."""
        try:
            body = await self.backend.request(method, path, **kwargs)
        except BackendError as exc:
            return self._failure(operation, exc, failure_message)

        self.logger.debug("Backend call succeeded", operation=operation, path=path)
        return on_success(body)

    async def _cached(self, key: str, ttl: int,
                      fetch: Callable[[], Awaitable[ResponseEnvelope]]) -> ResponseEnvelope:
        """Serve ``key`` from the cache, or fetch and keep successful results."""
        cached = self.cache.get(key)
        if cached is not None:
            self.logger.debug("Cache hit", key=key)
            return cached

        envelope = await fetch()
        if envelope.is_success:
            self.cache.set(key, envelope, ttl)
        return envelope

    def _failure(self, operation: str, exc: BackendError, fallback: str) -> ResponseEnvelope:
        self.logger.error(
            "Backend call failed",
            operation=operation,
            backend_status=exc.backend_status,
            response_body=exc.body,
            error=exc.reason
        )
        # Transport failures carry no backend text worth showing
        message = exc.reason if exc.backend_status is not None else fallback
        return error(message=message or fallback)

    def _invalidate(self, *keys: str, prefixes: Tuple[str, ...] = ()) -> None:
        for key in keys:
            self.cache.invalidate(key)
        for prefix in prefixes:
            self.cache.invalidate_prefix(prefix)
