"""HTTP request executor for the notes API.

Builds requests against a fixed base URL, sends them with httpx, decodes
2xx bodies into typed pydantic values and turns everything else into a
categorized :mod:`notes_client.errors` failure. One attempt per call, no
retries.
"""

from __future__ import annotations

import functools
import logging
import time
from typing import Any, Callable, Mapping, Optional, TypeVar
from urllib.parse import urlparse

import httpx
from pydantic import TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError, to_json

from notes_client.errors import (
    DecodingError,
    EncodingError,
    Forbidden,
    InvalidResponse,
    InvalidURL,
    NetworkError,
    NetworkUnavailable,
    NoData,
    NotFound,
    ServerError,
    Unauthorized,
)
from notes_client.metrics import HTTP_DURATION, HTTP_REQUESTS
from notes_client.models import ErrorBody, MessageResponse

logger = logging.getLogger(__name__)

R = TypeVar("R")

JSON_CONTENT_TYPE = "application/json"
DEFAULT_EMPTY_DETAIL = "Request completed successfully"
BAD_REQUEST_MESSAGE = "Bad request"
SERVER_ERROR_MESSAGE = "Server error"

# 4xx codes with a dedicated category; other 4xx become a plain ServerError
_CLIENT_ERRORS: dict[int, type[ServerError]] = {
    401: Unauthorized,
    403: Forbidden,
    404: NotFound,
}


@functools.lru_cache(maxsize=64)
def _adapter(response_type: Any) -> TypeAdapter:
    return TypeAdapter(response_type)


def encode_body(payload: Any) -> Optional[bytes]:
    """Serialize a model, list of models or raw bytes to a JSON body."""
    if payload is None:
        return None
    if isinstance(payload, (bytes, bytearray)):
        return bytes(payload)
    try:
        return to_json(payload, exclude_none=True)
    except (PydanticSerializationError, TypeError, ValueError) as exc:
        raise EncodingError(f"Failed to encode request: {exc}") from exc


def extract_error_detail(content: bytes) -> Optional[str]:
    """Pull a human-readable message out of a 4xx body, if it has one."""
    if not content:
        return None
    try:
        body = ErrorBody.model_validate_json(content)
    except ValidationError:
        return None
    return body.first_detail


def decode(response: httpx.Response, response_type: Any) -> Any:
    """Decode a 2xx body into *response_type*."""
    if not response.content.strip():
        raise NoData()
    try:
        return _adapter(response_type).validate_json(response.content)
    except ValidationError as exc:
        logger.warning(
            "Failed to decode %s response: %s",
            getattr(response_type, "__name__", response_type),
            exc.errors(include_url=False)[:3],
        )
        raise DecodingError() from exc


def raise_for_status(response: httpx.Response) -> None:
    """Raise the categorized failure for any non-2xx response."""
    status = response.status_code
    if 200 <= status <= 299:
        return

    logger.warning(
        "HTTP %d for %s %s: %s",
        status,
        response.request.method,
        response.request.url,
        response.text[:200],
    )
    if 400 <= status <= 499:
        detail = extract_error_detail(response.content)
        error_cls = _CLIENT_ERRORS.get(status)
        if error_cls is not None:
            raise error_cls(detail or "", code=status)
        raise ServerError(status, detail or BAD_REQUEST_MESSAGE)
    if 500 <= status <= 599:
        raise ServerError(status, SERVER_ERROR_MESSAGE)
    raise InvalidResponse()


class RequestExecutor:
    """Sends requests to ``base_url`` and maps responses to typed results."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        parsed = urlparse(base_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise InvalidURL(f"Invalid base URL: {base_url!r}")
        self._base_url = base_url.rstrip("/")

        client_kwargs: dict[str, Any] = {}
        if timeout is not None:
            client_kwargs["timeout"] = timeout
        if transport is not None:
            client_kwargs["transport"] = transport
        self._client = httpx.AsyncClient(**client_kwargs)

    @property
    def base_url(self) -> str:
        return self._base_url

    async def __aenter__(self) -> RequestExecutor:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying connection pool."""
        await self._client.aclose()

    def url_for(self, endpoint: str) -> str:
        return f"{self._base_url}{endpoint}"

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    async def send(
        self,
        endpoint: str,
        method: str = "GET",
        body: Optional[bytes] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> httpx.Response:
        """Send one request and return the raw response, whatever its status."""
        request_headers = httpx.Headers({"Content-Type": JSON_CONTENT_TYPE})
        if headers:
            request_headers.update(headers)

        url = self.url_for(endpoint)
        logger.debug("%s %s", method, url)
        try:
            return await self._client.request(
                method, url, content=body, headers=request_headers
            )
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as exc:
            raise InvalidURL(f"Invalid URL: {url}") from exc
        except httpx.DecodingError as exc:
            logger.warning("%s %s returned an undecodable body: %s", method, url, exc)
            raise DecodingError() from exc
        except httpx.RequestError as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise NetworkUnavailable() from exc

    async def request(
        self,
        endpoint: str,
        response_type: Any,
        *,
        method: str = "GET",
        body: Any = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        """Send a request and decode the 2xx body into *response_type*."""
        return await self._call(
            endpoint,
            method,
            body,
            headers,
            lambda response: decode(response, response_type),
        )

    async def request_message(
        self,
        endpoint: str,
        *,
        method: str = "POST",
        body: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        empty_detail: str = DEFAULT_EMPTY_DETAIL,
    ) -> MessageResponse:
        """Send a request whose success body is ``{detail}`` or empty.

        An empty 2xx body (e.g. 204 No Content) yields a synthesized
        ``MessageResponse(detail=empty_detail)`` instead of a decode attempt.
        """

        def _decode(response: httpx.Response) -> MessageResponse:
            if not response.content.strip():
                return MessageResponse(detail=empty_detail)
            return decode(response, MessageResponse)

        return await self._call(endpoint, method, body, headers, _decode)

    async def _call(
        self,
        endpoint: str,
        method: str,
        body: Any,
        headers: Optional[Mapping[str, str]],
        handle: Callable[[httpx.Response], R],
    ) -> R:
        start = time.perf_counter()
        outcome = "aborted"
        try:
            content = encode_body(body)
            response = await self.send(endpoint, method, content, headers)
            raise_for_status(response)
            result = handle(response)
            outcome = "success"
            return result
        except NetworkError as exc:
            outcome = exc.kind.value
            raise
        finally:
            HTTP_REQUESTS.labels(method=method, outcome=outcome).inc()
            HTTP_DURATION.labels(method=method).observe(time.perf_counter() - start)
