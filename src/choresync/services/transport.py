"""aiohttp implementation of RequestTransport.

One call is one HTTP request: no retries, no timeout of its own (the
executor bounds every attempt). Bodies are sent and parsed as JSON with
orjson.
"""

from __future__ import annotations

import logging
from typing import Any

import aiohttp
import orjson

from choresync.shared.constants import ContentTypes, HTTPStatus, NetworkConfig, ResponseFields
from choresync.shared.errors import (
    ErrorCode,
    ErrorContext,
    HttpStatusError,
    NetworkError,
)

logger = logging.getLogger(__name__)


def _json_serialize(obj: Any) -> str:
    return orjson.dumps(obj).decode("utf-8")


class AiohttpTransport:
    """Sends requests to ``base_url + endpoint`` through an aiohttp session.

    The session is created lazily inside the running event loop unless one
    is passed in; a session passed in is not closed by ``close``.

    Args:
        base_url: API root, e.g. ``http://127.0.0.1:5000/api``
        session: Optional existing ClientSession
        headers: Extra headers sent with every request
    """

    def __init__(
        self,
        base_url: str = NetworkConfig.DEFAULT_BASE_URL,
        *,
        session: aiohttp.ClientSession | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._session = session
        self._owns_session = session is None
        self._headers = {"Content-Type": ContentTypes.JSON, "Accept": ContentTypes.JSON}
        if headers:
            self._headers.update(headers)

    async def __call__(
        self,
        endpoint: str,
        method: str = "GET",
        body: Any | None = None,
    ) -> Any:
        url = f"{self.base_url}{endpoint}"
        context = ErrorContext(
            endpoint=endpoint,
            operation="transport_request",
            additional_data={"method": method},
        )

        session = self._get_session()
        try:
            async with session.request(
                method,
                url,
                json=body,
                headers=self._headers,
            ) as response:
                raw = await response.read()
                status = response.status
        except aiohttp.ClientError as e:
            raise NetworkError(
                f"Request to {endpoint} failed: {e}",
                context,
                original_error=e,
            ) from e

        logger.debug("%s %s -> %d", method, url, status)

        if not HTTPStatus.OK_MIN <= status <= HTTPStatus.OK_MAX:
            raise HttpStatusError(status, _error_message(raw), context)

        if not raw.strip():
            return None

        try:
            return orjson.loads(raw)
        except orjson.JSONDecodeError as e:
            raise NetworkError(
                f"Invalid JSON from {endpoint}: {e}",
                context,
                original_error=e,
                code=ErrorCode.API_INVALID_RESPONSE,
            ) from e

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(json_serialize=_json_serialize)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the session if this transport created it."""
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None if self._owns_session else self._session

    async def __aenter__(self) -> AiohttpTransport:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


def _error_message(raw: bytes) -> str | None:
    """The ``error`` field of an error body, when there is one."""
    try:
        payload = orjson.loads(raw) if raw.strip() else {}
    except orjson.JSONDecodeError:
        return None
    if isinstance(payload, dict):
        message = payload.get(ResponseFields.ERROR)
        if message:
            return str(message)
    return None
