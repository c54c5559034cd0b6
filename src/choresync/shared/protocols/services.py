"""Capability protocols for dependency inversion.

The service layer only talks to the platform through these three small
interfaces, so each one can be swapped for an in-memory fake in tests or a
platform adapter in the application.
"""

from __future__ import annotations

from typing import Any, Callable, Protocol

# Called with the new online state on every transition
OnlineListener = Callable[[bool], None]
Unsubscribe = Callable[[], None]


class RequestTransport(Protocol):
    """Issues one network request and parses its response.

    Implementations raise NetworkError when no response arrives and
    HttpStatusError on a non-2xx status. They never retry.

    Example:
        >>> transport: RequestTransport = AiohttpTransport("http://localhost/api")
        >>> payload = await transport("/tasks", "GET", None)
    """

    async def __call__(
        self,
        endpoint: str,
        method: str,
        body: Any | None,
    ) -> Any:
        """Send the request and return the decoded JSON payload."""


class DurableStore(Protocol):
    """Persistent text key-value store (the queue's backing storage)."""

    def get(self, key: str) -> str | None:
        """Return the stored text or None if the key is absent."""

    def set(self, key: str, value: str) -> None:
        """Store text under the key, replacing any previous value."""

    def delete(self, key: str) -> None:
        """Remove the key if present."""


class NetworkSignal(Protocol):
    """Source of online/offline transitions."""

    def is_online(self) -> bool:
        """Current connectivity as reported by the platform."""

    def subscribe(self, listener: OnlineListener) -> Unsubscribe:
        """Register a listener for transitions and return its unsubscriber."""
