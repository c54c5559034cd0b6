"""Request execution with retries, timeouts and slow-connection detection.

Every remote call of the service layer goes through RequestExecutor.execute.
A logical call is made of up to ``retry_attempts`` sequential attempts, each
bounded by a hard timeout, with a linear backoff of ``retry_delay * attempt``
between them. A per-call timer flags the connection as slow when the call
takes longer than ``slow_connection_threshold``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from choresync.shared.constants import HTTPStatus, NetworkConfig
from choresync.shared.errors import (
    ErrorContext,
    HttpStatusError,
    InfrastructureError,
    NetworkError,
    RequestTimeoutError,
)
from choresync.shared.logging import (
    log_api_call,
    log_operation_error,
    log_operation_success,
)

if TYPE_CHECKING:
    from choresync.config.models import APISettings
    from choresync.services.connection_monitor import ConnectionMonitor
    from choresync.shared.protocols import RequestTransport

logger = logging.getLogger(__name__)

AttemptError = (NetworkError, RequestTimeoutError, HttpStatusError)


class RequestObserver:
    """Receives progress events of one logical call.

    All methods are no-ops; subclasses override what they need. Every event
    is delivered synchronously in the turn it happens.
    """

    def on_retry(self, attempt: int, error: InfrastructureError) -> None:
        """Attempt ``attempt`` failed and another one will follow."""

    def on_slow_connection(self) -> None:
        """The call crossed the slow-connection threshold."""

    def on_success(self, payload: Any, attempt: int) -> None:
        """Attempt ``attempt`` returned ``payload``."""

    def on_error(self, error: InfrastructureError) -> None:
        """The call failed for good with ``error``."""


class CallbackObserver(RequestObserver):
    """Observer built from optional plain callables."""

    def __init__(
        self,
        on_retry: Callable[[int, InfrastructureError], None] | None = None,
        on_slow_connection: Callable[[], None] | None = None,
        on_success: Callable[[Any, int], None] | None = None,
        on_error: Callable[[InfrastructureError], None] | None = None,
    ) -> None:
        self._on_retry = on_retry
        self._on_slow_connection = on_slow_connection
        self._on_success = on_success
        self._on_error = on_error

    def on_retry(self, attempt: int, error: InfrastructureError) -> None:
        if self._on_retry is not None:
            self._on_retry(attempt, error)

    def on_slow_connection(self) -> None:
        if self._on_slow_connection is not None:
            self._on_slow_connection()

    def on_success(self, payload: Any, attempt: int) -> None:
        if self._on_success is not None:
            self._on_success(payload, attempt)

    def on_error(self, error: InfrastructureError) -> None:
        if self._on_error is not None:
            self._on_error(error)


class RecordingObserver(RequestObserver):
    """Keeps every event as a tuple, in order.

    Useful in tests and wherever a full trace of one call is wanted.
    """

    def __init__(self) -> None:
        self.events: list[tuple[Any, ...]] = []

    def on_retry(self, attempt: int, error: InfrastructureError) -> None:
        self.events.append(("retry", attempt, error))

    def on_slow_connection(self) -> None:
        self.events.append(("slow",))

    def on_success(self, payload: Any, attempt: int) -> None:
        self.events.append(("success", payload, attempt))

    def on_error(self, error: InfrastructureError) -> None:
        self.events.append(("error", error))

    def names(self) -> list[str]:
        """Event names only, e.g. ``["retry", "success"]``."""
        return [event[0] for event in self.events]


NULL_OBSERVER = RequestObserver()


class RequestExecutor:
    """Runs remote calls through a transport with bounded retries.

    Args:
        transport: Performs a single request
        monitor: Connection monitor updated on every outcome
        timeout: Hard timeout per attempt in seconds
        retry_attempts: Attempts per logical call
        retry_delay: Base backoff in seconds, multiplied by the attempt number
        slow_connection_threshold: Seconds before a call is flagged as slow
        retry_client_errors: When False, 4xx responses other than 408 and
            429 end the call after the first attempt
        sleep: Awaitable sleep used for the backoff
    """

    def __init__(
        self,
        transport: RequestTransport,
        monitor: ConnectionMonitor,
        *,
        timeout: float = NetworkConfig.REQUEST_TIMEOUT,
        retry_attempts: int = NetworkConfig.RETRY_ATTEMPTS,
        retry_delay: float = NetworkConfig.RETRY_DELAY,
        slow_connection_threshold: float = NetworkConfig.SLOW_CONNECTION_THRESHOLD,
        retry_client_errors: bool = True,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if retry_attempts < 1:
            msg = f"retry_attempts must be at least 1, got {retry_attempts}"
            raise ValueError(msg)

        self.transport = transport
        self.monitor = monitor
        self.timeout = timeout
        self.retry_attempts = retry_attempts
        self.retry_delay = retry_delay
        self.slow_connection_threshold = slow_connection_threshold
        self.retry_client_errors = retry_client_errors
        self._sleep = sleep

    @classmethod
    def from_settings(
        cls,
        transport: RequestTransport,
        monitor: ConnectionMonitor,
        settings: APISettings,
        **kwargs: Any,
    ) -> RequestExecutor:
        """Build an executor from the ``api`` settings section."""
        return cls(
            transport,
            monitor,
            timeout=settings.timeout,
            retry_attempts=settings.retry_attempts,
            retry_delay=settings.retry_delay,
            slow_connection_threshold=settings.slow_connection_threshold,
            retry_client_errors=settings.retry_client_errors,
            **kwargs,
        )

    def is_retryable(self, error: InfrastructureError) -> bool:
        """Whether another attempt could succeed after this error."""
        if self.retry_client_errors or not isinstance(error, HttpStatusError):
            return True
        if not error.is_client_error:
            return True
        return error.status_code in HTTPStatus.RETRYABLE_CLIENT_ERRORS

    async def execute(
        self,
        endpoint: str,
        method: str = "GET",
        body: Any | None = None,
        observer: RequestObserver | None = None,
    ) -> Any:
        """Run one logical call.

        Args:
            endpoint: Path relative to the API base URL, query included
            method: HTTP method
            body: JSON body for writes
            observer: Receives retry, slow, success and error events

        Returns:
            The decoded response payload

        Raises:
            NetworkError: No response on the last attempt
            RequestTimeoutError: The last attempt hit the hard timeout
            HttpStatusError: The last attempt got a non-2xx status
        """
        observer = observer or NULL_OBSERVER
        context = ErrorContext(
            endpoint=endpoint,
            operation="execute_request",
            additional_data={"method": method},
        )

        loop = asyncio.get_running_loop()
        slow_timer = loop.call_later(
            self.slow_connection_threshold,
            self._on_slow_timer,
            endpoint,
            observer,
        )
        started = loop.time()

        try:
            for attempt in range(1, self.retry_attempts + 1):
                logger.debug(
                    "Attempt %d/%d: %s %s",
                    attempt,
                    self.retry_attempts,
                    method,
                    endpoint,
                )
                attempt_started = loop.time()
                try:
                    payload = await self._attempt(endpoint, method, body, context)
                except AttemptError as error:
                    self._record_failure(endpoint, method, error, attempt_started)
                    if isinstance(error, HttpStatusError):
                        slow_timer.cancel()
                        self.monitor.mark_completed(success=False)

                    if attempt == self.retry_attempts or not self.is_retryable(error):
                        self._give_up(error, endpoint, method, observer)
                        raise

                    observer.on_retry(attempt, error)
                    await self._sleep(self.retry_delay * attempt)
                    continue

                slow_timer.cancel()
                self.monitor.mark_completed(success=True)
                log_operation_success(
                    logger,
                    operation="execute_request",
                    duration_ms=(loop.time() - started) * 1000,
                    result_info={"attempt": attempt},
                    context=context,
                )
                observer.on_success(payload, attempt)
                return payload

        finally:
            slow_timer.cancel()

        msg = "retry loop ended without a result"
        raise RuntimeError(msg)

    def _give_up(
        self,
        error: InfrastructureError,
        endpoint: str,
        method: str,
        observer: RequestObserver,
    ) -> None:
        self.monitor.mark_completed(success=False)
        log_operation_error(
            logger,
            error,
            operation="execute_request",
            additional_context={"endpoint": endpoint, "method": method},
        )
        observer.on_error(error)

    async def _attempt(
        self,
        endpoint: str,
        method: str,
        body: Any | None,
        context: ErrorContext,
    ) -> Any:
        try:
            return await asyncio.wait_for(
                self.transport(endpoint, method, body),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise RequestTimeoutError(self.timeout, context, original_error=e) from e

    def _record_failure(
        self,
        endpoint: str,
        method: str,
        error: InfrastructureError,
        attempt_started: float,
    ) -> None:
        status_code = error.status_code if isinstance(error, HttpStatusError) else None
        log_api_call(
            logger,
            endpoint,
            method=method,
            status_code=status_code,
            duration_ms=(asyncio.get_running_loop().time() - attempt_started) * 1000,
            context={"error_code": error.code.value},
        )

    def _on_slow_timer(self, endpoint: str, observer: RequestObserver) -> None:
        self.monitor.mark_slow()
        logger.warning("Call to %s is taking longer than %gs", endpoint, self.slow_connection_threshold)
        observer.on_slow_connection()
