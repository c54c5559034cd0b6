"""
Network Configuration Constants

This module contains constants for the request executor and the HTTP
transport.
"""

from .system import BASE_SECOND


class NetworkConfig:
    """Request execution constants."""

    DEFAULT_BASE_URL = "http://127.0.0.1:5000/api"

    # Hard timeout per attempt
    REQUEST_TIMEOUT = 15 * BASE_SECOND

    # Attempts per logical call, backoff is RETRY_DELAY * attempt
    RETRY_ATTEMPTS = 3
    RETRY_DELAY = 2 * BASE_SECOND

    # Per-call timer after which the connection is flagged as slow
    SLOW_CONNECTION_THRESHOLD = 5 * BASE_SECOND

    # Delay between the online signal and the queue replay
    REPLAY_DEBOUNCE = 1 * BASE_SECOND

    # Polling interval for the health probe signal
    PROBE_INTERVAL = 30 * BASE_SECOND


class HTTPStatus:
    """HTTP status codes the executor treats specially."""

    OK_MIN = 200
    OK_MAX = 299
    REQUEST_TIMEOUT = 408
    TOO_MANY_REQUESTS = 429

    # 4xx statuses that stay retryable when client errors fail fast
    RETRYABLE_CLIENT_ERRORS = frozenset({REQUEST_TIMEOUT, TOO_MANY_REQUESTS})


class ContentTypes:
    """Content type constants."""

    JSON = "application/json"
