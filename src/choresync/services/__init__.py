"""Services module for ChoreSync.

This module contains the resilient network-access layer: request execution,
response caching, the offline action queue, connection tracking and the API
facade built on top of them, plus the platform adapters they consume.
"""

from .api_service import ApiService
from .connection_monitor import ConnectionMonitor, ConnectionSnapshot
from .offline_queue import OfflineActionQueue, QueuedAction, ReplayOutcome, ReplayReport
from .request_executor import (
    CallbackObserver,
    RecordingObserver,
    RequestExecutor,
    RequestObserver,
)
from .response_cache import MISS, ResponseCache
from .signals import HealthProbeSignal, ManualNetworkSignal, make_health_probe
from .stores import InMemoryStore, JsonFileStore
from .transport import AiohttpTransport

__all__ = [
    "MISS",
    "AiohttpTransport",
    "ApiService",
    "CallbackObserver",
    "ConnectionMonitor",
    "ConnectionSnapshot",
    "HealthProbeSignal",
    "InMemoryStore",
    "JsonFileStore",
    "ManualNetworkSignal",
    "OfflineActionQueue",
    "QueuedAction",
    "RecordingObserver",
    "ReplayOutcome",
    "ReplayReport",
    "RequestExecutor",
    "RequestObserver",
    "ResponseCache",
    "make_health_probe",
]
