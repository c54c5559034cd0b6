"""
Pytest configuration and shared fixtures for ChoreSync tests.

The fakes here stand in for the three platform capabilities: a scripted
transport, an in-memory store and a manually flipped network signal.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import Generator
from typing import Any

import pytest

from choresync.services import (
    ApiService,
    ConnectionMonitor,
    InMemoryStore,
    ManualNetworkSignal,
    OfflineActionQueue,
    RequestExecutor,
    ResponseCache,
)


class Delay:
    """Transport response that only resolves after ``seconds``."""

    def __init__(self, seconds: float, result: Any = None) -> None:
        self.seconds = seconds
        self.result = result


class FakeTransport:
    """Scripted RequestTransport.

    Each call consumes the next scripted item: an exception is raised, a
    Delay is awaited, anything else is returned. When the script runs out
    ``default`` is returned.
    """

    def __init__(self, *responses: Any, default: Any = None) -> None:
        self.responses: deque[Any] = deque(responses)
        self.default = default
        self.calls: list[tuple[str, str, Any]] = []
        self.closed = False

    def script(self, *responses: Any) -> None:
        self.responses.extend(responses)

    async def __call__(self, endpoint: str, method: str = "GET", body: Any = None) -> Any:
        self.calls.append((endpoint, method, body))
        item = self.responses.popleft() if self.responses else self.default
        if isinstance(item, Delay):
            await asyncio.sleep(item.seconds)
            item = item.result
        if isinstance(item, BaseException):
            raise item
        return item

    async def close(self) -> None:
        self.closed = True


class SleepRecorder:
    """Replacement for asyncio.sleep that records delays without waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        await asyncio.sleep(0)


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def reset_choresync_logger() -> Generator[None, None, None]:
    """Undo handler setup done by CLI runs so caplog keeps working."""
    yield
    package_logger = logging.getLogger("choresync")
    package_logger.handlers.clear()
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleeper() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport(default={"ok": True})


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def signal() -> ManualNetworkSignal:
    return ManualNetworkSignal(online=True)


@pytest.fixture
def queue(store: InMemoryStore) -> OfflineActionQueue:
    return OfflineActionQueue(store)


@pytest.fixture
def monitor(signal: ManualNetworkSignal, queue: OfflineActionQueue) -> Generator[ConnectionMonitor, None, None]:
    connection_monitor = ConnectionMonitor(signal, queue, replay_debounce=0.0)
    yield connection_monitor
    connection_monitor.close()


@pytest.fixture
def executor(
    transport: FakeTransport,
    monitor: ConnectionMonitor,
    sleeper: SleepRecorder,
) -> RequestExecutor:
    return RequestExecutor(
        transport,
        monitor,
        timeout=0.05,
        retry_attempts=3,
        retry_delay=2.0,
        slow_connection_threshold=5.0,
        sleep=sleeper,
    )


@pytest.fixture
def cache(clock: FakeClock) -> ResponseCache:
    return ResponseCache(ttl=300, clock=clock)


@pytest.fixture
def api(
    executor: RequestExecutor,
    cache: ResponseCache,
    queue: OfflineActionQueue,
) -> ApiService:
    return ApiService(executor, cache, queue, ranking_max_age=30)
