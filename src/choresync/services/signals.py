"""NetworkSignal adapters.

ManualNetworkSignal is flipped by the application (the CLI's ``--offline``
flag, tests). HealthProbeSignal polls the API's health endpoint and reports
a transition whenever the probe result changes.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Awaitable, Callable

from choresync.shared.constants import Endpoints, NetworkConfig
from choresync.shared.errors import InfrastructureError
from choresync.shared.protocols import OnlineListener, RequestTransport, Unsubscribe

logger = logging.getLogger(__name__)

HealthProbe = Callable[[], Awaitable[bool]]


class _ListenerSignal:
    """Listener bookkeeping shared by the signal adapters."""

    def __init__(self, online: bool = True) -> None:
        self._online = online
        self._listeners: list[OnlineListener] = []

    def is_online(self) -> bool:
        return self._online

    def subscribe(self, listener: OnlineListener) -> Unsubscribe:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _update(self, online: bool) -> bool:
        if online == self._online:
            return False
        self._online = online
        for listener in list(self._listeners):
            listener(online)
        return True


class ManualNetworkSignal(_ListenerSignal):
    """Signal whose state is set explicitly."""

    def set_online(self, online: bool) -> bool:
        """Change the state, notifying listeners on a transition.

        Returns:
            True if the state changed
        """
        return self._update(online)


class HealthProbeSignal(_ListenerSignal):
    """Signal driven by periodically calling a health probe.

    Args:
        probe: Coroutine function returning whether the API answered
        interval: Seconds between probes
        online: State assumed before the first probe
        sleep: Awaitable sleep, injectable for tests
    """

    def __init__(
        self,
        probe: HealthProbe,
        *,
        interval: float = NetworkConfig.PROBE_INTERVAL,
        online: bool = True,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        super().__init__(online)
        self._probe = probe
        self.interval = interval
        self._sleep = sleep
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def check(self) -> bool:
        """Run the probe once and publish the result."""
        online = await self._probe()
        if self._update(online):
            logger.info("Health probe reports %s", "online" if online else "offline")
        return online

    def start(self) -> None:
        """Start polling in the running event loop."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._poll())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    async def _poll(self) -> None:
        while True:
            await self.check()
            await self._sleep(self.interval)


def make_health_probe(
    transport: RequestTransport,
    *,
    endpoint: str = Endpoints.HEALTH,
    timeout: float = NetworkConfig.REQUEST_TIMEOUT,
) -> HealthProbe:
    """Build a probe that makes one unretried call to the health endpoint."""

    async def probe() -> bool:
        try:
            await asyncio.wait_for(transport(endpoint, "GET", None), timeout=timeout)
        except (InfrastructureError, asyncio.TimeoutError) as e:
            logger.debug("Health probe failed: %s", e)
            return False
        return True

    return probe
