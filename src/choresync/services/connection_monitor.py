"""Connection state tracking and replay scheduling.

The monitor holds the process-wide connectivity picture: whether the platform
reports the network as up, whether recent requests have been slow, and when
the last request succeeded. The request executor writes the slow and success
flags; a NetworkSignal drives the online flag. Coming back online schedules a
debounced replay of the offline queue.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Sized
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from choresync.shared.constants import NetworkConfig
from choresync.shared.protocols import NetworkSignal

logger = logging.getLogger(__name__)

ReplayRunner = Callable[[], Awaitable[Any]]


@dataclass(frozen=True)
class ConnectionSnapshot:
    """Read-only view of the connection state for presentation.

    Attributes:
        is_online: Platform connectivity
        is_slow: A recent call crossed the slow-connection threshold
        queue_size: Number of actions waiting in the offline queue
        last_success_at: Epoch seconds of the last successful request, or None
    """

    is_online: bool
    is_slow: bool
    queue_size: int
    last_success_at: float | None

    def to_dict(self) -> dict[str, Any]:
        """Export with the key names the UI layer expects."""
        return {
            "isOnline": self.is_online,
            "isSlow": self.is_slow,
            "queueSize": self.queue_size,
            "lastSuccessAt": self.last_success_at,
        }


class ConnectionMonitor:
    """Tracks connectivity and triggers offline queue replays.

    Args:
        signal: Source of online/offline transitions
        queue: Offline queue, only used for its length
        replay_debounce: Seconds to wait after coming online before replaying
        clock: Wall clock used for last_success_at
        sleep: Awaitable sleep used for the debounce
    """

    def __init__(
        self,
        signal: NetworkSignal,
        queue: Sized | None = None,
        *,
        replay_debounce: float = NetworkConfig.REPLAY_DEBOUNCE,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._signal = signal
        self._queue = queue
        self.replay_debounce = replay_debounce
        self._clock = clock
        self._sleep = sleep

        self._is_online = bool(signal.is_online())
        self._is_slow = False
        self._last_success_at: float | None = None

        self._replay_runner: ReplayRunner | None = None
        self._pending_replay: asyncio.Task[None] | None = None
        self._replay_tasks: set[asyncio.Task[None]] = set()

        self._unsubscribe: Callable[[], None] | None = signal.subscribe(
            self._on_signal,
        )

    @property
    def is_online(self) -> bool:
        return self._is_online

    @property
    def is_slow(self) -> bool:
        return self._is_slow

    @property
    def last_success_at(self) -> float | None:
        return self._last_success_at

    @property
    def queue_size(self) -> int:
        return len(self._queue) if self._queue is not None else 0

    def bind_queue(self, queue: Sized) -> None:
        """Attach the queue whose length is reported in snapshots."""
        self._queue = queue

    def bind_replay(self, runner: ReplayRunner) -> None:
        """Set the coroutine function run when the connection comes back."""
        self._replay_runner = runner

    def mark_slow(self) -> bool:
        """Flag the connection as slow.

        Returns:
            True if the flag was not already set
        """
        if self._is_slow:
            return False
        self._is_slow = True
        logger.warning("Slow connection detected")
        return True

    def mark_completed(self, success: bool) -> None:
        """Record the end of a round trip or of a whole call.

        Any completed round trip clears the slow flag. Only successful ones
        move last_success_at.
        """
        self._is_slow = False
        if success:
            self._last_success_at = self._clock()

    def snapshot(self) -> ConnectionSnapshot:
        """Return the current connection state."""
        return ConnectionSnapshot(
            is_online=self._is_online,
            is_slow=self._is_slow,
            queue_size=self.queue_size,
            last_success_at=self._last_success_at,
        )

    def _on_signal(self, online: bool) -> None:
        was_online = self._is_online
        self._is_online = bool(online)

        if self._is_online and not was_online:
            logger.info("Connection restored")
            self._schedule_replay()
        elif was_online and not self._is_online:
            logger.info("Connection lost, offline mode enabled")
            self._cancel_pending_replay()

    def _schedule_replay(self) -> None:
        if self._replay_runner is None:
            logger.debug("No replay runner bound, skipping replay")
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("Connection restored outside an event loop, replay skipped")
            return

        self._cancel_pending_replay()
        task = loop.create_task(self._debounced_replay())
        self._pending_replay = task
        self._replay_tasks.add(task)
        task.add_done_callback(self._on_replay_done)

    def _cancel_pending_replay(self) -> None:
        # Only a replay still inside its debounce sleep is pending
        if self._pending_replay is not None and not self._pending_replay.done():
            self._pending_replay.cancel()
        self._pending_replay = None

    async def _debounced_replay(self) -> None:
        await self._sleep(self.replay_debounce)

        if self._pending_replay is asyncio.current_task():
            self._pending_replay = None

        if not self._is_online or self._replay_runner is None:
            return

        logger.debug("Replaying offline queue after reconnect")
        await self._replay_runner()

    def _on_replay_done(self, task: asyncio.Task[None]) -> None:
        self._replay_tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(
                "Offline queue replay failed: %s",
                error,
                exc_info=(type(error), error, error.__traceback__),
            )

    async def wait_for_pending_replay(self) -> None:
        """Wait until every scheduled replay has finished or been cancelled."""
        while self._replay_tasks:
            await asyncio.gather(*list(self._replay_tasks), return_exceptions=True)

    def close(self) -> None:
        """Stop listening to the signal and drop any replay still debouncing."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._cancel_pending_replay()
