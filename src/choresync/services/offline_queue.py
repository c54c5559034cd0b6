"""Durable queue of mutations made while offline.

Actions are kept in enqueue order and mirrored to a DurableStore as a JSON
array after every change, so they survive a restart. A replay walks the
queue once, sending each action through the request executor with the
handler registered for its type. Delivery is at-least-once: an action that
reached the server but whose response was lost is sent again next time.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Mapping

import orjson

from choresync.shared.constants import QueueConfig
from choresync.shared.errors import (
    ChoreSyncError,
    ErrorCode,
    ErrorContext,
    QueueError,
    StorageError,
)
from choresync.shared.logging import log_operation_error, log_operation_start

if TYPE_CHECKING:
    from choresync.services.request_executor import RequestExecutor
    from choresync.shared.protocols import DurableStore

logger = logging.getLogger(__name__)

# Keys owned by the queue itself in the persisted form
_RESERVED_KEYS = frozenset({"id", "type", "timestamp"})


@dataclass(frozen=True)
class QueuedAction:
    """A mutation waiting to be sent.

    Attributes:
        id: Identifier generated at enqueue time
        type: Action tag, e.g. ``toggle_task``
        fields: Operation fields such as ``taskId`` and ``userId``
        timestamp: Enqueue time in epoch milliseconds
    """

    id: str
    type: str
    fields: Mapping[str, Any] = field(default_factory=dict)
    timestamp: int = 0

    def get(self, name: str, default: Any = None) -> Any:
        return self.fields.get(name, default)

    def to_dict(self) -> dict[str, Any]:
        """Persisted form: ``{id, type, <fields>, timestamp}``."""
        return {"id": self.id, "type": self.type, **self.fields, "timestamp": self.timestamp}

    @classmethod
    def from_dict(cls, data: Any) -> QueuedAction:
        """Rebuild an action from its persisted form.

        Raises:
            ValueError: If the entry is not an object or lacks id/type
        """
        if not isinstance(data, dict):
            msg = f"queued action must be an object, got {type(data).__name__}"
            raise ValueError(msg)

        action_id = data.get("id")
        action_type = data.get("type")
        if not isinstance(action_id, str) or not action_id:
            msg = "queued action has no id"
            raise ValueError(msg)
        if not isinstance(action_type, str) or not action_type:
            msg = f"queued action {action_id} has no type"
            raise ValueError(msg)

        timestamp = data.get("timestamp")
        if not isinstance(timestamp, int) or isinstance(timestamp, bool):
            timestamp = 0

        fields = {key: value for key, value in data.items() if key not in _RESERVED_KEYS}
        return cls(id=action_id, type=action_type, fields=fields, timestamp=timestamp)


ActionHandler = Callable[[QueuedAction, "RequestExecutor"], Awaitable[Any]]


@dataclass(frozen=True)
class ReplayOutcome:
    """Result of replaying one action."""

    action: QueuedAction
    success: bool
    result: Any = None
    error: Exception | None = None


@dataclass
class ReplayReport:
    """All outcomes of one replay pass.

    ``skipped`` is set when the pass did not run because another one was
    already in progress.
    """

    outcomes: list[ReplayOutcome] = field(default_factory=list)
    skipped: bool = False

    @property
    def succeeded(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.success)

    @property
    def failed(self) -> int:
        return sum(1 for outcome in self.outcomes if not outcome.success)

    def __len__(self) -> int:
        return len(self.outcomes)


class OfflineActionQueue:
    """Ordered, persisted list of QueuedAction with single-flight replay.

    Args:
        store: Durable store holding the serialized queue
        storage_key: Key of the queue in the store
        clock: Wall clock in seconds, used for timestamps
        id_factory: Generates action ids
    """

    def __init__(
        self,
        store: DurableStore,
        *,
        storage_key: str = QueueConfig.STORAGE_KEY,
        clock: Callable[[], float] = time.time,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._store = store
        self.storage_key = storage_key
        self._clock = clock
        self._id_factory = id_factory or _random_id
        self._handlers: dict[str, ActionHandler] = {}
        self._is_processing = False
        self._actions: list[QueuedAction] = self._load()

    @property
    def is_processing(self) -> bool:
        return self._is_processing

    @property
    def size(self) -> int:
        return len(self._actions)

    @property
    def actions(self) -> tuple[QueuedAction, ...]:
        return tuple(self._actions)

    def __len__(self) -> int:
        return len(self._actions)

    def register_handler(self, action_type: str, handler: ActionHandler) -> None:
        """Set the coroutine function that replays actions of this type."""
        self._handlers[action_type] = handler

    def enqueue(self, action_type: str, **fields: Any) -> QueuedAction:
        """Append a new action and persist the queue.

        Args:
            action_type: Action tag
            **fields: Operation fields stored with the action

        Returns:
            The queued action

        Raises:
            ValueError: If a field uses a reserved key
            QueueError: If a field value cannot be stored as JSON; the queue
                is left unchanged
        """
        reserved = _RESERVED_KEYS.intersection(fields)
        if reserved:
            msg = f"fields may not use reserved keys: {', '.join(sorted(reserved))}"
            raise ValueError(msg)

        action = QueuedAction(
            id=self._new_id(),
            type=action_type,
            fields=dict(fields),
            timestamp=int(self._clock() * 1000),
        )
        # Encode before appending so an unstorable action never enters the queue
        payload = self._encode([*self._actions, action])
        self._actions.append(action)
        self._write(payload)
        logger.info("Action queued for later: %s (%s)", action.type, action.id)
        return action

    async def replay(self, executor: RequestExecutor) -> ReplayReport:
        """Try every queued action once, in enqueue order.

        Successful actions are removed and the queue is persisted after each
        removal. Failed ones stay where they are. A call made while another
        replay is running returns a skipped, empty report.
        """
        if self._is_processing:
            logger.debug("Replay already in progress, skipping")
            return ReplayReport(skipped=True)

        if not self._actions:
            return ReplayReport()

        self._is_processing = True
        report = ReplayReport()
        try:
            logger.info("Replaying %d queued actions", len(self._actions))
            for action in list(self._actions):
                report.outcomes.append(await self._replay_one(action, executor))
        finally:
            self._is_processing = False

        logger.info(
            "Replay finished: %d succeeded, %d failed",
            report.succeeded,
            report.failed,
        )
        return report

    async def _replay_one(
        self,
        action: QueuedAction,
        executor: RequestExecutor,
    ) -> ReplayOutcome:
        context = ErrorContext(
            operation="replay_action",
            additional_data={"action_type": action.type, "action_id": action.id},
        )

        log_operation_start(logger, "replay_action", context.safe_dict())

        handler = self._handlers.get(action.type)
        if handler is None:
            error = QueueError(
                ErrorCode.QUEUE_UNKNOWN_ACTION,
                f"No handler registered for action type '{action.type}'",
                context,
            )
            log_operation_error(logger, error, level=logging.WARNING)
            return ReplayOutcome(action=action, success=False, error=error)

        try:
            result = await handler(action, executor)
        except ChoreSyncError as error:
            log_operation_error(
                logger,
                error,
                operation="replay_action",
                additional_context=context,
                level=logging.WARNING,
            )
            return ReplayOutcome(action=action, success=False, error=error)
        except Exception as error:
            logger.error(
                "Replay of %s (%s) failed unexpectedly",
                action.type,
                action.id,
                exc_info=True,
            )
            return ReplayOutcome(action=action, success=False, error=error)

        self._remove(action.id)
        self._persist()
        return ReplayOutcome(action=action, success=True, result=result)

    def clear(self) -> None:
        """Drop every queued action."""
        self._actions.clear()
        self._persist()
        logger.info("Offline queue cleared")

    def reload(self) -> None:
        """Re-read the queue from the store, discarding in-memory state."""
        self._actions = self._load()

    def _remove(self, action_id: str) -> None:
        self._actions = [action for action in self._actions if action.id != action_id]

    def _new_id(self) -> str:
        existing = {action.id for action in self._actions}
        action_id = self._id_factory()
        while action_id in existing:
            action_id = self._id_factory()
        return action_id

    def _load(self) -> list[QueuedAction]:
        try:
            raw = self._store.get(self.storage_key)
        except StorageError as error:
            log_operation_error(logger, error, operation="load_queue", level=logging.WARNING)
            return []

        if not raw:
            return []

        try:
            entries = orjson.loads(raw)
        except orjson.JSONDecodeError as e:
            logger.warning("Stored offline queue is not valid JSON, starting empty: %s", e)
            return []

        if not isinstance(entries, list):
            logger.warning(
                "Stored offline queue is a %s, not a list, starting empty",
                type(entries).__name__,
            )
            return []

        actions: list[QueuedAction] = []
        for entry in entries:
            try:
                actions.append(QueuedAction.from_dict(entry))
            except ValueError as e:
                logger.warning("Discarding malformed queued action: %s", e)
        return actions

    def _persist(self) -> None:
        self._write(self._encode(self._actions))

    def _encode(self, actions: list[QueuedAction]) -> str:
        try:
            return orjson.dumps([action.to_dict() for action in actions]).decode("utf-8")
        except orjson.JSONEncodeError as e:
            raise QueueError(
                ErrorCode.QUEUE_UNSERIALIZABLE,
                f"Queued action fields cannot be stored as JSON: {e}",
                ErrorContext(operation="persist_queue", additional_data={"key": self.storage_key}),
                original_error=e,
            ) from e

    def _write(self, payload: str) -> None:
        try:
            self._store.set(self.storage_key, payload)
        except StorageError as error:
            # The in-memory queue stays authoritative until the next write
            log_operation_error(logger, error, operation="persist_queue", level=logging.WARNING)


def _random_id() -> str:
    return uuid.uuid4().hex[: QueueConfig.ID_LENGTH]
