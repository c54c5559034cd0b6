"""API service facade.

ApiService is what the rest of the client talks to. Reads check the response
cache first and fill it on success. Mutations check the connection state:
offline they go straight to the offline queue, online they are executed and
queued only if every attempt fails. A successful mutation invalidates the
cached task lists and the aggregates derived from them.

Example:
    >>> service = ApiService(executor, cache, queue)
    >>> tasks = await service.tasks.get_all(day="monday")
    >>> await service.tasks.toggle(task_id=3, user_id=1)
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping
from urllib.parse import quote

from choresync.services.connection_monitor import ConnectionSnapshot
from choresync.services.offline_queue import OfflineActionQueue, QueuedAction, ReplayReport
from choresync.services.request_executor import RequestExecutor, RequestObserver
from choresync.services.response_cache import MISS, ResponseCache
from choresync.shared.constants import (
    ActionTypes,
    CacheConfig,
    CacheKeys,
    Endpoints,
    ResponseFields,
)
from choresync.shared.error_messages import DEFAULT_LANGUAGE, format_user_error
from choresync.shared.errors import (
    ErrorCode,
    ErrorContext,
    InfrastructureError,
    OfflineQueuedError,
    QueueError,
)
from choresync.shared.logging import log_operation_error

logger = logging.getLogger(__name__)

# endpoint, method, body
Request = tuple[str, str, Any]


def _toggle_request(fields: Mapping[str, Any]) -> Request:
    return (
        Endpoints.TASK_TOGGLE.format(task_id=fields["taskId"]),
        "POST",
        {"user_id": fields["userId"]},
    )


def _create_request(fields: Mapping[str, Any]) -> Request:
    return Endpoints.TASKS, "POST", fields["taskData"]


def _update_request(fields: Mapping[str, Any]) -> Request:
    return (
        Endpoints.TASK.format(task_id=fields["taskId"]),
        "PUT",
        fields["taskData"],
    )


def _delete_request(fields: Mapping[str, Any]) -> Request:
    return Endpoints.TASK.format(task_id=fields["taskId"]), "DELETE", None


# Shared by direct calls and queue replay so both send the same request
MUTATIONS: dict[str, Callable[[Mapping[str, Any]], Request]] = {
    ActionTypes.TOGGLE_TASK: _toggle_request,
    ActionTypes.CREATE_TASK: _create_request,
    ActionTypes.UPDATE_TASK: _update_request,
    ActionTypes.DELETE_TASK: _delete_request,
}


def is_task_data_key(key: str) -> bool:
    """Keys whose content changes whenever a task changes."""
    return key.startswith(CacheKeys.TASKS_PREFIX) or key in CacheKeys.GAME_DATA


def build_request(action_type: str, fields: Mapping[str, Any]) -> Request:
    """Turn a mutation type and its fields into a request.

    Raises:
        QueueError: If the type is unknown or a required field is missing
    """
    builder = MUTATIONS.get(action_type)
    if builder is None:
        raise QueueError(
            ErrorCode.QUEUE_UNKNOWN_ACTION,
            f"Unknown action type '{action_type}'",
            ErrorContext(
                operation="build_request",
                additional_data={"action_type": action_type},
            ),
        )
    try:
        return builder(fields)
    except KeyError as e:
        raise QueueError(
            ErrorCode.QUEUE_CORRUPTED,
            f"Action '{action_type}' is missing field {e}",
            ErrorContext(
                operation="build_request",
                additional_data={"action_type": action_type},
            ),
        ) from e


def _unwrap(payload: Any, field: str | None) -> Any:
    """Pull ``field`` out of an API envelope.

    Accepts ``{field: ...}`` and ``{"data": ...}``; anything else is
    returned as is.
    """
    if field is None or not isinstance(payload, dict):
        return payload
    if field in payload:
        return payload[field]
    if ResponseFields.DATA in payload:
        return payload[ResponseFields.DATA]
    return payload


class AuthService:
    """Login and health check. Never cached, never queued."""

    def __init__(self, api: ApiService) -> None:
        self._api = api

    async def login(
        self,
        username: str,
        password: str,
        observer: RequestObserver | None = None,
    ) -> Any:
        return await self._api.executor.execute(
            Endpoints.LOGIN,
            "POST",
            {"username": username, "password": password},
            observer,
        )

    async def health_check(self, observer: RequestObserver | None = None) -> Any:
        return await self._api.executor.execute(Endpoints.HEALTH, observer=observer)


class UserService:
    def __init__(self, api: ApiService) -> None:
        self._api = api

    async def get_all(self, observer: RequestObserver | None = None) -> Any:
        """All users, cached under ``users``."""
        return await self._api.read(
            CacheKeys.USERS,
            Endpoints.USERS,
            field=ResponseFields.USERS,
            observer=observer,
        )

    async def get_by_id(self, user_id: Any, observer: RequestObserver | None = None) -> Any:
        payload = await self._api.executor.execute(
            Endpoints.USER.format(user_id=user_id),
            observer=observer,
        )
        return _unwrap(payload, ResponseFields.USER)


class TaskService:
    """Task reads and queue-aware task mutations."""

    def __init__(self, api: ApiService) -> None:
        self._api = api

    async def get_all(
        self,
        day: str | None = None,
        observer: RequestObserver | None = None,
    ) -> Any:
        """Tasks, optionally for one day, cached under ``tasks_<day|all>``."""
        endpoint = Endpoints.TASKS
        if day:
            endpoint = f"{endpoint}?day={quote(day, safe='')}"
        return await self._api.read(
            CacheKeys.tasks(day),
            endpoint,
            field=ResponseFields.TASKS,
            observer=observer,
        )

    async def get_by_id(self, task_id: Any, observer: RequestObserver | None = None) -> Any:
        payload = await self._api.executor.execute(
            Endpoints.TASK.format(task_id=task_id),
            observer=observer,
        )
        return _unwrap(payload, ResponseFields.TASK)

    async def toggle(
        self,
        task_id: Any,
        user_id: Any,
        observer: RequestObserver | None = None,
    ) -> Any:
        """Mark a task done or undone for a user.

        Raises:
            OfflineQueuedError: Offline; the toggle was queued
        """
        return await self._api.mutate(
            ActionTypes.TOGGLE_TASK,
            {"taskId": task_id, "userId": user_id},
            observer,
        )

    async def create(
        self,
        task_data: dict[str, Any],
        observer: RequestObserver | None = None,
    ) -> Any:
        return await self._api.mutate(
            ActionTypes.CREATE_TASK,
            {"taskData": task_data},
            observer,
        )

    async def update(
        self,
        task_id: Any,
        task_data: dict[str, Any],
        observer: RequestObserver | None = None,
    ) -> Any:
        return await self._api.mutate(
            ActionTypes.UPDATE_TASK,
            {"taskId": task_id, "taskData": task_data},
            observer,
        )

    async def delete(self, task_id: Any, observer: RequestObserver | None = None) -> Any:
        return await self._api.mutate(
            ActionTypes.DELETE_TASK,
            {"taskId": task_id},
            observer,
        )


class StatsService:
    def __init__(self, api: ApiService) -> None:
        self._api = api

    async def get_general(self, observer: RequestObserver | None = None) -> Any:
        """General statistics, cached under ``stats``."""
        return await self._api.read(
            CacheKeys.STATS,
            Endpoints.STATS,
            field=ResponseFields.DATA,
            observer=observer,
        )

    async def get_ranking(self, observer: RequestObserver | None = None) -> Any:
        """Points ranking; a cached copy is only used while it is recent."""
        return await self._api.read(
            CacheKeys.RANKING,
            Endpoints.RANKING,
            field=ResponseFields.DATA,
            observer=observer,
            max_age=self._api.ranking_max_age,
        )


class ApiService:
    """Facade over the executor, cache and offline queue.

    Constructing the facade registers a replay handler for every mutation
    type on the queue and, when a monitor is given, binds the queue replay
    to the monitor's reconnect event.

    Args:
        executor: Request executor; its monitor supplies the online state
        cache: Response cache for reads
        queue: Offline action queue for mutations
        ranking_max_age: Freshness window of the cached ranking in seconds
        language: Language of messages returned by ``format_error``
    """

    def __init__(
        self,
        executor: RequestExecutor,
        cache: ResponseCache,
        queue: OfflineActionQueue,
        *,
        ranking_max_age: float = CacheConfig.RANKING_MAX_AGE,
        language: str = DEFAULT_LANGUAGE,
    ) -> None:
        self.executor = executor
        self.cache = cache
        self.queue = queue
        self.monitor = executor.monitor
        self.ranking_max_age = ranking_max_age
        self.language = language

        self.auth = AuthService(self)
        self.users = UserService(self)
        self.tasks = TaskService(self)
        self.stats = StatsService(self)

        for action_type in MUTATIONS:
            queue.register_handler(action_type, self._replay_handler(action_type))
        self.monitor.bind_queue(queue)
        self.monitor.bind_replay(self.process_offline_queue)

    async def read(
        self,
        cache_key: str,
        endpoint: str,
        *,
        field: str | None = None,
        observer: RequestObserver | None = None,
        max_age: float | None = None,
    ) -> Any:
        """Cached GET: return the cached value or fetch, unwrap and store it."""
        cached = self.cache.get(cache_key, max_age=max_age)
        if cached is not MISS:
            logger.debug("Served %s from cache", cache_key)
            return cached

        payload = await self.executor.execute(endpoint, observer=observer)
        data = _unwrap(payload, field)
        self.cache.set(cache_key, data)
        return data

    async def mutate(
        self,
        action_type: str,
        fields: dict[str, Any],
        observer: RequestObserver | None = None,
    ) -> Any:
        """Send a mutation, or queue it when it cannot be sent.

        Raises:
            OfflineQueuedError: Offline; the action was queued without any
                network activity
            InfrastructureError: Every attempt failed; the action was queued
                unless the failure was not retryable
            QueueError: Offline and the fields cannot be stored for later
        """
        endpoint, method, body = build_request(action_type, fields)

        if not self.monitor.is_online:
            action = self.queue.enqueue(action_type, **fields)
            raise OfflineQueuedError(
                action,
                ErrorContext(
                    endpoint=endpoint,
                    operation=action_type,
                    additional_data={"action_id": action.id},
                ),
            )

        try:
            result = await self.executor.execute(endpoint, method, body, observer)
        except InfrastructureError as error:
            if self.executor.is_retryable(error):
                self._enqueue_after_failure(action_type, fields)
            else:
                logger.info("Not queueing %s, the server rejected it", action_type)
            raise

        self.invalidate_task_data()
        return result

    def _enqueue_after_failure(self, action_type: str, fields: dict[str, Any]) -> None:
        try:
            self.queue.enqueue(action_type, **fields)
        except QueueError as queue_error:
            log_operation_error(logger, queue_error, operation=action_type, level=logging.WARNING)

    def _replay_handler(self, action_type: str) -> Callable[..., Any]:
        async def handler(action: QueuedAction, executor: RequestExecutor) -> Any:
            endpoint, method, body = build_request(action_type, action.fields)
            result = await executor.execute(endpoint, method, body)
            self.invalidate_task_data()
            return result

        return handler

    def invalidate_task_data(self) -> list[str]:
        """Drop cached task lists, ranking and stats."""
        return self.cache.invalidate(is_task_data_key)

    def invalidate_game_data(self) -> list[str]:
        """Drop the cached ranking and stats only."""
        return self.cache.invalidate(lambda key: key in CacheKeys.GAME_DATA)

    def clear_cache(self) -> None:
        self.cache.clear()

    def clear_offline_queue(self) -> None:
        self.queue.clear()

    async def process_offline_queue(self) -> ReplayReport:
        """Replay queued actions now."""
        return await self.queue.replay(self.executor)

    def connection_snapshot(self) -> ConnectionSnapshot:
        return self.monitor.snapshot()

    async def is_api_available(self) -> bool:
        """Whether the health endpoint answers, after the usual retries."""
        try:
            await self.auth.health_check()
        except InfrastructureError:
            return False
        return True

    def format_error(self, error: BaseException) -> str:
        """User-facing message for an error raised by this facade."""
        return format_user_error(error, self.language)
