"""Tests for the API service facade: caching, queue-aware mutations, replay."""

from __future__ import annotations

import orjson
import pytest
from conftest import Delay

from choresync.services.api_service import build_request
from choresync.services.request_executor import RecordingObserver
from choresync.shared.errors import (
    ErrorCode,
    HttpStatusError,
    NetworkError,
    OfflineQueuedError,
    QueueError,
)

TASK_DATA_KEYS = ("tasks_all", "tasks_monday", "ranking", "stats")


def _fill_cache(cache) -> None:
    for key in (*TASK_DATA_KEYS, "users"):
        cache.set(key, [key])


class TestReads:
    """Cached read operations."""

    @pytest.mark.asyncio
    async def test_users_are_unwrapped_and_cached(self, api, transport, cache):
        transport.script({"users": [{"id": 1, "name": "Ana"}]})

        first = await api.users.get_all()
        second = await api.users.get_all()

        assert first == second == [{"id": 1, "name": "Ana"}]
        assert transport.calls == [("/users", "GET", None)]
        assert cache.get("users") == [{"id": 1, "name": "Ana"}]

    @pytest.mark.asyncio
    async def test_tasks_by_day_use_query_and_day_key(self, api, transport, cache):
        transport.script({"tasks": [{"id": 3}]})

        tasks = await api.tasks.get_all(day="terça feira")

        assert tasks == [{"id": 3}]
        assert transport.calls[0][0] == "/tasks?day=ter%C3%A7a%20feira"
        assert "tasks_terça feira" in cache

    @pytest.mark.asyncio
    async def test_all_tasks_use_all_key(self, api, transport, cache):
        transport.script({"data": [{"id": 1}]})

        assert await api.tasks.get_all() == [{"id": 1}]
        assert transport.calls[0][0] == "/tasks"
        assert cache.get("tasks_all") == [{"id": 1}]

    @pytest.mark.asyncio
    async def test_expired_cache_refetches(self, api, transport, clock):
        transport.script({"total": 1}, {"total": 2})

        assert await api.stats.get_general() == {"total": 1}
        clock.advance(300)
        assert await api.stats.get_general() == {"total": 2}
        assert len(transport.calls) == 2

    @pytest.mark.asyncio
    async def test_ranking_uses_short_freshness_window(self, api, transport, clock):
        transport.script([{"user": "ana", "points": 3}], [{"user": "ana", "points": 5}])

        await api.stats.get_ranking()
        clock.advance(29)
        cached = await api.stats.get_ranking()
        clock.advance(1)
        fresh = await api.stats.get_ranking()

        assert cached == [{"user": "ana", "points": 3}]
        assert fresh == [{"user": "ana", "points": 5}]
        assert len(transport.calls) == 2

    @pytest.mark.asyncio
    async def test_stats_envelopes_are_unwrapped(self, api, transport, cache):
        transport.script({"data": {"total": 3}}, {"data": [{"user": "ana", "points": 3}]})

        assert await api.stats.get_general() == {"total": 3}
        assert await api.stats.get_ranking() == [{"user": "ana", "points": 3}]
        assert cache.get("stats") == {"total": 3}

    @pytest.mark.asyncio
    async def test_get_by_id_is_not_cached(self, api, transport, cache):
        transport.script({"task": {"id": 7}}, {"user": {"id": 2}})

        assert await api.tasks.get_by_id(7) == {"id": 7}
        assert await api.users.get_by_id(2) == {"id": 2}
        assert [call[0] for call in transport.calls] == ["/tasks/7", "/users/2"]
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_failed_read_leaves_cache_untouched(self, api, transport, cache):
        transport.script(NetworkError("a"), NetworkError("b"), NetworkError("c"))

        with pytest.raises(NetworkError):
            await api.users.get_all()

        assert "users" not in cache


class TestAuth:
    @pytest.mark.asyncio
    async def test_login_posts_credentials(self, api, transport):
        transport.script({"user": {"id": 1}})

        result = await api.auth.login("ana", "secret")

        assert result == {"user": {"id": 1}}
        assert transport.calls == [("/login", "POST", {"username": "ana", "password": "secret"})]

    @pytest.mark.asyncio
    async def test_is_api_available(self, api, transport):
        transport.script({"status": "ok"})
        assert await api.is_api_available() is True

        transport.script(NetworkError("a"), NetworkError("b"), NetworkError("c"))
        assert await api.is_api_available() is False


class TestOnlineMutations:
    """Mutations while the connection is up."""

    @pytest.mark.asyncio
    async def test_toggle_retries_after_timeout_and_invalidates(self, api, transport, cache, queue):
        _fill_cache(cache)
        transport.script(Delay(1.0, {"late": True}), {"completed": True})
        observer = RecordingObserver()

        result = await api.tasks.toggle(3, 1, observer)

        assert result == {"completed": True}
        assert [event[:2] for event in observer.events if event[0] == "retry"] == [("retry", 1)]
        assert observer.names().count("success") == 1
        assert transport.calls[-1] == ("/tasks/3/toggle", "POST", {"user_id": 1})
        assert cache.keys() == ["users"]
        assert len(queue) == 0

    @pytest.mark.asyncio
    async def test_exhausted_mutation_is_queued_and_error_reraised(self, api, transport, queue):
        error = HttpStatusError(500, "db locked")
        transport.script(NetworkError("a"), NetworkError("b"), error)

        with pytest.raises(HttpStatusError) as exc_info:
            await api.tasks.toggle(3, 1)

        assert exc_info.value is error
        assert [(a.type, dict(a.fields)) for a in queue.actions] == [
            ("toggle_task", {"taskId": 3, "userId": 1}),
        ]

    @pytest.mark.asyncio
    async def test_exhausted_mutation_with_unstorable_fields_keeps_original_error(
        self, api, transport, queue, caplog,
    ):
        error = NetworkError("c")
        transport.script(NetworkError("a"), NetworkError("b"), error)

        with pytest.raises(NetworkError) as exc_info:
            await api.tasks.create({"title": "x", "tags": {"a", "b"}})

        assert exc_info.value is error
        assert len(queue) == 0
        assert "cannot be stored as JSON" in caplog.text

    @pytest.mark.asyncio
    async def test_failed_mutation_keeps_cache(self, api, transport, cache):
        _fill_cache(cache)
        transport.script(NetworkError("a"), NetworkError("b"), NetworkError("c"))

        with pytest.raises(NetworkError):
            await api.tasks.toggle(3, 1)

        assert len(cache) == 5

    @pytest.mark.asyncio
    async def test_rejected_mutation_is_not_queued_with_fail_fast(self, api, transport, queue):
        api.executor.retry_client_errors = False
        transport.script(HttpStatusError(422, "title required"))

        with pytest.raises(HttpStatusError):
            await api.tasks.create({"title": ""})

        assert len(queue) == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("call", "expected"),
        [
            (lambda api: api.tasks.create({"title": "Dishes"}), ("/tasks", "POST", {"title": "Dishes"})),
            (lambda api: api.tasks.update(4, {"title": "Laundry"}), ("/tasks/4", "PUT", {"title": "Laundry"})),
            (lambda api: api.tasks.delete(4), ("/tasks/4", "DELETE", None)),
        ],
    )
    async def test_task_mutations_send_expected_request(self, api, transport, cache, call, expected):
        _fill_cache(cache)

        await call(api)

        assert transport.calls == [expected]
        assert cache.keys() == ["users"]


class TestOfflineMutations:
    """Mutations while the connection is down."""

    @pytest.mark.asyncio
    async def test_toggle_offline_is_queued_without_network(self, api, transport, queue, store, signal):
        signal.set_online(False)
        before = len(queue)

        with pytest.raises(OfflineQueuedError) as exc_info:
            await api.tasks.toggle(3, 1)

        assert transport.calls == []
        assert len(queue) == before + 1
        assert exc_info.value.code == ErrorCode.OFFLINE_QUEUED
        stored = orjson.loads(store.data["offline_queue"])
        assert stored[-1]["taskId"] == 3
        assert stored[-1]["userId"] == 1
        assert stored[-1]["id"] == exc_info.value.action.id

    @pytest.mark.asyncio
    async def test_every_mutation_type_queues_offline(self, api, transport, queue, signal):
        signal.set_online(False)

        for call in (
            api.tasks.toggle(1, 2),
            api.tasks.create({"title": "Dishes"}),
            api.tasks.update(1, {"title": "Laundry"}),
            api.tasks.delete(1),
        ):
            with pytest.raises(OfflineQueuedError):
                await call

        assert [action.type for action in queue.actions] == [
            "toggle_task",
            "create_task",
            "update_task",
            "delete_task",
        ]
        assert transport.calls == []

    @pytest.mark.asyncio
    async def test_unstorable_offline_mutation_leaves_queue_usable(self, api, queue, store, signal):
        signal.set_online(False)

        with pytest.raises(QueueError) as exc_info:
            await api.tasks.create({"title": "x", "tags": {"a", "b"}})

        assert exc_info.value.code == ErrorCode.QUEUE_UNSERIALIZABLE
        assert len(queue) == 0

        with pytest.raises(OfflineQueuedError):
            await api.tasks.toggle(1, 2)

        assert len(queue) == 1
        assert len(orjson.loads(store.data["offline_queue"])) == 1


class TestReplay:
    """Queue replay through the facade."""

    @pytest.mark.asyncio
    async def test_reconnect_replays_and_keeps_failed_action_in_place(
        self, api, transport, queue, monitor, signal, cache
    ):
        signal.set_online(False)
        with pytest.raises(OfflineQueuedError):
            await api.tasks.toggle(1, 10)
        with pytest.raises(OfflineQueuedError):
            await api.tasks.toggle(2, 20)
        failing = queue.actions[1]
        _fill_cache(cache)
        transport.script(
            {"completed": True},
            HttpStatusError(500),
            HttpStatusError(500),
            HttpStatusError(500),
        )

        signal.set_online(True)
        await monitor.wait_for_pending_replay()

        assert queue.actions == (failing,)
        assert transport.calls[0] == ("/tasks/1/toggle", "POST", {"user_id": 10})
        assert cache.keys() == ["users"]

    @pytest.mark.asyncio
    async def test_replay_failure_does_not_requeue(self, api, transport, queue, signal):
        signal.set_online(False)
        with pytest.raises(OfflineQueuedError):
            await api.tasks.delete(5)
        transport.script(NetworkError("a"), NetworkError("b"), NetworkError("c"))

        report = await api.process_offline_queue()

        assert report.failed == 1
        assert len(queue) == 1

    @pytest.mark.asyncio
    async def test_corrupt_action_fields_fail_replay(self, api, queue, transport):
        queue.enqueue("toggle_task", taskId=1)

        report = await api.process_offline_queue()

        assert report.failed == 1
        assert report.outcomes[0].error.code == ErrorCode.QUEUE_CORRUPTED
        assert transport.calls == []


class TestHelpers:
    def test_invalidate_game_data(self, api, cache):
        _fill_cache(cache)

        removed = api.invalidate_game_data()

        assert sorted(removed) == ["ranking", "stats"]

    def test_clear_cache_and_queue(self, api, cache, queue):
        _fill_cache(cache)
        queue.enqueue("toggle_task", taskId=1, userId=1)

        api.clear_cache()
        api.clear_offline_queue()

        assert len(cache) == 0
        assert len(queue) == 0

    def test_connection_snapshot(self, api, queue):
        queue.enqueue("toggle_task", taskId=1, userId=1)

        snapshot = api.connection_snapshot()

        assert snapshot.is_online is True
        assert snapshot.queue_size == 1

    def test_format_error_uses_language(self, api):
        api.language = "pt"

        message = api.format_error(HttpStatusError(500))

        assert message == "Erro interno do servidor. Tentando novamente..."

    def test_build_request_rejects_unknown_type(self):
        with pytest.raises(QueueError) as exc_info:
            build_request("archive_task", {})

        assert exc_info.value.code == ErrorCode.QUEUE_UNKNOWN_ACTION
