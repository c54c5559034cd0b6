"""Tests for the Typer CLI commands.

Every invocation gets a TOML config pointing the durable store at a temp
directory; commands that talk to the API use a scripted transport.
"""

from __future__ import annotations

import orjson
import pytest
from conftest import FakeTransport
from dependency_injector import providers
from typer.testing import CliRunner

from choresync.cli import typer_app
from choresync.cli.typer_app import app
from choresync.shared.constants import CLIDefaults
from choresync.shared.errors import NetworkError

runner = CliRunner()


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text(
        "\n".join(
            [
                "[api]",
                'base_url = "http://127.0.0.1:9/api"',
                "timeout = 1.0",
                "retry_delay = 0.0",
                "",
                "[queue]",
                f'store_path = "{(tmp_path / "store.json").as_posix()}"',
                "replay_debounce = 0.0",
                "",
                "[logging]",
                "rich_console = false",
                "",
            ],
        ),
        encoding="utf-8",
    )
    return path


@pytest.fixture
def fake_transport(monkeypatch):
    fake = FakeTransport(default={"ok": True})
    build_container = typer_app.build_container

    def build_with_fake(context):
        container = build_container(context)
        container.transport.override(providers.Object(fake))
        return container

    monkeypatch.setattr(typer_app, "build_container", build_with_fake)
    return fake


def invoke(config_file, *args):
    return runner.invoke(app, ["--config", str(config_file), *args])


def envelope(result) -> dict:
    return orjson.loads(result.stdout)


def test_version():
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert "ChoreSync v" in result.stdout


class TestOfflineFlow:
    """Queue while offline, inspect, replay and clear."""

    def test_offline_toggle_is_queued(self, config_file):
        result = invoke(config_file, "--offline", "--json", "toggle", "3", "1")

        assert result.exit_code == CLIDefaults.EXIT_QUEUED
        payload = envelope(result)
        assert payload["success"] is False
        assert payload["errors"] == []
        assert payload["warnings"] == ["Action saved for when you are back online."]
        assert payload["data"]["action"]["taskId"] == 3
        assert payload["data"]["action"]["userId"] == 1

    def test_status_lists_pending_actions(self, config_file):
        invoke(config_file, "--offline", "toggle", "3", "1")

        result = invoke(config_file, "--offline", "--json", "status")

        assert result.exit_code == 0
        data = envelope(result)["data"]
        assert data["connection"]["isOnline"] is False
        assert data["connection"]["queueSize"] == 1
        assert [action["taskId"] for action in data["pending"]] == [3]

    def test_replay_sends_queued_action(self, config_file, fake_transport):
        invoke(config_file, "--offline", "toggle", "3", "1")

        result = invoke(config_file, "--json", "replay")

        assert result.exit_code == 0
        data = envelope(result)["data"]
        assert (data["succeeded"], data["failed"], data["skipped"]) == (1, 0, False)
        assert fake_transport.calls == [("/tasks/3/toggle", "POST", {"user_id": 1})]
        assert fake_transport.closed is True

    def test_replay_with_empty_queue(self, config_file, fake_transport):
        result = invoke(config_file, "replay")

        assert result.exit_code == 0
        assert "Nothing to replay" in result.stdout
        assert fake_transport.calls == []

    def test_clear_queue(self, config_file):
        invoke(config_file, "--offline", "toggle", "3", "1")
        invoke(config_file, "--offline", "toggle", "4", "1")

        cleared = invoke(config_file, "--json", "clear-queue")
        status = invoke(config_file, "--json", "status")

        assert envelope(cleared)["data"] == {"removed": 2}
        assert envelope(status)["data"]["connection"]["queueSize"] == 0

    def test_watch_replays_after_successful_health_check(self, config_file, fake_transport):
        invoke(config_file, "--offline", "toggle", "3", "1")

        result = invoke(config_file, "--json", "watch", "--count", "1", "--interval", "0")

        assert result.exit_code == 0
        probes = envelope(result)["data"]
        assert probes[0]["isOnline"] is True
        assert probes[0]["queueSize"] == 0
        assert [call[0] for call in fake_transport.calls] == ["/health", "/tasks/3/toggle"]


class TestOnlineCommands:
    def test_tasks_for_day(self, config_file, fake_transport):
        fake_transport.script({"tasks": [{"id": 1, "title": "Dishes"}]})

        result = invoke(config_file, "--json", "tasks", "--day", "monday")

        assert result.exit_code == 0
        assert envelope(result)["data"] == [{"id": 1, "title": "Dishes"}]
        assert fake_transport.calls == [("/tasks?day=monday", "GET", None)]

    def test_tasks_table(self, config_file, fake_transport):
        fake_transport.script({"tasks": [{"id": 1, "title": "Dishes"}]})

        result = invoke(config_file, "tasks")

        assert result.exit_code == 0
        assert "Dishes" in result.stdout

    def test_failed_toggle_is_queued_and_reported(self, config_file, fake_transport):
        fake_transport.script(NetworkError("a"), NetworkError("b"), NetworkError("c"))

        result = invoke(config_file, "toggle", "3", "1")
        status = invoke(config_file, "--offline", "--json", "status")

        assert result.exit_code == CLIDefaults.EXIT_ERROR
        assert envelope(status)["data"]["connection"]["queueSize"] == 1

    def test_health(self, config_file, fake_transport):
        assert invoke(config_file, "health").exit_code == 0

        fake_transport.script(NetworkError("a"), NetworkError("b"), NetworkError("c"))
        assert invoke(config_file, "health").exit_code == CLIDefaults.EXIT_ERROR


def test_missing_config_file_is_an_error(tmp_path):
    result = runner.invoke(app, ["--config", str(tmp_path / "absent.toml"), "status"])

    assert result.exit_code == CLIDefaults.EXIT_ERROR
