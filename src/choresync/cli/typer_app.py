"""
ChoreSync Typer CLI Application

Command-line front end over the API service facade. Each command builds a
fresh container, runs one operation inside ``asyncio.run`` and prints the
result as a Rich table or, with ``--json``, as a JSON envelope.

Mutations made with ``--offline`` (or while the API is unreachable) are
queued in the JSON store and sent later by ``replay`` or ``watch``.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Annotated, Any, Awaitable, Callable

import typer
from dependency_injector import providers
from rich.console import Console
from rich.table import Table

from choresync.cli.context import CliContext, LogLevel, get_cli_context, set_cli_context
from choresync.cli.json_formatter import format_json_output
from choresync.config.loader import load_settings
from choresync.containers import Container
from choresync.services import (
    ApiService,
    HealthProbeSignal,
    ManualNetworkSignal,
    ReplayReport,
    make_health_probe,
)
from choresync.shared.constants import CLICommands, CLIDefaults, CLIHelp
from choresync.shared.error_messages import format_user_error
from choresync.shared.errors import ChoreSyncError, OfflineQueuedError
from choresync.shared.logging import setup_structured_logger

# Version information
__version__ = CLIDefaults.VERSION

Operation = Callable[[ApiService], Awaitable[Any]]


def version_callback(value: bool) -> None:
    """Print version information and exit."""
    if value:
        typer.echo(CLIHelp.VERSION_TEXT.format(version=__version__))
        raise typer.Exit


app = typer.Typer(
    name=CLIHelp.APP_NAME,
    help=CLIHelp.APP_DESCRIPTION,
    rich_markup_mode="rich",
    no_args_is_help=True,
)


@app.callback()
def main(
    config_path: Annotated[
        Path | None,
        typer.Option("--config", "-c", help=CLIHelp.CONFIG_OPTION_HELP, dir_okay=False),
    ] = None,
    offline: Annotated[
        bool,
        typer.Option("--offline", help=CLIHelp.OFFLINE_OPTION_HELP),
    ] = False,
    log_level: Annotated[
        LogLevel,
        typer.Option("--log-level", help=CLIHelp.LOG_LEVEL_OPTION_HELP, case_sensitive=False),
    ] = LogLevel.WARNING,
    json_output: Annotated[
        bool,
        typer.Option("--json", help=CLIHelp.JSON_OPTION_HELP),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            help=CLIHelp.VERSION_OPTION_HELP,
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
) -> None:
    """Resilient client for the household task tracker API."""
    set_cli_context(
        CliContext(
            config_path=config_path,
            offline=offline,
            log_level=log_level,
            json_output=json_output,
        ),
    )


def build_container(context: CliContext) -> Container:
    """Container for one command, with the CLI options applied."""
    container = Container()
    if context.config_path is not None:
        container.config.override(providers.Singleton(load_settings, context.config_path))
    container.network_signal.override(
        providers.Singleton(ManualNetworkSignal, online=not context.offline),
    )
    return container


async def _execute(container: Container, operation: Operation) -> Any:
    api = container.api_service()
    try:
        return await operation(api)
    finally:
        await api.monitor.wait_for_pending_replay()
        api.monitor.close()
        await container.transport().close()


def run_command(
    command: str,
    operation: Operation,
    render: Callable[[Console, Any], None],
    *,
    container: Container | None = None,
) -> Any:
    """Run one facade operation and print its result.

    Exits with EXIT_QUEUED when a mutation was queued and EXIT_ERROR on any
    ChoreSyncError.
    """
    context = get_cli_context()
    container = container or build_container(context)
    language = None

    try:
        settings = container.config()
        language = settings.app.language
        setup_structured_logger(
            level=context.log_level.value,
            log_file=settings.logging.file,
            use_rich_console=settings.logging.rich_console,
        )
        result = asyncio.run(_execute(container, operation))
    except OfflineQueuedError as e:
        message = format_user_error(e, language or "en")
        _emit_failure(context, command, message, data={"action": e.action.to_dict()}, queued=True)
        raise typer.Exit(CLIDefaults.EXIT_QUEUED) from e
    except ChoreSyncError as e:
        message = format_user_error(e, language or "en")
        _emit_failure(context, command, message)
        raise typer.Exit(CLIDefaults.EXIT_ERROR) from e

    if context.json_output:
        typer.echo(format_json_output(success=True, command=command, data=result).decode())
    else:
        render(Console(), result)
    return result


def _emit_failure(
    context: CliContext,
    command: str,
    message: str,
    *,
    data: Any | None = None,
    queued: bool = False,
) -> None:
    if context.json_output:
        output = format_json_output(
            success=False,
            command=command,
            data=data,
            errors=[] if queued else [message],
            warnings=[message] if queued else [],
        )
        typer.echo(output.decode())
        return
    style = "yellow" if queued else "red"
    Console().print(f"[{style}]{message}[/{style}]")


def _render_records(title: str) -> Callable[[Console, Any], None]:
    """Renderer for a list of objects or a single mapping."""

    def render(console: Console, data: Any) -> None:
        table = Table(title=title)
        if isinstance(data, dict):
            table.add_column("Field")
            table.add_column("Value")
            for key, value in data.items():
                table.add_row(str(key), str(value))
        elif isinstance(data, list) and data and isinstance(data[0], dict):
            columns = list(data[0])
            for column in columns:
                table.add_column(str(column))
            for item in data:
                table.add_row(*(str(item.get(column, "")) for column in columns))
        else:
            console.print(data)
            return
        console.print(table)

    return render


def _render_status(console: Console, data: dict[str, Any]) -> None:
    connection = data["connection"]
    online = "[green]online[/green]" if connection["isOnline"] else "[red]offline[/red]"
    slow = " (slow)" if connection["isSlow"] else ""
    console.print(f"Connection: {online}{slow}")
    console.print(f"Pending actions: {connection['queueSize']}")

    if data["pending"]:
        table = Table(title="Offline queue")
        table.add_column("ID")
        table.add_column("Type")
        table.add_column("Fields")
        table.add_column("Queued at (ms)")
        for action in data["pending"]:
            fields = {k: v for k, v in action.items() if k not in ("id", "type", "timestamp")}
            table.add_row(action["id"], action["type"], str(fields), str(action["timestamp"]))
        console.print(table)


def _report_to_dict(report: ReplayReport) -> dict[str, Any]:
    return {
        "skipped": report.skipped,
        "succeeded": report.succeeded,
        "failed": report.failed,
        "outcomes": [
            {
                "id": outcome.action.id,
                "type": outcome.action.type,
                "success": outcome.success,
                "error": format_user_error(outcome.error) if outcome.error else None,
            }
            for outcome in report.outcomes
        ],
    }


def _render_report(console: Console, data: dict[str, Any]) -> None:
    if data["skipped"]:
        console.print("[yellow]A replay is already running[/yellow]")
        return
    if not data["outcomes"]:
        console.print("Nothing to replay")
        return

    table = Table(title="Replay")
    table.add_column("ID")
    table.add_column("Type")
    table.add_column("Result")
    for outcome in data["outcomes"]:
        result = "[green]sent[/green]" if outcome["success"] else f"[red]{outcome['error']}[/red]"
        table.add_row(outcome["id"], outcome["type"], result)
    console.print(table)
    console.print(f"{data['succeeded']} sent, {data['failed']} still pending")


@app.command(CLICommands.STATUS, help=CLIHelp.STATUS_HELP)
def status_command() -> None:
    async def operation(api: ApiService) -> dict[str, Any]:
        return {
            "connection": api.connection_snapshot().to_dict(),
            "pending": [action.to_dict() for action in api.queue.actions],
        }

    run_command(CLICommands.STATUS, operation, _render_status)


@app.command(CLICommands.HEALTH, help=CLIHelp.HEALTH_HELP)
def health_command() -> None:
    async def operation(api: ApiService) -> dict[str, Any]:
        return {"available": await api.is_api_available()}

    def render(console: Console, data: dict[str, Any]) -> None:
        if data["available"]:
            console.print("[green]API is reachable[/green]")
        else:
            console.print("[red]API is unreachable[/red]")

    result = run_command(CLICommands.HEALTH, operation, render)
    if not result["available"]:
        raise typer.Exit(CLIDefaults.EXIT_ERROR)


@app.command(CLICommands.TASKS, help=CLIHelp.TASKS_HELP)
def tasks_command(
    day: Annotated[str | None, typer.Option("--day", "-d", help=CLIHelp.DAY_OPTION_HELP)] = None,
) -> None:
    async def operation(api: ApiService) -> Any:
        return await api.tasks.get_all(day)

    run_command(CLICommands.TASKS, operation, _render_records("Tasks"))


@app.command(CLICommands.TOGGLE, help=CLIHelp.TOGGLE_HELP)
def toggle_command(
    task_id: Annotated[int, typer.Argument(help="Task ID")],
    user_id: Annotated[int, typer.Argument(help="User ID")],
) -> None:
    async def operation(api: ApiService) -> Any:
        return await api.tasks.toggle(task_id, user_id)

    run_command(CLICommands.TOGGLE, operation, _render_records("Toggled"))


@app.command(CLICommands.RANKING, help=CLIHelp.RANKING_HELP)
def ranking_command() -> None:
    async def operation(api: ApiService) -> Any:
        return await api.stats.get_ranking()

    run_command(CLICommands.RANKING, operation, _render_records("Ranking"))


@app.command(CLICommands.STATS, help=CLIHelp.STATS_HELP)
def stats_command() -> None:
    async def operation(api: ApiService) -> Any:
        return await api.stats.get_general()

    run_command(CLICommands.STATS, operation, _render_records("Statistics"))


@app.command(CLICommands.REPLAY, help=CLIHelp.REPLAY_HELP)
def replay_command() -> None:
    async def operation(api: ApiService) -> dict[str, Any]:
        return _report_to_dict(await api.process_offline_queue())

    run_command(CLICommands.REPLAY, operation, _render_report)


@app.command(CLICommands.CLEAR_QUEUE, help=CLIHelp.CLEAR_QUEUE_HELP)
def clear_queue_command() -> None:
    async def operation(api: ApiService) -> dict[str, Any]:
        removed = len(api.queue)
        api.clear_offline_queue()
        return {"removed": removed}

    def render(console: Console, data: dict[str, Any]) -> None:
        console.print(f"Removed {data['removed']} pending actions")

    run_command(CLICommands.CLEAR_QUEUE, operation, render)


@app.command(CLICommands.WATCH, help=CLIHelp.WATCH_HELP)
def watch_command(
    interval: Annotated[
        float,
        typer.Option("--interval", "-i", min=0, help=CLIHelp.INTERVAL_OPTION_HELP),
    ] = 30.0,
    count: Annotated[
        int,
        typer.Option("--count", "-n", min=1, help=CLIHelp.COUNT_OPTION_HELP),
    ] = 1,
) -> None:
    context = get_cli_context()
    container = build_container(context)
    # Start offline so the first successful probe counts as a reconnect
    container.network_signal.override(
        providers.Singleton(
            HealthProbeSignal,
            probe=providers.Callable(
                make_health_probe,
                container.transport,
                timeout=providers.Callable(lambda config: config.api.timeout, config=container.config),
            ),
            interval=interval,
            online=False,
        ),
    )

    async def operation(api: ApiService) -> list[dict[str, Any]]:
        signal = container.network_signal()
        snapshots = []
        for probe in range(count):
            await signal.check()
            await api.monitor.wait_for_pending_replay()
            snapshots.append(api.connection_snapshot().to_dict())
            if probe < count - 1:
                await asyncio.sleep(interval)
        return snapshots

    run_command(CLICommands.WATCH, operation, _render_records("Probes"), container=container)
