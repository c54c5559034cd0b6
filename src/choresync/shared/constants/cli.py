"""
CLI Constants
"""

from .system import Application


class CLICommands:
    """CLI command names."""

    STATUS = "status"
    HEALTH = "health"
    TASKS = "tasks"
    TOGGLE = "toggle"
    RANKING = "ranking"
    STATS = "stats"
    REPLAY = "replay"
    CLEAR_QUEUE = "clear-queue"
    WATCH = "watch"


class CLIDefaults:
    """CLI default values."""

    VERSION = Application.VERSION
    EXIT_SUCCESS = 0
    EXIT_ERROR = 1
    EXIT_QUEUED = 2


class CLIHelp:
    """CLI help texts."""

    APP_NAME = "choresync"
    APP_DESCRIPTION = "Resilient client for the household task tracker API"
    VERSION_TEXT = "ChoreSync v{version}"

    STATUS_HELP = "Show connection status and pending offline actions"
    HEALTH_HELP = "Check whether the API is reachable"
    TASKS_HELP = "List tasks, optionally for one day"
    TOGGLE_HELP = "Mark a task as done or undone"
    RANKING_HELP = "Show the points ranking"
    STATS_HELP = "Show general statistics"
    REPLAY_HELP = "Replay actions queued while offline"
    CLEAR_QUEUE_HELP = "Drop every pending offline action"
    WATCH_HELP = "Probe the API and replay pending actions when it comes back"

    OFFLINE_OPTION_HELP = "Act as if the connection were down"
    CONFIG_OPTION_HELP = "Path to a TOML configuration file"
    JSON_OPTION_HELP = "Print machine-readable JSON"
    DAY_OPTION_HELP = "Only tasks for this day"
    LOG_LEVEL_OPTION_HELP = "Logging level"
    VERSION_OPTION_HELP = "Show version and exit"
    INTERVAL_OPTION_HELP = "Seconds between health probes"
    COUNT_OPTION_HELP = "Number of health probes to run"
