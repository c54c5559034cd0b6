"""
API Constants

Endpoints, response fields and queued action types of the task tracker API.
"""


class Endpoints:
    """API endpoint paths, relative to the base URL."""

    LOGIN = "/login"
    HEALTH = "/health"
    USERS = "/users"
    USER = "/users/{user_id}"
    TASKS = "/tasks"
    TASK = "/tasks/{task_id}"
    TASK_TOGGLE = "/tasks/{task_id}/toggle"
    STATS = "/stats"
    RANKING = "/ranking"


class ResponseFields:
    """Fields the API wraps its payloads in."""

    USERS = "users"
    USER = "user"
    TASKS = "tasks"
    TASK = "task"
    ERROR = "error"
    DATA = "data"


class ActionTypes:
    """Types of mutations that can wait in the offline queue."""

    TOGGLE_TASK = "toggle_task"
    CREATE_TASK = "create_task"
    UPDATE_TASK = "update_task"
    DELETE_TASK = "delete_task"


class QueueConfig:
    """Offline queue persistence constants."""

    STORAGE_KEY = "offline_queue"
    ID_LENGTH = 9
