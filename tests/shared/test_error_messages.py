"""Tests for user-facing error messages."""

import pytest

from choresync.services.offline_queue import QueuedAction
from choresync.shared.error_messages import (
    ERROR_MESSAGES,
    format_user_error,
    get_error_message,
)
from choresync.shared.errors import (
    ErrorCode,
    ErrorContext,
    HttpStatusError,
    NetworkError,
    OfflineQueuedError,
    QueueError,
    create_config_error,
)


class TestGetErrorMessage:
    def test_english_message(self):
        assert get_error_message(ErrorCode.NETWORK_ERROR) == "Connection error. Retrying..."

    def test_portuguese_message(self):
        assert get_error_message(ErrorCode.NETWORK_ERROR, "pt") == "Erro de conexão. Tentando novamente..."

    def test_unknown_language_falls_back_to_english(self):
        assert get_error_message(ErrorCode.API_NOT_FOUND, "de") == "Resource not found."

    def test_code_missing_in_language_falls_back_to_english(self, monkeypatch):
        monkeypatch.delitem(ERROR_MESSAGES["pt"], ErrorCode.NETWORK_ERROR)

        assert get_error_message(ErrorCode.NETWORK_ERROR, "pt") == "Connection error. Retrying..."

    def test_code_without_any_message(self, monkeypatch):
        for language in ERROR_MESSAGES:
            monkeypatch.delitem(ERROR_MESSAGES[language], ErrorCode.NETWORK_ERROR)

        assert get_error_message(ErrorCode.NETWORK_ERROR, "pt") == "Unknown error occurred: NETWORK_ERROR"

    def test_missing_template_argument(self):
        message = get_error_message(ErrorCode.API_REQUEST_FAILED)

        assert "[Format error: missing 'error']" in message


class TestFormatUserError:
    """Mapping exceptions to display text."""

    def test_client_error_keeps_server_message(self):
        error = HttpStatusError(400, "Título obrigatório")

        assert format_user_error(error) == "The request was rejected: Título obrigatório"

    def test_server_error_uses_generic_text(self):
        assert format_user_error(HttpStatusError(500, "stack trace")) == "Internal server error. Retrying..."

    def test_offline_queued(self):
        action = QueuedAction(id="a", type="toggle_task")

        assert format_user_error(OfflineQueuedError(action), "pt") == "Ação salva para quando voltar online."

    def test_context_data_fills_template(self):
        error = QueueError(
            ErrorCode.QUEUE_UNKNOWN_ACTION,
            "no handler",
            ErrorContext(additional_data={"action_type": "archive_task"}),
        )

        assert format_user_error(error) == "Unknown pending action: archive_task"

    def test_plain_exception(self):
        assert format_user_error(ValueError("plain")) == "plain"
        assert format_user_error(ValueError(), "pt") == "Erro desconhecido."

    def test_network_error(self):
        assert format_user_error(NetworkError("refused")) == "Connection error. Retrying..."

    def test_config_error_shows_cause(self):
        error = create_config_error("api.timeout must be positive", config_key="api.timeout")

        assert format_user_error(error) == "Configuration error: api.timeout must be positive"

    def test_unstorable_action(self):
        error = QueueError(ErrorCode.QUEUE_UNSERIALIZABLE, "set is not JSON serializable")

        assert format_user_error(error, "pt") == "Esta ação contém dados que não podem ser salvos para depois."


@pytest.mark.parametrize("code", list(ERROR_MESSAGES["en"]))
def test_english_templates_render_with_common_arguments(code):
    message = get_error_message(
        code,
        error="x",
        key="k",
        action_type="t",
        config="c",
        operation="o",
    )

    assert "Format error" not in message
