"""
ChoreSync Error Messages Module

This module provides user-friendly error messages for ChoreSync.
The presentation layer shows these instead of raw exception text.

The module follows these principles:
- One Source of Truth: All error messages are centralized here
- User-friendly: Messages are clear and actionable
- Multilingual: Supports English and Portuguese
- Contextual: Messages can include variable substitution
"""

from __future__ import annotations

from typing import Any

from .errors import ChoreSyncError, ErrorCode, HttpStatusError

# Default language for error messages
DEFAULT_LANGUAGE = "en"

# Error messages organized by language
ERROR_MESSAGES: dict[str, dict[ErrorCode, str]] = {
    "en": {
        ErrorCode.NETWORK_ERROR: "Connection error. Retrying...",
        ErrorCode.API_TIMEOUT: "Slow connection. Still trying...",
        ErrorCode.API_REQUEST_FAILED: "Request failed: {error}",
        ErrorCode.API_CLIENT_ERROR: "The request was rejected: {error}",
        ErrorCode.API_AUTHENTICATION_FAILED: "Invalid credentials. Check your username and password.",
        ErrorCode.API_NOT_FOUND: "Resource not found.",
        ErrorCode.API_SERVER_ERROR: "Internal server error. Retrying...",
        ErrorCode.API_INVALID_RESPONSE: "The server sent an unreadable response.",
        ErrorCode.OFFLINE_QUEUED: "Action saved for when you are back online.",
        ErrorCode.STORAGE_FAILED: "Could not save pending actions: {key}",
        ErrorCode.QUEUE_CORRUPTED: "Pending actions were unreadable and were discarded.",
        ErrorCode.QUEUE_UNKNOWN_ACTION: "Unknown pending action: {action_type}",
        ErrorCode.QUEUE_UNSERIALIZABLE: "This action contains data that cannot be saved for later.",
        ErrorCode.CONFIG_ERROR: "Configuration error: {error}",
    },
    "pt": {
        ErrorCode.NETWORK_ERROR: "Erro de conexão. Tentando novamente...",
        ErrorCode.API_TIMEOUT: "Conexão lenta. Continuando tentativas...",
        ErrorCode.API_REQUEST_FAILED: "A requisição falhou: {error}",
        ErrorCode.API_CLIENT_ERROR: "A requisição foi recusada: {error}",
        ErrorCode.API_AUTHENTICATION_FAILED: "Credenciais inválidas. Verifique seu usuário e senha.",
        ErrorCode.API_NOT_FOUND: "Recurso não encontrado.",
        ErrorCode.API_SERVER_ERROR: "Erro interno do servidor. Tentando novamente...",
        ErrorCode.API_INVALID_RESPONSE: "O servidor enviou uma resposta ilegível.",
        ErrorCode.OFFLINE_QUEUED: "Ação salva para quando voltar online.",
        ErrorCode.STORAGE_FAILED: "Não foi possível salvar as ações pendentes: {key}",
        ErrorCode.QUEUE_CORRUPTED: "As ações pendentes estavam ilegíveis e foram descartadas.",
        ErrorCode.QUEUE_UNKNOWN_ACTION: "Ação pendente desconhecida: {action_type}",
        ErrorCode.QUEUE_UNSERIALIZABLE: "Esta ação contém dados que não podem ser salvos para depois.",
        ErrorCode.CONFIG_ERROR: "Erro de configuração: {error}",
    },
}

UNKNOWN_ERROR_MESSAGES: dict[str, str] = {
    "en": "Unknown error.",
    "pt": "Erro desconhecido.",
}


def get_error_message(
    error_code: ErrorCode,
    language: str = DEFAULT_LANGUAGE,
    **kwargs: Any,
) -> str:
    """Get user-friendly error message for the given error code.

    Args:
        error_code: The error code to get message for
        language: Language code ('en' or 'pt'), defaults to 'en'
        **kwargs: Variables to substitute in the message template

    Returns:
        User-friendly error message with variable substitution
    """
    if language not in ERROR_MESSAGES:
        language = DEFAULT_LANGUAGE

    if error_code not in ERROR_MESSAGES[language]:
        if (
            language != DEFAULT_LANGUAGE
            and error_code in ERROR_MESSAGES[DEFAULT_LANGUAGE]
        ):
            language = DEFAULT_LANGUAGE
        else:
            return f"Unknown error occurred: {error_code.value}"

    message_template = ERROR_MESSAGES[language][error_code]

    try:
        return message_template.format(**kwargs)
    except KeyError as e:
        return f"{message_template} [Format error: missing {e}]"


def format_user_error(error: BaseException, language: str = DEFAULT_LANGUAGE) -> str:
    """Turn any error raised by the service layer into a message for the user.

    Client errors other than authentication and not-found keep the server's
    own message since it usually explains what was wrong with the input.

    Args:
        error: Error raised by an API operation
        language: Language code ('en' or 'pt')

    Returns:
        Message suitable for display
    """
    if isinstance(error, HttpStatusError) and error.code in (
        ErrorCode.API_CLIENT_ERROR,
        ErrorCode.API_REQUEST_FAILED,
    ):
        return get_error_message(error.code, language, error=error.message)

    if isinstance(error, ChoreSyncError):
        return get_error_message(
            error.code,
            language,
            **_message_arguments(error),
        )

    text = str(error)
    if text:
        return text
    return UNKNOWN_ERROR_MESSAGES.get(language, UNKNOWN_ERROR_MESSAGES[DEFAULT_LANGUAGE])


def _message_arguments(error: ChoreSyncError) -> dict[str, Any]:
    arguments: dict[str, Any] = {"error": error.message}
    additional = error.context.additional_data or {}
    arguments.update(additional)
    if error.context.operation:
        arguments.setdefault("operation", error.context.operation)
    return arguments
