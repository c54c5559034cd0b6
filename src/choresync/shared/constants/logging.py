"""
Logging Configuration Constants
"""


class LogConfig:
    """Log configuration constants."""

    LOGGER_NAME = "choresync"
    DEFAULT_LEVEL = "INFO"
    DEFAULT_ENCODING = "utf-8"
    DEFAULT_FILE_PATH = "logs/choresync.log"
