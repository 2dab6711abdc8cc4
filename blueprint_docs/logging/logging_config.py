"""Logging configuration for blueprint-docs.

Loggers are Prefect loggers so documentation passes run inside Prefect
flows show up in the flow logs. Configuration comes from a YAML file in
``logging.config.dictConfig`` format, or a built-in default.

Usage:
    >>> from blueprint_docs.logging import get_docs_logger
    >>> logger = get_docs_logger(__name__)
    >>> logger.info("Documentation pass started")

Environment variables:
    BLUEPRINT_DOCS_LOGGING_CONFIG: Path to a custom logging.yml
    BLUEPRINT_DOCS_LOG_LEVEL: Level of the blueprint_docs loggers (INFO, DEBUG, ...)
    PREFECT_LOGGING_SETTINGS_PATH: Fallback config path shared with Prefect
"""

import logging.config
import os
from pathlib import Path
from typing import Any

import yaml
from prefect.logging import get_logger

DEFAULT_LOG_LEVELS = {
    "blueprint_docs": "INFO",
    "blueprint_docs.generator": "INFO",
    "blueprint_docs.runner": "INFO",
}


class LoggingConfig:
    """Loads and applies the logging configuration.

    Config path precedence:
        1. Explicit config_path parameter
        2. BLUEPRINT_DOCS_LOGGING_CONFIG environment variable
        3. PREFECT_LOGGING_SETTINGS_PATH environment variable
        4. Built-in default configuration

    The configuration is read lazily and cached on first access.
    """

    def __init__(self, config_path: Path | None = None):
        self.config_path = config_path or self._get_default_config_path()
        self._config: dict[str, Any] | None = None

    @staticmethod
    def _get_default_config_path() -> Path | None:
        if env_path := os.environ.get("BLUEPRINT_DOCS_LOGGING_CONFIG"):
            return Path(env_path)
        if prefect_path := os.environ.get("PREFECT_LOGGING_SETTINGS_PATH"):
            return Path(prefect_path)
        return None

    def load_config(self) -> dict[str, Any]:
        """Return the dictConfig mapping, reading the YAML file on first call."""
        config = self._config
        if config is None:
            if self.config_path and self.config_path.exists():
                with open(self.config_path, "r") as f:
                    config = yaml.safe_load(f)
            else:
                config = self._get_default_config()
            self._config = config
        return config

    @staticmethod
    def _get_default_config() -> dict[str, Any]:
        """Default configuration: console output, ``HH:MM:SS.mmm | LEVEL | name - message``."""
        return {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "standard": {
                    "format": "%(asctime)s.%(msecs)03d | %(levelname)-7s | %(name)s - %(message)s",
                    "datefmt": "%H:%M:%S",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "standard",
                    "stream": "ext://sys.stdout",
                },
            },
            "loggers": {
                "blueprint_docs": {
                    "level": os.environ.get("BLUEPRINT_DOCS_LOG_LEVEL", "INFO"),
                    "handlers": ["console"],
                    "propagate": False,
                },
            },
            "root": {
                "level": "WARNING",
                "handlers": ["console"],
            },
        }

    def apply(self):
        """Apply the configuration with ``logging.config.dictConfig``.

        A ``prefect`` logger entry also seeds PREFECT_LOGGING_LEVEL.
        """
        config = self.load_config()
        logging.config.dictConfig(config)

        if "prefect" in config.get("loggers", {}):
            prefect_level = config["loggers"]["prefect"].get("level", "INFO")
            os.environ.setdefault("PREFECT_LOGGING_LEVEL", prefect_level)


_logging_config: LoggingConfig | None = None


def setup_logging(config_path: Path | None = None, level: str | None = None):
    """Configure logging for blueprint-docs.

    Args:
        config_path: Optional YAML logging configuration file.
        level: Optional level overriding the configured one for all
            blueprint_docs loggers.
    """
    global _logging_config

    _logging_config = LoggingConfig(config_path)
    _logging_config.apply()

    if level:
        for logger_name in DEFAULT_LOG_LEVELS:
            logger = get_logger(logger_name)
            logger.setLevel(level)

        os.environ["PREFECT_LOGGING_LEVEL"] = level


def get_docs_logger(name: str):
    """Return a Prefect-integrated logger, configuring logging on first use."""
    if _logging_config is None:
        setup_logging()

    return get_logger(name)
