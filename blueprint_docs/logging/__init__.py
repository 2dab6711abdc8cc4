"""Logging infrastructure for blueprint-docs.

Example:
    >>> from blueprint_docs.logging import get_docs_logger
    >>>
    >>> logger = get_docs_logger(__name__)
    >>> logger.info("Scanning routes")

Note:
    Do not call ``logging.getLogger`` directly inside the package, use
    get_docs_logger() so configuration is applied once.
"""

from .logging_config import LoggingConfig, get_docs_logger, setup_logging

__all__ = [
    "LoggingConfig",
    "setup_logging",
    "get_docs_logger",
]
