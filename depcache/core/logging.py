"""Structured logging configuration.

Features:
- JSON-formatted log output for production
- Human-readable format for development
- GitHub Actions workflow commands (::warning::, ::debug::, ...) when
  running inside a runner, so warnings surface as job annotations
- Service context on every entry

Downstream consumers parse the info and warning lines, so the event
text is emitted verbatim by the GitHub renderer.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import Processor

from depcache.core.config import get_settings


_configured = False

# Keys that carry no information for a person reading job logs
_GITHUB_HIDDEN_KEYS = frozenset(
    {"event", "level", "timestamp", "service", "environment", "logger"}
)


def add_service_context(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Add service context to all log entries.

    Args:
        logger: The wrapped logger object.
        method_name: The name of the method called on the logger.
        event_dict: The event dictionary to process.

    Returns:
        Updated event dictionary with service context.
    """
    settings = get_settings()
    event_dict["service"] = settings.service_name
    event_dict["environment"] = settings.environment
    return event_dict


class GitHubActionsRenderer:
    """Render events as GitHub Actions workflow commands.

    info lines are printed as-is; debug, notice, warning and error lines are
    wrapped in the matching ``::<command>::`` syntax. Extra key/value pairs
    are appended in ``key=value`` form.
    """

    _COMMANDS = {
        "debug": "debug",
        "warning": "warning",
        "error": "error",
        "critical": "error",
        "exception": "error",
    }

    def __call__(
        self,
        logger: Any,
        method_name: str,
        event_dict: dict[str, Any],
    ) -> str:
        message = str(event_dict.get("event", ""))
        extras = [
            f"{key}={value}"
            for key, value in event_dict.items()
            if key not in _GITHUB_HIDDEN_KEYS and key != "exc_info"
        ]
        if extras:
            message = f"{message} {' '.join(extras)}"

        command = self._COMMANDS.get(event_dict.get("level", method_name))
        if command is None:
            return message
        return f"::{command}::{escape_command_data(message)}"


def escape_command_data(value: str) -> str:
    """Escape a workflow command payload (%, CR and LF)."""
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def configure_logging(force: bool = False) -> None:
    """Configure structured logging for the tool.

    In development: Human-readable colored output
    In production: JSON-formatted structured logs
    Inside GitHub Actions: workflow commands on stdout

    Args:
        force: Reconfigure even if logging was already configured.
    """
    global _configured
    if _configured and not force:
        return

    settings = get_settings()
    log_format = settings.effective_log_format

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_service_context,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == "json":
        processors: list[Processor] = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    elif log_format == "github":
        processors = [
            *shared_processors,
            structlog.processors.format_exc_info,
            GitHubActionsRenderer(),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(settings.log_level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=False,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=logging.getLevelName(settings.log_level.upper()),
    )

    _configured = True


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Optional logger name (module name recommended).

    Returns:
        Configured structlog BoundLogger instance.

    Example:
        ```python
        from depcache.core.logging import get_logger

        logger = get_logger(__name__)
        logger.info("Cache saved with the key: setup-java-Linux-maven-abc")
        ```
    """
    return structlog.get_logger(name)


# Convenience type alias
Logger = structlog.BoundLogger
