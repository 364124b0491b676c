"""Structured logging for the aggregator.

Every event goes through structlog into stdlib logging, which fans out to two
handlers: a rotating ``current.jsonl`` file (INFO and up, always JSON) and a
stderr console handler whose level and renderer come from APP_LOG_LEVEL and
APP_LOG_FORMAT.
"""

import logging
import logging.handlers
import pathlib
import sys
from datetime import datetime, timezone
from typing import Any

import structlog

LOG_FILE_NAME = "current.jsonl"
LOG_FILE_MAX_BYTES = 20 * 1024 * 1024
LOG_FILE_BACKUPS = 3


def _console_settings() -> tuple[str, str]:
    """Console (level, format), read without importing the settings singleton."""
    from model_aggregator.config.bootstrap import (  # noqa: PLC0415
        get_bootstrap_log_format,
        get_bootstrap_log_level,
    )

    return get_bootstrap_log_level(), get_bootstrap_log_format()


def _get_log_dir() -> pathlib.Path:
    try:
        from model_aggregator.config.settings import get_settings  # noqa: PLC0415

        return pathlib.Path(str(get_settings().log_dir))
    except Exception:
        # Settings unavailable while the config package is still importing
        project_root = pathlib.Path(__file__).parent.parent.parent.parent
        return project_root / "telemetry" / "logs"


def _add_timestamp(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def _add_component(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Tag a stdlib (third-party) record with the last segment of its logger name."""
    name = getattr(logger, "name", None)
    event_dict["component"] = name.split(".")[-1] if name else "unknown"
    return event_dict


def _add_component_from_event_dict(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Same as _add_component for structlog events, after add_logger_name has run."""
    logger_name = event_dict.get("logger", "")
    event_dict["component"] = logger_name.split(".")[-1] if logger_name else "unknown"
    return event_dict


def _formatter(renderer: Any) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            _add_timestamp,
            _add_component,
        ],
    )


def _file_handler(log_dir: pathlib.Path) -> logging.Handler:
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        filename=str(log_dir / LOG_FILE_NAME),
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding="utf-8",
    )
    handler.setLevel(logging.INFO)
    handler.setFormatter(_formatter(structlog.processors.JSONRenderer()))
    return handler


def _console_handler(level: str, log_format: str) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(getattr(logging, level, logging.WARNING))
    if log_format == "json":
        renderer: Any = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)
    handler.setFormatter(_formatter(renderer))
    return handler


def configure_logging() -> None:
    """Install the file and console handlers and configure structlog.

    Safe to call again: the root handlers are replaced, not stacked.
    """
    level, log_format = _console_settings()

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()
    root_logger.addHandler(_file_handler(_get_log_dir()))
    root_logger.addHandler(_console_handler(level, log_format))

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            _add_component_from_event_dict,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> Any:  # Returns structlog.stdlib.BoundLogger
    """Get a structured logger, configuring logging on first use.

    Example:
        >>> log = get_logger(__name__)
        >>> log.info("execution_started", mode="single", trace_id="abc")
    """
    if not structlog.is_configured():
        configure_logging()

    return structlog.get_logger(name)
