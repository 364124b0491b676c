"""Telemetry module for structured logging and trace correlation.

This module provides:
- TraceContext for correlating the events of one execution cycle
- Structured logging via structlog
- Semantic event constants
"""

from model_aggregator.telemetry.events import (
    API_CALL_COMPLETED,
    API_CALL_ERROR,
    API_CALL_STARTED,
    CATALOG_LOAD_FAILED,
    CATALOG_LOAD_STARTED,
    CATALOG_LOADED,
    EXECUTION_COMPLETED,
    EXECUTION_FAILED,
    EXECUTION_REFUSED_IN_FLIGHT,
    EXECUTION_STARTED,
    MODE_CHANGED,
    PROMPT_EDITED,
    SELECTION_CHANGED,
    SELECTION_PRUNED,
    STATE_TRANSITION,
    VALIDATION_FAILED,
)
from model_aggregator.telemetry.logger import configure_logging, get_logger
from model_aggregator.telemetry.trace import TraceContext

__all__ = [
    # Core exports
    "TraceContext",
    "get_logger",
    "configure_logging",
    # Event constants
    "CATALOG_LOAD_STARTED",
    "CATALOG_LOADED",
    "CATALOG_LOAD_FAILED",
    "SELECTION_PRUNED",
    "MODE_CHANGED",
    "SELECTION_CHANGED",
    "PROMPT_EDITED",
    "STATE_TRANSITION",
    "VALIDATION_FAILED",
    "EXECUTION_STARTED",
    "EXECUTION_COMPLETED",
    "EXECUTION_FAILED",
    "EXECUTION_REFUSED_IN_FLIGHT",
    "API_CALL_STARTED",
    "API_CALL_COMPLETED",
    "API_CALL_ERROR",
]
