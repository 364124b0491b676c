"""Orchestrator module: the execution state machine.

This module provides the ExecutionOrchestrator that validates, builds and
dispatches prompt executions, plus the pure reducer it is built on.
"""

from model_aggregator.orchestrator.orchestrator import ExecutionOrchestrator
from model_aggregator.orchestrator.state import (
    build_execution_request,
    normalize_selection,
    reduce,
    unsupported_attachments,
    validate_submission,
)
from model_aggregator.orchestrator.types import (
    ExecutionPhase,
    Intent,
    OrchestratorState,
    PromptPayload,
)

__all__ = [
    # Public API
    "ExecutionOrchestrator",
    # Types
    "ExecutionPhase",
    "Intent",
    "OrchestratorState",
    "PromptPayload",
    # Pure transitions
    "reduce",
    "normalize_selection",
    "validate_submission",
    "build_execution_request",
    "unsupported_attachments",
]
