"""Aggregator API client module.

This module provides the AggregatorClient for the backend's catalog and
execution endpoints, the payload models, and the shared error hierarchy.
"""

from model_aggregator.client.client import (
    EXECUTION_PATHS,
    MODELS_PATH,
    AggregatorClient,
    extract_error_message,
)
from model_aggregator.client.models import (
    AIModel,
    ExecutionRequest,
    ExecutionResult,
    ModelCatalog,
    ModelResult,
    MultiExecutionRequest,
    MultiModelResponse,
    SingleExecutionRequest,
    SingleModelResponse,
)
from model_aggregator.client.types import (
    AggregatorError,
    ApplicationError,
    ExecutionMode,
    TransportError,
    ValidationError,
)

__all__ = [
    "AggregatorClient",
    "MODELS_PATH",
    "EXECUTION_PATHS",
    "extract_error_message",
    # Payload models
    "AIModel",
    "ModelCatalog",
    "ModelResult",
    "SingleExecutionRequest",
    "MultiExecutionRequest",
    "ExecutionRequest",
    "SingleModelResponse",
    "MultiModelResponse",
    "ExecutionResult",
    # Types and errors
    "ExecutionMode",
    "AggregatorError",
    "ValidationError",
    "ApplicationError",
    "TransportError",
]
