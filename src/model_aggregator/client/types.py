"""Type definitions for the aggregator API client.

This module defines:
- ExecutionMode: which endpoint/request shape an execution uses
- Error hierarchy shared by the client and the orchestrator
- Fallback messages surfaced when an error carries no usable text
"""

from enum import Enum

# Fixed user-facing messages
EMPTY_PROMPT_MESSAGE = "Please enter a prompt"
NO_MODEL_SELECTED_MESSAGE = "Please select at least one model"
CATALOG_LOAD_FAILED_MESSAGE = "Failed to load available models"
APPLICATION_ERROR_FALLBACK = "API request failed"
TRANSPORT_ERROR_FALLBACK = "An error occurred during execution"


class ExecutionMode(str, Enum):
    """Execution modes.

    SINGLE sends the prompt to one model, MULTI fans it out to the whole selection.
    """

    SINGLE = "single"
    MULTI = "multi"

    @classmethod
    def from_str(cls, value: str) -> "ExecutionMode | None":
        """Convert string to ExecutionMode (case-insensitive), or None if unknown."""
        value_lower = value.lower()
        for mode in cls:
            if mode.value == value_lower:
                return mode
        return None


# Error hierarchy


class AggregatorError(Exception):
    """Base exception for all aggregator errors."""

    fallback_message = TRANSPORT_ERROR_FALLBACK

    @property
    def display_message(self) -> str:
        """Message shown to the user: the error text, or the class fallback if empty."""
        return str(self) or self.fallback_message


class ValidationError(AggregatorError):
    """Raised before dispatch when the request is not submittable."""

    pass


class ApplicationError(AggregatorError):
    """Raised when the backend answers with a non-2xx status."""

    fallback_message = APPLICATION_ERROR_FALLBACK

    def __init__(self, message: str, status_code: int) -> None:
        """Initialize with the extracted message and the HTTP status code."""
        super().__init__(message)
        self.status_code = status_code


class TransportError(AggregatorError):
    """Raised on network failures, malformed JSON or unexpected payloads."""

    pass
