"""Bootstrap configuration helpers (pre-settings).

These helpers exist for "chicken-and-egg" situations where logging must be
configured before the full Pydantic settings singleton can be imported.

Constraints:
- Keep this module dependency-light (no telemetry imports) to avoid circular imports.
- Validate values using the existing config validators.
"""

from __future__ import annotations

import os

from model_aggregator.config.validators import validate_log_format, validate_log_level


def get_bootstrap_log_level(default: str = "WARNING") -> str:
    """Get logging level from environment without importing settings.

    Args:
        default: Default log level if not set or invalid.

    Returns:
        Uppercased, validated log level string.
    """
    value = os.getenv("APP_LOG_LEVEL", default)
    try:
        return validate_log_level(value)
    except ValueError:
        return validate_log_level(default)


def get_bootstrap_log_format(default: str = "console") -> str:
    """Get console log format from environment without importing settings."""
    value = os.getenv("APP_LOG_FORMAT", default)
    try:
        return validate_log_format(value)
    except ValueError:
        return validate_log_format(default)
