"""Custom Pydantic validators for configuration.

This module provides validators for custom type conversions.
"""

from pathlib import Path


def validate_log_level(value: str) -> str:
    """Validate log level is one of the standard levels.

    Args:
        value: Log level string.

    Returns:
        Validated log level.

    Raises:
        ValueError: If log level is not valid.
    """
    valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
    if value.upper() not in valid_levels:
        raise ValueError(f"log_level must be one of {valid_levels}, got {value}")
    return value.upper()


def validate_log_format(value: str) -> str:
    """Validate log format is 'json' or 'console'.

    Args:
        value: Log format string.

    Returns:
        Validated log format.

    Raises:
        ValueError: If log format is not valid.
    """
    valid_formats = {"json", "console"}
    if value.lower() not in valid_formats:
        raise ValueError(f"log_format must be one of {valid_formats}, got {value}")
    return value.lower()


def validate_base_url(value: str) -> str:
    """Validate an HTTP base URL and strip any trailing slash.

    Args:
        value: Base URL string.

    Returns:
        Normalized base URL without trailing slash.

    Raises:
        ValueError: If the URL does not use http or https.
    """
    stripped = value.strip()
    if not stripped.startswith(("http://", "https://")):
        raise ValueError(f"api_base_url must start with http:// or https://, got {value}")
    return stripped.rstrip("/")


def resolve_path(value: Path | str) -> Path:
    """Resolve relative paths to absolute paths.

    Args:
        value: Path value (can be string or Path).

    Returns:
        Resolved Path object.
    """
    path = Path(value) if isinstance(value, str) else value

    # Relative paths are anchored at the project root (src/model_aggregator/config -> root)
    if not path.is_absolute():
        project_root = Path(__file__).parent.parent.parent.parent
        return (project_root / path).resolve()
    return path.resolve()
