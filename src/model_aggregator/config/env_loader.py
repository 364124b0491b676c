"""Environment variable file loader with priority-based loading."""

from enum import Enum
from pathlib import Path

from dotenv import load_dotenv

from model_aggregator.telemetry import get_logger

log = get_logger(__name__)


class Environment(str, Enum):
    """Application environment types."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TEST = "test"


def get_environment() -> Environment:
    """Detect current environment from the APP_ENV environment variable.

    Returns:
        Environment enum value.

    Environment variable mapping:
    - "production" or "prod" → Environment.PRODUCTION
    - "staging" or "stage" → Environment.STAGING
    - "test" → Environment.TEST
    - Default → Environment.DEVELOPMENT

    Note: This reads os.environ directly because environment detection must
    happen before settings are loaded.
    """
    import os  # noqa: PLC0415

    app_env = os.getenv("APP_ENV", "").lower()

    if app_env in ("production", "prod"):
        return Environment.PRODUCTION
    elif app_env in ("staging", "stage"):
        return Environment.STAGING
    elif app_env == "test":
        return Environment.TEST
    else:
        return Environment.DEVELOPMENT


def load_env_files(project_root: Path | None = None) -> list[str]:
    """Load .env files in priority order.

    Priority order (highest to lowest):
    1. `.env.{environment}.local` (gitignored)
    2. `.env.{environment}`
    3. `.env.local` (gitignored)
    4. `.env`

    Args:
        project_root: Path to project root. If None, detects from current file location.

    Returns:
        The loaded files, relative to project_root, lowest priority first.
    """
    if project_root is None:
        project_root = Path(__file__).parent.parent.parent.parent

    env_name = get_environment().value

    # Later files override earlier ones
    env_files = [
        project_root / ".env",
        project_root / ".env.local",
        project_root / f".env.{env_name}",
        project_root / f".env.{env_name}.local",
    ]

    loaded_files = []
    # Walk highest priority first: with override=False the first writer wins
    for env_file in reversed(env_files):
        if env_file.exists():
            # Explicit environment variables always win over .env files
            load_dotenv(env_file, override=False)
            loaded_files.append(str(env_file.relative_to(project_root)))
    loaded_files.reverse()

    if loaded_files:
        log.info(
            "env_files_loaded",
            environment=env_name,
            files=loaded_files,
            project_root=str(project_root),
        )
    else:
        log.debug("no_env_files_found", environment=env_name, project_root=str(project_root))

    return loaded_files
