"""Unified configuration management for the model aggregator.

This module is the single source of truth for configuration, combining
environment variables, .env files, and defaults.
"""

from model_aggregator.config.env_loader import Environment, get_environment
from model_aggregator.config.settings import AppConfig, get_settings, load_app_config

# Singleton instance
settings = get_settings()

__all__ = [
    "settings",
    "AppConfig",
    "get_settings",
    "load_app_config",
    "Environment",
    "get_environment",
]
