"""
Configuration Package - Domain-Specific Configuration Modules

This package provides application configuration using a composition-based approach.

Structure:
    config/
    ├── __init__.py              # This file - exports and singleton
    ├── app_config.py            # Main config (composes domain configs)
    ├── batch_config.py          # Batch account
    ├── storage_config.py        # Input container, output routing containers
    ├── submission_config.py     # Concurrency bound, timeouts
    ├── env_validation.py        # Startup regex validation
    └── defaults.py              # Default values

Usage:
    # Singleton pattern (entry points only)
    from config import get_config
    config = get_config()
    limit = config.submission.max_concurrency

    # Debug output
    from config import debug_config
    info = debug_config()  # Keys and SAS tokens masked

Core services never call get_config(); they receive an AppConfig.
"""

from typing import Optional

from .batch_config import BatchAccountConfig
from .storage_config import StorageConfig
from .submission_config import SubmissionConfig
from .app_config import AppConfig


# ============================================================================
# SINGLETON PATTERN
# ============================================================================

_config_instance: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """
    Get global configuration singleton.

    Returns:
        AppConfig instance loaded from environment
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = AppConfig.from_environment()
    return _config_instance


def reset_config() -> None:
    """Drop the cached singleton (tests, or after env changes)."""
    global _config_instance
    _config_instance = None


def debug_config(config: Optional[AppConfig] = None) -> dict:
    """
    Get sanitized configuration for debugging (masks sensitive values).

    Returns:
        Dictionary with configuration values, keys masked
    """
    config = config or get_config()
    return {
        'environment': config.environment,
        'debug_mode': config.debug_mode,
        'log_level': config.log_level,
        'pool_id': config.pool_id,
        'job_id': config.job_id,
        'success_name_template': config.success_name_template,
        'failure_name_template': config.failure_name_template,
        'batch': config.batch.debug_dict(),
        'storage': config.storage.debug_dict(),
        'submission': config.submission.debug_dict(),
    }


__all__ = [
    'AppConfig',
    'BatchAccountConfig',
    'StorageConfig',
    'SubmissionConfig',
    'get_config',
    'reset_config',
    'debug_config',
]
