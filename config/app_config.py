"""
Main Application Configuration.

Composes domain-specific configuration modules:
    - BatchAccountConfig (Batch endpoint and key)
    - StorageConfig (input container, output routing containers)
    - SubmissionConfig (concurrency bound, request timeout)

The composed AppConfig is frozen. It is read once at startup and passed
explicitly into the orchestrator; core code never reads the environment.

Exports:
    AppConfig: Main configuration class

Dependencies:
    pydantic: BaseModel for configuration validation
    config.defaults: Default value constants
"""

import os
from typing import List
from pydantic import BaseModel, ConfigDict, Field

from exceptions import ConfigurationError
from .batch_config import BatchAccountConfig
from .storage_config import StorageConfig
from .submission_config import SubmissionConfig
from .defaults import AzureDefaults, AppDefaults, PoolDefaults, TaskDefaults


# ============================================================================
# APPLICATION CONFIGURATION
# ============================================================================

class AppConfig(BaseModel):
    """
    Application configuration - composition of domain configs.

    Usage:
        config = AppConfig.from_environment()
        config.require_valid()
        report = await run(work_items, config.job_id, PoolSpec(pool_id=config.pool_id), config)
    """

    model_config = ConfigDict(frozen=True)

    # Core settings
    debug_mode: bool = Field(default=AppDefaults.DEBUG_MODE)
    environment: str = Field(default=AppDefaults.ENVIRONMENT)
    log_level: str = Field(default=AppDefaults.LOG_LEVEL)

    # Resource identifiers
    pool_id: str = Field(default=PoolDefaults.POOL_ID, min_length=1, max_length=PoolDefaults.MAX_ID_LENGTH)
    job_id: str = Field(default=TaskDefaults.JOB_ID, min_length=1, max_length=PoolDefaults.MAX_ID_LENGTH)

    # Output destination naming (must keep both placeholders)
    success_name_template: str = Field(default=TaskDefaults.SUCCESS_NAME_TEMPLATE)
    failure_name_template: str = Field(default=TaskDefaults.FAILURE_NAME_TEMPLATE)

    # Domain configs
    batch: BatchAccountConfig = Field(default_factory=BatchAccountConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    submission: SubmissionConfig = Field(default_factory=SubmissionConfig)

    # ========================================================================
    # VALIDATION
    # ========================================================================

    def validate_required(self) -> List[str]:
        """
        Check settings needed to talk to real Azure services.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if not self.batch.account_key:
            errors.append("BATCH_ACCOUNT_KEY is required")
        if self.batch.account_url == AzureDefaults.BATCH_ACCOUNT_URL:
            errors.append("BATCH_ACCOUNT_URL is still the placeholder default")
        if self.storage.account_name == AzureDefaults.STORAGE_ACCOUNT_NAME and not self.storage.account_url:
            errors.append("STORAGE_ACCOUNT_NAME is still the placeholder default")
        if not self.storage.output_container_url:
            errors.append("OUTPUT_FILES_CONTAINER_SAS_URL is required")
        if not self.storage.failed_container_url:
            errors.append("FAILED_FILES_CONTAINER_SAS_URL is required")

        for name, template in (("SUCCESS_NAME_TEMPLATE", self.success_name_template),
                               ("FAILURE_NAME_TEMPLATE", self.failure_name_template)):
            if "{job_id}" not in template or "{task_id}" not in template:
                errors.append(f"{name} must contain both {{job_id}} and {{task_id}}")

        return errors

    @property
    def is_valid(self) -> bool:
        """Check if configuration is valid."""
        return len(self.validate_required()) == 0

    def require_valid(self) -> "AppConfig":
        """
        Raise ConfigurationError listing every problem, or return self.

        Raises:
            ConfigurationError: If any required setting is missing
        """
        errors = self.validate_required()
        if errors:
            raise ConfigurationError("Invalid configuration: " + "; ".join(errors))
        return self

    @classmethod
    def from_environment(cls) -> "AppConfig":
        """Load all configs from environment."""
        debug_raw = os.environ.get("DEBUG_MODE", str(AppDefaults.DEBUG_MODE))
        try:
            return cls(
                debug_mode=debug_raw.strip().lower() in AppDefaults.TRUE_VALUES,
                environment=os.environ.get("ENVIRONMENT", AppDefaults.ENVIRONMENT),
                log_level=os.environ.get("LOG_LEVEL", AppDefaults.LOG_LEVEL),
                pool_id=os.environ.get("POOL_ID", PoolDefaults.POOL_ID),
                job_id=os.environ.get("JOB_ID", TaskDefaults.JOB_ID),
                success_name_template=os.environ.get("SUCCESS_NAME_TEMPLATE", TaskDefaults.SUCCESS_NAME_TEMPLATE),
                failure_name_template=os.environ.get("FAILURE_NAME_TEMPLATE", TaskDefaults.FAILURE_NAME_TEMPLATE),
                batch=BatchAccountConfig.from_environment(),
                storage=StorageConfig.from_environment(),
                submission=SubmissionConfig.from_environment(),
            )
        except ValueError as e:
            # pydantic ValidationError and int()/float() parse errors
            raise ConfigurationError(f"Could not load configuration from environment: {e}") from e
