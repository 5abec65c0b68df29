"""
Azure Batch Account Configuration.

Exports:
    BatchAccountConfig: Batch account endpoint and shared key
"""

import os
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .defaults import AzureDefaults


class BatchAccountConfig(BaseModel):
    """
    Azure Batch account settings.

    Shared key authentication only; credential management beyond reading
    the key from the environment is out of scope.
    """

    model_config = ConfigDict(frozen=True)

    account_name: str = Field(default=AzureDefaults.BATCH_ACCOUNT_NAME)
    account_url: str = Field(default=AzureDefaults.BATCH_ACCOUNT_URL)
    account_key: str = Field(default="", repr=False)

    @field_validator("account_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @classmethod
    def from_environment(cls) -> "BatchAccountConfig":
        """Load Batch account settings from environment variables."""
        return cls(
            account_name=os.environ.get("BATCH_ACCOUNT_NAME", AzureDefaults.BATCH_ACCOUNT_NAME),
            account_url=os.environ.get("BATCH_ACCOUNT_URL", AzureDefaults.BATCH_ACCOUNT_URL),
            account_key=os.environ.get("BATCH_ACCOUNT_KEY", ""),
        )

    def debug_dict(self) -> dict:
        return {
            "account_name": self.account_name,
            "account_url": self.account_url,
            "account_key": "***MASKED***" if self.account_key else None,
        }
