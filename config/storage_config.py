# ============================================================================
# STORAGE CONFIGURATION
# ============================================================================
# STATUS: Configuration - Azure Blob Storage account and output containers
# PURPOSE: Where inputs are uploaded and where task outputs are routed
# EXPORTS: StorageConfig
# DEPENDENCIES: pydantic, os
# SOURCE: Environment variables (STORAGE_ACCOUNT_*, *_CONTAINER_SAS_URL)
# ============================================================================

"""
Azure Storage Configuration.

Provides configuration for:
- Storage account used for input blobs (name, endpoint, optional key)
- Input container name
- Output/failed container URLs handed to the compute backend
- azure-storage-blob retry policy

Authentication:
    If STORAGE_ACCOUNT_KEY is set the account key is used (and read SAS
    tokens are generated for input URLs). Otherwise DefaultAzureCredential
    is used and input URLs are plain blob URLs.
"""

import os
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .defaults import AzureDefaults, StorageDefaults


class StorageConfig(BaseModel):
    """
    Azure Blob Storage configuration.

    Attributes:
        account_name: Storage account name
        account_key: Shared key (optional, masked in repr)
        account_url: Blob endpoint (derived from account_name if not set)
        input_container: Container receiving uploaded input files
        output_container_url: Container URL for TASK_SUCCESS uploads
        failed_container_url: Container URL for TASK_FAILURE uploads
        retry_total: Attempts made by the blob client's ExponentialRetry
    """

    model_config = ConfigDict(frozen=True)

    account_name: str = Field(default=AzureDefaults.STORAGE_ACCOUNT_NAME)
    account_key: Optional[str] = Field(default=None, repr=False)
    account_url: Optional[str] = Field(default=None)
    input_container: str = Field(default=StorageDefaults.INPUT_CONTAINER, min_length=3, max_length=63)
    output_container_url: str = Field(default="", repr=False)
    failed_container_url: str = Field(default="", repr=False)
    retry_total: int = Field(default=StorageDefaults.RETRY_TOTAL, ge=0, le=10)
    input_sas_hours: int = Field(default=StorageDefaults.INPUT_SAS_HOURS, ge=1)

    @field_validator("account_url")
    @classmethod
    def _strip_trailing_slash(cls, v: Optional[str]) -> Optional[str]:
        return v.rstrip("/") if v else v

    @property
    def blob_endpoint(self) -> str:
        """Blob service endpoint for the account."""
        return self.account_url or f"https://{self.account_name}.blob.core.windows.net"

    @classmethod
    def from_environment(cls) -> "StorageConfig":
        """Load storage configuration from environment variables."""
        return cls(
            account_name=os.environ.get("STORAGE_ACCOUNT_NAME", AzureDefaults.STORAGE_ACCOUNT_NAME),
            account_key=os.environ.get("STORAGE_ACCOUNT_KEY") or None,
            account_url=os.environ.get("STORAGE_ACCOUNT_URL") or None,
            input_container=os.environ.get("INPUT_CONTAINER", StorageDefaults.INPUT_CONTAINER),
            output_container_url=os.environ.get("OUTPUT_FILES_CONTAINER_SAS_URL", ""),
            failed_container_url=os.environ.get("FAILED_FILES_CONTAINER_SAS_URL", ""),
            retry_total=int(os.environ.get("STORAGE_RETRY_TOTAL", str(StorageDefaults.RETRY_TOTAL))),
        )

    def debug_dict(self) -> dict:
        """Return debug-friendly configuration (secrets masked)."""
        return {
            "account_name": self.account_name,
            "blob_endpoint": self.blob_endpoint,
            "account_key": "***MASKED***" if self.account_key else None,
            "auth": "account_key" if self.account_key else "default_azure_credential",
            "input_container": self.input_container,
            "output_container_url": _strip_query(self.output_container_url),
            "failed_container_url": _strip_query(self.failed_container_url),
            "retry_total": self.retry_total,
        }


def _strip_query(url: str) -> str:
    """Drop the SAS query string so tokens never reach logs."""
    return url.split("?", 1)[0] if url else url
