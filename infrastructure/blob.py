# ============================================================================
# BLOB REPOSITORY
# ============================================================================
# STATUS: Infrastructure - Azure Blob Storage object store
# PURPOSE: Upload task inputs and resolve the URLs tasks download them from
# EXPORTS: IObjectStore, BlobRepository
# DEPENDENCIES: azure-storage-blob, azure-identity, azure-core
# ============================================================================

"""
Blob Storage Repository - Object Store for Task Inputs

Implements the object store the orchestrator uploads inputs through and the
task builder resolves input URLs with.

Authentication:
    - Account key when STORAGE_ACCOUNT_KEY is configured. Input URLs then
      carry a short-lived read SAS so compute nodes can fetch them.
    - DefaultAzureCredential otherwise (managed identity, Azure CLI, ...).
      Input URLs are plain blob URLs; the pool needs its own read access.

Retries:
    The blob client's ExponentialRetry policy owns retries. Anything that
    still fails is raised as TransientIOError.

Usage:
    from infrastructure import RepositoryFactory

    store = RepositoryFactory.create_blob_repository(config.storage)
    store.create_container_if_absent("inputfiles")
    store.upload_file("inputfiles", "taskdata0.txt", Path("inputFiles/taskdata0.txt"))
    url = store.blob_url("inputfiles", "taskdata0.txt")
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, BinaryIO, Dict, Optional, Union

from azure.core.exceptions import AzureError, ResourceExistsError
from azure.identity import DefaultAzureCredential
from azure.storage.blob import (
    BlobSasPermissions,
    BlobServiceClient,
    ContentSettings,
    ExponentialRetry,
    generate_blob_sas,
)

from config.defaults import StorageDefaults
from config.storage_config import StorageConfig
from exceptions import TransientIOError
from util_logger import LoggerFactory, ComponentType

logger = LoggerFactory.create_logger(ComponentType.REPOSITORY, "BlobRepository")


# ============================================================================
# INTERFACE
# ============================================================================

class IObjectStore(ABC):
    """
    Object store interface used by the orchestrator and task builder.

    Implementations raise TransientIOError for failures that survived
    their own retry policy.
    """

    @abstractmethod
    def create_container_if_absent(self, name: str) -> bool:
        """Create container; True if created, False if it already existed."""
        pass

    @abstractmethod
    def upload_blob(self, container: str, name: str, data: Union[bytes, BinaryIO]) -> Dict[str, Any]:
        """Upload (overwrite) a blob from bytes or a stream."""
        pass

    @abstractmethod
    def upload_file(self, container: str, name: str, path: Path) -> Dict[str, Any]:
        """Upload (overwrite) a blob from a local file."""
        pass

    @abstractmethod
    def blob_url(self, container: str, name: str) -> str:
        """URL a compute node can download the blob from. No I/O."""
        pass


# ============================================================================
# AZURE IMPLEMENTATION
# ============================================================================

class BlobRepository(IObjectStore):
    """
    Azure Blob Storage implementation of IObjectStore.

    Not a singleton: one instance per StorageConfig, created by
    RepositoryFactory. A pre-built BlobServiceClient can be injected.
    """

    def __init__(self, config: StorageConfig, blob_service: Optional[BlobServiceClient] = None):
        self.config = config
        self.account_url = config.blob_endpoint

        if blob_service is not None:
            self.blob_service = blob_service
        else:
            retry_policy = ExponentialRetry(
                initial_backoff=StorageDefaults.RETRY_INITIAL_BACKOFF,
                increment_base=StorageDefaults.RETRY_INCREMENT_BASE,
                retry_total=config.retry_total,
            )
            if config.account_key:
                credential = {"account_name": config.account_name, "account_key": config.account_key}
                auth = "account_key"
            else:
                credential = DefaultAzureCredential()
                auth = "default_azure_credential"

            self.blob_service = BlobServiceClient(
                account_url=self.account_url,
                credential=credential,
                retry_policy=retry_policy,
            )
            logger.info(
                f"BlobRepository initialized for {self.account_url}",
                extra={"custom_dimensions": {"auth": auth, "retry_total": config.retry_total}},
            )

    # ========================================================================
    # CONTAINERS
    # ========================================================================

    def create_container_if_absent(self, name: str) -> bool:
        try:
            self.blob_service.create_container(name)
        except ResourceExistsError:
            logger.info(f"Container already exists, reusing: {name}")
            return False
        except AzureError as e:
            logger.error(f"Failed to create container {name}: {e}")
            raise TransientIOError(f"Could not create container {name}: {e}", resource_id=name) from e

        logger.info(f"Created container: {name}")
        return True

    # ========================================================================
    # UPLOADS
    # ========================================================================

    def upload_blob(self, container: str, name: str, data: Union[bytes, BinaryIO]) -> Dict[str, Any]:
        """
        Upload a blob, overwriting any existing one.

        Returns:
            Dict with container, name, etag and last_modified
        """
        blob_client = self.blob_service.get_blob_client(container=container, blob=name)
        logger.debug(f"Uploading blob: {container}/{name}")

        try:
            result = blob_client.upload_blob(
                data,
                overwrite=True,
                content_settings=ContentSettings(content_type="application/octet-stream"),
            )
        except AzureError as e:
            logger.error(f"Failed to upload blob {container}/{name}: {e}")
            raise TransientIOError(f"Upload failed for {container}/{name}: {e}",
                                   resource_id=f"{container}/{name}") from e

        last_modified = result.get("last_modified") if result else None
        info = {
            "container": container,
            "name": name,
            "etag": result.get("etag") if result else None,
            "last_modified": last_modified.isoformat() if last_modified else None,
        }
        logger.info(f"Uploaded blob: {container}/{name}")
        return info

    def upload_file(self, container: str, name: str, path: Path) -> Dict[str, Any]:
        path = Path(path)
        try:
            stream = path.open("rb")
        except OSError as e:
            raise TransientIOError(f"Cannot read local input {path}: {e}",
                                   resource_id=f"{container}/{name}") from e

        with stream:
            info = self.upload_blob(container, name, stream)
        info["size"] = path.stat().st_size
        return info

    # ========================================================================
    # URLS
    # ========================================================================

    def blob_url(self, container: str, name: str) -> str:
        """
        Blob URL with a read SAS when an account key is configured.

        Signing with the account key is local; no request is made.
        """
        # SDK client url percent-encodes the blob name
        url = self.blob_service.get_blob_client(container=container, blob=name).url
        if not self.config.account_key:
            return url

        start = datetime.now(timezone.utc) - timedelta(minutes=5)
        sas_token = generate_blob_sas(
            account_name=self.config.account_name,
            container_name=container,
            blob_name=name,
            account_key=self.config.account_key,
            permission=BlobSasPermissions(read=True),
            expiry=start + timedelta(hours=self.config.input_sas_hours),
            start=start,
        )
        return f"{url}?{sas_token}"
