# ============================================================================
# REPOSITORY FACTORY
# ============================================================================
# STATUS: Infrastructure - Central factory for adapter instances
# PURPOSE: Build the object store and compute backend from AppConfig
# EXPORTS: RepositoryFactory
# ============================================================================

"""
Repository Factory - Central Creation Point

Single point where the Azure adapters are instantiated from configuration.
The orchestrator asks this factory for defaults when the caller does not
inject its own IObjectStore / IComputeBackend.
"""

from typing import Optional

from config.batch_config import BatchAccountConfig
from config.storage_config import StorageConfig
from util_logger import LoggerFactory, ComponentType

logger = LoggerFactory.create_logger(ComponentType.FACTORY, "RepositoryFactory")


class RepositoryFactory:
    """
    Factory for creating adapter instances.

    Example:
        store = RepositoryFactory.create_blob_repository(config.storage)
        backend = RepositoryFactory.create_batch_backend(config.batch)
    """

    @staticmethod
    def create_blob_repository(storage: StorageConfig) -> 'BlobRepository':
        """
        Create blob storage repository for the configured account.

        Args:
            storage: Storage settings (account key optional)

        Returns:
            BlobRepository instance
        """
        from .blob import BlobRepository

        logger.info(f"Creating blob repository for account: {storage.account_name}")
        return BlobRepository(storage)

    @staticmethod
    def create_batch_backend(
        batch: BatchAccountConfig,
        request_timeout_seconds: Optional[float] = None
    ) -> 'AzureBatchBackend':
        """
        Create the Azure Batch compute backend.

        Args:
            batch: Batch account settings
            request_timeout_seconds: Server-side timeout per call

        Returns:
            AzureBatchBackend instance
        """
        from .batch import AzureBatchBackend

        logger.info(f"Creating Batch backend for account: {batch.account_name}")
        return AzureBatchBackend(batch, request_timeout_seconds=request_timeout_seconds)
