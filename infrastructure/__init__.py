"""
Infrastructure Package - Lazy Loading Implementation.

Adapters for the external collaborators:

    IObjectStore / BlobRepository        (azure-storage-blob)
    IComputeBackend / AzureBatchBackend  (azure-batch)
    RepositoryFactory                    (builds both from AppConfig)

Imports are deferred until a name is first accessed, so importing the
package (for example from tests that only need the interfaces) does not
load the Azure SDKs or create credentials.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .factory import RepositoryFactory as _RepositoryFactory
    from .blob import IObjectStore as _IObjectStore, BlobRepository as _BlobRepository
    from .batch import IComputeBackend as _IComputeBackend, AzureBatchBackend as _AzureBatchBackend


def __getattr__(name: str):
    """
    Lazy import mechanism - only imports when actually accessed.
    """
    if name == "RepositoryFactory":
        from .factory import RepositoryFactory
        return RepositoryFactory

    elif name == "IObjectStore":
        from .blob import IObjectStore
        return IObjectStore
    elif name == "BlobRepository":
        from .blob import BlobRepository
        return BlobRepository

    elif name == "IComputeBackend":
        from .batch import IComputeBackend
        return IComputeBackend
    elif name == "AzureBatchBackend":
        from .batch import AzureBatchBackend
        return AzureBatchBackend

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "RepositoryFactory",
    "IObjectStore",
    "BlobRepository",
    "IComputeBackend",
    "AzureBatchBackend",
]
