"""BlobVault - Azure Blob Storage physical backend for secrets storage."""

from ._version import __version__
from .errors import (
    BlobVaultError,
    ConfigError,
    DeadlineExceededError,
    PermitTimeoutError,
    ProvisioningError,
    RemoteServiceError,
    SizeLimitExceededError,
)
from .storage import AzureBackend, Entry, get_backend

__all__ = [
    "AzureBackend",
    "BlobVaultError",
    "ConfigError",
    "DeadlineExceededError",
    "Entry",
    "PermitTimeoutError",
    "ProvisioningError",
    "RemoteServiceError",
    "SizeLimitExceededError",
    "get_backend",
    "__version__",
]
