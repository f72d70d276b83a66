"""Error types for BlobVault."""


class BlobVaultError(Exception):
    """Base exception for BlobVault errors."""
    pass


class ConfigError(BlobVaultError):
    """Missing or invalid configuration at construction time."""
    pass


class SizeLimitExceededError(BlobVaultError):
    """Value is too large to be stored as a single blob."""

    def __init__(self, key: str, size: int, limit: int):
        self.key = key
        self.size = size
        self.limit = limit
        super().__init__(
            f"value for {key!r} is {size} bytes, bigger than the current "
            f"supported limit of {limit} bytes"
        )


class PermitTimeoutError(BlobVaultError, TimeoutError):
    """Timed out waiting for a free admission slot."""
    pass


class DeadlineExceededError(BlobVaultError, TimeoutError):
    """The caller's deadline ran out before the remote work finished."""
    pass


class RemoteServiceError(BlobVaultError):
    """A structured failure from the remote store, with operation context.

    The classified remote error is chained as ``__cause__``.
    """

    def __init__(self, operation: str, key: str | None, container: str, cause: Exception):
        self.operation = operation
        self.key = key
        self.container = container
        if key is not None:
            message = f"failed to {operation} {key!r} in container {container!r}: {cause}"
        else:
            message = f"failed to {operation} container {container!r}: {cause}"
        super().__init__(message)
        self.__cause__ = cause


class ProvisioningError(RemoteServiceError):
    """Container probe or creation failed during construction."""
    pass
