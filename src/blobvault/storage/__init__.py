"""Physical storage backends for BlobVault."""

import logging
from collections.abc import Mapping
from typing import Any

from ..config import parse_max_parallel
from ..telemetry import MetricSink
from .azure import AzureBlobContainer
from .backend import MAX_BLOB_SIZE, MAX_LIST_RESULTS, AzureBackend
from .base import Backend, Entry
from .memory import InMemoryBlobContainer
from .permits import PermitPool
from .provision import ensure_container
from .remote import BlobContainer, ErrorKind, ListPage, RemoteError

logger = logging.getLogger(__name__)


def get_backend(
    backend_type: str = "azure",
    conf: Mapping[str, Any] | None = None,
    sink: MetricSink | None = None,
    **kwargs,
) -> Backend:
    """Factory function to get a storage backend by name.

    Args:
        backend_type: One of "azure", "inmem"
        conf: Storage settings for the backend
        sink: Metric sink for timers and error counters
        **kwargs: Passed to ``AzureBackend.from_config``; not accepted by "inmem"

    Returns:
        Storage backend instance

    Raises:
        ConfigError: If ``max_parallel`` is invalid
        TypeError: If "inmem" is given arguments it does not take
        ValueError: If backend_type is unknown

    Examples:
        >>> # Azure, settings from the environment, then config
        >>> backend = get_backend("azure", {"container": "vault"})

        >>> # In-memory, for development
        >>> backend = get_backend("inmem", {"max_parallel": "4"})
    """
    conf = dict(conf or {})
    if backend_type == "azure":
        return AzureBackend.from_config(conf, sink=sink, **kwargs)
    elif backend_type == "inmem":
        if kwargs:
            raise TypeError(f"unexpected arguments for inmem backend: {sorted(kwargs)}")
        max_parallel = parse_max_parallel(conf.get("max_parallel"))
        logger.info("Using in-memory storage backend")
        container = InMemoryBlobContainer(name=conf.get("container", "vault"))
        return AzureBackend(container, PermitPool(max_parallel), sink)
    else:
        raise ValueError(f"Unknown backend type: {backend_type}")


__all__ = [
    "AzureBackend",
    "AzureBlobContainer",
    "Backend",
    "BlobContainer",
    "Entry",
    "ErrorKind",
    "InMemoryBlobContainer",
    "ListPage",
    "MAX_BLOB_SIZE",
    "MAX_LIST_RESULTS",
    "PermitPool",
    "RemoteError",
    "ensure_container",
    "get_backend",
]
