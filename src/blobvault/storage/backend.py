"""Azure Blob Storage physical backend.

Maps the platform's hierarchical keys onto a flat blob container. Every
operation takes one admission slot for the duration of its remote work,
reports a timer, and translates not-found into an empty result.
"""

import logging
import time
from collections.abc import Callable, Iterable, Iterator, Mapping
from contextlib import contextmanager
from typing import Any

from ..config import resolve_config
from ..environments import suffix_from_url
from ..errors import DeadlineExceededError, RemoteServiceError, SizeLimitExceededError
from ..telemetry import BLACKHOLE_SINK, MetricSink, measure_since
from .azure import AzureBlobContainer
from .base import Entry
from .keys import list_keys
from .permits import PermitPool
from .provision import ensure_container
from .remote import BlobContainer, ErrorKind, ListPage, RemoteError

logger = logging.getLogger(__name__)

# Largest value accepted by put, exclusive
MAX_BLOB_SIZE = 4 * 1024 * 1024
# Page size requested from the list operation
MAX_LIST_RESULTS = 5000

METRIC_PREFIX = "azure"


def remaining(deadline: float | None) -> float | None:
    """Seconds left before ``deadline``, or None without one.

    Raises:
        DeadlineExceededError: If the deadline has already passed
    """
    if deadline is None:
        return None
    left = deadline - time.monotonic()
    if left <= 0:
        raise DeadlineExceededError(f"deadline exceeded by {-left:.3f}s")
    return left


class AzureBackend:
    """Physical backend storing entries as blobs in one Azure container.

    Usage:
        backend = AzureBackend.from_config({
            "container": "vault",
            "accountName": "acct",
            "accountKey": "...",
            "max_parallel": "16",
        })
        backend.put(Entry("sys/token/abc", b"..."))
        backend.list("sys/")  # -> ["token/"]
    """

    def __init__(
        self,
        container: BlobContainer,
        permit_pool: PermitPool | None = None,
        sink: MetricSink | None = None,
        max_blob_size: int = MAX_BLOB_SIZE,
        list_page_size: int = MAX_LIST_RESULTS,
    ):
        """Bind to an already provisioned container.

        Args:
            container: Remote container; owned by this backend
            permit_pool: Admission limiter (default: unbounded)
            sink: Metric sink for timers and error counters
            max_blob_size: Values of this many bytes or more are rejected
            list_page_size: Names requested per list page
        """
        self._container = container
        self._permits = permit_pool or PermitPool()
        self._sink = sink or BLACKHOLE_SINK
        self.max_blob_size = max_blob_size
        self.list_page_size = list_page_size

    @classmethod
    def from_config(
        cls,
        conf: Mapping[str, Any],
        environ: Mapping[str, str] | None = None,
        sink: MetricSink | None = None,
        container: BlobContainer | None = None,
        fetch: Callable[[str], str] = suffix_from_url,
    ) -> "AzureBackend":
        """Resolve configuration, provision the container and build the backend.

        Args:
            conf: Storage settings; see :func:`blobvault.config.resolve_config`
            environ: Environment lookup; defaults to ``os.environ``
            sink: Metric sink
            container: Pre-built container client, bypassing the Azure client
            fetch: Resolves ``arm_endpoint`` to a storage suffix

        Raises:
            ConfigError: On missing or invalid settings, before any remote call
            ProvisioningError: If the container cannot be probed or created
        """
        config = resolve_config(conf, environ)
        if container is None:
            container = AzureBlobContainer.from_config(config, fetch)
        ensure_container(container)
        return cls(container, PermitPool(config.max_parallel), sink)

    @property
    def container_name(self) -> str:
        return self._container.name

    @contextmanager
    def _measure(self, operation: str):
        start = time.perf_counter()
        try:
            yield
        except Exception:
            self._sink.incr_counter((METRIC_PREFIX, operation, "error"))
            raise
        finally:
            measure_since(self._sink, (METRIC_PREFIX, operation), start)

    @contextmanager
    def _slot(self, timeout: float | None):
        """Hold an admission slot; yields the absolute deadline, or None."""
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._permits.permit(timeout):
            yield deadline

    def put(self, entry: Entry, timeout: float | None = None) -> None:
        """Insert or fully replace an entry."""
        with self._measure("put"):
            if len(entry.value) >= self.max_blob_size:
                raise SizeLimitExceededError(entry.key, len(entry.value), self.max_blob_size)

            with self._slot(timeout) as deadline:
                try:
                    self._container.upload(entry.key, entry.value, timeout=remaining(deadline))
                except RemoteError as e:
                    raise RemoteServiceError("upload", entry.key, self.container_name, e) from e
            logger.debug(f"Saved {len(entry.value)} bytes to {entry.key}")

    def get(self, key: str, timeout: float | None = None) -> Entry | None:
        """Fetch an entry, reading the whole blob into memory."""
        with self._measure("get"):
            with self._slot(timeout) as deadline:
                try:
                    chunks = self._container.download(key, timeout=remaining(deadline))
                    data = self._read_body(chunks, deadline)
                except RemoteError as e:
                    if e.kind is ErrorKind.BLOB_NOT_FOUND:
                        return None
                    raise RemoteServiceError("download", key, self.container_name, e) from e
            return Entry(key=key, value=data)

    @staticmethod
    def _read_body(chunks: Iterable[bytes], deadline: float | None) -> bytes:
        """Drain body chunks, checking the deadline before each read."""
        parts = []
        it = iter(chunks)
        while True:
            remaining(deadline)
            try:
                parts.append(next(it))
            except StopIteration:
                return b"".join(parts)

    def delete(self, key: str, timeout: float | None = None) -> None:
        """Delete an entry and its snapshots; a missing key is not an error."""
        with self._measure("delete"):
            with self._slot(timeout) as deadline:
                try:
                    self._container.delete(key, timeout=remaining(deadline))
                except RemoteError as e:
                    if e.kind is ErrorKind.BLOB_NOT_FOUND:
                        logger.debug(f"Key {key} not found for deletion")
                        return
                    raise RemoteServiceError("delete", key, self.container_name, e) from e
            logger.debug(f"Deleted key: {key}")

    def list(self, prefix: str, timeout: float | None = None) -> list[str]:
        """List keys one level below ``prefix``, sorted, without duplicates."""
        with self._measure("list"):
            with self._slot(timeout) as deadline:
                try:
                    names = (name for page in self._pages(prefix, deadline) for name in page.names)
                    keys = list_keys(prefix, names)
                except RemoteError as e:
                    raise RemoteServiceError("list", prefix, self.container_name, e) from e
            logger.debug(f"Listed {len(keys)} keys with prefix: {prefix}")
            return keys

    def _pages(self, prefix: str, deadline: float | None) -> Iterator[ListPage]:
        """Pull pages until the store reports no further marker.

        Each page gets whatever is left of the deadline.
        """
        marker = None
        while True:
            page = self._container.list_page(
                prefix, marker, self.list_page_size, timeout=remaining(deadline)
            )
            yield page
            if page.next_marker is None:
                return
            marker = page.next_marker
