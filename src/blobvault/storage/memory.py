"""In-memory blob container for testing.

Mimics the remote contract closely enough to exercise the backend without
Azure: paginated listing with markers, structured not-found errors, a
container that may not exist yet. It also records how many operations are
in flight at once.
"""

import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager

from .remote import ErrorKind, ListPage, RemoteError


class InMemoryBlobContainer:
    """Thread-safe in-memory implementation of ``BlobContainer``."""

    def __init__(
        self,
        name: str = "vault",
        exists: bool = True,
        latency: float = 0.0,
        chunk_size: int = 64 * 1024,
    ):
        """Initialize an empty container.

        Args:
            name: Container name
            exists: If False, the container must be created before use
            latency: Seconds each operation sleeps while in flight
            chunk_size: Size of chunks yielded by ``download``
        """
        self._name = name
        self.exists = exists
        self.latency = latency
        self.chunk_size = chunk_size
        self.public_access = None
        self.metadata: dict[str, str] = {}
        self._blobs: dict[str, bytes] = {}
        self._lock = threading.Lock()
        self._failures: dict[str, tuple[int, Exception]] = {}
        self.calls: list[str] = []
        self.timeouts: list[float | None] = []
        self.in_flight = 0
        self.max_in_flight = 0

    @property
    def name(self) -> str:
        return self._name

    def fail_next(self, operation: str, error: Exception, after: int = 0) -> None:
        """Make a later call to ``operation`` raise ``error``.

        Args:
            operation: Method name, e.g. "upload" or "list_page"
            error: Exception to raise
            after: Number of successful calls to let through first
        """
        with self._lock:
            self._failures[operation] = (after, error)

    def seed(self, blobs: dict[str, bytes]) -> None:
        """Store blobs directly, bypassing call tracking."""
        with self._lock:
            self._blobs.update(blobs)

    @contextmanager
    def _call(self, operation: str, timeout: float | None = None):
        with self._lock:
            self.calls.append(operation)
            self.timeouts.append(timeout)
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
            failure = None
            if operation in self._failures:
                after, error = self._failures[operation]
                if after:
                    self._failures[operation] = (after - 1, error)
                else:
                    failure = self._failures.pop(operation)[1]
        try:
            if self.latency:
                time.sleep(self.latency)
            if failure is not None:
                raise failure
            yield
        finally:
            with self._lock:
                self.in_flight -= 1

    def _require_container(self) -> None:
        if not self.exists:
            raise RemoteError(
                ErrorKind.CONTAINER_NOT_FOUND,
                f"container {self._name} does not exist",
                code="ContainerNotFound",
            )

    def upload(self, name: str, data: bytes, timeout: float | None = None) -> None:
        with self._call("upload", timeout):
            with self._lock:
                self._require_container()
                self._blobs[name] = bytes(data)

    def download(self, name: str, timeout: float | None = None) -> Iterator[bytes]:
        with self._call("download", timeout):
            with self._lock:
                self._require_container()
                if name not in self._blobs:
                    raise RemoteError(
                        ErrorKind.BLOB_NOT_FOUND,
                        f"blob {name} does not exist",
                        code="BlobNotFound",
                    )
                data = self._blobs[name]
        return iter([data[i:i + self.chunk_size] for i in range(0, len(data), self.chunk_size)])

    def delete(self, name: str, timeout: float | None = None) -> None:
        with self._call("delete", timeout):
            with self._lock:
                self._require_container()
                if self._blobs.pop(name, None) is None:
                    raise RemoteError(
                        ErrorKind.BLOB_NOT_FOUND,
                        f"blob {name} does not exist",
                        code="BlobNotFound",
                    )

    def get_properties(self, timeout: float | None = None) -> dict:
        with self._call("get_properties", timeout):
            with self._lock:
                self._require_container()
                return {"name": self._name, "metadata": dict(self.metadata)}

    def create(self, timeout: float | None = None) -> None:
        with self._call("create", timeout):
            with self._lock:
                if self.exists:
                    raise RemoteError(
                        ErrorKind.CONTAINER_EXISTS,
                        f"container {self._name} already exists",
                        code="ContainerAlreadyExists",
                    )
                self.exists = True

    def list_page(
        self,
        prefix: str,
        marker: str | None,
        page_size: int,
        timeout: float | None = None,
    ) -> ListPage:
        with self._call("list_page", timeout):
            with self._lock:
                self._require_container()
                names = sorted(n for n in self._blobs if n.startswith(prefix))
        start = int(marker) if marker else 0
        end = start + page_size
        next_marker = str(end) if end < len(names) else None
        return ListPage(names=names[start:end], next_marker=next_marker)
