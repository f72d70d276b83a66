"""Remote blob container contract.

Adapters for a concrete object store implement :class:`BlobContainer` and
classify their native failures into :class:`ErrorKind` at the boundary, so
the backend only ever matches on the enumeration.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol, runtime_checkable


class ErrorKind(Enum):
    """Closed set of remote failure kinds the backend reacts to."""

    BLOB_NOT_FOUND = "blob_not_found"
    CONTAINER_NOT_FOUND = "container_not_found"
    CONTAINER_EXISTS = "container_exists"
    OTHER = "other"


class RemoteError(Exception):
    """Structured remote-service failure.

    Attributes:
        kind: Classified failure kind
        code: Service-level reason code as reported by the store, if any
    """

    def __init__(self, kind: ErrorKind, message: str, code: str | None = None):
        super().__init__(message)
        self.kind = kind
        self.code = code

    def __str__(self) -> str:
        base = super().__str__()
        if self.code:
            return f"{base} (code: {self.code})"
        return base


@dataclass(frozen=True)
class ListPage:
    """One page of a flat listing.

    ``next_marker`` is None when no further pages exist.
    """

    names: list[str] = field(default_factory=list)
    next_marker: str | None = None


@runtime_checkable
class BlobContainer(Protocol):
    """Container-scoped object store operations consumed by the backend.

    Every method raises :class:`RemoteError` for structured service
    failures. Transport failures propagate as whatever the client raises.
    ``timeout`` is in seconds; None means the client default.
    """

    @property
    def name(self) -> str:
        """Container name."""
        ...

    def upload(self, name: str, data: bytes, timeout: float | None = None) -> None:
        """Create or fully replace an object."""
        ...

    def download(self, name: str, timeout: float | None = None) -> Iterator[bytes]:
        """Open an object for reading, returning an iterator of body chunks."""
        ...

    def delete(self, name: str, timeout: float | None = None) -> None:
        """Delete an object together with its snapshots."""
        ...

    def get_properties(self, timeout: float | None = None) -> dict:
        """Fetch container properties; probes container existence."""
        ...

    def create(self, timeout: float | None = None) -> None:
        """Create the container with no public access and empty metadata."""
        ...

    def list_page(
        self,
        prefix: str,
        marker: str | None,
        page_size: int,
        timeout: float | None = None,
    ) -> ListPage:
        """Fetch one page of object names starting with ``prefix``."""
        ...
