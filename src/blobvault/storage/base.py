"""Storage backend protocol consumed by the secrets platform."""

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class Entry:
    """A key/value pair persisted by a backend.

    ``key`` is a ``/``-delimited path without a leading slash.
    """

    key: str
    value: bytes


@runtime_checkable
class Backend(Protocol):
    """Protocol for physical storage backends.

    ``timeout`` (seconds) stands in for the caller's deadline. It bounds
    both the wait for an admission slot and the remote call.
    """

    def put(self, entry: Entry, timeout: float | None = None) -> None:
        """Insert or fully replace an entry.

        Raises:
            SizeLimitExceededError: If the value is too large to store
            RemoteServiceError: On any remote failure
        """
        ...

    def get(self, key: str, timeout: float | None = None) -> Entry | None:
        """Fetch an entry.

        Returns:
            The entry, or None if the key does not exist
        """
        ...

    def delete(self, key: str, timeout: float | None = None) -> None:
        """Delete an entry. Deleting a missing key succeeds."""
        ...

    def list(self, prefix: str, timeout: float | None = None) -> list[str]:
        """List keys one level below ``prefix``.

        Returns:
            Sorted keys; deeper paths appear once as ``segment/``
        """
        ...
