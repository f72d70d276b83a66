"""Azure Blob Storage adapter for the remote container contract.

This is the only module that looks at Azure error shapes. Service failures
are classified into :class:`ErrorKind` here; transport failures
(``ServiceRequestError``, ``ServiceResponseError``) pass through untouched.
"""

import logging
import math
from collections.abc import Callable, Iterator

from azure.core.exceptions import HttpResponseError, ResourceNotFoundError
from azure.storage.blob import BlobServiceClient, ContainerClient, StorageErrorCode

from ..config import AzureBackendConfig
from ..environments import suffix_from_url
from ..errors import DeadlineExceededError
from .remote import ErrorKind, ListPage, RemoteError

logger = logging.getLogger(__name__)

_KINDS = {
    StorageErrorCode.BLOB_NOT_FOUND.value: ErrorKind.BLOB_NOT_FOUND,
    StorageErrorCode.CONTAINER_NOT_FOUND.value: ErrorKind.CONTAINER_NOT_FOUND,
    StorageErrorCode.CONTAINER_ALREADY_EXISTS.value: ErrorKind.CONTAINER_EXISTS,
}


def classify_error(error: HttpResponseError, not_found: ErrorKind = ErrorKind.OTHER) -> RemoteError:
    """Map an Azure service error onto a :class:`RemoteError`.

    Args:
        error: Error raised by the Azure SDK
        not_found: Kind to use for a 404 that carries no error code
            (HEAD requests have no body to read one from)
    """
    code = getattr(error, "error_code", None)
    if code is not None:
        code = str(getattr(code, "value", code))
        kind = _KINDS.get(code, ErrorKind.OTHER)
    elif isinstance(error, ResourceNotFoundError) or error.status_code == 404:
        kind = not_found
    else:
        kind = ErrorKind.OTHER
    message = getattr(error, "message", None) or str(error)
    return RemoteError(kind, message, code=code)


def _timeouts(timeout: float | None) -> dict:
    """Per-call kwargs: server-side operation timeout plus socket timeouts.

    Raises:
        DeadlineExceededError: If no time is left; a zero socket timeout
            would make the connection non-blocking
    """
    if timeout is None:
        return {}
    if timeout <= 0:
        raise DeadlineExceededError(f"no time left for the remote call (timeout={timeout})")
    return {
        "timeout": max(1, math.ceil(timeout)),
        "connection_timeout": timeout,
        "read_timeout": timeout,
    }


class AzureBlobContainer:
    """Blob container backed by ``azure-storage-blob``.

    The SDK's own retries are disabled; callers own retry policy.
    """

    def __init__(self, client: ContainerClient):
        self._client = client

    @classmethod
    def from_config(
        cls,
        config: AzureBackendConfig,
        fetch: Callable[[str], str] = suffix_from_url,
    ) -> "AzureBlobContainer":
        """Build a container client bound to the configured account and container."""
        account_url = config.account_url(fetch)
        service = BlobServiceClient(
            account_url=account_url,
            credential={
                "account_name": config.account_name,
                "account_key": config.account_key.get_secret_value(),
            },
            retry_total=0,
        )
        logger.debug(f"Azure container client for {account_url}/{config.container}")
        return cls(service.get_container_client(config.container))

    @property
    def name(self) -> str:
        return self._client.container_name

    def upload(self, name: str, data: bytes, timeout: float | None = None) -> None:
        try:
            self._client.upload_blob(name, data, overwrite=True, **_timeouts(timeout))
        except HttpResponseError as e:
            raise classify_error(e) from e

    def download(self, name: str, timeout: float | None = None) -> Iterator[bytes]:
        try:
            downloader = self._client.download_blob(name, **_timeouts(timeout))
        except HttpResponseError as e:
            raise classify_error(e, ErrorKind.BLOB_NOT_FOUND) from e
        return self._iter_chunks(downloader)

    @staticmethod
    def _iter_chunks(downloader) -> Iterator[bytes]:
        try:
            yield from downloader.chunks()
        except HttpResponseError as e:
            raise classify_error(e, ErrorKind.BLOB_NOT_FOUND) from e

    def delete(self, name: str, timeout: float | None = None) -> None:
        try:
            self._client.delete_blob(name, delete_snapshots="include", **_timeouts(timeout))
        except HttpResponseError as e:
            raise classify_error(e, ErrorKind.BLOB_NOT_FOUND) from e

    def get_properties(self, timeout: float | None = None) -> dict:
        try:
            props = self._client.get_container_properties(**_timeouts(timeout))
        except HttpResponseError as e:
            raise classify_error(e, ErrorKind.CONTAINER_NOT_FOUND) from e
        return {
            "name": props.name,
            "etag": props.etag,
            "last_modified": props.last_modified,
            "metadata": dict(props.metadata or {}),
        }

    def create(self, timeout: float | None = None) -> None:
        try:
            self._client.create_container(metadata={}, public_access=None, **_timeouts(timeout))
        except HttpResponseError as e:
            raise classify_error(e) from e

    def list_page(
        self,
        prefix: str,
        marker: str | None,
        page_size: int,
        timeout: float | None = None,
    ) -> ListPage:
        pages = self._client.list_blobs(
            name_starts_with=prefix or None,
            results_per_page=page_size,
            **_timeouts(timeout),
        ).by_page(continuation_token=marker)
        try:
            names = [blob.name for blob in next(pages)]
        except HttpResponseError as e:
            raise classify_error(e, ErrorKind.CONTAINER_NOT_FOUND) from e
        return ListPage(names=names, next_marker=pages.continuation_token or None)
