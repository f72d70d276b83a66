"""Azure cloud environment descriptors.

Only the blob storage endpoint suffix matters to the backend. It comes from
a well-known cloud name, or from the metadata document served by an
explicit Resource Manager endpoint (Azure Stack and similar).
"""

import logging

from azure.core import PipelineClient
from azure.core.exceptions import AzureError
from azure.core.rest import HttpRequest

from .errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_ENVIRONMENT = "AzurePublicCloud"
METADATA_API_VERSION = "2019-05-01"

STORAGE_SUFFIXES = {
    "AZUREPUBLICCLOUD": "core.windows.net",
    "AZURECHINACLOUD": "core.chinacloudapi.cn",
    "AZUREUSGOVERNMENTCLOUD": "core.usgovcloudapi.net",
    "AZUREGERMANCLOUD": "core.cloudapi.de",
}


def is_known_environment(name: str) -> bool:
    return name.strip().upper() in STORAGE_SUFFIXES


def suffix_from_name(name: str) -> str:
    """Storage endpoint suffix for a well-known cloud name (case-insensitive).

    Raises:
        ConfigError: If the name is not a known cloud
    """
    try:
        return STORAGE_SUFFIXES[name.strip().upper()]
    except KeyError:
        raise ConfigError(
            f"failed to look up Azure environment descriptor for name {name!r}: "
            f"expected one of {sorted(STORAGE_SUFFIXES)}"
        ) from None


def suffix_from_url(url: str, timeout: float = 5.0) -> str:
    """Storage endpoint suffix from a Resource Manager metadata endpoint.

    Args:
        url: Resource Manager endpoint, e.g. ``https://management.local.azurestack.external``
        timeout: Connect and read timeout in seconds

    Raises:
        ConfigError: If the metadata cannot be fetched or lacks a storage suffix
    """
    request = HttpRequest(
        "GET",
        url.rstrip("/") + "/metadata/endpoints",
        params={"api-version": METADATA_API_VERSION},
    )
    try:
        with PipelineClient(base_url=url) as client:
            response = client.send_request(
                request, connection_timeout=timeout, read_timeout=timeout
            )
            response.raise_for_status()
            metadata = response.json()
    except (AzureError, ValueError) as e:
        raise ConfigError(
            f"failed to look up Azure environment descriptor for URL {url!r}: {e}"
        ) from e

    suffix = (metadata.get("suffixes") or {}).get("storage") if isinstance(metadata, dict) else None
    if not suffix:
        raise ConfigError(
            f"failed to look up Azure environment descriptor for URL {url!r}: "
            "metadata has no storage suffix"
        )
    logger.debug(f"Resolved storage suffix {suffix} from {url}")
    return suffix
