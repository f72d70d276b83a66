"""Startup provisioning of the backing container."""

import logging

from ..errors import ProvisioningError
from .remote import BlobContainer, ErrorKind, RemoteError

logger = logging.getLogger(__name__)

PROBE_TIMEOUT = 5.0


def ensure_container(container: BlobContainer, timeout: float = PROBE_TIMEOUT) -> bool:
    """Make sure the container exists, creating it if it is missing.

    A container created concurrently by another instance counts as existing.

    Args:
        container: Container to probe
        timeout: Seconds allowed for each of the probe and the create call

    Returns:
        True if this call created the container

    Raises:
        ProvisioningError: If the probe or the creation fails for any other reason
    """
    try:
        container.get_properties(timeout=timeout)
        logger.debug(f"Container exists: {container.name}")
        return False
    except RemoteError as e:
        if e.kind is not ErrorKind.CONTAINER_NOT_FOUND:
            raise ProvisioningError("get properties for", None, container.name, e) from e

    logger.info(f"Creating container: {container.name}")
    try:
        container.create(timeout=timeout)
    except RemoteError as e:
        if e.kind is ErrorKind.CONTAINER_EXISTS:
            # Another instance won the race
            logger.debug(f"Container {container.name} created concurrently")
            return False
        raise ProvisioningError("create", None, container.name, e) from e
    return True
