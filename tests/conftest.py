"""Test configuration and shared fixtures for BlobVault tests."""

import pytest

from blobvault.storage import AzureBackend, InMemoryBlobContainer, PermitPool
from blobvault.telemetry import TelemetryCollector


@pytest.fixture
def container():
    """Provide a clean, existing in-memory container for each test."""
    return InMemoryBlobContainer(name="vault")


@pytest.fixture
def collector():
    return TelemetryCollector()


@pytest.fixture
def backend(container, collector):
    """Unbounded backend over the in-memory container."""
    return AzureBackend(container, PermitPool(), collector)


@pytest.fixture
def conf():
    """Minimal valid storage stanza."""
    return {
        "container": "vault",
        "accountName": "vaultacct",
        "accountKey": "c3VwZXJzZWNyZXRrZXk=",
    }
