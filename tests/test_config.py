"""Tests for storage configuration resolution."""

import pytest
from pydantic import ValidationError

from blobvault import environments
from blobvault.config import AzureBackendConfig, parse_max_parallel, resolve_config
from blobvault.errors import ConfigError

ENV = {
    "AZURE_BLOB_CONTAINER": "env-container",
    "AZURE_ACCOUNT_NAME": "envacct",
    "AZURE_ACCOUNT_KEY": "ZW52a2V5",
}


class TestResolveConfig:
    def test_explicit_values(self, conf):
        config = resolve_config(conf, environ={})

        assert config.container == "vault"
        assert config.account_name == "vaultacct"
        assert config.account_key.get_secret_value() == "c3VwZXJzZWNyZXRrZXk="
        assert config.environment == "AzurePublicCloud"
        assert config.arm_endpoint is None
        assert config.max_parallel == 0

    def test_environment_fallback(self):
        config = resolve_config({}, environ=ENV)

        assert config.container == "env-container"
        assert config.account_name == "envacct"
        assert config.account_key.get_secret_value() == "ZW52a2V5"

    def test_environment_wins_over_explicit_config(self, conf):
        config = resolve_config(conf, environ=ENV)

        assert config.container == "env-container"
        assert config.account_name == "envacct"
        assert config.account_key.get_secret_value() == "ZW52a2V5"

    def test_environment_overrides_single_setting(self, conf):
        config = resolve_config(conf, environ={"AZURE_BLOB_CONTAINER": "from-env"})

        assert config.container == "from-env"
        assert config.account_name == "vaultacct"

    def test_empty_environment_value_falls_back_to_config(self, conf):
        config = resolve_config(conf, environ={"AZURE_BLOB_CONTAINER": ""})

        assert config.container == "vault"

    def test_empty_config_value_falls_back_to_environment(self, conf):
        conf["container"] = ""
        config = resolve_config(conf, environ={"AZURE_BLOB_CONTAINER": "env-container"})

        assert config.container == "env-container"

    @pytest.mark.parametrize("missing", ["container", "accountName", "accountKey"])
    def test_required_setting_missing_everywhere(self, conf, missing):
        del conf[missing]

        with pytest.raises(ConfigError, match=f"'{missing}' must be set"):
            resolve_config(conf, environ={})

    def test_uses_os_environ_by_default(self, monkeypatch):
        for name, value in ENV.items():
            monkeypatch.setenv(name, value)

        assert resolve_config({}).container == "env-container"

    @pytest.mark.parametrize("value,expected", [("8", 8), ("0", 0), (16, 16)])
    def test_max_parallel_parsed(self, conf, value, expected):
        conf["max_parallel"] = value
        assert resolve_config(conf, environ={}).max_parallel == expected

    @pytest.mark.parametrize("value", ["abc", "", "1.5", "-1"])
    def test_max_parallel_invalid(self, conf, value):
        conf["max_parallel"] = value

        with pytest.raises(ConfigError, match="max_parallel"):
            resolve_config(conf, environ={})

    def test_unknown_environment(self, conf):
        conf["environment"] = "AzureMoonCloud"

        with pytest.raises(ConfigError, match="AzureMoonCloud"):
            resolve_config(conf, environ={})

    def test_environment_from_env_var(self, conf):
        config = resolve_config(conf, environ={"AZURE_ENVIRONMENT": "AzureChinaCloud"})

        assert config.storage_suffix() == "core.chinacloudapi.cn"

    def test_config_is_immutable(self, conf):
        config = resolve_config(conf, environ={})

        with pytest.raises(ValidationError):
            config.container = "other"

    def test_account_key_not_exposed(self, conf):
        config = resolve_config(conf, environ={})

        assert "c3VwZXJzZWNyZXRrZXk=" not in repr(config)
        assert "c3VwZXJzZWNyZXRrZXk=" not in str(config)


class TestEndpoints:
    def test_public_cloud_account_url(self, conf):
        config = resolve_config(conf, environ={})

        assert config.account_url() == "https://vaultacct.blob.core.windows.net"

    @pytest.mark.parametrize(
        "name,suffix",
        [
            ("AzurePublicCloud", "core.windows.net"),
            ("azurechinacloud", "core.chinacloudapi.cn"),
            ("AzureUSGovernmentCloud", "core.usgovcloudapi.net"),
            ("AzureGermanCloud", "core.cloudapi.de"),
        ],
    )
    def test_named_environments(self, name, suffix):
        assert environments.suffix_from_name(name) == suffix

    def test_arm_endpoint_overrides_environment(self, conf):
        conf["environment"] = "AzureChinaCloud"
        conf["arm_endpoint"] = "https://management.local.azurestack.external"
        config = resolve_config(conf, environ={})
        seen = []

        def fetch(url):
            seen.append(url)
            return "local.azurestack.external"

        assert config.account_url(fetch) == "https://vaultacct.blob.local.azurestack.external"
        assert seen == ["https://management.local.azurestack.external"]

    def test_arm_endpoint_skips_environment_name_check(self, conf):
        conf["environment"] = "NotARealCloud"
        conf["arm_endpoint"] = "https://management.example"

        assert resolve_config(conf, environ={}).arm_endpoint == "https://management.example"


class FakeResponse:
    def __init__(self, payload):
        self._payload = payload

    def raise_for_status(self):
        pass

    def json(self):
        return self._payload


class FakePipelineClient:
    payload: dict = {}
    requests: list = []

    def __init__(self, base_url):
        self.base_url = base_url

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def send_request(self, request, **kwargs):
        FakePipelineClient.requests.append((request, kwargs))
        return FakeResponse(FakePipelineClient.payload)


class TestSuffixFromUrl:
    @pytest.fixture(autouse=True)
    def fake_client(self, monkeypatch):
        FakePipelineClient.requests = []
        monkeypatch.setattr(environments, "PipelineClient", FakePipelineClient)

    def test_reads_storage_suffix(self):
        FakePipelineClient.payload = {"suffixes": {"storage": "local.azurestack.external"}}

        suffix = environments.suffix_from_url("https://management.local.azurestack.external/", timeout=2.0)

        assert suffix == "local.azurestack.external"
        request, kwargs = FakePipelineClient.requests[0]
        assert "/metadata/endpoints" in request.url
        assert kwargs["read_timeout"] == 2.0

    def test_missing_suffix(self):
        FakePipelineClient.payload = {"suffixes": {}}

        with pytest.raises(ConfigError, match="no storage suffix"):
            environments.suffix_from_url("https://management.example")


def test_from_yaml(tmp_path):
    path = tmp_path / "storage.yaml"
    path.write_text(
        "container: vault\n"
        "accountName: yamlacct\n"
        "accountKey: a2V5\n"
        "max_parallel: 4\n"
    )

    config = AzureBackendConfig.from_yaml(path, environ={})

    assert config.account_name == "yamlacct"
    assert config.max_parallel == 4


def test_from_yaml_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        AzureBackendConfig.from_yaml(tmp_path / "nope.yaml", environ={})


def test_from_yaml_invalid(tmp_path):
    path = tmp_path / "storage.yaml"
    path.write_text("container: [unclosed\n")

    with pytest.raises(ConfigError, match="Invalid YAML"):
        AzureBackendConfig.from_yaml(path, environ={})


class TestParseMaxParallel:
    @pytest.mark.parametrize("value,expected", [(None, 0), ("0", 0), ("12", 12), (3, 3)])
    def test_valid(self, value, expected):
        assert parse_max_parallel(value) == expected

    @pytest.mark.parametrize("value", ["abc", "", "2.5", "-1", -4])
    def test_invalid(self, value):
        with pytest.raises(ConfigError, match="failed parsing max_parallel parameter"):
            parse_max_parallel(value)
