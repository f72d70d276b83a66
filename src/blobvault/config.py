"""Configuration for the Azure blob storage backend.

The platform hands each backend its storage stanza as a flat string map.
Every setting may also come from the environment; a non-empty environment
variable wins over the config value, which wins over the default. Resolution
happens once at construction and produces an immutable :class:`AzureBackendConfig`.
"""

import logging
import os
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Annotated, Any

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    TypeAdapter,
    ValidationError,
    model_validator,
)

from .environments import (
    DEFAULT_ENVIRONMENT,
    is_known_environment,
    suffix_from_name,
    suffix_from_url,
)
from .errors import ConfigError

logger = logging.getLogger(__name__)

# (config key, environment variable, model field)
_SETTINGS = (
    ("container", "AZURE_BLOB_CONTAINER", "container"),
    ("accountName", "AZURE_ACCOUNT_NAME", "account_name"),
    ("accountKey", "AZURE_ACCOUNT_KEY", "account_key"),
    ("environment", "AZURE_ENVIRONMENT", "environment"),
    ("arm_endpoint", "AZURE_ARM_ENDPOINT", "arm_endpoint"),
)
_REQUIRED = ("container", "accountName", "accountKey")

# Model field -> config key, for error messages
_FIELD_NAMES = {field: conf_key for conf_key, _, field in _SETTINGS}
_FIELD_NAMES["max_parallel"] = "max_parallel"

_MAX_PARALLEL = TypeAdapter(Annotated[int, Field(ge=0)])


class AzureBackendConfig(BaseModel):
    """Resolved, immutable backend configuration."""

    model_config = ConfigDict(frozen=True)

    container: str = Field(min_length=1)
    """Blob container holding every entry of this backend."""

    account_name: str = Field(min_length=1)
    """Storage account name."""

    account_key: SecretStr
    """Shared key for the storage account."""

    environment: str = DEFAULT_ENVIRONMENT
    """Well-known Azure cloud name."""

    arm_endpoint: str | None = None
    """Resource Manager endpoint; overrides ``environment`` when set."""

    max_parallel: int = Field(default=0, ge=0)
    """Bound on concurrent remote operations; 0 means unbounded."""

    @model_validator(mode="after")
    def _check_environment(self) -> "AzureBackendConfig":
        if not self.arm_endpoint and not is_known_environment(self.environment):
            raise ValueError(f"unknown Azure environment {self.environment!r}")
        return self

    def storage_suffix(self, fetch: Callable[[str], str] = suffix_from_url) -> str:
        """Blob endpoint suffix for the configured cloud.

        Args:
            fetch: Looks up the suffix for ``arm_endpoint``; performs a network call
        """
        if self.arm_endpoint:
            return fetch(self.arm_endpoint)
        return suffix_from_name(self.environment)

    def account_url(self, fetch: Callable[[str], str] = suffix_from_url) -> str:
        """Blob service URL, e.g. ``https://acct.blob.core.windows.net``."""
        return f"https://{self.account_name}.blob.{self.storage_suffix(fetch)}"

    @classmethod
    def from_yaml(cls, path: Path, environ: Mapping[str, str] | None = None) -> "AzureBackendConfig":
        """Load a storage stanza from a YAML file and resolve it.

        Raises:
            ConfigError: On missing file, invalid YAML or invalid settings
        """
        path = Path(path)
        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML syntax in {path.name}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"{path.name} must contain a mapping of storage settings")
        return resolve_config(data, environ)


def _format_validation_error(error: ValidationError) -> str:
    lines = []
    for err in error.errors():
        field = ".".join(_FIELD_NAMES.get(str(loc), str(loc)) for loc in err["loc"])
        if field == "max_parallel":
            lines.append(f"failed parsing max_parallel parameter: {err['msg']}")
        elif field:
            lines.append(f"{field}: {err['msg']}")
        else:
            lines.append(err["msg"])
    return "; ".join(lines)


def resolve_config(conf: Mapping[str, Any], environ: Mapping[str, str] | None = None) -> AzureBackendConfig:
    """Resolve the storage stanza against the environment.

    Args:
        conf: Storage settings (``container``, ``accountName``, ``accountKey``,
            ``environment``, ``arm_endpoint``, ``max_parallel``)
        environ: Environment lookup; defaults to ``os.environ``

    Returns:
        Validated, immutable configuration

    Raises:
        ConfigError: If a required setting is missing from both sources or
            any value is invalid
    """
    environ = os.environ if environ is None else environ

    values: dict[str, Any] = {}
    for conf_key, env_var, field in _SETTINGS:
        value = environ.get(env_var) or conf.get(conf_key)
        if value:
            values[field] = value
        elif conf_key in _REQUIRED:
            raise ConfigError(f"'{conf_key}' must be set (or {env_var})")

    max_parallel = conf.get("max_parallel")
    if max_parallel is not None:
        values["max_parallel"] = max_parallel

    try:
        config = AzureBackendConfig(**values)
    except ValidationError as e:
        raise ConfigError(_format_validation_error(e)) from e

    if config.max_parallel:
        logger.debug(f"max_parallel set to {config.max_parallel}")
    return config


def parse_max_parallel(value: Any) -> int:
    """Parse a ``max_parallel`` setting; None or 0 means unbounded.

    Raises:
        ConfigError: If the value is not a non-negative integer
    """
    if value is None:
        return 0
    try:
        return _MAX_PARALLEL.validate_python(value)
    except ValidationError as e:
        msg = e.errors()[0]["msg"]
        raise ConfigError(f"failed parsing max_parallel parameter: {msg}") from e
