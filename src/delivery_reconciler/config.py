"""Configuration loader with env var resolution and Pydantic validation.

Loads config from (priority order, later wins):
1. Built-in defaults
2. YAML file named by DELIVERY_RECONCILER_CONFIG_PATH (optional)
3. Environment variables (SHOPIFY_STORE_DOMAIN, FEDEX_API_KEY, PORT, ...)

${VAR} references in YAML values resolve from the environment at load time.
Credentials are not required at load time; each client calls ``require()``
on its own section when it is constructed, so a missing secret surfaces as
a ConfigurationError on the first request that needs it.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from delivery_reconciler.errors import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_PATH_ENV = "DELIVERY_RECONCILER_CONFIG_PATH"

FEDEX_SANDBOX_URL = "https://apis-sandbox.fedex.com"
FEDEX_PRODUCTION_URL = "https://apis.fedex.com"

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


def resolve_env_vars(value: str) -> str:
    """Replace ${VAR} references with environment values (missing -> empty)."""

    def _replace(match: re.Match) -> str:
        return os.environ.get(match.group(1), "")

    return _ENV_VAR_PATTERN.sub(_replace, value)


def _resolve_env_vars_recursive(data: Any) -> Any:
    if isinstance(data, str):
        return resolve_env_vars(data)
    elif isinstance(data, dict):
        return {k: _resolve_env_vars_recursive(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_resolve_env_vars_recursive(item) for item in data]
    return data


class ShopifyConfig(BaseModel):
    """Order backend endpoint and credentials."""

    store_domain: str = ""
    access_token: str = ""
    api_version: str = "2024-10"

    def require(self) -> "ShopifyConfig":
        """Return self, or raise ConfigurationError naming missing settings."""
        missing = []
        if not self.store_domain:
            missing.append("SHOPIFY_STORE_DOMAIN")
        if not self.access_token:
            missing.append("SHOPIFY_ACCESS_TOKEN")
        if missing:
            raise ConfigurationError.from_code(
                "E-4001", missing=", ".join(missing), details={"missing": missing}
            )
        return self

    @property
    def graphql_url(self) -> str:
        domain = self.store_domain.replace("https://", "").replace("http://", "")
        return f"https://{domain.rstrip('/')}/admin/api/{self.api_version}/graphql.json"


class FedExConfig(BaseModel):
    """Carrier endpoint and OAuth client credentials."""

    api_key: str = ""
    secret_key: str = ""
    base_url: str = FEDEX_SANDBOX_URL

    def require(self) -> "FedExConfig":
        """Return self, or raise ConfigurationError naming missing settings."""
        missing = []
        if not self.api_key:
            missing.append("FEDEX_API_KEY")
        if not self.secret_key:
            missing.append("FEDEX_SECRET_KEY")
        if missing:
            raise ConfigurationError.from_code(
                "E-4001", missing=", ".join(missing), details={"missing": missing}
            )
        return self

    @property
    def token_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/oauth/token"

    @property
    def track_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/track/v1/trackingnumbers"


class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "info"


class ReconcilerConfig(BaseModel):
    """Top-level configuration for one process."""

    shopify: ShopifyConfig = Field(default_factory=ShopifyConfig)
    fedex: FedExConfig = Field(default_factory=FedExConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    http_timeout_seconds: float = 20.0


# env var -> (section, key); section None means top level
_ENV_OVERRIDES: dict[str, tuple[str | None, str]] = {
    "SHOPIFY_STORE_DOMAIN": ("shopify", "store_domain"),
    "SHOPIFY_ACCESS_TOKEN": ("shopify", "access_token"),
    "SHOPIFY_API_VERSION": ("shopify", "api_version"),
    "FEDEX_API_KEY": ("fedex", "api_key"),
    "FEDEX_SECRET_KEY": ("fedex", "secret_key"),
    "FEDEX_BASE_URL": ("fedex", "base_url"),
    "HOST": ("server", "host"),
    "PORT": ("server", "port"),
    "LOG_LEVEL": ("server", "log_level"),
    "HTTP_TIMEOUT_SECONDS": (None, "http_timeout_seconds"),
}


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError.from_code(
            "E-4002", path=str(path), reason=str(e), details={"path": str(path)}
        ) from e
    if not isinstance(raw, dict):
        raise ConfigurationError.from_code(
            "E-4002", path=str(path), reason="top level must be a mapping"
        )
    # an empty section such as "shopify:" parses as None
    for section in ("shopify", "fedex", "server"):
        if raw.get(section) is None:
            raw.pop(section, None)
    return _resolve_env_vars_recursive(raw)


def _apply_env_overrides(data: dict[str, Any], environ: dict[str, str]) -> dict[str, Any]:
    for env_name, (section, key) in _ENV_OVERRIDES.items():
        value = environ.get(env_name, "").strip()
        if not value:
            continue
        if section is None:
            data[key] = value
        else:
            section_data = data.get(section)
            if not isinstance(section_data, dict):
                section_data = data[section] = {}
            section_data[key] = value
    return data


def load_config(
    config_path: str | None = None,
    environ: dict[str, str] | None = None,
) -> ReconcilerConfig:
    """Build a ReconcilerConfig from an optional YAML file plus the environment.

    Args:
        config_path: Explicit YAML path. Defaults to $DELIVERY_RECONCILER_CONFIG_PATH.
        environ: Environment mapping; defaults to ``os.environ``.

    Raises:
        ConfigurationError: If the YAML file cannot be read or parsed (E-4002),
            or a value has the wrong type (E-4003).
    """
    env = dict(os.environ if environ is None else environ)
    path = config_path or env.get(CONFIG_PATH_ENV)

    data: dict[str, Any] = {}
    if path:
        data = _read_yaml(Path(path).expanduser())
        logger.info("Loaded configuration file %s", path)

    try:
        return ReconcilerConfig.model_validate(_apply_env_overrides(data, env))
    except PydanticValidationError as e:
        # loc and msg only; input values may be credentials
        fields = [".".join(str(part) for part in err["loc"]) for err in e.errors()]
        problems = [f"{field}: {err['msg']}" for field, err in zip(fields, e.errors())]
        raise ConfigurationError.from_code(
            "E-4003", reason="; ".join(problems), details={"fields": fields}
        ) from e
