"""Loading ClientConfig from environment variables or YAML files."""

import os
from collections.abc import Mapping
from pathlib import Path
from urllib.parse import parse_qsl

import yaml
from pydantic import ValidationError

from api_client_gen.errors import ConfigurationError
from api_client_gen.schema.models import BasicAuth, ClientConfig, ProxySettings

DEFAULT_ENV_PREFIX = "API_"

TRUE_VALUES = {"1", "true", "yes", "on"}


def client_config_from_env(
    environ: Mapping[str, str] | None = None, prefix: str = DEFAULT_ENV_PREFIX
) -> ClientConfig:
    """Build a ClientConfig from `<prefix>BASE_URL` and friends.

    Recognized suffixes: BASE_URL (required), USERNAME, PASSWORD, PROXY_URL,
    PROXY_USERNAME, PROXY_PASSWORD, PROXY_PORT, DISABLE_TLS_VERIFICATION and
    QUERY_PARAMS (encoded as "k=v&k2=v2").
    """
    env = os.environ if environ is None else environ

    def var(name: str) -> str | None:
        return env.get(prefix + name) or None

    base_url = var("BASE_URL")
    if base_url is None:
        raise ConfigurationError(f"Environment variable {prefix}BASE_URL is not set")

    data: dict = {
        "base_url": base_url,
        "query_params": dict(parse_qsl(var("QUERY_PARAMS") or "")),
        "disable_tls_verification": (var("DISABLE_TLS_VERIFICATION") or "").lower() in TRUE_VALUES,
    }
    if var("USERNAME") is not None:
        data["auth"] = {"username": var("USERNAME"), "password": var("PASSWORD") or ""}
    if var("PROXY_URL") is not None:
        data["proxy"] = {
            "url": var("PROXY_URL"),
            "username": var("PROXY_USERNAME"),
            "password": var("PROXY_PASSWORD"),
            "port": var("PROXY_PORT"),
        }
    return _validate(data, f"{prefix}* environment")


def load_client_config(file_path: Path, overrides: Mapping | None = None) -> ClientConfig:
    """Read the `client:` section of a YAML file into a ClientConfig."""
    try:
        doc = yaml.safe_load(file_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid document {file_path}: {e}") from e
    data = dict(doc.get("client") or {}) if isinstance(doc, dict) else {}
    data.update(overrides or {})
    return _validate(data, str(file_path))


def with_basic_auth(config: ClientConfig, username: str, password: str) -> ClientConfig:
    """Return a copy of `config` using basic authentication."""
    return config.model_copy(update={"auth": BasicAuth(username=username, password=password)})


def with_proxy(
    config: ClientConfig,
    url: str,
    username: str | None = None,
    password: str | None = None,
    port: int | None = None,
) -> ClientConfig:
    """Return a copy of `config` routed through a proxy."""
    proxy = ProxySettings(url=url, username=username, password=password, port=port)
    return config.model_copy(update={"proxy": proxy})


def _validate(data: dict, source: str) -> ClientConfig:
    try:
        return ClientConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid client configuration in {source}: {e}") from e
