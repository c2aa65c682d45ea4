"""Configuration loading."""

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "netloom" / "config.yaml"
CONFIG_ENV = "NETLOOM_CONFIG"

_ENV_OVERRIDES = {
    "simplify_policies": "NETLOOM_SIMPLIFY_POLICIES",
    "kube_client_timeout": "NETLOOM_KUBE_CLIENT_TIMEOUT",
    "context": "NETLOOM_CONTEXT",
    "log_level": "NETLOOM_LOG_LEVEL",
    "log_file": "NETLOOM_LOG_FILE",
}


@dataclass
class NetloomConfig:
    """Settings that supply CLI defaults."""

    simplify_policies: bool = True
    kube_client_timeout: float = 180.0
    context: str | None = None
    log_level: str = "WARNING"
    log_file: str | None = None


def _parse_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    lowered = str(value).strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"invalid value for {key}: {value!r}")


def _coerce(key: str, value: Any) -> Any:
    if key == "simplify_policies":
        return _parse_bool(key, value)
    if key == "kube_client_timeout":
        try:
            timeout = float(value)
        except (TypeError, ValueError) as e:
            raise ValueError(f"invalid value for {key}: {value!r}") from e
        if timeout <= 0:
            raise ValueError(f"invalid value for {key}: must be positive")
        return timeout
    return None if value is None else str(value)


def load_config(path: str | Path | None = None) -> NetloomConfig:
    """Load configuration from YAML, then apply environment overrides.

    The file is `path`, else `$NETLOOM_CONFIG`, else `~/.config/netloom/config.yaml`
    when it exists.
    """
    values: dict[str, Any] = {}
    config_path = Path(path) if path else Path(os.environ[CONFIG_ENV]) if os.environ.get(CONFIG_ENV) else None
    if config_path is None and DEFAULT_CONFIG_PATH.exists():
        config_path = DEFAULT_CONFIG_PATH

    known = {f.name for f in fields(NetloomConfig)}
    if config_path is not None:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"config file {config_path} must contain a mapping")
        for key, value in data.items():
            normalized = str(key).replace("-", "_")
            if normalized not in known:
                logger.warning(f"ignoring unknown config key {key!r} in {config_path}")
                continue
            values[normalized] = _coerce(normalized, value)

    for key, env in _ENV_OVERRIDES.items():
        if env in os.environ:
            values[key] = _coerce(key, os.environ[env])

    return NetloomConfig(**values)
