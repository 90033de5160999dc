"""Configuration — frozen dataclass built from defaults, YAML, env vars and CLI args."""

import logging
import os
from dataclasses import dataclass, fields

import yaml

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SenderConfig:
    server_host: str = "localhost"
    server_port: int = 10051
    timeout: float = 30.0
    protocol_header: str = "ZBXD"
    protocol_version: int = 1


# env var -> (field, type)
_ENV_VARS = {
    "ZABBIX_SERVER": ("server_host", str),
    "ZABBIX_SERVER_PORT": ("server_port", int),
    "SENDER_TIMEOUT": ("timeout", float),
    "PROTOCOL_HEADER": ("protocol_header", str),
    "PROTOCOL_VERSION": ("protocol_version", int),
}

# CLI attribute -> field
_CLI_ARGS = {
    "server": "server_host",
    "port": "server_port",
    "timeout": "timeout",
    "protocol_header": "protocol_header",
    "protocol_version": "protocol_version",
}


def load_yaml_config(path: str | None) -> dict:
    """Load sender settings from a YAML file. Returns empty dict if no path.

    Settings may sit under a top-level ``sender:`` section or at the top
    level of the document.
    """
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}
    if not isinstance(data, dict):
        logger.warning("Config file %s is not a mapping, using defaults", path)
        return {}
    logger.info("Loaded YAML config from %s", path)
    section = data.get("sender", data)
    return section if isinstance(section, dict) else {}


def load_config(cli_args=None, yaml_data: dict | None = None) -> SenderConfig:
    """Build SenderConfig from defaults <- YAML <- env vars <- CLI args (highest priority)."""
    known = {f.name for f in fields(SenderConfig)}
    kwargs: dict = {}

    for key, value in (yaml_data or {}).items():
        if key not in known:
            logger.warning("Ignoring unknown config key %r", key)
            continue
        kwargs[key] = value

    for env_name, (key, cast) in _ENV_VARS.items():
        raw = os.environ.get(env_name)
        if raw is not None:
            kwargs[key] = cast(raw)

    if cli_args is not None:
        for attr, key in _CLI_ARGS.items():
            value = getattr(cli_args, attr, None)
            if value is not None:
                kwargs[key] = value

    return SenderConfig(**kwargs)
