"""Config loader — reads YAML, applies KEEPER_* env var overrides."""

from __future__ import annotations

import os
from pathlib import Path

import yaml

from range_keeper.config.schema import AppConfig

# env var -> (section, key)
_ENV_OVERRIDES = {
    "KEEPER_DATABASE_URL": ("database", "url"),
    "KEEPER_LOG_LEVEL": ("logging", "level"),
    "KEEPER_LOG_FORMAT": ("logging", "format"),
    "KEEPER_RPC_URL": ("executor", "rpc_url"),
    "KEEPER_PRIVATE_KEY": ("executor", "private_key"),
    "KEEPER_SUBGRAPH_URL": ("market_data", "subgraph_url"),
}


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load config from a YAML file, then apply env var overrides.

    If *path* is None or the file doesn't exist, returns defaults.

    Environment variable overrides:
        KEEPER_DATABASE_URL   -> database.url
        KEEPER_LOG_LEVEL      -> logging.level
        KEEPER_LOG_FORMAT     -> logging.format
        KEEPER_RPC_URL        -> executor.rpc_url
        KEEPER_PRIVATE_KEY    -> executor.private_key
        KEEPER_SUBGRAPH_URL   -> market_data.subgraph_url
    """
    data: dict = {}
    if path is not None:
        p = Path(path)
        if p.exists():
            with open(p) as f:
                data = yaml.safe_load(f) or {}

    for env_var, (section, key) in _ENV_OVERRIDES.items():
        value = os.environ.get(env_var)
        if value:
            data.setdefault(section, {})[key] = value

    return AppConfig.model_validate(data)
