"""YAML configuration loader with environment variable overrides.

Configuration is loaded in layers (later layers override earlier):

  1. config/config.yaml  -- static tunables checked into the repo
                            (chunk sizes, retrieval top-k, history window)
  2. .env / environment  -- via :class:`Settings`, for backend selection
                            and deadlines

Tunables that have no counterpart in ``Settings`` come only from YAML;
a missing YAML file yields the built-in defaults below.
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any

import yaml

from docchat.config.settings import Settings

DEFAULT_CONFIG: dict[str, Any] = {
    "chunking": {
        "chunk_size": 1000,
        "chunk_overlap": 200,
    },
    "retrieval": {
        "top_k": 8,
        "extra_stopwords": [],
    },
    "chat": {
        "history_window": 10,
        "stream_fragment_size": 60,
    },
}


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict[str, Any]:
    """Load YAML config and merge with environment-based Settings.

    Args:
        path: Path to the YAML configuration file.
        settings: Pre-built settings; a fresh ``Settings()`` is read if omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    config_path = Path(path)
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f) or {}
        _deep_merge(config, yaml_config)

    settings = settings or Settings()
    env_overrides = {
        "app": {
            "host": settings.app_host,
            "port": settings.app_port,
            "env": settings.app_env,
        },
        "backends": {
            "embedding": settings.embedding_provider,
            "llm": settings.llm_provider,
            "chunk_store": settings.chunk_store_backend,
            "configured": settings.get_configured_backends(),
        },
        "timeouts": {
            "extraction": settings.extraction_timeout,
            "embedding": settings.embedding_timeout,
            "search": settings.search_timeout,
            "generation": settings.generation_timeout,
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(config, env_overrides)
    return config


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
