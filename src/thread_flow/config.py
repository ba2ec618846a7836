"""Configuration loader: reads optional YAML config and merges with defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import yaml

CONFIG_PATH = Path("~/.config/thread-flow/config.yaml")

ENV_VAR = "THREAD_FLOW_ENV"

DEFAULTS = {
    "agent": "claudeCode",
    "access_tier": "core",
    "timezone": "UTC",
    "development": False,
}


@dataclass
class ThreadFlowConfig:
    agent: str
    access_tier: str
    timezone: str
    development: bool


def load_config(config_path: Path | None = None) -> ThreadFlowConfig:
    """Load config from ~/.config/thread-flow/config.yaml, merged with defaults.

    If no config file exists, return defaults (don't error).
    """
    if config_path is None:
        config_path = CONFIG_PATH

    config_path = config_path.expanduser()

    merged = dict(DEFAULTS)

    if config_path.is_file():
        with open(config_path) as f:
            user_config = yaml.safe_load(f)
        if isinstance(user_config, dict):
            for key in DEFAULTS:
                if key in user_config:
                    merged[key] = user_config[key]

    return ThreadFlowConfig(
        agent=str(merged["agent"]),
        access_tier=str(merged["access_tier"]),
        timezone=str(merged["timezone"]),
        development=bool(merged["development"]),
    )


def is_development(config: ThreadFlowConfig | None = None) -> bool:
    """Development-only schedules are enabled by THREAD_FLOW_ENV=development or the config."""
    if os.environ.get(ENV_VAR) == "development":
        return True
    return config is not None and config.development
