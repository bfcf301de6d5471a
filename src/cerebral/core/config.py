"""3-layer configuration system for Cerebral Voice.

Loads and merges configuration from:
1. Default settings (built-in)
2. Config file (--config, $CEREBRAL_CONFIG, or ./cerebral.yaml)
3. CLI parameters (override)

Secrets never live in the file; every provider names the environment
variable holding its key (``api_key_env``).
"""

from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Optional

import yaml

CONFIG_ENV_VAR = "CEREBRAL_CONFIG"
DEFAULT_CONFIG_FILE = "cerebral.yaml"

DEFAULT_CONFIG: dict = {
    "ai": {
        "provider": "gemini",
        "temperature": 0.7,
        "timeout_seconds": 180,
        "gemini": {
            "model": "gemini-3-pro-preview",
            "fast_model": "gemini-2.5-flash",
            "endpoint": "https://generativelanguage.googleapis.com",
            "api_key_env": "GEMINI_API_KEY",
        },
        "anthropic": {
            "model": "claude-sonnet-4-5-20250929",
            "fast_model": "claude-haiku-4-5-20251001",
            "api_key_env": "ANTHROPIC_API_KEY",
        },
        "openai": {
            "model": "gpt-4o",
            "fast_model": "gpt-4o-mini",
            "api_key_env": "OPENAI_API_KEY",
        },
    },
    "search": {
        "provider": "brave",
        "mock": False,
        "count": 5,
        "timeout_seconds": 15,
        "brave": {
            "endpoint": "https://api.search.brave.com/res/v1/web/search",
            "api_key_env": "BRAVE_SEARCH_API_KEY",
            "safesearch": "moderate",
            "search_lang": "en",
            "country": "US",
        },
    },
    "speech": {
        "enabled": True,
        "provider": "minimax",
        "max_chars": 1000,
        "timeout_seconds": 60,
        "minimax": {
            "endpoint": "https://api.minimax.io/v1/t2a_v2",
            "model": "speech-02-turbo",
            "api_key_env": "MINIMAX_API_KEY",
            "group_id_env": "MINIMAX_GROUP_ID",
        },
        "voices": {
            "architect": {"voice_id": "male-qn-qingse", "emotion": "neutral", "speed": 0.95},
            "backend": {"voice_id": "male-qn-qingse", "emotion": "neutral", "speed": 1.1},
            "frontend": {"voice_id": "female-shaonv", "emotion": "happy", "speed": 1.05},
            "qa": {"voice_id": "male-qn-jingying", "emotion": "neutral", "speed": 0.98},
        },
    },
    "storage": {
        "path": "~/.cerebral/commands.db",
    },
    "budget": {
        "fast": {
            "context_window": 8192,
            "max_output_tokens": 1500,
            "min_output_tokens": 1500,
            "prompt_deduction_cap": 10000,
            "warning_threshold": 5734,
        },
        "high_quality": {
            "context_window": 1000000,
            "max_output_tokens": 8192,
            "min_output_tokens": 2000,
            "prompt_deduction_cap": 10000,
            "warning_threshold": 100000,
        },
    },
    "context": {
        "history_limit": 5,
        "history_entries": 3,
        "history_summary_chars": 150,
        "context_summary_chars": 250,
        "research_summary_chars": 600,
        "demo_research_summary_chars": 300,
        "prompts_dir": None,
    },
    "server": {
        "host": "0.0.0.0",
        "port": 5000,
    },
    "logging": {
        "level": "INFO",
    },
}


def deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dicts. Arrays are replaced, not merged."""
    result = {}
    for key in base:
        result[key] = base[key]
    for key, value in override.items():
        base_value = result.get(key)
        if isinstance(base_value, dict) and isinstance(value, dict):
            result[key] = deep_merge(base_value, value)
        else:
            result[key] = value
    return result


def resolve_config_path(config_path: Optional[Path] = None) -> Optional[Path]:
    """Pick the config file: explicit path, then $CEREBRAL_CONFIG, then ./cerebral.yaml."""
    if config_path:
        return Path(config_path)
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    local = Path.cwd() / DEFAULT_CONFIG_FILE
    if local.exists():
        return local
    return None


def load_config_file(config_path: Optional[Path]) -> dict:
    """Load a YAML config file. Missing or unreadable files yield {}."""
    if not config_path or not config_path.exists():
        return {}
    try:
        content = config_path.read_text(encoding="utf-8-sig")  # utf-8-sig strips BOM
        return yaml.safe_load(content) or {}
    except Exception:
        return {}


def get_effective_config(
    config_path: Optional[Path] = None,
    cli_overrides: Optional[dict] = None,
) -> dict:
    """Get the fully resolved configuration."""
    config = copy.deepcopy(DEFAULT_CONFIG)

    resolved = resolve_config_path(config_path)
    file_config = load_config_file(resolved)
    if file_config:
        config = deep_merge(config, file_config)

    if cli_overrides:
        config = deep_merge(config, cli_overrides)

    config["_config_path"] = str(resolved) if resolved else None
    return config
