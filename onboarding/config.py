"""
Altegio Onboarding — Config Loader

Layered configuration:
  1. Base YAML file (onboarding.yaml, optional)
  2. Per-environment overlay (config/{ONBOARDING_ENV}.yaml) merged over base
  3. Environment variable overrides (ONBOARDING_ prefixed)

Usage:
    from onboarding.config import load_config, Settings

    cfg = load_config()
    settings = Settings.from_config(cfg)

Environment variables:
    ONBOARDING_ENV              — active profile (dev, staging, prod)
    ONBOARDING_CONFIG_DIR       — directory for overlay files (default: config/)
    ONBOARDING_<SECTION>__<KEY> — nested overrides, double underscore separates
                                  levels (e.g. ONBOARDING_STATE__LOCK_SESSIONS=true)
    ALTEGIO_PARTNER_TOKEN       — partner token (fallback when not in config)
    ALTEGIO_USER_TOKEN          — user token (fallback when not in config)
    ALTEGIO_API_BASE            — API base URL (fallback when not in config)
"""

from __future__ import annotations

import copy
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger("altegio_onboarding.config")

ENV_PREFIX = "ONBOARDING_"
DEFAULT_API_BASE = "https://api.alteg.io/api/v1"


# ═══════════════════════════════════════════════════════════════════
# Deep Merge
# ═══════════════════════════════════════════════════════════════════

def deep_merge(base: dict, overlay: dict) -> dict:
    """
    Deep-merge overlay into base. Overlay values win.
    Lists are replaced (not appended). Dicts are recursed.
    """
    result = copy.deepcopy(base)
    for key, value in overlay.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def _set_nested(d: dict, keys: list[str], value: Any):
    for key in keys[:-1]:
        d = d.setdefault(key, {})
    d[keys[-1]] = value


def _parse_scalar(value: str) -> Any:
    """YAML-parse an env string so 'true', '30', '[a, b]' get real types."""
    try:
        return yaml.safe_load(value)
    except yaml.YAMLError:
        return value


# ═══════════════════════════════════════════════════════════════════
# Overlay Files
# ═══════════════════════════════════════════════════════════════════

def _load_overlay_file(
    base_path: str,
    env: str = "",
    config_dir: str = "",
) -> dict[str, Any]:
    """
    Load config/{env}.yaml. Returns empty dict if no env is active or
    no overlay exists.
    """
    env = env or os.environ.get(f"{ENV_PREFIX}ENV", "")
    if not env:
        return {}

    config_dir = config_dir or os.environ.get(f"{ENV_PREFIX}CONFIG_DIR", "config")

    candidates = [
        Path(config_dir) / f"{env}.yaml",
        Path(config_dir) / f"{env}.yml",
        Path(os.path.dirname(base_path)) / "config" / f"{env}.yaml",
    ]

    for path in candidates:
        if path.exists():
            with open(path) as f:
                overlay = yaml.safe_load(f) or {}
            logger.info("Loaded config overlay: %s (%d keys)", path, len(overlay))
            return overlay

    logger.debug("No config overlay found for env=%s", env)
    return {}


# ═══════════════════════════════════════════════════════════════════
# Environment Variable Overrides
# ═══════════════════════════════════════════════════════════════════

def _load_env_overrides(prefix: str = ENV_PREFIX) -> dict[str, Any]:
    """
    Load prefixed environment variables as config overrides.

      ONBOARDING_STATE__DIR=/srv/state → {"state": {"dir": "/srv/state"}}
      ONBOARDING_LOG_LEVEL=DEBUG       → {"log_level": "DEBUG"}
    """
    excluded = {f"{prefix}ENV", f"{prefix}CONFIG_DIR"}
    overrides: dict[str, Any] = {}

    for key, value in os.environ.items():
        if not key.startswith(prefix) or key in excluded:
            continue
        path = key[len(prefix):].lower().split("__")
        _set_nested(overrides, path, _parse_scalar(value))

    if overrides:
        logger.debug("Loaded %d env var overrides", len(overrides))
    return overrides


# ═══════════════════════════════════════════════════════════════════
# Main Loader
# ═══════════════════════════════════════════════════════════════════

def load_config(
    base_path: str = "onboarding.yaml",
    env: str = "",
    config_dir: str = "",
    include_env_vars: bool = True,
) -> dict[str, Any]:
    """
    Load configuration. Priority (highest wins):
      1. Environment variable overrides (ONBOARDING_*)
      2. Per-environment overlay file (config/{env}.yaml)
      3. Base config file (onboarding.yaml)
    """
    config: dict[str, Any] = {}
    if os.path.exists(base_path):
        with open(base_path) as f:
            config = yaml.safe_load(f) or {}
        logger.debug("Loaded base config: %s", base_path)

    overlay = _load_overlay_file(base_path, env=env, config_dir=config_dir)
    if overlay:
        config = deep_merge(config, overlay)

    if include_env_vars:
        env_overrides = _load_env_overrides()
        if env_overrides:
            config = deep_merge(config, env_overrides)

    config["_active_env"] = env or os.environ.get(f"{ENV_PREFIX}ENV", "default")
    config["_config_source"] = base_path
    return config


def get_config_value(
    path: str,
    config: dict[str, Any] | None = None,
    default: Any = None,
) -> Any:
    """
    Get a nested config value by dotted path.

    Example:
        get_config_value("state.lock_sessions", cfg, False)
    """
    if config is None:
        config = load_config()

    current: Any = config
    for key in path.split("."):
        if isinstance(current, dict) and key in current:
            current = current[key]
        else:
            return default
    return current


# ═══════════════════════════════════════════════════════════════════
# Typed Settings
# ═══════════════════════════════════════════════════════════════════

def _home() -> Path:
    return Path(os.environ.get("HOME") or os.environ.get("USERPROFILE") or ".")


@dataclass
class Settings:
    """Resolved settings for the engine, client and server."""
    api_base: str = DEFAULT_API_BASE
    partner_token: str = ""
    user_token: str = ""
    timeout_seconds: float = 30.0
    state_dir: str = ""
    credentials_dir: str = ""
    lock_sessions: bool = False
    log_level: str = "INFO"

    @staticmethod
    def from_config(config: dict[str, Any]) -> Settings:
        def get(path, default=None):
            return get_config_value(path, config, default)

        base = _home() / ".altegio-mcp"
        return Settings(
            api_base=str(get("altegio.api_base") or os.environ.get("ALTEGIO_API_BASE") or DEFAULT_API_BASE),
            partner_token=str(get("altegio.partner_token") or os.environ.get("ALTEGIO_PARTNER_TOKEN", "")),
            user_token=str(get("altegio.user_token") or os.environ.get("ALTEGIO_USER_TOKEN", "")),
            timeout_seconds=float(get("altegio.timeout_seconds", 30.0)),
            state_dir=os.path.expanduser(str(get("state.dir") or base / "onboarding")),
            credentials_dir=os.path.expanduser(str(get("credentials.dir") or base)),
            lock_sessions=bool(get("state.lock_sessions", False)),
            log_level=str(get("log_level", "INFO")).upper(),
        )
