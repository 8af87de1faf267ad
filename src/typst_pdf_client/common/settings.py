"""Runtime configuration from environment variables and an optional YAML file."""
from __future__ import annotations
import os
from dataclasses import dataclass
from typing import Any

import yaml

AUTH_KEY = os.getenv("PDF_GENERATOR_AUTH_KEY", "")
ENDPOINT = os.getenv("PDF_GENERATOR_ENDPOINT", "")
TIMEOUT = float(os.getenv("PDF_GENERATOR_TIMEOUT", "120"))
INSECURE = os.getenv("PDF_GENERATOR_INSECURE", "false").lower() in ("true", "1", "yes")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

@dataclass
class Settings:
    auth_key: str = AUTH_KEY
    endpoint: str = ENDPOINT
    timeout: float | None = TIMEOUT
    insecure_skip_verify: bool = INSECURE

def load_cfg(path: str) -> dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}

def load_settings(cfg_path: str | None = None) -> Settings:
    """
    Build settings from a YAML file, falling back to environment defaults.

    Args:
        cfg_path: Optional YAML file with keys auth_key, endpoint, timeout
            and insecure_skip_verify. Keys it leaves out keep the env value.
    """
    settings = Settings()
    if not cfg_path:
        return settings
    cfg = load_cfg(cfg_path)
    if cfg.get("auth_key"):
        settings.auth_key = str(cfg["auth_key"])
    if cfg.get("endpoint"):
        settings.endpoint = str(cfg["endpoint"])
    if "timeout" in cfg:
        settings.timeout = None if cfg["timeout"] is None else float(cfg["timeout"])
    if "insecure_skip_verify" in cfg:
        settings.insecure_skip_verify = bool(cfg["insecure_skip_verify"])
    return settings
