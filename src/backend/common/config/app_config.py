"""Application configuration.

All settings come from the process environment (optionally seeded from a
local `.env`). Import the module-level `config` rather than reading
`os.environ` ad hoc.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import dotenv_values, load_dotenv

load_dotenv(override=False)

# Convenience: allow local runs with only `.env.example` filled.
# Blank placeholders in `.env.example` never override real values.
if not os.environ.get("ACTION_CENTER_API_BASE_URL"):
    example_path = os.path.abspath(".env.example")
    if os.path.exists(example_path):
        for k, v in (dotenv_values(example_path) or {}).items():
            if not k or v is None or v == "":
                continue
            if not os.environ.get(k):
                os.environ[k] = v

logger = logging.getLogger(__name__)

# src/backend/common/config/app_config.py -> repo root
REPO_ROOT = Path(__file__).resolve().parents[4]
DEFAULT_POLICY_PATH = REPO_ROOT / "data" / "action_center" / "action_policy.yaml"


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring non-integer {name}={raw!r}; using {default}")
        return default


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring non-numeric {name}={raw!r}; using {default}")
        return default


class AppConfig:
    """Snapshot of environment-driven settings."""

    def __init__(self) -> None:
        self.ACTION_CENTER_API_BASE_URL = os.environ.get(
            "ACTION_CENTER_API_BASE_URL", "http://127.0.0.1:3001/api"
        ).rstrip("/")
        self.ACTION_CENTER_API_TOKEN = os.environ.get("ACTION_CENTER_API_TOKEN") or None
        self.ACTION_CENTER_HTTP_TIMEOUT_SECONDS = _float_env(
            "ACTION_CENTER_HTTP_TIMEOUT_SECONDS", 30.0
        )
        # 0 = unbounded
        self.ACTION_CENTER_FETCH_CONCURRENCY = max(
            _int_env("ACTION_CENTER_FETCH_CONCURRENCY", 8), 0
        )
        self.ACTION_CENTER_POLICY_PATH = Path(
            os.environ.get("ACTION_CENTER_POLICY_PATH") or DEFAULT_POLICY_PATH
        )
        # 0 = show all
        self.ACTION_CENTER_ITEMS_LIMIT = max(_int_env("ACTION_CENTER_ITEMS_LIMIT", 0), 0)

        self.BASIC_LOGGING_LEVEL = os.environ.get("BASIC_LOGGING_LEVEL", "INFO")
        self.PACKAGE_LOGGING_LEVEL = os.environ.get("PACKAGE_LOGGING_LEVEL", "WARNING")
        self.LOGGING_PACKAGES = os.environ.get("LOGGING_PACKAGES", "httpx,httpcore")
        self.FRONTEND_SITE_NAME = os.environ.get("FRONTEND_SITE_NAME", "*")

    def policy_path(self) -> Path:
        path = self.ACTION_CENTER_POLICY_PATH
        if not path.is_absolute():
            path = (REPO_ROOT / path).resolve()
        return path


config = AppConfig()
