"""Settings input for pip-alert.

APNS_SECRET, broker URLs and the incident knobs can be kept in dotenv files
next to manage.py for local runs. Files are read in this order and a key
already set by an earlier source, or by the process environment, is kept:

1. the file named by $ENV_FILE
2. .env
3. .env.dev, when DJANGO_ENV is dev, development or local

Deployed workers and web processes get real environment variables instead.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv


def _should_load_dev_env() -> bool:
    return os.environ.get("DJANGO_ENV", "").lower() in {"dev", "development", "local"}


def env_bool(name: str, default: bool = False) -> bool:
    """Read a boolean flag from the environment ("1", "true", "yes", "on")."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def env_list(name: str, default: str = "") -> list[str]:
    """Read a comma separated list from the environment."""
    raw = os.environ.get(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


def load_env(base_dir: Path | None = None) -> None:
    """Load the dotenv files of the project root into os.environ.

    Idempotent: config.settings and config.celery both call it.
    """
    if base_dir is None:
        base_dir = Path(__file__).resolve().parent.parent

    explicit = os.environ.get("ENV_FILE")
    if explicit:
        load_dotenv(explicit, override=False)

    load_dotenv(base_dir / ".env", override=False)

    if _should_load_dev_env():
        load_dotenv(base_dir / ".env.dev", override=False)
