"""Environment-variable helpers: .env loading and prefixed config overrides."""

import os
from pathlib import Path

from .config import ENV_FILE_PATH, ENV_PREFIX


def load_env_file(path: Path = ENV_FILE_PATH) -> None:
    """Load simple KEY=VALUE pairs from a .env file into process env."""
    if not path.exists():
        return

    with path.open("r", encoding="utf-8") as env_file:
        for raw_line in env_file:
            line = raw_line.strip()
            # Skip comments, blank lines, and malformed rows.
            if not line or line.startswith("#") or "=" not in line:
                continue

            # Split once so values containing '=' are preserved.
            key, value = line.split("=", 1)
            # Real environment variables take precedence over the file.
            os.environ.setdefault(key.strip(), value.strip().strip("'\""))


def env_name(key: str, prefix: str = ENV_PREFIX) -> str:
    return f"{prefix}_{key}".upper()


def env_overrides(keys: list[str], prefix: str = ENV_PREFIX) -> dict[str, str]:
    """Return non-empty ``<PREFIX>_<KEY>`` values for the given config keys."""
    overrides: dict[str, str] = {}
    for key in keys:
        value = os.getenv(env_name(key, prefix))
        if value:
            overrides[key] = value
    return overrides
