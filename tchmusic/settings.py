"""YAML-backed credential store: client credentials, OAuth tokens, log level."""

import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import yaml

from .config import DEFAULT_LOG_LEVEL, SCOPE, default_config_path
from .env import env_overrides
from .errors import ConfigError

logger = logging.getLogger(__name__)

REQUIRED_KEYS = ["client_id", "secret_key"]
TOKEN_KEYS = ["access_token", "refresh_token", "access_token_expiry", "scope"]
KNOWN_KEYS = REQUIRED_KEYS + ["log_level", "login_timeout"] + TOKEN_KEYS

DEFAULTS: dict[str, Any] = {
    "log_level": DEFAULT_LOG_LEVEL,
}


def parse_expiry(value: Any) -> datetime | None:
    """Parse a stored expiry (ISO-8601 string or YAML timestamp) as aware UTC."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class CredentialStore:
    """Flat key-value settings persisted to a YAML file in the home directory.

    Values come from three layers merged at load time: the file itself,
    ``TCH_*`` environment variables, and command-line flags. Later layers win.
    """

    def __init__(self, path: Path | None = None, data: dict[str, Any] | None = None) -> None:
        self.path = Path(path) if path is not None else default_config_path()
        self.data: dict[str, Any] = dict(data or {})

    @classmethod
    def load(cls, path: Path | None = None, flags: dict[str, Any] | None = None) -> "CredentialStore":
        """Read the config file (creating it when absent) and apply overrides."""
        store = cls(path)
        store.data = store.read_file()

        # Precedence: defaults < file < environment < explicitly passed flags.
        merged: dict[str, Any] = dict(DEFAULTS)
        merged.update({key: value for key, value in store.data.items() if value is not None})
        merged.update(env_overrides(KNOWN_KEYS))
        merged.update({key: value for key, value in (flags or {}).items() if value is not None})
        store.data = merged
        return store

    def read_file(self) -> dict[str, Any]:
        if not self.path.exists():
            logger.info("Creating empty config file at %s", self.path)
            self.path.touch()
            return {}

        try:
            with self.path.open("r", encoding="utf-8") as file:
                payload = yaml.safe_load(file)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Config file {self.path} is not valid YAML: {exc}") from exc

        if payload is None:
            return {}
        if not isinstance(payload, dict):
            raise ConfigError(f"Config file {self.path} must contain a mapping, got {type(payload).__name__}")
        return {str(key): value for key, value in payload.items()}

    def save(self) -> None:
        payload = {key: value for key, value in self.data.items() if value is not None}
        with self.path.open("w", encoding="utf-8") as file:
            yaml.safe_dump(payload, file, default_flow_style=False, sort_keys=True)
        logger.debug("Saved config to %s", self.path)

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def get_str(self, key: str) -> str:
        value = self.data.get(key)
        return "" if value is None else str(value).strip()

    def validate(self) -> None:
        """Raise ConfigError when a required credential is empty."""
        missing = [key for key in REQUIRED_KEYS if not self.get_str(key)]
        if missing:
            raise ConfigError(f"required fields missing: {', '.join(missing)}", missing_fields=missing)

    # -----------------
    # Token record
    # -----------------

    @property
    def access_token_expiry(self) -> datetime | None:
        return parse_expiry(self.data.get("access_token_expiry"))

    def has_valid_token(self, now: datetime | None = None) -> bool:
        """True when an access token is cached and has not expired yet."""
        if not self.get_str("access_token"):
            return False

        expiry = self.access_token_expiry
        if expiry is None:
            return False
        return expiry > (now or datetime.now(timezone.utc))

    def token_info(self) -> dict[str, Any] | None:
        """Return the stored token in the shape spotipy's auth managers expect."""
        access_token = self.get_str("access_token")
        if not access_token:
            return None

        expiry = self.access_token_expiry
        expires_at = int(expiry.timestamp()) if expiry else 0
        return {
            "access_token": access_token,
            "token_type": "Bearer",
            "refresh_token": self.get_str("refresh_token") or None,
            "expires_at": expires_at,
            "expires_in": max(0, expires_at - int(time.time())),
            "scope": self.get_str("scope") or SCOPE,
        }

    def store_token(self, token_info: dict[str, Any]) -> None:
        """Copy an OAuth token into the store and rewrite the config file."""
        expires_at = token_info.get("expires_at")
        if not isinstance(expires_at, (int, float)):
            expires_at = time.time() + float(token_info.get("expires_in") or 0)

        self.data["access_token"] = token_info.get("access_token", "")
        self.data["access_token_expiry"] = datetime.fromtimestamp(expires_at, tz=timezone.utc).isoformat()
        # Spotify may omit refresh_token on refresh; keep the existing one.
        if token_info.get("refresh_token"):
            self.data["refresh_token"] = token_info["refresh_token"]
        if token_info.get("scope"):
            self.data["scope"] = token_info["scope"]
        self.save()
