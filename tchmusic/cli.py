"""CLI entrypoint and high-level application orchestration."""

import argparse
import logging
import sys

from spotipy.oauth2 import SpotifyOauthError

from .env import load_env_file
from .errors import ConfigError, LoginError
from .login import login
from .poller import Poller
from .settings import CredentialStore
from .spotify_client import close_sessions, create_auth_manager, create_spotify_client

logger = logging.getLogger("tchmusic")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse credential overrides and runtime options."""
    parser = argparse.ArgumentParser(description="Play The Coffee House's current song on Spotify")
    parser.add_argument("--client_id", "--client-id", dest="client_id", help="Spotify client ID")
    parser.add_argument("--secret_key", "--secret-key", dest="secret_key", help="Spotify secret key")
    parser.add_argument("--log_level", "--log-level", dest="log_level", help="log level (default: error)")
    parser.add_argument(
        "--max-polls",
        type=int,
        default=0,
        help="Optional maximum poll iterations. 0 means unlimited.",
    )
    return parser.parse_args(argv)


def configure_logging(level_name: str) -> None:
    level = logging.getLevelName(str(level_name).upper())
    if not isinstance(level, int):
        level = logging.ERROR
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger().setLevel(level)


def parse_login_timeout(value) -> float | None:
    try:
        seconds = float(value or 0)
    except (TypeError, ValueError):
        raise ConfigError(f"login_timeout must be a number of seconds, got {value!r}") from None
    return seconds if seconds > 0 else None


def load_store(args: argparse.Namespace) -> CredentialStore:
    """Load, merge, validate, and immediately persist the credential store."""
    load_env_file()
    flags = {"client_id": args.client_id, "secret_key": args.secret_key, "log_level": args.log_level}
    store = CredentialStore.load(flags=flags)
    configure_logging(store.get_str("log_level"))
    store.validate()
    store.save()
    return store


def main(argv: list[str] | None = None) -> None:
    """Run the full app lifecycle: config, login, and the poll loop."""
    args = parse_args(argv)
    # Logging is reconfigured once the merged log level is known.
    configure_logging("error")

    try:
        store = load_store(args)
        auth_manager = create_auth_manager(store)
        if store.has_valid_token():
            logger.info("Reusing cached Spotify token")
        else:
            login(auth_manager, timeout=parse_login_timeout(store.get("login_timeout")))
    except ConfigError as exc:
        logger.critical("%s (missing_fields=%s)", exc, exc.missing_fields, exc_info=True)
        sys.exit(1)
    except (LoginError, SpotifyOauthError, OSError):
        logger.critical("Startup failed", exc_info=True)
        sys.exit(1)

    sp = create_spotify_client(auth_manager)
    try:
        Poller(sp).run(max_polls=max(0, args.max_polls))
    finally:
        # Ensure HTTP sessions are closed on normal exit or error.
        close_sessions(sp)
