"""Spotipy client setup, token persistence, and cleanup helpers."""

import logging
from typing import Any

import spotipy
from spotipy.cache_handler import CacheHandler
from spotipy.oauth2 import SpotifyOAuth

from .config import OAUTH_STATE, REDIRECT_URI, SCOPE, SPOTIFY_REQUESTS_TIMEOUT
from .settings import CredentialStore

logger = logging.getLogger(__name__)


def configure_spotipy_logging() -> None:
    """Reduce Spotipy logger noise so our own log lines stay readable."""
    for logger_name in ("spotipy", "spotipy.client", "spotipy.oauth2"):
        spotipy_logger = logging.getLogger(logger_name)
        spotipy_logger.setLevel(logging.CRITICAL)
        spotipy_logger.propagate = False


# Apply logging policy at import so all consumers get consistent behavior.
configure_spotipy_logging()


class StoreCacheHandler(CacheHandler):
    """Keeps spotipy's token cache in the YAML credential store.

    Spotipy saves through this handler after the code exchange and after every
    automatic refresh, so the config file always holds the latest token.
    """

    def __init__(self, store: CredentialStore) -> None:
        self.store = store

    def get_cached_token(self) -> dict[str, Any] | None:
        return self.store.token_info()

    def save_token_to_cache(self, token_info: dict[str, Any]) -> None:
        self.store.store_token(token_info)
        logger.info("Saved Spotify token (expires %s)", self.store.get("access_token_expiry"))


def create_auth_manager(store: CredentialStore) -> SpotifyOAuth:
    """Create the OAuth manager for the fixed loopback redirect and scopes."""
    return SpotifyOAuth(
        client_id=store.get_str("client_id"),
        client_secret=store.get_str("secret_key"),
        redirect_uri=REDIRECT_URI,
        scope=SCOPE,
        state=OAUTH_STATE,
        cache_handler=StoreCacheHandler(store),
        # The login flow opens the browser itself.
        open_browser=False,
        requests_timeout=SPOTIFY_REQUESTS_TIMEOUT,
    )


def create_spotify_client(auth_manager: SpotifyOAuth) -> spotipy.Spotify:
    """Create an authenticated Spotipy client without automatic retries."""
    # Failures surface to the poll loop, which simply waits for the next tick.
    return spotipy.Spotify(
        auth_manager=auth_manager,
        requests_timeout=SPOTIFY_REQUESTS_TIMEOUT,
        retries=0,
        status_retries=0,
    )


def close_sessions(sp: spotipy.Spotify) -> None:
    """Close HTTP sessions held by Spotipy objects."""
    for obj in (sp, sp.auth_manager):
        # Spotipy exposes sessions on private attributes; close defensively.
        session = getattr(obj, "_session", None)
        close_fn = getattr(session, "close", None)
        if callable(close_fn):
            close_fn()
