"""Shared configuration constants used across the application."""

from pathlib import Path

# Spotify OAuth scopes needed for controlling playback and reading top artists.
SCOPE = "user-modify-playback-state user-read-playback-state user-read-currently-playing user-top-read"

# Fixed OAuth state sent with the authorize URL and checked on callback.
OAUTH_STATE = "2019-12-14T00:40:29+07:00"

# Loopback listener receiving the OAuth redirect.
LOGIN_SERVER_HOST = "127.0.0.1"
LOGIN_SERVER_PORT = 8090
LOGIN_CALLBACK_PATH = "/callback"
REDIRECT_URI = f"http://{LOGIN_SERVER_HOST}:{LOGIN_SERVER_PORT}{LOGIN_CALLBACK_PATH}"

# Credential store file (YAML) and environment variable prefix.
CONFIG_FILE_NAME = ".tchmusic.yaml"
ENV_PREFIX = "TCH"
ENV_FILE_PATH = Path(".env")


def default_config_path() -> Path:
    return Path.home() / CONFIG_FILE_NAME


# "Now playing" feed.
MUSIC_INFO_ENDPOINT = "https://api.thecoffeehouse.com/api/get_music_info"
FEED_USER_AGENT = "github.com:nguyenvanduocit/tchmusic+v1"
FEED_TIMEOUT_SECONDS = 5

# Runtime tuning constants.
POLL_INTERVAL_SECONDS = 5
SEARCH_MARKET = "VN"
SEARCH_LIMIT = 1
MAX_GENRE_SEEDS = 4  # Spotify accepts at most 5 seeds in total.
DEFAULT_GENRE_SEED = "pop"
DEFAULT_LOG_LEVEL = "error"
SPOTIFY_REQUESTS_TIMEOUT = 10
