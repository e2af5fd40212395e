import pytest

from tchmusic.feed import Song


class FakeSpotify:
    """Records calls made against the subset of spotipy.Spotify we use."""

    def __init__(
        self,
        *,
        playback=None,
        search_items=None,
        top_artists=None,
        recommended=None,
        devices=None,
    ):
        self.playback = playback
        self.search_items = search_items or []
        self.top_artists = top_artists if top_artists is not None else []
        self.recommended = recommended if recommended is not None else []
        self.device_list = devices or []
        self.calls = []
        self.auth_manager = None

    def current_playback(self):
        self.calls.append(("current_playback",))
        return self.playback

    def search(self, q, limit=10, offset=0, type="track", market=None):
        self.calls.append(("search", q, type, limit, market))
        return {"tracks": {"items": self.search_items, "total": len(self.search_items)}}

    def current_user_top_artists(self, limit=20, offset=0, time_range="medium_term"):
        self.calls.append(("current_user_top_artists",))
        return {"items": self.top_artists}

    def recommendations(self, seed_artists=None, seed_genres=None, seed_tracks=None, limit=20, country=None, **kwargs):
        self.calls.append(("recommendations", seed_genres))
        return {"tracks": self.recommended}

    def devices(self):
        self.calls.append(("devices",))
        return {"devices": self.device_list}

    def start_playback(self, device_id=None, context_uri=None, uris=None, offset=None, position_ms=None):
        self.calls.append(("start_playback", device_id, uris))

    def called(self, name):
        return [call for call in self.calls if call[0] == name]


def make_track(track_id, name="Song", artist="Artist"):
    return {"uri": f"spotify:track:{track_id}", "name": name, "artists": [{"name": artist}]}


@pytest.fixture
def song():
    return Song(name="Yesterday", artist="The Beatles")


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Point HOME at a temp dir and drop any TCH_* variables from the host."""
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.chdir(tmp_path)
    for name in ("TCH_CLIENT_ID", "TCH_SECRET_KEY", "TCH_LOG_LEVEL", "TCH_ACCESS_TOKEN",
                 "TCH_REFRESH_TOKEN", "TCH_ACCESS_TOKEN_EXPIRY", "TCH_SCOPE", "TCH_LOGIN_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)
    yield tmp_path
