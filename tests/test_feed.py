import pytest
import requests

from tchmusic.config import FEED_TIMEOUT_SECONDS, FEED_USER_AGENT, MUSIC_INFO_ENDPOINT
from tchmusic.errors import FeedError
from tchmusic.feed import MusicInfo, fetch_current_song, fetch_music_info

SAMPLE = {
    "previous": {"name": "Old Song", "artist": "Someone"},
    "current": {
        "name": "Yesterday",
        "artist": "The Beatles",
        "album": "Help!",
        "image": "https://example.com/cover.jpg",
        "type": "music",
        "file_id": 42,
        "track": "yesterday.mp3",
        "starts": "2019-12-14T00:40:29+07:00",
        "ends": "2019-12-14T00:42:34Z",
    },
    "next": {"name": "Next Song", "artist": "Another"},
    "schedulerTime": "2019-12-14T00:40:00+07:00",
    "expire": 120,
}


class FakeResponse:
    def __init__(self, payload=None, status_error=None, json_error=None):
        self.payload = payload
        self.status_error = status_error
        self.json_error = json_error

    def raise_for_status(self):
        if self.status_error:
            raise self.status_error

    def json(self):
        if self.json_error:
            raise self.json_error
        return self.payload


def test_music_info_parses_full_schema():
    info = MusicInfo.from_payload(SAMPLE)

    assert info.current.name == "Yesterday"
    assert info.current.artist == "The Beatles"
    assert info.current.file_id == 42
    assert info.current.starts.utcoffset().total_seconds() == 7 * 3600
    assert info.current.ends.utcoffset().total_seconds() == 0
    assert info.previous.name == "Old Song"
    assert info.next.name == "Next Song"
    assert info.expire == 120
    assert info.scheduler_time is not None


def test_fetch_sends_user_agent_and_timeout(mocker):
    get = mocker.patch("tchmusic.feed.requests.get", return_value=FakeResponse(SAMPLE))

    song = fetch_current_song()

    assert song.name == "Yesterday"
    get.assert_called_once_with(
        MUSIC_INFO_ENDPOINT,
        headers={"User-Agent": FEED_USER_AGENT},
        timeout=FEED_TIMEOUT_SECONDS,
    )


def test_missing_current_song_returns_none(mocker):
    mocker.patch("tchmusic.feed.requests.get", return_value=FakeResponse({"current": {"name": ""}}))
    assert fetch_current_song() is None


def test_transport_error_is_wrapped(mocker):
    cause = requests.ConnectionError("boom")
    mocker.patch("tchmusic.feed.requests.get", side_effect=cause)

    with pytest.raises(FeedError) as excinfo:
        fetch_music_info()
    assert excinfo.value.__cause__ is cause


def test_http_error_is_wrapped(mocker):
    response = FakeResponse(SAMPLE, status_error=requests.HTTPError("503"))
    mocker.patch("tchmusic.feed.requests.get", return_value=response)

    with pytest.raises(FeedError):
        fetch_music_info()


def test_invalid_json_is_wrapped(mocker):
    response = FakeResponse(json_error=ValueError("Expecting value"))
    mocker.patch("tchmusic.feed.requests.get", return_value=response)

    with pytest.raises(FeedError):
        fetch_music_info()


def test_undecodable_body_is_reported_as_not_json(mocker):
    response = FakeResponse(json_error=requests.JSONDecodeError("Expecting value", "<html>", 0))
    mocker.patch("tchmusic.feed.requests.get", return_value=response)

    with pytest.raises(FeedError, match="not JSON"):
        fetch_music_info()
