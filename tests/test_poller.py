from spotipy.exceptions import SpotifyException

from conftest import FakeSpotify, make_track
from tchmusic.errors import FeedError
from tchmusic.poller import Poller


def test_playing_player_skips_feed_and_play(mocker):
    sp = FakeSpotify(playback={"is_playing": True})
    fetch_song = mocker.Mock()

    assert Poller(sp, fetch_song=fetch_song).poll_once() is None

    fetch_song.assert_not_called()
    assert not sp.called("start_playback")


def test_idle_player_plays_matching_track(song):
    sp = FakeSpotify(playback={"is_playing": False}, search_items=[make_track("exact", "Yesterday")])

    track = Poller(sp, fetch_song=lambda: song).poll_once()

    assert track["uri"] == "spotify:track:exact"
    assert sp.called("start_playback") == [("start_playback", None, ["spotify:track:exact"])]


def test_player_state_error_is_logged_and_skipped(mocker, caplog):
    sp = FakeSpotify()
    sp.current_playback = mocker.Mock(side_effect=SpotifyException(502, -1, "bad gateway"))
    fetch_song = mocker.Mock()

    assert Poller(sp, fetch_song=fetch_song).poll_once() is None

    fetch_song.assert_not_called()
    assert "Poll iteration failed" in caplog.text


def test_missing_song_does_not_play():
    sp = FakeSpotify(playback=None)

    assert Poller(sp, fetch_song=lambda: None).poll_once() is None
    assert not sp.called("start_playback")


def test_feed_error_does_not_stop_loop(mocker):
    sp = FakeSpotify(playback=None)
    fetch_song = mocker.Mock(side_effect=FeedError("timeout"))
    sleep = mocker.Mock()

    Poller(sp, fetch_song=fetch_song, sleep=sleep).run(max_polls=3)

    assert fetch_song.call_count == 3


def test_run_sleeps_only_between_iterations(mocker):
    sp = FakeSpotify(playback={"is_playing": True})
    sleep = mocker.Mock()

    Poller(sp, sleep=sleep, interval=5).run(max_polls=3)

    assert len(sp.called("current_playback")) == 3
    assert sleep.call_args_list == [mocker.call(5), mocker.call(5)]


def test_genre_seed_cache_is_shared_across_iterations(song):
    sp = FakeSpotify(playback=None, top_artists=[{"genres": ["jazz"]}], recommended=[make_track("rec")])
    poller = Poller(sp, fetch_song=lambda: song, sleep=lambda _: None)

    poller.run(max_polls=2)

    assert len(sp.called("current_user_top_artists")) == 1
    assert poller.genre_seeds.seeds == ["jazz"]
