"""Core poll loop: keep the player busy with whatever the feed is playing."""

import logging
import time
from collections.abc import Callable
from typing import Any

import requests
import spotipy
from spotipy.exceptions import SpotifyException
from spotipy.oauth2 import SpotifyOauthError

from .config import POLL_INTERVAL_SECONDS
from .errors import FeedError, TchMusicError
from .feed import Song, fetch_current_song
from .playback import is_playing, play_track
from .resolver import GenreSeedCache, resolve_track

logger = logging.getLogger(__name__)

# Failures that abandon the current iteration instead of stopping the process.
RECOVERABLE_ERRORS = (SpotifyException, SpotifyOauthError, requests.RequestException, TchMusicError)


class Poller:
    def __init__(
        self,
        sp: spotipy.Spotify,
        *,
        fetch_song: Callable[[], Song | None] = fetch_current_song,
        interval: float = POLL_INTERVAL_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
        genre_seeds: GenreSeedCache | None = None,
    ) -> None:
        self.sp = sp
        self.fetch_song = fetch_song
        self.interval = interval
        self.sleep = sleep
        self.genre_seeds = genre_seeds or GenreSeedCache()

    def poll_once(self) -> dict[str, Any] | None:
        """Run one idle check; return the track started, if any."""
        try:
            return self._step()
        except RECOVERABLE_ERRORS:
            logger.error("Poll iteration failed", exc_info=True)
            return None

    def _step(self) -> dict[str, Any] | None:
        if is_playing(self.sp.current_playback()):
            logger.debug("Player busy; nothing to do")
            return None

        song = self.fetch_song()
        if song is None:
            raise FeedError("can not fetch song")
        logger.info("tch_song=%s artist=%s", song.name, song.artist)

        track = resolve_track(self.sp, song, self.genre_seeds)
        play_track(self.sp, track)
        return track

    def run(self, max_polls: int = 0) -> None:
        """Poll forever (or ``max_polls`` times), sleeping only between iterations."""
        polls = 0
        while True:
            self.poll_once()
            polls += 1
            # Stop early when caller requested a max poll count.
            if max_polls and polls >= max_polls:
                break
            self.sleep(self.interval)
