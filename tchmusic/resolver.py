"""Map a feed song onto a Spotify track: exact search first, genre fallback second."""

import logging
from typing import Any

import requests
import spotipy
from spotipy.exceptions import SpotifyException
from spotipy.oauth2 import SpotifyOauthError

from .config import DEFAULT_GENRE_SEED, MAX_GENRE_SEEDS, SEARCH_LIMIT, SEARCH_MARKET
from .errors import NoSongError
from .feed import Song

logger = logging.getLogger(__name__)


def normalize_track(raw_track: dict[str, Any] | None) -> dict[str, Any] | None:
    if not isinstance(raw_track, dict):
        return None

    uri = raw_track.get("uri")
    if not uri:
        return None

    raw_artists = raw_track.get("artists", [])
    artists: list[str] = []
    if isinstance(raw_artists, list):
        artists = [artist.get("name", "").strip() for artist in raw_artists if isinstance(artist, dict)]
        artists = [artist for artist in artists if artist]

    return {
        "uri": uri,
        "name": str(raw_track.get("name", "Unknown Track")),
        "artists": artists,
    }


def build_search_query(song: Song) -> str:
    return f"track:{song.name} artist:{song.artist}"


def search_track(sp: spotipy.Spotify, song: Song) -> dict[str, Any] | None:
    """Return the first catalog hit for the song's name and artist, if any."""
    result = sp.search(q=build_search_query(song), type="track", limit=SEARCH_LIMIT, market=SEARCH_MARKET)
    tracks = (result or {}).get("tracks") or {}
    items = tracks.get("items") or []
    if not tracks.get("total") or not items:
        return None
    return normalize_track(items[0])


class GenreSeedCache:
    """Seed genres derived from the user's top artists, computed once per process."""

    def __init__(self, seeds: list[str] | None = None) -> None:
        self._seeds: list[str] | None = list(seeds) if seeds else None

    @property
    def seeds(self) -> list[str] | None:
        return self._seeds

    def get(self, sp: spotipy.Spotify) -> list[str]:
        if self._seeds is None:
            self._seeds = self._compute(sp)
        return self._seeds

    @staticmethod
    def _compute(sp: spotipy.Spotify) -> list[str]:
        try:
            top_artists = sp.current_user_top_artists()
        except (SpotifyException, SpotifyOauthError, requests.RequestException):
            logger.error("Could not load top artists; using default genre seed", exc_info=True)
            return [DEFAULT_GENRE_SEED]

        genres: list[str] = []
        for artist in (top_artists or {}).get("items") or []:
            for genre in artist.get("genres") or []:
                if genre and genre not in genres:
                    genres.append(genre)
            if len(genres) >= MAX_GENRE_SEEDS:
                break

        if not genres:
            logger.info("Top artists carry no genres; using default genre seed")
            return [DEFAULT_GENRE_SEED]
        return genres[:MAX_GENRE_SEEDS]


def recommend_track(sp: spotipy.Spotify, genre_seeds: GenreSeedCache) -> dict[str, Any]:
    seeds = genre_seeds.get(sp)
    result = sp.recommendations(seed_genres=seeds)
    for raw_track in (result or {}).get("tracks") or []:
        track = normalize_track(raw_track)
        if track:
            logger.info("Recommend a song in genre %s", ",".join(seeds))
            return track
    raise NoSongError("no song")


def resolve_track(sp: spotipy.Spotify, song: Song, genre_seeds: GenreSeedCache) -> dict[str, Any]:
    """Pick the track to play for a feed song."""
    track = search_track(sp, song)
    if track:
        return track

    logger.info("Song not found in catalog: %s - %s", song.name, song.artist)
    return recommend_track(sp, genre_seeds)
