"""Client for the third-party "now playing" feed."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import requests

from .config import FEED_TIMEOUT_SECONDS, FEED_USER_AGENT, MUSIC_INFO_ENDPOINT
from .errors import FeedError

logger = logging.getLogger(__name__)


def parse_timestamp(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


@dataclass(frozen=True)
class Song:
    name: str
    artist: str = ""
    album: str = ""
    image: str = ""
    type: str = ""
    track: str = ""
    file_id: int = 0
    starts: datetime | None = None
    ends: datetime | None = None

    @staticmethod
    def from_payload(payload: Any) -> "Song | None":
        if not isinstance(payload, dict):
            return None

        file_id = payload.get("file_id", 0)
        return Song(
            name=str(payload.get("name") or ""),
            artist=str(payload.get("artist") or ""),
            album=str(payload.get("album") or ""),
            image=str(payload.get("image") or ""),
            type=str(payload.get("type") or ""),
            track=str(payload.get("track") or ""),
            file_id=file_id if isinstance(file_id, int) else 0,
            starts=parse_timestamp(payload.get("starts")),
            ends=parse_timestamp(payload.get("ends")),
        )


@dataclass(frozen=True)
class MusicInfo:
    previous: Song | None
    current: Song | None
    next: Song | None
    scheduler_time: datetime | None = None
    expire: int = 0

    @staticmethod
    def from_payload(payload: dict[str, Any]) -> "MusicInfo":
        expire = payload.get("expire", 0)
        return MusicInfo(
            previous=Song.from_payload(payload.get("previous")),
            current=Song.from_payload(payload.get("current")),
            next=Song.from_payload(payload.get("next")),
            scheduler_time=parse_timestamp(payload.get("schedulerTime")),
            expire=expire if isinstance(expire, int) else 0,
        )


def fetch_music_info(
    session: requests.Session | None = None,
    url: str = MUSIC_INFO_ENDPOINT,
) -> MusicInfo:
    """GET the feed and decode it, raising FeedError on any failure."""
    http = session or requests
    # requests.JSONDecodeError is also a RequestException; match it first.
    try:
        response = http.get(url, headers={"User-Agent": FEED_USER_AGENT}, timeout=FEED_TIMEOUT_SECONDS)
        response.raise_for_status()
        payload = response.json()
    except ValueError as exc:
        raise FeedError(f"music info response was not JSON: {exc}") from exc
    except requests.RequestException as exc:
        raise FeedError(f"music info request failed: {exc}") from exc

    if not isinstance(payload, dict):
        raise FeedError(f"music info response was not an object: {payload!r}")
    return MusicInfo.from_payload(payload)


def fetch_current_song(session: requests.Session | None = None) -> Song | None:
    """Return the feed's current song, or None when nothing is on air."""
    current = fetch_music_info(session).current
    if current is None or not current.name:
        return None
    return current
