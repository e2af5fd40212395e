"""Playback/device helpers for starting the resolved track."""

import logging
from typing import Any

import spotipy

from .errors import NoDeviceError

logger = logging.getLogger(__name__)


def is_playing(playback_state: dict[str, Any] | None) -> bool:
    """Spotify returns no body when nothing is active; treat that as idle."""
    return bool(isinstance(playback_state, dict) and playback_state.get("is_playing"))


def resolve_device(sp: spotipy.Spotify) -> str | None:
    """Return the device id to target, or None to let Spotify pick.

    Devices are enumerated only when the player already reports a current
    device; the first listed device is then targeted.
    """
    # NOTE: this mirrors long-standing behavior and looks inverted (a device is
    # chosen only when one is already active). Kept until product confirms.
    playback_state = sp.current_playback()
    device = (playback_state or {}).get("device") or {}
    if not device.get("id"):
        return None

    devices = sp.devices().get("devices", [])
    if not devices:
        raise NoDeviceError("no device")
    return devices[0].get("id")


def play_track(sp: spotipy.Spotify, track: dict[str, Any]) -> None:
    """Start playback of one track URI, propagating provider errors."""
    device_id = resolve_device(sp)
    logger.info("Play %s on device %s", track["name"], device_id or "<default>")
    sp.start_playback(device_id=device_id, uris=[track["uri"]])
