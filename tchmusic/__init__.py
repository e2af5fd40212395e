"""Keep an idle Spotify player in sync with The Coffee House's "now playing" feed."""

__version__ = "0.1.0"
