"""Exceptions raised by tchmusic.

Startup failures (``ConfigError``, ``LoginError``) terminate the process;
everything else is logged by the poll loop and the iteration is skipped.
"""


class TchMusicError(RuntimeError):
    pass


class ConfigError(TchMusicError):
    def __init__(self, message: str, missing_fields: list[str] | None = None) -> None:
        super().__init__(message)
        self.missing_fields = missing_fields or []


class LoginError(TchMusicError):
    pass


class FeedError(TchMusicError):
    pass


class NoSongError(TchMusicError):
    pass


class NoDeviceError(TchMusicError):
    pass
