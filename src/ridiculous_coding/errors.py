"""Exceptions shared across ridiculous_coding."""


class RidiculousCodingError(Exception):
    """Base class for package errors."""


class SurfaceClosedError(RidiculousCodingError):
    """
    The surface a cue was aimed at is gone.

    Renderers raise this when an editor was closed between a cue firing and
    its expiry. Schedulers absorb it; it never reaches callers.
    """

    def __init__(self, surface: object = None, message: str = "surface is closed"):
        self.surface = surface
        super().__init__(message)


class ChannelClosedError(RidiculousCodingError):
    """The presentation channel went away while sending."""
