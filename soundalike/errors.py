"""
Failure types raised by the discovery pipeline.

Only the terminal failures (bad input, catalog lookup failures) are raised
out of the pipeline. Last.fm and artwork misses degrade to fallbacks instead.
"""


class DiscoveryError(Exception):
    """Base class for terminal pipeline failures."""


class InvalidUrl(DiscoveryError):
    """The input is not a recognized YouTube video URL."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"Not a recognized YouTube video URL: {url!r}")


class UpstreamNotFound(DiscoveryError):
    """YouTube has no record for the requested video."""

    def __init__(self, video_id: str):
        self.video_id = video_id
        super().__init__(f"Video not found: {video_id}")


class UpstreamError(DiscoveryError):
    """YouTube returned a non-success response or the request failed."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class ConfigError(ValueError):
    """Required configuration is missing."""


class LastFmError(Exception):
    """A Last.fm request failed or returned an API error payload."""
