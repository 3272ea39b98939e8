"""
Outbound listening links. Search based, no credentials needed.
"""

from urllib.parse import quote, urlencode

from soundalike.models import LocatedVideo

SPOTIFY_SEARCH_URL = "https://open.spotify.com/search/"
YOUTUBE_RESULTS_URL = "https://www.youtube.com/results"


def spotify_search_url(title: str, artist: str) -> str:
    query = " ".join(part for part in (title, artist) if part)
    return SPOTIFY_SEARCH_URL + quote(query, safe="")


def youtube_search_url(title: str, artist: str) -> str:
    query = " ".join(part for part in (artist, title) if part)
    return f"{YOUTUBE_RESULTS_URL}?{urlencode({'search_query': query})}"


def youtube_link(title: str, artist: str, located: LocatedVideo | None = None) -> str:
    """Link to the exact video when one was found, else to a search."""
    if located is not None:
        return located.watch_url
    return youtube_search_url(title, artist)
