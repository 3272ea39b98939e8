"""
Last.fm API client for track matching and similar-track discovery.

Requires LASTFM_API_KEY. Last.fm reports API errors as a 200 response with an
"error" field, so both HTTP and payload errors are raised as LastFmError.
"""

import logging
import re

import requests

from soundalike.config import Settings
from soundalike.errors import LastFmError
from soundalike.models import SimilarTrack, TrackIdentity, TrackImage

logger = logging.getLogger(__name__)

LASTFM_API_URL = "https://ws.audioscrobbler.com/2.0/"

SIMILAR_TRACKS_LIMIT = 12
TOP_TRACKS_LIMIT = 5
TITLE_SEARCH_LIMIT = 5


def _get(method: str, params: dict, settings: Settings) -> dict:
    """
    Call a Last.fm API method.

    Args:
        method: Last.fm method name, e.g. "track.getSimilar".
        params: Method parameters.
        settings: Settings carrying the API key and timeout.

    Returns:
        Parsed JSON response.

    Raises:
        LastFmError: On transport failure, non-2xx status, invalid JSON or an
            API error payload.
    """
    params = {
        **params,
        "method": method,
        "api_key": settings.lastfm_api_key,
        "format": "json",
    }

    try:
        resp = requests.get(LASTFM_API_URL, params=params, timeout=settings.http_timeout)
        resp.raise_for_status()
        data = resp.json()
    except (requests.RequestException, ValueError) as e:
        raise LastFmError(f"{method} failed: {e}") from e

    if not isinstance(data, dict):
        raise LastFmError(f"{method} returned an unexpected payload")
    if "error" in data:
        raise LastFmError(f"{method} error {data['error']}: {data.get('message', '')}")

    return data


def _as_list(value) -> list:
    # Last.fm collapses single-item lists into a bare object
    if not value:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _parse_track(raw: dict) -> SimilarTrack | None:
    """
    Convert a raw Last.fm track object to a SimilarTrack.

    track.search returns the artist as a string while getSimilar and
    getTopTracks nest it as {"name": ...}; both are accepted.
    """
    if not isinstance(raw, dict):
        return None

    name = (raw.get("name") or "").strip()
    if not name:
        return None

    artist = raw.get("artist")
    if isinstance(artist, dict):
        artist_name = artist.get("name") or ""
    else:
        artist_name = artist or ""

    images = tuple(
        TrackImage(url=img.get("#text") or "", size_class=img.get("size") or "")
        for img in _as_list(raw.get("image"))
        if isinstance(img, dict)
    )

    match = raw.get("match")
    try:
        match = float(match) if match is not None else None
    except (TypeError, ValueError):
        match = None

    return SimilarTrack(
        name=name,
        artist_name=str(artist_name).strip(),
        images=images,
        url=raw.get("url") or "",
        match=match,
    )


def _parse_tracks(raw_tracks) -> list[SimilarTrack]:
    tracks = []
    for raw in _as_list(raw_tracks):
        track = _parse_track(raw)
        if track:
            tracks.append(track)
    return tracks


def search_track(title: str, artist: str, settings: Settings) -> SimilarTrack | None:
    """
    Find the best Last.fm match for a title/artist pair.

    A miss is a valid outcome, so every failure is logged and returned as None.

    Args:
        title: Track title (may be a raw video title).
        artist: Artist or channel name.
        settings: Settings carrying the API key and timeout.

    Returns:
        Top matching track, or None.
    """
    params = {"track": title, "limit": 1}
    if artist:
        params["artist"] = artist

    try:
        data = _get("track.search", params, settings)
        matches = (data.get("results") or {}).get("trackmatches") or {}
        tracks = _parse_tracks(matches.get("track"))
    except Exception as e:
        logger.debug("Error searching Last.fm: %s", e)
        return None

    return tracks[0] if tracks else None


def get_similar(identity: TrackIdentity, settings: Settings) -> list[SimilarTrack]:
    """
    Fetch tracks similar to a track, with Last.fm autocorrection enabled.

    Raises:
        LastFmError: If the request fails.
    """
    data = _get(
        "track.getSimilar",
        {
            "track": identity.name,
            "artist": identity.artist_name,
            "limit": SIMILAR_TRACKS_LIMIT,
            "autocorrect": 1,
        },
        settings,
    )
    return _parse_tracks((data.get("similartracks") or {}).get("track"))


def get_artist_top_tracks(artist: str, settings: Settings) -> list[SimilarTrack]:
    """
    Fetch an artist's most popular tracks.

    Raises:
        LastFmError: If the request fails.
    """
    data = _get(
        "artist.getTopTracks",
        {"artist": artist, "limit": TOP_TRACKS_LIMIT, "autocorrect": 1},
        settings,
    )
    return _parse_tracks((data.get("toptracks") or {}).get("track"))


def search_tracks_by_title(title: str, settings: Settings) -> list[SimilarTrack]:
    """
    Search tracks by title only.

    Raises:
        LastFmError: If the request fails.
    """
    data = _get("track.search", {"track": title, "limit": TITLE_SEARCH_LIMIT}, settings)
    matches = (data.get("results") or {}).get("trackmatches") or {}
    return _parse_tracks(matches.get("track"))


# Common suffixes on video titles that never appear in Last.fm track names
_TITLE_SUFFIXES = [
    r"\s*\(Official\s*(Music\s*)?Video\)",
    r"\s*\(Official\s*Audio\)",
    r"\s*\(Official\s*Lyric\s*Video\)",
    r"\s*\(Lyric\s*Video\)",
    r"\s*\(Lyrics?\)",
    r"\s*\(Visuali[sz]er\)",
    r"\s*\[Official\s*(Music\s*)?Video\]",
    r"\s*\[Official\s*Audio\]",
    r"\s*\[Lyric\s*Video\]",
    r"\s*\[Lyrics?\]",
    r"\s*\|\s*Official\s*Video",
    r"\s*-\s*Official\s*Video",
    r"\s*HD\s*$",
    r"\s*HQ\s*$",
    r"\s*4K\s*$",
]

_CHANNEL_SUFFIX = re.compile(r"\s*(-\s*Topic|VEVO|Official)\s*$", re.IGNORECASE)


def parse_song_and_artist(title: str, channel: str) -> tuple[str, str]:
    """
    Parse song name and artist from a YouTube video title and channel.

    Handles common title formats like:
    - "Artist - Song Name"
    - "Song Name by Artist"
    - "Artist: Song Name"
    - "Song Name | Artist"
    - "Song Name (Official Video)"

    Args:
        title: Video title
        channel: Channel name (fallback for artist)

    Returns:
        Tuple of (song_name, artist)
    """
    clean_title = title
    for suffix in _TITLE_SUFFIXES:
        clean_title = re.sub(suffix, "", clean_title, flags=re.IGNORECASE)
    clean_title = clean_title.strip()

    # (pattern, swap_order) where swap_order=True means "Artist - Song" format
    separators = [
        (r"\s+[-–—]\s+", True),
        (r"\s+by\s+", False),
        (r"\s*:\s*", True),
        (r"\s*\|\s*", False),
    ]

    for pattern, swap_order in separators:
        parts = re.split(pattern, clean_title, maxsplit=1, flags=re.IGNORECASE)
        if len(parts) == 2 and parts[0].strip() and parts[1].strip():
            part1, part2 = parts[0].strip(), parts[1].strip()
            return (part2, part1) if swap_order else (part1, part2)

    return clean_title, _CHANNEL_SUFFIX.sub("", channel).strip()


def match_track(title: str, channel: str, settings: Settings) -> TrackIdentity:
    """
    Map a video title/channel pair to a Last.fm track identity.

    Tries the raw pair first, then a cleaned pair parsed from the title. If
    neither matches, the raw title and channel are used as the identity.

    Args:
        title: Video title.
        channel: Channel name.
        settings: Settings carrying the API key and timeout.

    Returns:
        TrackIdentity, never None.
    """
    match = search_track(title, channel, settings)

    if not match:
        song, artist = parse_song_and_artist(title, channel)
        if (song, artist) != (title, channel):
            logger.debug("No match for raw title, retrying as %r by %r", song, artist)
            match = search_track(song, artist, settings)

    if match:
        logger.info("Matched: %s by %s", match.name, match.artist_name or "?")
        return TrackIdentity(match.name, match.artist_name)

    logger.info("No Last.fm match for %r, using video title and channel", title)
    return TrackIdentity(title, channel)
