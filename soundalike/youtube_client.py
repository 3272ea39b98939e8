"""
YouTube Data API v3 client for video metadata and music video search.

Requires YOUTUBE_API_KEY. Metadata lookups raise typed errors; searches are
best effort and return None on any failure.
"""

import logging
import re

import requests

from soundalike.config import Settings
from soundalike.errors import UpstreamError, UpstreamNotFound
from soundalike.models import LocatedVideo, VideoMetadata, VideoRef

logger = logging.getLogger(__name__)

YOUTUBE_API_URL = "https://www.googleapis.com/youtube/v3"

# YouTube "Music" video category
MUSIC_CATEGORY_ID = "10"

# Preferred thumbnail sizes, best first
THUMBNAIL_LADDER = ("high", "medium", "default")

# YouTube video ID grammar (alphanumeric with - and _)
VIDEO_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")

_HOST = r"^(?:https?://)?(?:www\.|m\.)?"

# Patterns to extract video ID from the accepted YouTube URL formats
URL_PATTERNS = [
    re.compile(_HOST + r"youtube\.com/watch\?(?:[^#]*?&)?v=([^&#]*)(?:[&#].*)?$"),
    re.compile(_HOST + r"youtu\.be/([^/?&#]*)/?(?:[?#].*)?$"),
    re.compile(_HOST + r"youtube\.com/embed/([^/?&#]*)/?(?:[?#].*)?$"),
]


def extract_video_id(url: str) -> str | None:
    """
    Extract the YouTube video ID from a URL.

    Accepts watch?v=, youtu.be/ and embed/ URLs, with or without scheme,
    regardless of other query parameters.

    Args:
        url: Freeform URL string

    Returns:
        Video ID if the URL is recognized and the ID is well formed, None otherwise
    """
    if not url:
        return None

    url = url.strip()
    for pattern in URL_PATTERNS:
        match = pattern.match(url)
        if match:
            video_id = match.group(1)
            return video_id if VIDEO_ID_PATTERN.match(video_id) else None

    return None


def extract_video_ref(url: str) -> VideoRef | None:
    video_id = extract_video_id(url)
    return VideoRef(video_id) if video_id else None


def is_valid_youtube_url(url: str) -> bool:
    return extract_video_id(url) is not None


def watch_url(video_id: str) -> str:
    return f"https://www.youtube.com/watch?v={video_id}"


def pick_thumbnail(thumbnails: dict | None) -> str:
    """
    Select the best thumbnail URL following THUMBNAIL_LADDER.

    Args:
        thumbnails: YouTube `snippet.thumbnails` mapping

    Returns:
        Thumbnail URL, or empty string if none is usable
    """
    if not thumbnails:
        return ""

    for size in THUMBNAIL_LADDER:
        entry = thumbnails.get(size) or {}
        url = entry.get("url")
        if url:
            return url

    return ""


def get_video_details(video_ref: VideoRef, settings: Settings) -> VideoMetadata:
    """
    Fetch title, channel and thumbnail for a video.

    Args:
        video_ref: Video to look up
        settings: Settings carrying the API key and timeout

    Returns:
        VideoMetadata for the video

    Raises:
        UpstreamError: If the request fails or returns a non-success status
        UpstreamNotFound: If YouTube returns no items for the ID
    """
    params = {
        "id": video_ref.id,
        "part": "snippet",
        "key": settings.youtube_api_key,
    }

    try:
        resp = requests.get(
            f"{YOUTUBE_API_URL}/videos", params=params, timeout=settings.http_timeout
        )
    except requests.RequestException as e:
        raise UpstreamError(f"Failed to fetch YouTube video details: {e}") from e

    if not resp.ok:
        raise UpstreamError(
            f"Failed to fetch YouTube video details (HTTP {resp.status_code})",
            status_code=resp.status_code,
        )

    try:
        data = resp.json()
    except ValueError as e:
        raise UpstreamError(f"Invalid response from YouTube: {e}") from e

    if not isinstance(data, dict):
        raise UpstreamError("Unexpected response from YouTube")

    items = data.get("items") or []
    if not items:
        raise UpstreamNotFound(video_ref.id)

    snippet = items[0].get("snippet") or {}

    return VideoMetadata(
        id=video_ref.id,
        title=snippet.get("title", ""),
        channel_title=snippet.get("channelTitle", ""),
        thumbnail_url=pick_thumbnail(snippet.get("thumbnails")),
    )


def search_video(query: str, settings: Settings) -> LocatedVideo | None:
    """
    Search YouTube for the top music video matching a query.

    Args:
        query: Free-text query, usually "<artist> <title>"
        settings: Settings carrying the API key and timeout

    Returns:
        LocatedVideo for the first result, or None if nothing was found or
        the request failed
    """
    params = {
        "part": "snippet",
        "q": query,
        "type": "video",
        "videoCategoryId": MUSIC_CATEGORY_ID,
        "maxResults": 1,
        "key": settings.youtube_api_key,
    }

    try:
        resp = requests.get(
            f"{YOUTUBE_API_URL}/search", params=params, timeout=settings.http_timeout
        )
        resp.raise_for_status()
        data = resp.json()
    except Exception as e:
        logger.debug("YouTube search failed for %r: %s", query, e)
        return None

    if not isinstance(data, dict):
        return None

    items = data.get("items") or []
    if not items:
        return None

    item = items[0]
    video_id = (item.get("id") or {}).get("videoId")
    if not video_id:
        return None

    snippet = item.get("snippet") or {}
    return LocatedVideo(
        video_id=video_id,
        thumbnail_url=pick_thumbnail(snippet.get("thumbnails")),
    )


def search_thumbnail(title: str, artist: str, settings: Settings) -> str | None:
    """Return the thumbnail of the top YouTube music video for a track."""
    located = search_video(f"{artist} {title}", settings)
    if located and located.thumbnail_url:
        return located.thumbnail_url
    return None
