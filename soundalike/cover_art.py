"""
Cover art lookup with layered fallbacks.

Order: Last.fm embedded images, then a YouTube music video thumbnail, then a
placeholder from a fixed pool of music photos.
"""

import logging
import random

from soundalike import youtube_client
from soundalike.config import Settings
from soundalike.models import LocatedVideo, SimilarTrack

logger = logging.getLogger(__name__)

FALLBACK_IMAGES = [
    "https://images.unsplash.com/photo-1493225457124-a3eb161ffa5f?w=300&h=300&fit=crop",
    "https://images.unsplash.com/photo-1511379938547-c1f69419868d?w=300&h=300&fit=crop",
    "https://images.unsplash.com/photo-1514320291840-2e0a9bf2a9ae?w=300&h=300&fit=crop",
    "https://images.unsplash.com/photo-1516280440614-37939bbacd81?w=300&h=300&fit=crop",
    "https://images.unsplash.com/photo-1511671782779-c97d3d27a1d4?w=300&h=300&fit=crop",
    "https://images.unsplash.com/photo-1493225457124-a3eb161ffa5f?w=300&h=300&fit=crop&sat=-50",
    "https://images.unsplash.com/photo-1511379938547-c1f69419868d?w=300&h=300&fit=crop&sat=-50",
    "https://images.unsplash.com/photo-1514320291840-2e0a9bf2a9ae?w=300&h=300&fit=crop&sat=-50",
]

# Last.fm size classes, best first; sizes in one tier are equally preferred
IMAGE_SIZE_TIERS = (
    ("large", "extralarge"),
    ("medium",),
    ("small",),
)


def random_fallback_image(rng: random.Random | None = None) -> str:
    """Pick a placeholder image. Pass a seeded rng for a deterministic pick."""
    return (rng or random).choice(FALLBACK_IMAGES)


def embedded_image(track: SimilarTrack) -> str | None:
    """
    Return the best embedded Last.fm image URL for a track.

    Empty URLs are skipped even when the size slot is present.
    """
    for tier in IMAGE_SIZE_TIERS:
        for image in track.images:
            if image.size_class in tier and image.url:
                return image.url
    return None


def get_best_cover_art(
    track: SimilarTrack,
    settings: Settings,
    title: str | None = None,
    artist: str | None = None,
    located: LocatedVideo | None = None,
    search_youtube: bool = True,
    rng: random.Random | None = None,
) -> str:
    """
    Resolve the best available cover art for a track.

    Args:
        track: Candidate track with any Last.fm images.
        settings: Settings for the YouTube client.
        title: Track title for the YouTube fallback.
        artist: Artist name for the YouTube fallback.
        located: Video already found for this track, if any. Its thumbnail
            is used instead of running another search.
        search_youtube: Search YouTube when nothing was located. Pass False
            when the caller already searched and found nothing.
        rng: Random source for the placeholder pick.

    Returns:
        Image URL, never empty.
    """
    url = embedded_image(track)
    if url:
        return url

    if located is not None:
        if located.thumbnail_url:
            return located.thumbnail_url
    elif search_youtube and title and artist:
        try:
            thumbnail = youtube_client.search_thumbnail(title, artist, settings)
        except Exception as e:
            logger.debug("Error getting YouTube thumbnail: %s", e)
            thumbnail = None
        if thumbnail:
            return thumbnail

    logger.debug("No cover art for %s - %s, using placeholder", artist, title)
    return random_fallback_image(rng)
