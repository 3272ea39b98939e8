"""
Similar-track discovery with a widening Last.fm search.

Starts from Last.fm's similar tracks and, when that yields too few results,
widens to the artist's top tracks and then to a title-only search. Results
from every stage are unioned in order and deduplicated by normalized
artist + track name.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from soundalike import lastfm_client
from soundalike.config import Settings
from soundalike.models import SimilarTrack, TrackIdentity

logger = logging.getLogger(__name__)

# Widen the search while fewer than this many tracks have been collected
MIN_RESULTS = 5

MAX_RESULTS = 10


class StageStatus(str, Enum):
    OK = "ok"
    EMPTY = "empty"
    FAILED = "failed"


@dataclass(frozen=True)
class StageResult:
    """Outcome of one search stage."""

    stage: str
    status: StageStatus
    tracks: tuple[SimilarTrack, ...] = ()
    error: str | None = None

    @classmethod
    def ok(cls, stage: str, tracks: list[SimilarTrack]) -> "StageResult":
        if not tracks:
            return cls(stage, StageStatus.EMPTY)
        return cls(stage, StageStatus.OK, tuple(tracks))

    @classmethod
    def failed(cls, stage: str, error: Exception) -> "StageResult":
        return cls(stage, StageStatus.FAILED, error=str(error))


def run_stage(stage: str, fetch: Callable[[], list[SimilarTrack]]) -> StageResult:
    """
    Run one search stage, converting any error into a FAILED result.

    Args:
        stage: Label for logging.
        fetch: Zero-argument callable performing the lookup.

    Returns:
        StageResult, never raises.
    """
    try:
        tracks = fetch()
    except Exception as e:
        logger.debug("Stage %s failed: %s", stage, e)
        return StageResult.failed(stage, e)

    result = StageResult.ok(stage, tracks)
    logger.debug("Stage %s: %s (%d tracks)", stage, result.status.value, len(result.tracks))
    return result


def merge_stage(
    collected: list[SimilarTrack],
    seen_keys: set[str],
    result: StageResult,
) -> int:
    """
    Append a stage's tracks to the collected list, skipping seen keys.

    Args:
        collected: Tracks collected so far (mutated in place).
        seen_keys: Normalized keys already collected (mutated in place).
        result: Stage outcome to merge.

    Returns:
        Number of tracks added.
    """
    if result.status is not StageStatus.OK:
        return 0

    added = 0
    for track in result.tracks:
        if track.key in seen_keys:
            continue
        seen_keys.add(track.key)
        collected.append(track)
        added += 1
    return added


def get_similar_tracks(
    identity: TrackIdentity,
    settings: Settings,
    limit: int = MAX_RESULTS,
) -> list[SimilarTrack]:
    """
    Gather tracks similar to a seed track.

    Stages (in order):
        1. Last.fm similar tracks (autocorrected)
        2. Artist top tracks, if fewer than MIN_RESULTS so far
        3. Title-only track search, if still fewer than MIN_RESULTS

    A failing stage contributes nothing and never stops the cascade.
    Truncation to `limit` happens after all stages are merged.

    Args:
        identity: Seed track.
        settings: Settings for the Last.fm client.
        limit: Maximum number of tracks to return.

    Returns:
        Deduplicated list of tracks. May be empty.
    """
    seen_keys: set[str] = set()
    collected: list[SimilarTrack] = []

    similar = run_stage(
        "similar", lambda: lastfm_client.get_similar(identity, settings)
    )
    merge_stage(collected, seen_keys, similar)

    if len(collected) < MIN_RESULTS:
        if identity.artist_name:
            logger.info("Not enough similar tracks, trying artist top tracks...")
            top = run_stage(
                "artist_top",
                lambda: lastfm_client.get_artist_top_tracks(identity.artist_name, settings),
            )
            merge_stage(collected, seen_keys, top)
        else:
            logger.debug("No artist known, skipping artist top tracks")

    if len(collected) < MIN_RESULTS:
        logger.info("Still not enough tracks, trying general search...")
        by_title = run_stage(
            "title_search",
            lambda: lastfm_client.search_tracks_by_title(identity.name, settings),
        )
        merge_stage(collected, seen_keys, by_title)

    logger.info("Collected %d similar tracks", len(collected))
    return collected[:limit]
