"""
End-to-end discovery: YouTube URL in, resolved song plus recommendations out.

Stages run in order (extract ID, fetch metadata, match on Last.fm, expand to
similar tracks); cover art and links for the candidates are then resolved
concurrently. DiscoverySession adds last-request-wins commit semantics on top
for callers that may start a new request before the previous one finishes.
"""

import itertools
import logging
import random
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable

from soundalike import candidate_finder, lastfm_client, youtube_client
from soundalike.config import Settings
from soundalike.cover_art import get_best_cover_art, random_fallback_image
from soundalike.errors import DiscoveryError, InvalidUrl
from soundalike.history import SearchHistory
from soundalike.links import spotify_search_url, youtube_link
from soundalike.models import (
    PipelineResult,
    PipelineState,
    ResolvedSong,
    SimilarTrack,
    TrackIdentity,
    VideoMetadata,
)

logger = logging.getLogger(__name__)

StateCallback = Callable[[PipelineState], None]


class SimilarityPipeline:
    """
    Resolves one URL at a time. Holds no per-request state, so a single
    instance can serve concurrent runs.
    """

    def __init__(
        self,
        settings: Settings,
        rng: random.Random | None = None,
        limit: int = candidate_finder.MAX_RESULTS,
    ):
        self.settings = settings
        self.rng = rng
        self.limit = min(limit, candidate_finder.MAX_RESULTS)

    def run(self, url: str, on_state: StateCallback | None = None) -> PipelineResult:
        """
        Resolve a YouTube URL into the current song and similar songs.

        Args:
            url: Raw URL as typed by the user.
            on_state: Called with each state as the run enters it.

        Returns:
            PipelineResult in DONE or FAILED state. Zero recommendations is
            still DONE.
        """

        def enter(state: PipelineState) -> None:
            logger.debug("[%s] %s", url, state.value)
            if on_state:
                on_state(state)

        enter(PipelineState.IDLE)

        try:
            enter(PipelineState.EXTRACTING_ID)
            video_ref = youtube_client.extract_video_ref(url)
            if video_ref is None:
                raise InvalidUrl(url)

            enter(PipelineState.RESOLVING_METADATA)
            metadata = youtube_client.get_video_details(video_ref, self.settings)
        except DiscoveryError as e:
            logger.info("Discovery failed for %s: %s", url, e)
            enter(PipelineState.FAILED)
            return PipelineResult(state=PipelineState.FAILED, url=url, error=e)

        enter(PipelineState.MATCHING_TRACK)
        identity = lastfm_client.match_track(
            metadata.title, metadata.channel_title, self.settings
        )

        enter(PipelineState.EXPANDING_SIMILARITY)
        candidates = candidate_finder.get_similar_tracks(
            identity, self.settings, limit=self.limit
        )

        enter(PipelineState.RESOLVING_ARTWORK)
        current_song = self._resolve_current_song(metadata, identity)
        recommendations = self.resolve_candidates(candidates)

        enter(PipelineState.DONE)
        logger.info("Found %d similar songs", len(recommendations))
        return PipelineResult(
            state=PipelineState.DONE,
            url=url,
            current_song=current_song,
            recommendations=recommendations,
        )

    def _resolve_current_song(
        self, metadata: VideoMetadata, identity: TrackIdentity
    ) -> ResolvedSong:
        return ResolvedSong(
            title=identity.name,
            artist=identity.artist_name,
            cover_art_url=metadata.thumbnail_url or random_fallback_image(self.rng),
            youtube_url=youtube_client.watch_url(metadata.id),
            spotify_url=spotify_search_url(identity.name, identity.artist_name),
        )

    def resolve_candidate(self, track: SimilarTrack) -> ResolvedSong:
        """Resolve cover art and links for one candidate. Never raises."""
        located = None
        if self.settings.locate_videos:
            located = youtube_client.search_video(
                f"{track.artist_name} {track.name}", self.settings
            )

        cover = get_best_cover_art(
            track,
            self.settings,
            title=track.name,
            artist=track.artist_name,
            located=located,
            search_youtube=not self.settings.locate_videos,
            rng=self.rng,
        )

        return ResolvedSong(
            title=track.name,
            artist=track.artist_name,
            cover_art_url=cover,
            youtube_url=youtube_link(track.name, track.artist_name, located),
            spotify_url=spotify_search_url(track.name, track.artist_name),
        )

    def resolve_candidates(self, tracks: list[SimilarTrack]) -> list[ResolvedSong]:
        """
        Resolve all candidates concurrently.

        Output order matches input order, not completion order.
        """
        if not tracks:
            return []

        workers = min(self.settings.max_workers, len(tracks))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            return list(executor.map(self.resolve_candidate, tracks))


class DiscoverySession:
    """
    Commits only the outcome of the most recently started request.

    Every analyze() call takes a new token from a monotonic counter. When a
    run finishes, its result is committed (and recorded in history on
    success) only if no newer request has started since. In-flight requests
    are never cancelled; their results are just dropped.
    """

    def __init__(
        self,
        pipeline: SimilarityPipeline,
        history: SearchHistory,
        on_commit: Callable[[PipelineResult], None] | None = None,
    ):
        self.pipeline = pipeline
        self.history = history
        self.on_commit = on_commit
        self.current: PipelineResult | None = None
        self._counter = itertools.count(1)
        self._latest = 0
        self._lock = threading.Lock()

    def _next_token(self) -> int:
        with self._lock:
            token = next(self._counter)
            self._latest = token
            return token

    def is_latest(self, token: int) -> bool:
        with self._lock:
            return token == self._latest

    def analyze(
        self, url: str, on_state: StateCallback | None = None
    ) -> PipelineResult | None:
        """
        Run the pipeline for a URL and commit the result if still current.

        Args:
            url: Raw URL as typed by the user.
            on_state: Passed through to the pipeline.

        Returns:
            The committed result, or None if a newer request superseded it.
        """
        token = self._next_token()
        result = self.pipeline.run(url, on_state=on_state)

        with self._lock:
            if token != self._latest:
                logger.info("Discarding stale result for %s", url)
                return None
            self.current = result
            if result.state is PipelineState.DONE and result.current_song:
                self.history.add(
                    url, result.current_song.title, result.current_song.artist
                )

        if self.on_commit:
            self.on_commit(result)
        return result
