"""
Data types passed between pipeline stages.
"""

import re
from dataclasses import asdict, dataclass, field
from enum import Enum


def normalize_key(artist: str, track: str) -> str:
    """
    Build a dedup key from artist and track name.

    Lowercases, strips, and collapses whitespace so that
    "The Weeknd" / "Blinding Lights" and "the weeknd"/"blinding  lights"
    map to the same key.
    """
    artist_norm = re.sub(r"\s+", " ", (artist or "").strip().lower())
    track_norm = re.sub(r"\s+", " ", (track or "").strip().lower())
    return f"{artist_norm}:::{track_norm}"


@dataclass(frozen=True)
class VideoRef:
    id: str


@dataclass(frozen=True)
class VideoMetadata:
    id: str
    title: str
    channel_title: str
    thumbnail_url: str = ""


@dataclass(frozen=True)
class TrackIdentity:
    """Lookup key for Last.fm. artist_name is empty when unresolved."""

    name: str
    artist_name: str = ""

    @property
    def key(self) -> str:
        return normalize_key(self.artist_name, self.name)


@dataclass(frozen=True)
class TrackImage:
    url: str
    size_class: str


@dataclass(frozen=True)
class SimilarTrack:
    """A candidate track as returned by Last.fm."""

    name: str
    artist_name: str
    images: tuple[TrackImage, ...] = ()
    url: str = ""
    match: float | None = None

    @property
    def key(self) -> str:
        return normalize_key(self.artist_name, self.name)

    @property
    def identity(self) -> TrackIdentity:
        return TrackIdentity(self.name, self.artist_name)


@dataclass(frozen=True)
class LocatedVideo:
    """A YouTube video found by searching for a track."""

    video_id: str
    thumbnail_url: str = ""

    @property
    def watch_url(self) -> str:
        return f"https://www.youtube.com/watch?v={self.video_id}"


@dataclass
class ResolvedSong:
    """Display-ready song. cover_art_url is always populated."""

    title: str
    artist: str
    cover_art_url: str
    youtube_url: str | None = None
    spotify_url: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class SearchHistoryEntry:
    url: str
    title: str
    artist: str
    timestamp: str

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "SearchHistoryEntry":
        return cls(
            url=str(data["url"]),
            title=str(data.get("title", "")),
            artist=str(data.get("artist", "")),
            timestamp=str(data.get("timestamp", "")),
        )


class PipelineState(str, Enum):
    """Stages of a single discovery request."""

    IDLE = "idle"
    EXTRACTING_ID = "extracting_id"
    RESOLVING_METADATA = "resolving_metadata"
    MATCHING_TRACK = "matching_track"
    EXPANDING_SIMILARITY = "expanding_similarity"
    RESOLVING_ARTWORK = "resolving_artwork"
    DONE = "done"
    FAILED = "failed"


@dataclass
class PipelineResult:
    """Outcome of one pipeline run."""

    state: PipelineState
    url: str
    current_song: ResolvedSong | None = None
    recommendations: list[ResolvedSong] = field(default_factory=list)
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

