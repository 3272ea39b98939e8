"""
Tests for the Last.fm client.

All tests use mocks to avoid real API calls.
"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from soundalike.config import Settings
from soundalike.errors import LastFmError
from soundalike.lastfm_client import (
    _get,
    _parse_track,
    get_artist_top_tracks,
    get_similar,
    match_track,
    parse_song_and_artist,
    search_track,
    search_tracks_by_title,
)
from soundalike.models import SimilarTrack, TrackIdentity, TrackImage

# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def settings():
    return Settings(youtube_api_key="yt-key", lastfm_api_key="fm-key")


def _response(payload, status_code=200):
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = payload
    if status_code >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"HTTP {status_code}")
    return resp


def _raw_track(name, artist, nested=True, images=None):
    return {
        "name": name,
        "artist": {"name": artist} if nested else artist,
        "url": f"https://www.last.fm/music/{artist}/_/{name}",
        "image": images or [],
    }


# ============================================================================
# Test: _get
# ============================================================================


class TestGet:
    """Tests for the low-level request helper."""

    @patch("soundalike.lastfm_client.requests.get")
    def test_adds_method_key_and_format(self, mock_get, settings):
        mock_get.return_value = _response({"ok": True})

        _get("track.search", {"track": "Song"}, settings)

        _, kwargs = mock_get.call_args
        assert kwargs["params"] == {
            "track": "Song",
            "method": "track.search",
            "api_key": "fm-key",
            "format": "json",
        }

    @patch("soundalike.lastfm_client.requests.get")
    def test_raises_on_api_error_payload(self, mock_get, settings):
        """Should treat a 200 response with an error field as a failure."""
        mock_get.return_value = _response({"error": 6, "message": "Track not found"})

        with pytest.raises(LastFmError, match="Track not found"):
            _get("track.getSimilar", {}, settings)

    @patch("soundalike.lastfm_client.requests.get")
    def test_raises_on_http_error(self, mock_get, settings):
        mock_get.return_value = _response({}, status_code=500)

        with pytest.raises(LastFmError):
            _get("track.search", {}, settings)

    @patch("soundalike.lastfm_client.requests.get")
    def test_raises_on_invalid_json(self, mock_get, settings):
        resp = _response(None)
        resp.json.side_effect = ValueError("not json")
        mock_get.return_value = resp

        with pytest.raises(LastFmError):
            _get("track.search", {}, settings)


# ============================================================================
# Test: _parse_track
# ============================================================================


class TestParseTrack:
    """Tests for raw track parsing."""

    def test_parses_nested_artist(self):
        raw = _raw_track(
            "Save Your Tears",
            "The Weeknd",
            images=[{"#text": "https://img/l.png", "size": "large"}],
        )
        raw["match"] = "0.87"

        track = _parse_track(raw)

        assert track.name == "Save Your Tears"
        assert track.artist_name == "The Weeknd"
        assert track.images == (TrackImage("https://img/l.png", "large"),)
        assert track.match == pytest.approx(0.87)

    def test_parses_string_artist(self):
        """track.search returns the artist as a plain string."""
        track = _parse_track(_raw_track("Blinding Lights", "The Weeknd", nested=False))

        assert track.artist_name == "The Weeknd"

    def test_skips_nameless_track(self):
        assert _parse_track({"name": "", "artist": "X"}) is None
        assert _parse_track("garbage") is None


# ============================================================================
# Test: search_track
# ============================================================================


class TestSearchTrack:
    """Tests for search_track."""

    @patch("soundalike.lastfm_client.requests.get")
    def test_returns_top_match(self, mock_get, settings):
        mock_get.return_value = _response(
            {
                "results": {
                    "trackmatches": {
                        "track": [_raw_track("Blinding Lights", "The Weeknd", nested=False)]
                    }
                }
            }
        )

        track = search_track("Blinding Lights", "The Weeknd", settings)

        assert track.name == "Blinding Lights"
        _, kwargs = mock_get.call_args
        assert kwargs["params"]["limit"] == 1
        assert kwargs["params"]["artist"] == "The Weeknd"

    @patch("soundalike.lastfm_client.requests.get")
    def test_accepts_single_object(self, mock_get, settings):
        """Last.fm may return a single track as an object, not a list."""
        mock_get.return_value = _response(
            {"results": {"trackmatches": {"track": _raw_track("Song", "Artist", nested=False)}}}
        )

        assert search_track("Song", "Artist", settings).name == "Song"

    @patch("soundalike.lastfm_client.requests.get")
    def test_returns_none_when_empty(self, mock_get, settings):
        mock_get.return_value = _response({"results": {"trackmatches": {"track": []}}})

        assert search_track("Nothing", "Nobody", settings) is None

    @patch("soundalike.lastfm_client.requests.get")
    def test_swallows_transport_errors(self, mock_get, settings):
        """Should return None instead of raising on failure."""
        mock_get.side_effect = requests.ConnectionError("down")

        assert search_track("Song", "Artist", settings) is None

    @patch("soundalike.lastfm_client.requests.get")
    def test_swallows_malformed_payload(self, mock_get, settings):
        mock_get.return_value = _response({"results": ["unexpected"]})

        assert search_track("Song", "Artist", settings) is None


# ============================================================================
# Test: cascade sources
# ============================================================================


class TestCascadeSources:
    """Tests for the list endpoints used by the similarity search."""

    @patch("soundalike.lastfm_client.requests.get")
    def test_get_similar(self, mock_get, settings):
        mock_get.return_value = _response(
            {"similartracks": {"track": [_raw_track("Starboy", "The Weeknd")]}}
        )

        tracks = get_similar(TrackIdentity("Blinding Lights", "The Weeknd"), settings)

        assert tracks == [
            SimilarTrack(
                "Starboy",
                "The Weeknd",
                url="https://www.last.fm/music/The Weeknd/_/Starboy",
            )
        ]
        _, kwargs = mock_get.call_args
        assert kwargs["params"]["autocorrect"] == 1
        assert kwargs["params"]["limit"] == 12
        assert kwargs["params"]["method"] == "track.getSimilar"

    @patch("soundalike.lastfm_client.requests.get")
    def test_get_artist_top_tracks(self, mock_get, settings):
        mock_get.return_value = _response(
            {"toptracks": {"track": [_raw_track("Starboy", "The Weeknd")]}}
        )

        tracks = get_artist_top_tracks("The Weeknd", settings)

        assert [t.name for t in tracks] == ["Starboy"]
        _, kwargs = mock_get.call_args
        assert kwargs["params"]["method"] == "artist.getTopTracks"

    @patch("soundalike.lastfm_client.requests.get")
    def test_search_tracks_by_title_omits_artist(self, mock_get, settings):
        mock_get.return_value = _response({"results": {"trackmatches": {"track": []}}})

        assert search_tracks_by_title("Blinding Lights", settings) == []
        _, kwargs = mock_get.call_args
        assert "artist" not in kwargs["params"]

    @patch("soundalike.lastfm_client.requests.get")
    def test_list_endpoints_raise(self, mock_get, settings):
        """List endpoints propagate failures to the caller."""
        mock_get.side_effect = requests.ConnectionError("down")

        with pytest.raises(LastFmError):
            get_similar(TrackIdentity("Song", "Artist"), settings)


# ============================================================================
# Test: parse_song_and_artist
# ============================================================================


class TestParseSongAndArtist:
    """Tests for parse_song_and_artist."""

    def test_artist_dash_song(self):
        result = parse_song_and_artist(
            "The Weeknd - Blinding Lights (Official Video)", "TheWeekndVEVO"
        )
        assert result == ("Blinding Lights", "The Weeknd")

    def test_song_by_artist(self):
        assert parse_song_and_artist("Hello by Adele", "Channel") == ("Hello", "Adele")

    def test_no_separator_uses_channel(self):
        assert parse_song_and_artist("Blinding Lights", "The Weeknd - Topic") == (
            "Blinding Lights",
            "The Weeknd",
        )

    def test_strips_lyrics_suffix(self):
        assert parse_song_and_artist("Yesterday [Lyrics]", "The Beatles") == (
            "Yesterday",
            "The Beatles",
        )


# ============================================================================
# Test: match_track
# ============================================================================


class TestMatchTrack:
    """Tests for match_track."""

    @patch("soundalike.lastfm_client.search_track")
    def test_uses_raw_match(self, mock_search, settings):
        mock_search.return_value = SimilarTrack("Blinding Lights", "The Weeknd")

        identity = match_track("Blinding Lights", "The Weeknd", settings)

        assert identity == TrackIdentity("Blinding Lights", "The Weeknd")
        mock_search.assert_called_once()

    @patch("soundalike.lastfm_client.search_track")
    def test_retries_with_cleaned_title(self, mock_search, settings):
        """Should retry with the parsed song/artist when the raw pair misses."""
        mock_search.side_effect = [None, SimilarTrack("Blinding Lights", "The Weeknd")]

        identity = match_track(
            "The Weeknd - Blinding Lights (Official Video)", "TheWeekndVEVO", settings
        )

        assert identity == TrackIdentity("Blinding Lights", "The Weeknd")
        assert mock_search.call_args_list[1].args[:2] == ("Blinding Lights", "The Weeknd")

    @patch("soundalike.lastfm_client.search_track")
    def test_falls_back_to_raw_title_and_channel(self, mock_search, settings):
        """Should use the video title and channel when nothing matches."""
        mock_search.return_value = None

        identity = match_track("Some Upload (Official Video)", "Some Channel", settings)

        assert identity == TrackIdentity("Some Upload (Official Video)", "Some Channel")

    @patch("soundalike.lastfm_client.search_track")
    def test_single_attempt_when_title_is_already_clean(self, mock_search, settings):
        mock_search.return_value = None

        match_track("Blinding Lights", "The Weeknd", settings)

        mock_search.assert_called_once()
