"""
CLI entry point for soundalike.

Usage:
    soundalike discover "https://www.youtube.com/watch?v=4NRXx6U8ABQ"
    soundalike discover "https://youtu.be/4NRXx6U8ABQ" --limit 5
    soundalike history list
"""

import json
import logging
import sys

import click

from soundalike import __version__
from soundalike.config import Settings
from soundalike.errors import ConfigError, InvalidUrl, UpstreamNotFound
from soundalike.history import JsonFileStore, SearchHistory
from soundalike.models import PipelineResult, PipelineState, ResolvedSong
from soundalike.pipeline import DiscoverySession, SimilarityPipeline


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _open_history(settings: Settings) -> SearchHistory:
    return SearchHistory(JsonFileStore(settings.history_path))


def _echo_song(song: ResolvedSong, rank: int | None = None) -> None:
    heading = f"{rank}. {song.title}" if rank else song.title
    click.echo(f"\n{heading}")
    click.echo(f"   Artist: {song.artist or 'Unknown'}")
    click.echo(f"   Cover: {song.cover_art_url}")
    if song.youtube_url:
        click.echo(f"   YouTube: {song.youtube_url}")
    if song.spotify_url:
        click.echo(f"   Spotify: {song.spotify_url}")


def _echo_result(result: PipelineResult) -> None:
    click.echo("\n" + "=" * 60)
    click.echo("Analyzed song")
    click.echo("=" * 60)
    _echo_song(result.current_song)

    click.echo("\n" + "=" * 60)
    click.echo(f"Found {len(result.recommendations)} similar songs")
    click.echo("=" * 60)
    for rank, song in enumerate(result.recommendations, 1):
        _echo_song(song, rank)

    click.echo("\n" + "=" * 60)


def _error_message(error: Exception) -> str:
    if isinstance(error, InvalidUrl):
        return "Please enter a valid YouTube URL."
    if isinstance(error, UpstreamNotFound):
        return f"Video not found: {error.video_id}"
    return f"Analysis failed: {error}"


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool):
    """Soundalike - Find songs similar to a YouTube video."""
    _configure_logging(verbose)


@cli.command()
@click.argument("url")
@click.option(
    "--limit",
    default=10,
    type=click.IntRange(1, 10),
    help="Maximum number of similar songs to return",
)
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON")
def discover(url: str, limit: int, as_json: bool):
    """Find songs similar to the YouTube video at URL.

    Examples:
        soundalike discover "https://www.youtube.com/watch?v=4NRXx6U8ABQ"
        soundalike discover "https://youtu.be/4NRXx6U8ABQ" --limit 5
        soundalike discover "https://www.youtube.com/embed/4NRXx6U8ABQ" --json
    """
    try:
        settings = Settings.from_env(require_keys=True)
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    session = DiscoverySession(
        SimilarityPipeline(settings, limit=limit), _open_history(settings)
    )

    if not as_json:
        click.echo(f"Analyzing: {url}")

    try:
        result = session.analyze(url)
    except KeyboardInterrupt:
        click.echo("\n\nSearch cancelled.")
        sys.exit(1)
    except Exception as e:
        click.echo(f"\nError: {e}", err=True)
        sys.exit(1)

    if result is None:
        return

    if result.state is PipelineState.FAILED:
        click.echo(f"Error: {_error_message(result.error)}", err=True)
        sys.exit(1)

    if as_json:
        payload = {
            "current_song": result.current_song.to_dict(),
            "recommendations": [song.to_dict() for song in result.recommendations],
        }
        click.echo(json.dumps(payload, indent=2))
        return

    _echo_result(result)


@cli.group()
def history():
    """Manage recent searches."""
    pass


@history.command("list")
def history_list():
    """List recent searches, most recent first."""
    entries = _open_history(Settings.from_env()).entries()

    if not entries:
        click.echo("No recent searches.")
        return

    click.echo(f"Recent searches ({len(entries)}):\n")
    for entry in entries:
        click.echo(f"  {entry.title} - {entry.artist}")
        click.echo(f"    URL: {entry.url}")
        click.echo(f"    Searched: {entry.timestamp}")
        click.echo()


@history.command("clear")
def history_clear():
    """Remove all recent searches."""
    _open_history(Settings.from_env()).clear()
    click.echo("Search history cleared.")


if __name__ == "__main__":
    cli()
