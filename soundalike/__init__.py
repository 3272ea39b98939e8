"""
Soundalike

A command-line tool that takes a YouTube song URL and finds similar tracks
using Last.fm, with cover art and listening links for each recommendation.
"""

__version__ = "0.1.0"
