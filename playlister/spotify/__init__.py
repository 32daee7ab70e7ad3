"""
Spotify Web API access for playlister.

This module handles every remote catalog operation:
    - Fetching the current user's profile
    - Creating the destination playlist
    - Searching one track per file name
    - Adding matched tracks in batches of at most 100

Usage:
    from playlister.spotify import CatalogClient

    client = CatalogClient(credential)
    profile = client.get_profile()
"""

from playlister.spotify.client import CatalogClient, chunked, parse_retry_after
from playlister.spotify.models import AddTracksResult, PlaylistRef, SearchPage, UserProfile

__all__ = [
    "CatalogClient",
    "chunked",
    "parse_retry_after",
    "UserProfile",
    "PlaylistRef",
    "SearchPage",
    "AddTracksResult",
]
