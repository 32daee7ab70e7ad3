"""
Data models for Spotify Web API responses.

This module defines immutable dataclasses for the handful of Spotify
objects the sync needs, and validating factory methods that turn raw JSON
into them.

Design Decisions:
    - All dataclasses are frozen (immutable)
    - Factories check the fields we rely on and raise MalformedResponseError
      instead of letting a KeyError/TypeError escape later
    - Fields we do not use are ignored, so additions on Spotify's side
      never break parsing

Usage:
    from playlister.spotify.models import UserProfile, PlaylistRef, SearchPage

    profile = UserProfile.from_spotify_api(client.request("GET", "/me"))
"""

from dataclasses import dataclass
from typing import Any

from playlister.core.exceptions import MalformedResponseError


def _require_mapping(data: Any, what: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise MalformedResponseError(
            f"{what} response is not a JSON object",
            details={"response": data}
        )
    return data


def _require_str(data: dict[str, Any], key: str, what: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value:
        raise MalformedResponseError(
            f"{what} response has no '{key}' string",
            details={"response": data}
        )
    return value


@dataclass(frozen=True)
class UserProfile:
    """
    The authenticated user (GET /me).

    Attributes:
        id: Spotify user ID, used as playlist owner.
        display_name: Name shown in Spotify, may be empty.
    """
    id: str
    display_name: str = ""

    @classmethod
    def from_spotify_api(cls, data: Any) -> "UserProfile":
        data = _require_mapping(data, "Profile")
        return cls(
            id=_require_str(data, "id", "Profile"),
            display_name=data.get("display_name") or "",
        )


@dataclass(frozen=True)
class PlaylistRef:
    """
    A playlist created by the sync (POST /users/{user_id}/playlists).

    Attributes:
        id: Spotify playlist ID.
                Example: "37i9dQZF1DXcBWIGoYBM5M"
        url: Public URL of the playlist.
                Example: "https://open.spotify.com/playlist/37i9dQZF1DXcBWIGoYBM5M"
        name: Playlist name as created.
    """
    id: str
    url: str
    name: str = ""

    @classmethod
    def from_spotify_api(cls, data: Any) -> "PlaylistRef":
        """
        Build from the playlist object returned by the create call.

        The URL is taken from external_urls.spotify.

        Raises:
            MalformedResponseError: If id or external_urls.spotify is missing.
        """
        data = _require_mapping(data, "Playlist creation")
        playlist_id = _require_str(data, "id", "Playlist creation")

        external_urls = data.get("external_urls")
        url = external_urls.get("spotify") if isinstance(external_urls, dict) else None
        if not isinstance(url, str) or not url:
            raise MalformedResponseError(
                "Playlist creation response has no 'external_urls.spotify' URL",
                details={"response": data}
            )

        return cls(id=playlist_id, url=url, name=data.get("name") or "")


@dataclass(frozen=True)
class SearchPage:
    """
    Track search results (GET /search?type=track).

    Attributes:
        uris: Track URIs in ranking order (best match first).
              Example: ("spotify:track:4u7EnebtmKWzUH433cf5Qv",)
    """
    uris: tuple[str, ...]

    @classmethod
    def from_spotify_api(cls, data: Any) -> "SearchPage":
        """
        Raises:
            MalformedResponseError: If tracks.items is not a list, or an item
                                    has no uri.
        """
        data = _require_mapping(data, "Search")
        tracks = data.get("tracks")
        items = tracks.get("items") if isinstance(tracks, dict) else None
        if not isinstance(items, list):
            raise MalformedResponseError(
                "Search response has no 'tracks.items' list",
                details={"response": data}
            )

        uris = []
        for item in items:
            # Spotify occasionally returns null entries in item lists
            if item is None:
                continue
            uris.append(_require_str(_require_mapping(item, "Search item"), "uri", "Search item"))

        return cls(uris=tuple(uris))

    @property
    def best_match(self) -> str | None:
        """First-ranked URI, or None when nothing matched."""
        return self.uris[0] if self.uris else None


@dataclass(frozen=True)
class AddTracksResult:
    """
    Acknowledgement of one add-items call (POST /playlists/{id}/tracks).

    Attributes:
        snapshot_id: Playlist version after the write.
    """
    snapshot_id: str

    @classmethod
    def from_spotify_api(cls, data: Any) -> "AddTracksResult":
        data = _require_mapping(data, "Add tracks")
        return cls(snapshot_id=_require_str(data, "snapshot_id", "Add tracks"))
