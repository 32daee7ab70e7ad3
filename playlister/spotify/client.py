"""
Spotify Web API client for playlister.

This module provides CatalogClient, a thin wrapper around a requests
Session that every remote catalog operation goes through. It owns:

    - Authentication: "Authorization: Bearer <token>" on every request
    - Error classification: 2xx -> JSON, 429 -> wait and resend,
      anything else -> CatalogApiError with status and body
    - Rate limiting: honors Retry-After with a bounded number of resends
    - Response validation via playlister.spotify.models

Rate Limiting:
    Spotify answers 429 with a Retry-After header (seconds) when the
    application sends too many requests. The client sleeps for that long
    (1 second when the header is missing or unparsable, never more than
    max_retry_after) and resends the same request. After max_retries
    consecutive 429 answers, RateLimitExceeded is raised.

Usage:
    from playlister.spotify.client import CatalogClient

    client = CatalogClient(credential)
    profile = client.get_profile()
    playlist = client.create_playlist(profile.id, "My Folder")
    uri = client.search_track("Bohemian Rhapsody Queen")
    if uri:
        client.add_tracks(playlist.id, [uri])

Thread Safety:
    Not thread-safe. A client is used by one sync run, sequentially.
"""

import json
import time
from typing import Any, Callable, Iterator, Sequence, TypeVar

import requests

from playlister.auth.broker import Credential
from playlister.core.config import (
    DEFAULT_API_BASE_URL,
    DEFAULT_DESCRIPTION,
    MAX_BATCH_SIZE,
    SyncConfig,
)
from playlister.core.exceptions import CatalogApiError, RateLimitExceeded
from playlister.core.logger import get_logger
from playlister.spotify.models import AddTracksResult, PlaylistRef, SearchPage, UserProfile

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_RETRY_AFTER = 1.0


def chunked(items: Sequence[T], size: int) -> Iterator[list[T]]:
    """
    Split a sequence into consecutive lists of at most `size` items.

    Order is preserved and every item appears in exactly one chunk.

    Example:
        list(chunked([1, 2, 3, 4, 5], 2))  # [[1, 2], [3, 4], [5]]
    """
    if size < 1:
        raise ValueError("chunk size must be at least 1")
    for start in range(0, len(items), size):
        yield list(items[start:start + size])


def parse_retry_after(value: str | None, default: float = DEFAULT_RETRY_AFTER) -> float:
    """
    Parse a Retry-After header value in seconds.

    Returns `default` when the header is absent, not a number, or negative.
    """
    if value is None:
        return default
    try:
        seconds = float(value.strip())
    except (ValueError, AttributeError):
        return default
    if seconds < 0 or seconds != seconds:  # negative or NaN
        return default
    return seconds


class CatalogClient:
    """
    Rate-limit aware Spotify Web API client bound to one access token.

    Attributes:
        base_url: API root, e.g. "https://api.spotify.com/v1".
        max_retries: Resends allowed after consecutive 429 responses.
        max_retry_after: Cap (seconds) applied to each Retry-After wait.
        timeout: Per-request timeout passed to requests.
        batch_size: Default URIs per add_tracks() write call.
    """

    def __init__(
        self,
        credential: Credential,
        session: requests.Session | None = None,
        base_url: str = DEFAULT_API_BASE_URL,
        max_retries: int = 5,
        max_retry_after: float = 60.0,
        timeout: float = 30.0,
        batch_size: int = MAX_BATCH_SIZE,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """
        Args:
            credential: Access credential from the CredentialBroker.
            session: requests.Session to send through (a new one if None).
            sleep: Function used to wait out 429 responses. Replaced in tests.
        """
        if not 1 <= batch_size <= MAX_BATCH_SIZE:
            raise ValueError(f"batch_size must be between 1 and {MAX_BATCH_SIZE}")

        self._credential = credential
        self._session = session or requests.Session()
        self._sleep = sleep
        self.base_url = base_url.rstrip("/")
        self.max_retries = max_retries
        self.max_retry_after = max_retry_after
        self.timeout = timeout
        self.batch_size = batch_size

    @classmethod
    def from_config(
        cls,
        credential: Credential,
        sync_config: SyncConfig,
        base_url: str = DEFAULT_API_BASE_URL,
        session: requests.Session | None = None,
    ) -> "CatalogClient":
        return cls(
            credential,
            session=session,
            base_url=base_url,
            max_retries=sync_config.max_rate_limit_retries,
            max_retry_after=sync_config.max_retry_after,
            timeout=sync_config.request_timeout,
            batch_size=sync_config.batch_size,
        )

    # =========================================================================
    # Transport
    # =========================================================================

    def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """
        Send one logical request and return its parsed JSON body.

        Args:
            method: HTTP method ("GET", "POST", ...).
            path: Path below base_url ("/me") or an absolute URL.
            body: JSON-serializable request body, or None.
            params: Query string parameters.
            headers: Extra headers. They cannot replace Authorization.

        Returns:
            The decoded JSON object; {} for an empty or non-JSON 2xx body.

        Raises:
            CatalogApiError: Non-2xx, non-429 response (not retried), or a
                             transport failure (status None).
            RateLimitExceeded: Still 429 after max_retries resends.
        """
        url = path if path.startswith(("http://", "https://")) else f"{self.base_url}{path}"

        request_headers = {"Content-Type": "application/json"}
        request_headers.update(headers or {})
        # Caller headers never override the credential
        for key in [k for k in request_headers if k.lower() == "authorization"]:
            del request_headers[key]
        request_headers["Authorization"] = self._credential.authorization_header

        data = json.dumps(body) if body is not None else None

        retries = 0
        while True:
            response = self._send(method, url, request_headers, data, params)

            if response.status_code == 429:
                retry_after = min(
                    parse_retry_after(response.headers.get("Retry-After")),
                    self.max_retry_after,
                )
                if retries >= self.max_retries:
                    raise RateLimitExceeded(
                        f"Spotify API rate limit still active after {retries + 1} attempts "
                        f"({method} {path})",
                        retry_after=retry_after,
                        attempts=retries + 1,
                        body=response.text,
                    )
                retries += 1
                logger.warning(
                    f"Rate limited, waiting {retry_after:g} seconds "
                    f"(retry {retries}/{self.max_retries})..."
                )
                self._sleep(retry_after)
                continue

            if not 200 <= response.status_code < 300:
                raise CatalogApiError(
                    f"Spotify API error ({response.status_code}): {response.text}",
                    status=response.status_code,
                    body=response.text,
                    details={"method": method, "url": url},
                )

            return self._decode(response)

    def _send(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        data: str | None,
        params: dict[str, Any] | None,
    ) -> requests.Response:
        logger.debug(f"{method} {url} params={params}")
        try:
            return self._session.request(
                method,
                url,
                headers=headers,
                data=data,
                params=params,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise CatalogApiError(
                f"Spotify API request failed: {e}",
                status=None,
                body=str(e),
                details={"method": method, "url": url, "original_error": str(e)},
            ) from e

    @staticmethod
    def _decode(response: requests.Response) -> dict[str, Any]:
        if not response.content:
            return {}
        try:
            data = response.json()
        except ValueError:
            logger.debug("Ignoring non-JSON success body")
            return {}
        return data if isinstance(data, dict) else {"data": data}

    # =========================================================================
    # Catalog Operations
    # =========================================================================

    def get_profile(self) -> UserProfile:
        """
        Fetch the profile of the user owning the access token.

        Raises:
            CatalogApiError: On API failure (401 when the token expired).
            MalformedResponseError: If the profile has no id.
        """
        return UserProfile.from_spotify_api(self.request("GET", "/me"))

    def create_playlist(
        self,
        user_id: str,
        name: str,
        description: str = DEFAULT_DESCRIPTION,
        public: bool = False,
    ) -> PlaylistRef:
        """
        Create a new, empty playlist owned by `user_id`.

        No check is made for an existing playlist with the same name;
        Spotify allows duplicates.
        """
        data = self.request(
            "POST",
            f"/users/{user_id}/playlists",
            body={"name": name, "description": description, "public": public},
        )
        return PlaylistRef.from_spotify_api(data)

    def search_track(self, query: str) -> str | None:
        """
        Find the best-ranked track for a free-text query.

        Args:
            query: Search text, typically "{title} {artist}".

        Returns:
            The track URI (e.g. "spotify:track:..."), or None when the
            search returned no tracks. A blank query returns None without
            a request (Spotify rejects empty q).

        Raises:
            CatalogApiError, MalformedResponseError: On failure.
        """
        if not query.strip():
            logger.debug("Skipping search for blank query")
            return None

        data = self.request(
            "GET",
            "/search",
            params={"q": query, "type": "track", "limit": 1},
        )
        return SearchPage.from_spotify_api(data).best_match

    def add_tracks(
        self,
        playlist_id: str,
        uris: Sequence[str],
        batch_size: int | None = None,
    ) -> int:
        """
        Append tracks to a playlist, in order, in chunks.

        One write call is issued per chunk of at most `batch_size` URIs
        (100 by default, the Spotify maximum). Each call completes before
        the next starts.

        Returns:
            The number of write calls made (ceil(len(uris) / batch_size)).

        Raises:
            CatalogApiError, MalformedResponseError: The first failing chunk
                stops the write; earlier chunks stay in the playlist.
        """
        size = batch_size or self.batch_size
        if size > MAX_BATCH_SIZE:
            raise ValueError(f"batch_size must be at most {MAX_BATCH_SIZE}")

        calls = 0
        for chunk in chunked(list(uris), size):
            data = self.request(
                "POST",
                f"/playlists/{playlist_id}/tracks",
                body={"uris": chunk},
            )
            AddTracksResult.from_spotify_api(data)
            calls += 1
            logger.debug(f"Added chunk {calls} ({len(chunk)} tracks) to playlist {playlist_id}")
        return calls
