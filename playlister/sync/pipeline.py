"""
Folder-to-playlist synchronization pipeline.

SyncPipeline turns an ordered list of audio file names into a new Spotify
playlist:

    1. Refuse an empty list (EmptyInputError, no request sent)
    2. Fetch the user's profile              -> abort on failure
    3. Create the playlist                   -> abort on failure
    4. Search every file name, in order      -> failures are logged, skipped
    5. Add all matches in 100-track chunks   -> abort on failure

Each step emits a ProgressEntry. Entries are collected in the SyncResult
and pushed, in order, to every subscriber as soon as they happen, so a
display can follow the run live. The playlist URL entry is emitted right
after creation and stays visible even if later steps fail.

A file name that appears twice is searched twice and, when matched,
added twice. No reordering or deduplication happens anywhere.

Usage:
    pipeline = SyncPipeline(client)
    pipeline.subscribe(lambda entry: print(entry.message))
    result = pipeline.run(scan.file_names, scan.name)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, NoReturn

from playlister.core.config import DEFAULT_DESCRIPTION
from playlister.core.exceptions import CatalogError, EmptyInputError, SyncAbortedError
from playlister.core.logger import get_logger
from playlister.spotify.client import CatalogClient
from playlister.spotify.models import PlaylistRef
from playlister.sync.normalizer import normalize_track_name

logger = get_logger(__name__)


class ProgressKind(str, Enum):
    PROFILE = "profile"
    PLAYLIST = "playlist"
    FOUND = "found"
    NOT_FOUND = "not_found"
    SEARCH_ERROR = "search_error"
    ADDED = "added"
    NOTHING_ADDED = "nothing_added"
    FAILED = "failed"


class SyncStage(str, Enum):
    """Steps at which a run can abort."""
    PROFILE = "profile"
    CREATE = "create"
    ADD = "add"


@dataclass(frozen=True)
class ProgressEntry:
    """
    One human-readable line of the progress log.

    Attributes:
        kind: What happened.
        message: Text shown to the user.
        query: Search query, for per-track entries.
        uri: Matched track URI, for FOUND entries.
    """
    kind: ProgressKind
    message: str
    query: str | None = None
    uri: str | None = None


@dataclass
class SyncResult:
    """
    Outcome of one run.

    Attributes:
        entries: Every progress entry, in emission order.
        playlist: The created playlist, None if creation never succeeded.
        matched_uris: Matched track URIs in input order.
        not_found: Number of file names with no search result.
        errors: Number of file names whose search failed.
        added: Number of tracks written to the playlist.
    """
    entries: list[ProgressEntry] = field(default_factory=list)
    playlist: PlaylistRef | None = None
    matched_uris: list[str] = field(default_factory=list)
    not_found: int = 0
    errors: int = 0
    added: int = 0

    @property
    def found(self) -> int:
        return len(self.matched_uris)

    @property
    def messages(self) -> list[str]:
        return [entry.message for entry in self.entries]


ProgressCallback = Callable[[ProgressEntry], None]


class SyncPipeline:
    """
    Runs folder-to-playlist synchronizations through a CatalogClient.

    Attributes:
        description: Description set on created playlists.
        public: Whether created playlists are public.
    """

    def __init__(
        self,
        client: CatalogClient,
        description: str = DEFAULT_DESCRIPTION,
        public: bool = False,
    ) -> None:
        self._client = client
        self.description = description
        self.public = public
        self._subscribers: list[ProgressCallback] = []

    def subscribe(self, callback: ProgressCallback) -> None:
        """Register a callback receiving every entry of later runs, in order."""
        self._subscribers.append(callback)

    def _emit(self, result: SyncResult, entry: ProgressEntry) -> None:
        result.entries.append(entry)
        logger.debug(f"[{entry.kind.value}] {entry.message}")
        for callback in self._subscribers:
            callback(entry)

    def run(self, raw_names: Iterable[str], playlist_name: str) -> SyncResult:
        """
        Create `playlist_name` and fill it with the best match of each name.

        Args:
            raw_names: Audio file names, in the order tracks should appear.
            playlist_name: Name of the playlist to create.

        Returns:
            SyncResult of a run that reached its end. A run where nothing
            matched still returns normally (the playlist stays empty).

        Raises:
            EmptyInputError: `raw_names` is empty or `playlist_name` is blank.
            SyncAbortedError: Profile lookup, playlist creation or adding
                              tracks failed. `.stage` says which, `.result`
                              holds the entries emitted so far.
        """
        names = list(raw_names)
        if not names:
            raise EmptyInputError("No track files to synchronize")
        if not playlist_name.strip():
            raise EmptyInputError("Playlist name must not be blank")

        result = SyncResult()
        logger.info(f"Processing {len(names)} tracks into playlist '{playlist_name}'")

        # Profile
        try:
            profile = self._client.get_profile()
        except CatalogError as e:
            self._abort(result, SyncStage.PROFILE, "Could not fetch the Spotify profile", e)

        self._emit(result, ProgressEntry(
            ProgressKind.PROFILE,
            f"👤 Logged in as {profile.display_name or profile.id}",
        ))

        # Playlist
        try:
            playlist = self._client.create_playlist(
                profile.id, playlist_name, self.description, self.public
            )
        except CatalogError as e:
            self._abort(result, SyncStage.CREATE, "Could not create the playlist", e)

        result.playlist = playlist
        self._emit(result, ProgressEntry(
            ProgressKind.PLAYLIST,
            f"✅ Playlist created: {playlist.url}",
        ))

        # Search, one name at a time; a failure only affects its own name
        for raw_name in names:
            query = normalize_track_name(raw_name)
            try:
                uri = self._client.search_track(query)
            except CatalogError as e:
                result.errors += 1
                self._emit(result, ProgressEntry(
                    ProgressKind.SEARCH_ERROR,
                    f'⚠️ Error searching "{query}": {e}',
                    query=query,
                ))
                continue

            if uri:
                result.matched_uris.append(uri)
                self._emit(result, ProgressEntry(
                    ProgressKind.FOUND, f"✔ Found: {query}", query=query, uri=uri
                ))
            else:
                result.not_found += 1
                self._emit(result, ProgressEntry(
                    ProgressKind.NOT_FOUND, f"❌ Not found: {query}", query=query
                ))

        if not result.matched_uris:
            self._emit(result, ProgressEntry(
                ProgressKind.NOTHING_ADDED, "⚠️ No tracks were found to add."
            ))
            return result

        # Write back
        try:
            self._client.add_tracks(playlist.id, result.matched_uris)
        except CatalogError as e:
            self._abort(result, SyncStage.ADD, "Could not add tracks to the playlist", e)

        result.added = len(result.matched_uris)
        self._emit(result, ProgressEntry(
            ProgressKind.ADDED, f"🎉 Added {result.added} tracks!"
        ))
        return result

    def _abort(
        self,
        result: SyncResult,
        stage: SyncStage,
        reason: str,
        error: CatalogError
    ) -> NoReturn:
        self._emit(result, ProgressEntry(ProgressKind.FAILED, f"❌ Failed: {error}"))
        raise SyncAbortedError(
            f"{reason}: {error}",
            stage=stage,
            result=result,
            details={"stage": stage.value, "original_error": str(error)},
        ) from error
