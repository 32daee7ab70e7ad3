"""
Local folder intake: the ordered list of audio file names to synchronize.

The folder's own name is the default playlist name, as when picking a
folder of an album or a mix.
"""

from dataclasses import dataclass
from pathlib import Path

from playlister.core.exceptions import FolderError
from playlister.core.logger import get_logger

logger = get_logger(__name__)


AUDIO_EXTENSIONS = frozenset({
    ".mp3", ".flac", ".wav", ".m4a", ".aac", ".ogg",
    ".opus", ".wma", ".aiff", ".aif", ".alac",
})


@dataclass(frozen=True)
class FolderScan:
    """
    Result of scanning a music folder.

    Attributes:
        name: Folder name (default playlist name).
        path: Absolute folder path.
        file_names: Audio file names, sorted case-insensitively by their
                    path relative to the folder.
    """
    name: str
    path: Path
    file_names: tuple[str, ...]

    @property
    def track_count(self) -> int:
        return len(self.file_names)


def is_audio_file(path: Path, extensions: frozenset[str] = AUDIO_EXTENSIONS) -> bool:
    return (
        path.is_file()
        and not path.name.startswith(".")
        and path.suffix.lower() in extensions
    )


def scan_folder(
    folder: Path,
    extensions: frozenset[str] = AUDIO_EXTENSIONS,
    recursive: bool = False,
) -> FolderScan:
    """
    List the audio files of a folder.

    Args:
        folder: Folder to scan (~ is expanded).
        extensions: Lower-case suffixes to keep, dot included.
        recursive: Also descend into subfolders. Files are ordered by their
                   relative path, so each subfolder stays together
                   (CD1 before CD2), but only the file names are kept.

    Returns:
        FolderScan with names sorted by (casefolded relative path, relative
        path), so the order is stable across platforms.

    Raises:
        FolderError: If the folder is missing, not a directory, or unreadable.
    """
    path = folder.expanduser().resolve()

    if not path.exists():
        raise FolderError(f"Folder not found: {path}", details={"path": str(path)})
    if not path.is_dir():
        raise FolderError(f"Not a folder: {path}", details={"path": str(path)})

    try:
        candidates = path.rglob("*") if recursive else path.iterdir()
        relative_paths = [
            p.relative_to(path).as_posix()
            for p in candidates if is_audio_file(p, extensions)
        ]
    except OSError as e:
        raise FolderError(
            f"Cannot read folder {path}: {e}",
            details={"path": str(path), "original_error": str(e)}
        ) from e

    relative_paths.sort(key=lambda r: (r.casefold(), r))
    names = [r.rsplit("/", 1)[-1] for r in relative_paths]
    logger.debug(f"Found {len(names)} audio files in {path}")

    return FolderScan(name=path.name, path=path, file_names=tuple(names))
