"""
Folder-to-playlist synchronization.

Modules:
    normalizer - file name -> search query
    folder     - list the audio files of a folder
    pipeline   - profile, playlist creation, search, batched write-back

Usage:
    from playlister.sync import SyncPipeline, scan_folder

    scan = scan_folder(Path("~/Music/Road Trip"))
    result = SyncPipeline(client).run(scan.file_names, scan.name)
"""

from playlister.sync.folder import AUDIO_EXTENSIONS, FolderScan, scan_folder
from playlister.sync.normalizer import normalize_track_name
from playlister.sync.pipeline import (
    ProgressEntry,
    ProgressKind,
    SyncPipeline,
    SyncResult,
    SyncStage,
)

__all__ = [
    "AUDIO_EXTENSIONS",
    "FolderScan",
    "scan_folder",
    "normalize_track_name",
    "ProgressEntry",
    "ProgressKind",
    "SyncPipeline",
    "SyncResult",
    "SyncStage",
]
