"""Test music folder scanning"""

import pytest

from playlister.core.exceptions import FolderError
from playlister.sync.folder import AUDIO_EXTENSIONS, is_audio_file, scan_folder


@pytest.fixture
def music_folder(tmp_path):
    """Folder with audio files, other files and a subfolder"""
    folder = tmp_path / "Road Trip"
    folder.mkdir()
    for name in ["b - Second.mp3", "A - First.FLAC", "c - Third.m4a",
                 "cover.jpg", "notes.txt", ".hidden.mp3"]:
        (folder / name).write_bytes(b"")
    sub = folder / "Bonus"
    sub.mkdir()
    (sub / "d - Bonus.ogg").write_bytes(b"")
    return folder


class TestScanFolder:
    """Test scan_folder"""

    def test_lists_audio_files_sorted(self, music_folder):
        """Test filtering and case-insensitive ordering"""
        scan = scan_folder(music_folder)

        assert scan.file_names == ("A - First.FLAC", "b - Second.mp3", "c - Third.m4a")
        assert scan.track_count == 3

    def test_folder_name_is_playlist_name(self, music_folder):
        """Test that the folder name is reported"""
        scan = scan_folder(music_folder)

        assert scan.name == "Road Trip"
        assert scan.path == music_folder.resolve()

    def test_recursive_includes_subfolders(self, music_folder):
        """Test recursive scanning keeps file names only"""
        scan = scan_folder(music_folder, recursive=True)

        assert "d - Bonus.ogg" in scan.file_names
        assert scan.track_count == 4

    def test_recursive_order_follows_subfolders(self, tmp_path):
        """Test that each disc stays together instead of mixing by file name"""
        for disc, name in [("CD1", "b.mp3"), ("CD2", "a.mp3"), ("cd1", "c.mp3")]:
            (tmp_path / disc).mkdir(exist_ok=True)
            (tmp_path / disc / name).write_bytes(b"")

        scan = scan_folder(tmp_path, recursive=True)

        assert scan.file_names == ("b.mp3", "c.mp3", "a.mp3")

    def test_custom_extensions(self, music_folder):
        """Test restricting the accepted suffixes"""
        scan = scan_folder(music_folder, extensions=frozenset({".mp3"}))

        assert scan.file_names == ("b - Second.mp3",)

    def test_empty_folder(self, tmp_path):
        """Test that an empty folder is not an error here"""
        scan = scan_folder(tmp_path)

        assert scan.file_names == ()

    def test_missing_folder(self, tmp_path):
        """Test error for a folder that does not exist"""
        with pytest.raises(FolderError, match="not found"):
            scan_folder(tmp_path / "missing")

    def test_file_instead_of_folder(self, tmp_path):
        """Test error for a path pointing at a file"""
        path = tmp_path / "song.mp3"
        path.write_bytes(b"")

        with pytest.raises(FolderError, match="Not a folder"):
            scan_folder(path)


class TestIsAudioFile:
    """Test is_audio_file"""

    def test_extension_case_insensitive(self, tmp_path):
        """Test upper-case suffixes"""
        path = tmp_path / "Song.MP3"
        path.write_bytes(b"")

        assert is_audio_file(path)

    def test_hidden_files_skipped(self, tmp_path):
        """Test dot files (e.g. macOS resource forks)"""
        path = tmp_path / "._Song.mp3"
        path.write_bytes(b"")

        assert not is_audio_file(path)

    def test_directories_skipped(self, tmp_path):
        """Test a directory named like an audio file"""
        path = tmp_path / "album.flac"
        path.mkdir()

        assert not is_audio_file(path)

    def test_known_extensions(self):
        """Test the default extension set"""
        assert {".mp3", ".flac", ".wav", ".m4a"} <= AUDIO_EXTENSIONS
        assert ".jpg" not in AUDIO_EXTENSIONS
