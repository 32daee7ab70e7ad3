"""
Turn an audio file name into a Spotify search query.

Most ripped or downloaded files are named like
"05 - Artist - Title.mp3". The query puts the title first, which ranks
the intended track higher in Spotify search than "Artist Title" does.

Examples:
    normalize_track_name("05 - Artist - Title.mp3")   # "Title Artist"
    normalize_track_name("01. Artist - A - B.flac")   # "A - B Artist"
    normalize_track_name("Interlude.wav")             # "Interlude"
"""

import re


# Last ".ext" segment; never spans a dot or a path separator
EXTENSION_PATTERN = re.compile(r"\.[^/.]+\Z")

# "01 - ", "1.", "01_", "3) " ...
TRACK_NUMBER_PATTERN = re.compile(r"^[0-9]+\s*[-._)]*\s*")

ARTIST_TITLE_SEPARATOR = " - "


def normalize_track_name(raw_name: str) -> str:
    """
    Build the search query for a file name.

    Pure and total: any string gives a string (the empty string for an
    empty input) and the same input always gives the same output.

    Args:
        raw_name: File name as found on disk, extension included.

    Returns:
        "{title} {artist}" when the name contains " - ", otherwise the
        trimmed name without extension and track number.
    """
    name = EXTENSION_PATTERN.sub("", raw_name)
    name = TRACK_NUMBER_PATTERN.sub("", name)

    parts = name.split(ARTIST_TITLE_SEPARATOR)
    if len(parts) >= 2:
        artist = parts[0].strip()
        title = ARTIST_TITLE_SEPARATOR.join(parts[1:]).strip()
        return f"{title} {artist}"

    return name.strip()
