import json
import logging
import os
import tempfile
from typing import Any, Dict

from tapedeck.domain.entities import Playlist, Track
from tapedeck.domain.errors import DecodeError

logger = logging.getLogger(__name__)


def _expect_str(data: Dict[str, Any], key: str, where: str, optional: bool = False):
    value = data.get(key)
    if value is None:
        return None if optional else ""
    if not isinstance(value, str):
        raise DecodeError(f"{where}: '{key}' must be a string, got {type(value).__name__}")
    return value


def _track_from_json(data: Any, index: int) -> Track:
    """Convert a JSON track object to a domain Track."""
    where = f"tracks[{index}]"
    if not isinstance(data, dict):
        raise DecodeError(f"{where} must be an object")

    album_year = data.get('albumYear')
    # bool is an int subclass; reject it explicitly
    if album_year is not None and (isinstance(album_year, bool) or not isinstance(album_year, int)):
        raise DecodeError(f"{where}: 'albumYear' must be an integer")

    return Track(
        title=_expect_str(data, 'title', where),
        artist=_expect_str(data, 'artist', where),
        album=_expect_str(data, 'album', where),
        album_art=_expect_str(data, 'albumArt', where, optional=True),
        album_year=album_year,
        timestamp=_expect_str(data, 'timestamp', where, optional=True),
    )


def _track_to_json(track: Track) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        'title': track.title,
        'artist': track.artist,
        'album': track.album,
    }
    if track.album_art is not None:
        data['albumArt'] = track.album_art
    if track.album_year is not None:
        data['albumYear'] = track.album_year
    if track.timestamp is not None:
        data['timestamp'] = track.timestamp
    return data


def playlist_from_json(data: Any) -> Playlist:
    """Convert a decoded JSON document to a domain Playlist."""
    if not isinstance(data, dict):
        raise DecodeError("Playlist document must be a JSON object")

    tracks = data.get('tracks')
    if tracks is None:
        tracks = []
    if not isinstance(tracks, list):
        raise DecodeError("'tracks' must be a list")

    return Playlist(
        id=_expect_str(data, 'id', 'playlist', optional=True),
        name=_expect_str(data, 'name', 'playlist'),
        created_at=_expect_str(data, 'createdAt', 'playlist'),
        audio=_expect_str(data, 'audio', 'playlist'),
        tracks=[_track_from_json(item, i) for i, item in enumerate(tracks)],
    )


def playlist_to_json(playlist: Playlist) -> Dict[str, Any]:
    data: Dict[str, Any] = {}
    if playlist.id is not None:
        data['id'] = playlist.id
    data['name'] = playlist.name
    data['createdAt'] = playlist.created_at
    data['audio'] = playlist.audio
    data['tracks'] = [_track_to_json(track) for track in playlist.tracks]
    return data


def load_playlist(path: str) -> Playlist:
    """Read and decode the playlist file at path.

    Raises:
        OSError: the file cannot be read
        DecodeError: the content is not a well-formed playlist document
    """
    with open(path, 'r', encoding='utf-8') as f:
        try:
            content = f.read()
        except UnicodeDecodeError as e:
            raise DecodeError(f"Playlist {path} is not valid UTF-8: {e}") from e

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise DecodeError(f"Failed to decode playlist {path}: {e}") from e

    playlist = playlist_from_json(data)
    logger.debug(f"Loaded playlist {path} with {len(playlist.tracks)} tracks")
    return playlist


def save_playlist(playlist: Playlist, path: str) -> None:
    """Serialize the whole playlist and replace the file at path.

    The document is written to a temporary file next to path and renamed over
    it, so readers see either the old or the new content.

    Raises:
        OSError: the file cannot be written
    """
    directory = os.path.dirname(os.path.abspath(path))
    fd, tmp_path = tempfile.mkstemp(prefix='.tapedeck-', suffix='.json', dir=directory)
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            json.dump(playlist_to_json(playlist), f, indent=2, ensure_ascii=False)
            f.write('\n')
            f.flush()
            os.fsync(f.fileno())
        if os.path.exists(path):
            # mkstemp creates 0600 files; keep the original permissions
            os.chmod(tmp_path, os.stat(path).st_mode & 0o777)
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise

    logger.debug(f"Saved playlist {path}")
