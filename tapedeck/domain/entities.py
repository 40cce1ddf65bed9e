from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


TRACK_URL_TEMPLATE = "https://deezer.com/us/track/{id}"


@dataclass
class Track:
    """One song entry of a playlist. Enrichment mutates it in place."""

    title: str = ""
    artist: str = ""
    album: str = ""
    album_art: Optional[str] = None
    album_year: Optional[int] = None
    timestamp: Optional[str] = None

    @property
    def is_resolved(self) -> bool:
        """A track with an album title is never searched again."""
        return bool(self.album)

    @property
    def search_query(self) -> str:
        return f"{self.title} {self.artist}"


@dataclass
class Playlist:
    """Ordered, named collection of tracks persisted as a single JSON file."""

    name: str = ""
    created_at: str = ""
    audio: str = ""
    tracks: List[Track] = field(default_factory=list)
    id: Optional[str] = None

    @property
    def unresolved_count(self) -> int:
        return sum(1 for track in self.tracks if not track.is_resolved)


@dataclass(frozen=True)
class CatalogTrack:
    """Search candidate returned by the catalog, ranked by relevance."""

    id: int
    title: str
    artist_name: str
    album_id: int
    album_title: str = ""

    @property
    def url(self) -> str:
        return TRACK_URL_TEMPLATE.format(id=self.id)


@dataclass(frozen=True)
class Album:
    """Album record as returned by the catalog. Never persisted verbatim."""

    id: int
    title: str
    artist_name: str
    cover_url: str = ""
    release_date: str = ""

    def cover_url_for(self, size: int) -> str:
        return f"{self.cover_url}?size={size}"
