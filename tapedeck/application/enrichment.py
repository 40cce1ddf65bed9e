"""Interactive album enrichment for tapedeck playlists.

For every track without an album the workflow searches the catalog with
"<title> <artist>", lets the operator pick a candidate, looks up the album,
downloads its cover and rewrites the playlist file before moving on. A crash
loses at most the track in flight.

Search and selection failures only skip the current track. Album lookup and
cover download failures stop the run unless ``keep_going`` is set.
"""
import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

from tapedeck.crosscutting.logging import (
    CorrelationContext, log_error, log_run_complete, log_run_start,
    log_track_enriched,
)
from tapedeck.domain.dates import release_year
from tapedeck.domain.entities import Album, CatalogTrack, Playlist
from tapedeck.domain.errors import (
    EnrichmentAborted, InputError, NetworkError, NotFound, OperatorAbort,
)
from tapedeck.domain.filenames import sanitize_filename
from tapedeck.domain.ports import AssetFetcher, CatalogClient, Operator
from tapedeck.infrastructure.playlist_store import load_playlist, save_playlist


logger = logging.getLogger(__name__)

ART_EXTENSION = ".jpg"

MENU_LINES = (
    "0-9: select album",
    "A: enter album ID",
    "?: edit search query",
    "S: skip track",
    "Q: quit",
)

ENRICHED = "enriched"
SKIPPED = "skipped"
FAILED = "failed"


@dataclass
class EnrichmentResult:
    """Outcome of one autofill run."""

    playlist_path: str
    total_tracks: int = 0
    already_resolved: int = 0
    enriched: int = 0
    skipped: int = 0
    failed: int = 0
    stopped: bool = False
    dry_run: bool = False
    errors: List[str] = field(default_factory=list)


class EnrichmentWorkflow:
    """Walks a playlist track by track and fills in album metadata."""

    def __init__(self,
                 catalog: CatalogClient,
                 fetcher: AssetFetcher,
                 operator: Operator,
                 search_limit: int = 10,
                 cover_size: int = 1000,
                 art_dir: str = ".",
                 max_attempts: int = 3,
                 keep_going: bool = False,
                 dry_run: bool = False):
        """Initialize the workflow.

        Args:
            catalog: catalog used for search and album lookup
            fetcher: downloads cover art
            operator: console used for menus and selections
            search_limit: maximum candidates shown per search
            cover_size: requested cover edge in pixels
            art_dir: directory receiving cover files
            max_attempts: invalid menu entries tolerated per track
            keep_going: treat lookup/download failures as per-track failures
            dry_run: select albums but write neither covers nor the playlist
        """
        self._catalog = catalog
        self._fetcher = fetcher
        self._operator = operator
        self._search_limit = search_limit
        self._cover_size = cover_size
        self._art_dir = art_dir
        self._max_attempts = max_attempts
        self._keep_going = keep_going
        self._dry_run = dry_run

    def run(self, path: str) -> EnrichmentResult:
        """Enrich every unresolved track of the playlist at path.

        Raises:
            OSError, DecodeError: the playlist cannot be read or written
            EnrichmentAborted: album lookup or cover download failed
        """
        playlist = load_playlist(path)
        result = EnrichmentResult(playlist_path=path, total_tracks=len(playlist.tracks),
                                  dry_run=self._dry_run)

        self._operator.say(f"{playlist.name} {playlist.created_at}")
        log_run_start(logger, path, len(playlist.tracks), playlist.unresolved_count,
                      dry_run=self._dry_run)

        with CorrelationContext(playlist=path):
            for index, track in enumerate(playlist.tracks):
                self._operator.say(f"Track {index}. {track.title} • {track.artist} • {track.album}")

                if track.is_resolved:
                    result.already_resolved += 1
                    continue

                with CorrelationContext(track=index):
                    try:
                        status = self.enrich_track(playlist, index, path, result)
                    except OperatorAbort as e:
                        logger.info(f"Run stopped by operator at track {index}: {e}")
                        self._operator.say("Stopping; enriched tracks are saved.")
                        result.stopped = True
                        break

                if status == ENRICHED:
                    result.enriched += 1
                elif status == SKIPPED:
                    result.skipped += 1
                else:
                    result.failed += 1

        log_run_complete(logger, path, result.enriched, result.skipped, result.failed,
                         already_resolved=result.already_resolved, stopped=result.stopped)
        return result

    def enrich_track(self, playlist: Playlist, index: int, path: str,
                     result: Optional[EnrichmentResult] = None) -> str:
        """Run search, selection, lookup, download and persistence for one track.

        Returns ENRICHED, SKIPPED or FAILED.
        """
        track = playlist.tracks[index]

        with CorrelationContext(stage="searching"):
            try:
                album_id = self.choose_album_id(track.search_query)
            except (NetworkError, NotFound, InputError) as e:
                self._operator.say(f"Error: {e}")
                log_error(logger, f"Search failed for track {index}", e)
                if result is not None:
                    result.errors.append(f"track {index}: {e}")
                return FAILED

        if album_id is None:
            logger.info(f"Track {index} skipped by operator")
            return SKIPPED

        stage = "resolving"
        try:
            with CorrelationContext(stage=stage):
                album = self._catalog.get_album(album_id)
                year = release_year(album.release_date)
                art_path = self.art_path_for(album)
                self._operator.say(f"Year {year or 0}. Album Art: {art_path}")

            stage = "downloading"
            with CorrelationContext(stage=stage):
                if not self._dry_run:
                    if self._art_dir not in ("", "."):
                        os.makedirs(self._art_dir, exist_ok=True)
                    self._fetcher.download(album.cover_url_for(self._cover_size), art_path)
        except (NetworkError, NotFound, OSError) as e:
            if not self._keep_going:
                raise EnrichmentAborted(index, f"Track {index}: {stage} failed: {e}", stage=stage) from e
            self._operator.say(f"Error: {e}")
            log_error(logger, f"Track {index} {stage} failed", e, stage=stage)
            if result is not None:
                result.errors.append(f"track {index}: {e}")
            return FAILED

        track.album = album.title
        track.album_year = year
        track.album_art = art_path

        if self._dry_run:
            self._operator.say(f"DRY-RUN: would set album '{album.title}', year {year}, art {art_path}")
            return ENRICHED

        with CorrelationContext(stage="persisting"):
            save_playlist(playlist, path)
            log_track_enriched(logger, index, track.album, track.album_year, art_path, album_id=album.id)
        return ENRICHED

    def art_path_for(self, album: Album) -> str:
        """Local path of the cover for album."""
        filename = sanitize_filename(f"{album.artist_name} {album.title}", ART_EXTENSION)
        if self._art_dir in ("", "."):
            return filename
        return os.path.join(self._art_dir, filename)

    def search(self, query: str) -> List[CatalogTrack]:
        """Search the catalog and show the ranked candidates."""
        candidates = self._catalog.search_tracks(query, self._search_limit)

        self._operator.say(f"» Search results for '{query}':")
        for i, candidate in enumerate(candidates):
            self._operator.say(
                f"{i}. {candidate.title} • {candidate.artist_name} • {candidate.album_title} • {candidate.url}"
            )
        if not candidates:
            self._operator.say("↳ No tracks found‥")
            logger.info(f"No tracks found for '{query}'")

        return candidates

    def choose_album_id(self, query: str) -> Optional[int]:
        """Let the operator pick an album for query.

        Returns the chosen album id, or None when the operator skips the track.

        Raises:
            InputError: more than max_attempts invalid entries
            OperatorAbort: the operator quit
            NetworkError, NotFound: a search failed
        """
        candidates = self.search(query)
        invalid = 0

        while invalid < self._max_attempts:
            for line in MENU_LINES:
                self._operator.say(line)
            choice = self._operator.ask("> ")
            command = choice.upper()

            if command == "A":
                raw_id = self._operator.ask("Enter an album ID: ")
                album_id = _parse_index(raw_id)
                if album_id is None or album_id <= 0:
                    self._operator.say("Not a valid number")
                    invalid += 1
                    continue
                return album_id

            if command == "?":
                next_query = self._operator.ask("Enter a query: ")
                if not next_query:
                    self._operator.say("Error: missing search query")
                    invalid += 1
                    continue
                candidates = self.search(next_query)
                continue

            if command == "S":
                return None

            if command == "Q":
                raise OperatorAbort("Operator quit")

            selected = _parse_index(choice)
            if selected is None:
                self._operator.say(f"Invalid choice '{choice}'")
                invalid += 1
                continue
            if selected < 0 or selected >= len(candidates):
                self._operator.say(f"Could not find track {selected}")
                invalid += 1
                continue

            return candidates[selected].album_id

        raise InputError(f"No valid selection after {invalid} attempts")


def _parse_index(value: str) -> Optional[int]:
    try:
        return int(value)
    except ValueError:
        return None
