from __future__ import annotations

from typing import List, Protocol

from .entities import Album, CatalogTrack


class CatalogClient(Protocol):
    """Port defining the narrow contract for music catalogs.

    Implementations map catalog-specific payloads into domain records and raise
    errors from ``tapedeck.domain.errors``.
    """

    def search_tracks(self, query: str, max_results: int = 10) -> List[CatalogTrack]:
        """Return up to max_results candidate tracks, ranked by relevance."""

    def get_album(self, album_id: int) -> Album:
        """Return the full album record for the given catalog id."""


class AssetFetcher(Protocol):
    """Port for downloading remote resources to local disk."""

    def download(self, url: str, destination: str) -> None:
        """Write the body of url to destination, overwriting it."""


class Operator(Protocol):
    """The human in the loop."""

    def ask(self, prompt: str) -> str:
        """Return one line of input. Raises OperatorAbort when input is exhausted."""

    def say(self, message: str = "") -> None:
        """Show a line of text to the operator."""
