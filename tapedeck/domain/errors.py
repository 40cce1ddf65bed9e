from typing import Optional


class TapedeckError(Exception):
    """Base class for every failure raised by tapedeck itself."""


class DecodeError(TapedeckError):
    """Playlist content is not well-formed JSON or has the wrong shape."""


class NetworkError(TapedeckError):
    """Transport failure or non-success response from a remote service."""


class RateLimited(NetworkError):
    """Operation was rate limited by the catalog. Includes suggested wait time in milliseconds."""

    def __init__(self, retry_after_ms: int, message: str = "Rate limited") -> None:
        super().__init__(message)
        self.retry_after_ms = retry_after_ms


class NotFound(TapedeckError):
    """Requested resource was not found."""


class InputError(TapedeckError):
    """Operator input could not be used (non-numeric, empty or repeatedly invalid)."""


class OperatorAbort(TapedeckError):
    """Operator asked to stop the run, or the console reached end of input."""


class EnrichmentAborted(TapedeckError):
    """Album lookup or cover download failed; the whole run stops.

    Tracks enriched before the failure are already persisted.
    """

    def __init__(self, track_index: int, message: str, stage: Optional[str] = None) -> None:
        super().__init__(message)
        self.track_index = track_index
        self.stage = stage
