import logging
from typing import Any, Dict, List, Optional

import requests

from tapedeck.crosscutting.config import DEFAULT_CATALOG_URL
from tapedeck.domain.entities import Album, CatalogTrack
from tapedeck.domain.errors import NetworkError, NotFound, RateLimited
from tapedeck.domain.ports import CatalogClient

logger = logging.getLogger(__name__)

# Error codes documented for the Deezer public API
QUOTA_EXCEEDED = 4
DATA_NOT_FOUND = 800

DEFAULT_RETRY_AFTER_MS = 5000


def _object(value: Any, what: str) -> Dict[str, Any]:
    """Return value as a JSON object; missing or null becomes an empty one."""
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise TypeError(f"{what} must be an object, got {type(value).__name__}")
    return value


def _text(value: Any, what: str) -> str:
    """Return value as a string; missing or null becomes empty."""
    if value is None:
        return ''
    if not isinstance(value, str):
        raise TypeError(f"{what} must be a string, got {type(value).__name__}")
    return value


class DeezerCatalog(CatalogClient):
    """Deezer public API adapter implementing the CatalogClient port.

    Only the two read endpoints the autofill workflow needs are wrapped:
    track search and album lookup. Neither requires authentication.
    """

    def __init__(self,
                 base_url: str = DEFAULT_CATALOG_URL,
                 session: Optional[requests.Session] = None,
                 timeout: Optional[float] = None,
                 user_agent: Optional[str] = None):
        """Initialize the catalog client.

        Args:
            base_url: API root, without trailing slash
            session: requests session to reuse (tests replace it with a mock)
            timeout: seconds to wait for the API; None waits forever
            user_agent: User-Agent header for every request
        """
        self._base_url = base_url.rstrip('/')
        self._session = session or requests.Session()
        if user_agent:
            self._session.headers['User-Agent'] = user_agent
        self._timeout = timeout

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """GET a JSON document and map failures to domain errors."""
        url = f"{self._base_url}{path}"
        try:
            response = self._session.get(url, params=params, timeout=self._timeout)
        except requests.RequestException as e:
            raise NetworkError(f"Request to {url} failed: {e}") from e

        if response.status_code == 429:
            retry_after = response.headers.get('Retry-After', '')
            retry_after_ms = int(retry_after) * 1000 if retry_after.isdigit() else DEFAULT_RETRY_AFTER_MS
            raise RateLimited(retry_after_ms=retry_after_ms)
        if response.status_code == 404:
            raise NotFound(f"{url} not found")
        if not response.ok:
            raise NetworkError(f"Request to {url} failed: HTTP {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise NetworkError(f"Invalid JSON from {url}: {e}") from e
        if not isinstance(payload, dict):
            raise NetworkError(f"Unexpected response from {url}")

        # Deezer reports API errors with HTTP 200 and an "error" object
        error = payload.get('error')
        if error:
            self._raise_api_error(error, url)

        return payload

    def _raise_api_error(self, error: Any, url: str) -> None:
        if not isinstance(error, dict):
            raise NetworkError(f"Catalog error from {url}: {error}")

        code = error.get('code')
        message = error.get('message') or error.get('type') or 'unknown error'
        if code == QUOTA_EXCEEDED:
            raise RateLimited(retry_after_ms=DEFAULT_RETRY_AFTER_MS, message=f"Catalog quota exceeded: {message}")
        if code == DATA_NOT_FOUND:
            raise NotFound(f"Catalog has no data for {url}: {message}")
        raise NetworkError(f"Catalog error from {url} (code {code}): {message}")

    def _track_to_domain(self, item: Dict[str, Any]) -> Optional[CatalogTrack]:
        """Convert a Deezer track object to a CatalogTrack, or None if it is unusable."""
        try:
            item = _object(item, 'track')
            album = _object(item.get('album'), 'album')
            artist = _object(item.get('artist'), 'artist')
            return CatalogTrack(
                id=int(item['id']),
                title=_text(item.get('title'), 'title'),
                artist_name=_text(artist.get('name'), 'artist name'),
                album_id=int(album['id']),
                album_title=_text(album.get('title'), 'album title'),
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping malformed search result: {e}")
            return None

    def search_tracks(self, query: str, max_results: int = 10) -> List[CatalogTrack]:
        """Search tracks by free text, ranked by Deezer's relevance order."""
        payload = self._get('/search/track', params={
            'q': query,
            'order': 'RANKING',
            'index': 0,
            'limit': max_results,
        })

        data = payload.get('data') or []
        if not isinstance(data, list):
            raise NetworkError(f"Unexpected search response for '{query}'")

        results = []
        for item in data:
            track = self._track_to_domain(item)
            if track is not None:
                results.append(track)

        logger.debug(f"Search '{query}' returned {len(results)} tracks")
        return results[:max_results]

    def get_album(self, album_id: int) -> Album:
        """Fetch the album record for album_id."""
        payload = self._get(f"/album/{int(album_id)}")

        try:
            artist = _object(payload.get('artist'), 'artist')
            return Album(
                id=int(payload['id']),
                title=_text(payload.get('title'), 'title'),
                artist_name=_text(artist.get('name'), 'artist name'),
                cover_url=_text(payload.get('cover'), 'cover'),
                release_date=_text(payload.get('release_date'), 'release_date'),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise NetworkError(f"Malformed album {album_id} from catalog: {e}") from e
