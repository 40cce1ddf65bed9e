import logging
from typing import Optional

import requests

from tapedeck.domain.errors import NetworkError
from tapedeck.domain.ports import AssetFetcher

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


class HttpAssetFetcher(AssetFetcher):
    """Downloads remote files (cover art) over HTTP(S)."""

    def __init__(self, session: Optional[requests.Session] = None,
                 timeout: Optional[float] = None,
                 user_agent: Optional[str] = None):
        """Initialize the fetcher.

        Args:
            session: requests session to reuse, a new one by default
            timeout: seconds to wait for the server; None waits forever
            user_agent: User-Agent header for every request
        """
        self._session = session or requests.Session()
        if user_agent:
            self._session.headers['User-Agent'] = user_agent
        self._timeout = timeout

    def download(self, url: str, destination: str) -> None:
        """Stream url into destination, overwriting any existing file.

        Raises:
            NetworkError: transport failure or non-success status
            OSError: destination cannot be created or written
        """
        logger.debug(f"Downloading {url} -> {destination}")
        try:
            response = self._session.get(url, stream=True, timeout=self._timeout)
        except requests.RequestException as e:
            raise NetworkError(f"Failed to fetch {url}: {e}") from e

        with response:
            if not response.ok:
                raise NetworkError(f"Failed to fetch {url}: HTTP {response.status_code}")

            written = 0
            with open(destination, 'wb') as f:
                try:
                    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                        if chunk:
                            f.write(chunk)
                            written += len(chunk)
                except requests.RequestException as e:
                    raise NetworkError(f"Download of {url} interrupted: {e}") from e

        logger.info(f"Downloaded {written} bytes to {destination}")
