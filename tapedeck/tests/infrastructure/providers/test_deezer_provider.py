from unittest.mock import Mock

import pytest
import requests

from tapedeck.domain.entities import Album, CatalogTrack
from tapedeck.domain.errors import NetworkError, NotFound, RateLimited
from tapedeck.infrastructure.providers.deezer import DeezerCatalog


def _response(payload=None, status_code=200, headers=None, json_error=None):
    response = Mock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 400
    response.headers = headers or {}
    if json_error:
        response.json.side_effect = json_error
    else:
        response.json.return_value = payload
    return response


SEARCH_PAYLOAD = {
    "data": [
        {
            "id": 3135556,
            "title": "Harder, Better, Faster, Stronger",
            "artist": {"id": 27, "name": "Daft Punk"},
            "album": {"id": 302127, "title": "Discovery"},
        },
        {
            "id": 67238735,
            "title": "Harder Better Faster Stronger (Live)",
            "artist": {"id": 27, "name": "Daft Punk"},
            "album": {"id": 6575789, "title": "Alive 2007"},
        },
    ],
    "total": 2,
}

ALBUM_PAYLOAD = {
    "id": 302127,
    "title": "Discovery",
    "artist": {"id": 27, "name": "Daft Punk"},
    "cover": "https://api.deezer.com/album/302127/image",
    "release_date": "2001-03-07",
}


class TestDeezerCatalog:
    """Contract tests for the Deezer catalog adapter."""

    def setup_method(self):
        self.session = Mock()
        self.session.headers = {}
        self.catalog = DeezerCatalog(base_url="https://api.deezer.test/", session=self.session,
                                     user_agent="tapedeck-test")

    def test_search_tracks_returns_ranked_candidates(self):
        self.session.get.return_value = _response(SEARCH_PAYLOAD)

        results = self.catalog.search_tracks("harder better daft punk", max_results=10)

        assert results == [
            CatalogTrack(id=3135556, title="Harder, Better, Faster, Stronger", artist_name="Daft Punk",
                         album_id=302127, album_title="Discovery"),
            CatalogTrack(id=67238735, title="Harder Better Faster Stronger (Live)", artist_name="Daft Punk",
                         album_id=6575789, album_title="Alive 2007"),
        ]
        self.session.get.assert_called_once_with(
            "https://api.deezer.test/search/track",
            params={"q": "harder better daft punk", "order": "RANKING", "index": 0, "limit": 10},
            timeout=None,
        )
        assert self.session.headers["User-Agent"] == "tapedeck-test"

    def test_search_respects_max_results(self):
        self.session.get.return_value = _response(SEARCH_PAYLOAD)

        assert len(self.catalog.search_tracks("q", max_results=1)) == 1

    def test_search_with_no_hits_returns_empty_list(self):
        self.session.get.return_value = _response({"data": [], "total": 0})

        assert self.catalog.search_tracks("nothing like this") == []

    def test_malformed_result_is_skipped(self):
        payload = {"data": [{"id": 1, "title": "no album"}, SEARCH_PAYLOAD["data"][0]]}
        self.session.get.return_value = _response(payload)

        results = self.catalog.search_tracks("q")

        assert [r.id for r in results] == [3135556]

    def test_get_album_maps_fields(self):
        self.session.get.return_value = _response(ALBUM_PAYLOAD)

        album = self.catalog.get_album(302127)

        assert album == Album(id=302127, title="Discovery", artist_name="Daft Punk",
                              cover_url="https://api.deezer.com/album/302127/image",
                              release_date="2001-03-07")
        assert self.session.get.call_args[0][0] == "https://api.deezer.test/album/302127"

    def test_no_data_error_raises_not_found(self):
        self.session.get.return_value = _response(
            {"error": {"type": "DataException", "message": "no data", "code": 800}}
        )

        with pytest.raises(NotFound):
            self.catalog.get_album(1)

    def test_quota_error_raises_rate_limited(self):
        self.session.get.return_value = _response(
            {"error": {"type": "Exception", "message": "Quota limit exceeded", "code": 4}}
        )

        with pytest.raises(RateLimited) as exc_info:
            self.catalog.search_tracks("q")
        assert exc_info.value.retry_after_ms > 0

    def test_http_429_raises_rate_limited_with_retry_after(self):
        self.session.get.return_value = _response(status_code=429, headers={"Retry-After": "3"})

        with pytest.raises(RateLimited) as exc_info:
            self.catalog.search_tracks("q")
        assert exc_info.value.retry_after_ms == 3000

    def test_rate_limited_is_a_network_error(self):
        assert issubclass(RateLimited, NetworkError)

    def test_http_404_raises_not_found(self):
        self.session.get.return_value = _response(status_code=404)

        with pytest.raises(NotFound):
            self.catalog.get_album(1)

    def test_other_api_error_raises_network_error(self):
        self.session.get.return_value = _response(
            {"error": {"type": "ParameterException", "message": "Wrong parameter", "code": 500}}
        )

        with pytest.raises(NetworkError, match="Wrong parameter"):
            self.catalog.search_tracks("q")

    def test_server_error_raises_network_error(self):
        self.session.get.return_value = _response(status_code=502)

        with pytest.raises(NetworkError, match="HTTP 502"):
            self.catalog.search_tracks("q")

    def test_transport_failure_raises_network_error(self):
        self.session.get.side_effect = requests.Timeout("timed out")

        with pytest.raises(NetworkError, match="timed out"):
            self.catalog.search_tracks("q")

    def test_invalid_json_raises_network_error(self):
        self.session.get.return_value = _response(json_error=ValueError("Expecting value"))

        with pytest.raises(NetworkError, match="Invalid JSON"):
            self.catalog.get_album(1)

    def test_album_without_id_raises_network_error(self):
        self.session.get.return_value = _response({"title": "Discovery"})

        with pytest.raises(NetworkError, match="Malformed album"):
            self.catalog.get_album(302127)

    @pytest.mark.parametrize("bad_item", [
        "not-a-track",
        {"id": 1, "title": "x", "artist": "Daft Punk", "album": {"id": 2, "title": "y"}},
        {"id": 1, "title": "x", "artist": {"name": "Daft Punk"}, "album": ["y"]},
        {"id": 1, "title": 42, "artist": {"name": "Daft Punk"}, "album": {"id": 2}},
    ])
    def test_wrongly_typed_result_is_skipped(self, bad_item):
        payload = {"data": [bad_item, SEARCH_PAYLOAD["data"][0]]}
        self.session.get.return_value = _response(payload)

        results = self.catalog.search_tracks("q")

        assert [r.id for r in results] == [3135556]

    def test_null_text_fields_become_empty_strings(self):
        payload = {"data": [{"id": 1, "title": None, "artist": {"name": None},
                             "album": {"id": 2, "title": None}}]}
        self.session.get.return_value = _response(payload)

        results = self.catalog.search_tracks("q")

        assert results == [CatalogTrack(id=1, title="", artist_name="", album_id=2, album_title="")]

    def test_search_data_not_a_list_raises_network_error(self):
        self.session.get.return_value = _response({"data": {"id": 1}})

        with pytest.raises(NetworkError, match="Unexpected search response"):
            self.catalog.search_tracks("q")

    def test_album_null_fields_become_empty_strings(self):
        self.session.get.return_value = _response(
            {"id": 302127, "title": None, "artist": None, "cover": None, "release_date": None}
        )

        album = self.catalog.get_album(302127)

        assert album == Album(id=302127, title="", artist_name="", cover_url="", release_date="")

    @pytest.mark.parametrize("payload", [
        {"id": 302127, "title": "Discovery", "artist": "Daft Punk"},
        {"id": 302127, "title": "Discovery", "cover": {"small": "x"}},
    ])
    def test_album_with_wrong_field_types_raises_network_error(self, payload):
        self.session.get.return_value = _response(payload)

        with pytest.raises(NetworkError, match="Malformed album"):
            self.catalog.get_album(302127)
