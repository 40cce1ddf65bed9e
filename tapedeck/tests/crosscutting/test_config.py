import os
from unittest.mock import patch

import pytest

from tapedeck.crosscutting.config import ConfigError, Settings, VERSION


class TestSettings:
    """Tests for settings loaded from the environment."""

    def test_defaults(self):
        settings = Settings.from_env({})

        assert settings.catalog_url == "https://api.deezer.com"
        assert settings.search_limit == 10
        assert settings.cover_size == 1000
        assert settings.art_dir == "."
        assert settings.max_attempts == 3
        assert settings.http_timeout is None
        assert settings.user_agent == f"tapedeck-autofill/{VERSION}"

    def test_values_from_env(self):
        settings = Settings.from_env({
            'TAPEDECK_CATALOG_URL': 'https://api.deezer.test/',
            'TAPEDECK_SEARCH_LIMIT': '25',
            'TAPEDECK_COVER_SIZE': '500',
            'TAPEDECK_ART_DIR': 'covers',
            'TAPEDECK_MAX_ATTEMPTS': '5',
            'TAPEDECK_HTTP_TIMEOUT': '7.5',
            'TAPEDECK_USER_AGENT': 'my-agent',
        })

        assert settings.catalog_url == 'https://api.deezer.test'
        assert settings.search_limit == 25
        assert settings.cover_size == 500
        assert settings.art_dir == 'covers'
        assert settings.max_attempts == 5
        assert settings.http_timeout == 7.5
        assert settings.user_agent == 'my-agent'

    @patch.dict(os.environ, {'TAPEDECK_SEARCH_LIMIT': '3'})
    def test_reads_process_environment_by_default(self):
        assert Settings.from_env().search_limit == 3

    @pytest.mark.parametrize("key,value", [
        ('TAPEDECK_SEARCH_LIMIT', 'ten'),
        ('TAPEDECK_COVER_SIZE', '0'),
        ('TAPEDECK_MAX_ATTEMPTS', '-2'),
        ('TAPEDECK_HTTP_TIMEOUT', 'soon'),
        ('TAPEDECK_HTTP_TIMEOUT', '0'),
    ])
    def test_invalid_values_raise_config_error(self, key, value):
        with pytest.raises(ConfigError, match=key):
            Settings.from_env({key: value})

    def test_blank_values_fall_back_to_defaults(self):
        settings = Settings.from_env({'TAPEDECK_SEARCH_LIMIT': '  ', 'TAPEDECK_HTTP_TIMEOUT': ''})

        assert settings.search_limit == 10
        assert settings.http_timeout is None

    def test_with_overrides_ignores_none(self):
        settings = Settings().with_overrides(search_limit=None, art_dir='covers')

        assert settings.search_limit == 10
        assert settings.art_dir == 'covers'

    def test_with_overrides_rejects_non_positive(self):
        with pytest.raises(ConfigError):
            Settings().with_overrides(max_attempts=0)
