import json
import logging
import os
import sys

import pytest


def _ensure_project_root_on_sys_path() -> None:
    here = os.path.dirname(__file__)
    project_root = os.path.abspath(os.path.join(here, "..", ".."))
    if project_root not in sys.path:
        sys.path.insert(0, project_root)


_ensure_project_root_on_sys_path()


@pytest.fixture(autouse=True)
def _clear_tapedeck_env():
    """Ensure TAPEDECK_* settings from the shell or a .env do not leak into tests."""
    keys = [k for k in os.environ if k.startswith('TAPEDECK_')]
    backup = {k: os.environ.get(k) for k in keys}
    for k in keys:
        os.environ.pop(k, None)
    try:
        yield
    finally:
        for k, v in backup.items():
            os.environ[k] = v


@pytest.fixture(autouse=True)
def _reset_tapedeck_logger():
    """CLI runs attach handlers to the tapedeck logger; drop them after each test."""
    logger = logging.getLogger('tapedeck')
    try:
        yield
    finally:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        logger.setLevel(logging.NOTSET)


@pytest.fixture
def playlist_file(tmp_path):
    """Write a playlist document and return its path."""
    def _write(document) -> str:
        path = tmp_path / "playlist.json"
        path.write_text(json.dumps(document), encoding='utf-8')
        return str(path)
    return _write
