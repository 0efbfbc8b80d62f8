"""Shared fixtures for the test suite."""

import pytest
from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from gateway.config import Settings
from gateway.main import create_app
from gateway.upstream import UpstreamClient


@pytest.fixture
def site_dir(tmp_path):
    """Base dir with an index page and two static assets."""
    static = tmp_path / "static"
    static.mkdir()
    (static / "app.js").write_text("console.log('app');")
    (static / "style.css").write_text("body { margin: 0; }")
    (tmp_path / "index.html").write_text("<html><body>Gateway</body></html>")
    return tmp_path


@pytest.fixture
def settings(site_dir):
    return Settings(
        client_id="test-client",
        client_secret="test-secret",
        base_dir=site_dir,
    )


@pytest.fixture
def mock_response():
    """Factory for mock upstream responses."""
    def _make(status_code=200, json_data=None, json_error=None):
        resp = MagicMock()
        resp.status_code = status_code
        resp.ok = 200 <= status_code < 300
        if json_error is not None:
            resp.json.side_effect = json_error
        else:
            resp.json.return_value = json_data if json_data is not None else {}
        return resp
    return _make


@pytest.fixture
def session():
    """Stand-in for requests.Session; configure session.request per test."""
    return MagicMock()


@pytest.fixture
def upstream(settings, session):
    return UpstreamClient(settings, session=session)


@pytest.fixture
def client(settings, upstream):
    """TestClient wired to an UpstreamClient backed by the mock session."""
    return TestClient(create_app(settings, client=upstream))
