"""Shared fixtures for the author feed tests."""

from unittest.mock import Mock

import pytest
import requests

from author_feed.config import Config


@pytest.fixture
def config(tmp_path):
    return Config(
        user_id="5081058",
        request_delay=0,
        timeout=5,
        site_url="https://example.github.io/feed/",
        output_path=tmp_path / "docs" / "feed.xml",
    )


@pytest.fixture
def make_response():
    """Build a fake ``requests.Response`` with the given body and status."""

    def _make(text="", status_code=200, json_data=None):
        response = Mock()
        response.status_code = status_code
        response.text = text
        response.json.return_value = json_data
        if status_code >= 400:
            response.raise_for_status.side_effect = requests.HTTPError(f"HTTP {status_code}")
        else:
            response.raise_for_status.return_value = None
        return response

    return _make
