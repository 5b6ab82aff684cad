"""Pytest configuration and shared fixtures."""

from unittest.mock import patch

import pytest
import requests

from proxy_config import ProxyConfig
from proxy_server import create_app


def make_upstream_response(status=200, body=b'', headers=None, url='https://cdn.example.com/',
                           encoding='utf-8'):
    r = requests.Response()
    r.status_code = status
    r._content = body
    r._content_consumed = True
    r.encoding = encoding
    r.url = url
    r.headers.update(headers or {})
    return r


@pytest.fixture
def upstream_response():
    """Factory for real requests.Response objects with an already-loaded body."""
    return make_upstream_response


@pytest.fixture
def config():
    return ProxyConfig(api_domain='https://api.example.com', chunk_size=4)


@pytest.fixture
def app(config):
    app = create_app(config)
    app.config['TESTING'] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def mock_get():
    """Patch the outbound HTTP call used by every upstream helper."""
    with patch('upstream.requests.get') as mock:
        yield mock
