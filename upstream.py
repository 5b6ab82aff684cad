import logging
from urllib.parse import urlparse

import requests

from proxy_errors import FetchError

logger = logging.getLogger(__name__)


def origin_headers(url, config):
    """Browser-like headers, with Referer/Origin pointing at the origin itself."""
    parsed = urlparse(url)
    origin = f"{parsed.scheme}://{parsed.netloc}"
    return {
        'User-Agent': config.user_agent,
        'Referer': origin + '/',
        'Origin': origin,
    }


def _fetch_error(message, url, exc):
    status = exc.response.status_code if exc.response is not None else None
    return FetchError(f"{message}: {exc}", url, status)


def fetch_manifest(url, config):
    try:
        r = requests.get(url, headers=origin_headers(url, config), timeout=config.manifest_timeout)
        r.raise_for_status()
    except requests.RequestException as e:
        raise _fetch_error("Failed to fetch playlist", url, e) from e
    # playlists are UTF-8; requests would fall back to ISO-8859-1 for text/plain
    return r.content.decode('utf-8', errors='replace')


def open_stream(url, config):
    """Start a streamed GET; the caller owns the returned response and must close it."""
    try:
        r = requests.get(url, headers=origin_headers(url, config), stream=True,
                         timeout=config.segment_timeout)
    except requests.RequestException as e:
        raise _fetch_error("Failed to fetch segment", url, e) from e
    try:
        r.raise_for_status()
    except requests.HTTPError as e:
        r.close()
        raise _fetch_error("Failed to fetch segment", url, e) from e
    return r


def relay(r, chunk_size=65536):
    """Yield the upstream body chunk by chunk.

    Closing the generator (the WSGI server does this when the client goes
    away) closes the upstream connection too.
    """
    sent = 0
    try:
        for chunk in r.iter_content(chunk_size=chunk_size):
            if chunk:
                sent += len(chunk)
                yield chunk
    except requests.RequestException as e:
        # headers are already out, all we can do is cut the body short
        logger.error("Segment relay aborted after %d bytes: %s (%s)", sent, e, r.url)
    finally:
        r.close()
        logger.debug("Closed upstream %s after %d bytes", r.url, sent)


def fetch_json(path, config, params=None):
    url = config.api_domain + path
    try:
        r = requests.get(url, params=params, timeout=config.api_timeout)
        r.raise_for_status()
        return r.json()
    except requests.RequestException as e:
        raise _fetch_error("Failed to fetch API data", url, e) from e
    except ValueError as e:
        raise FetchError(f"Invalid JSON from API: {e}", url) from e
