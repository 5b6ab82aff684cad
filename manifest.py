"""HLS manifest rewriting.

Every URI line of a playlist is turned into an absolute URL on this proxy,
so the player never talks to the origin CDN directly. Directive lines are
left byte-identical.
"""
import re
from urllib.parse import quote

STREAM_PATH = '/api/movie/stream'
SEGMENT_PATH = '/api/movie/segment'

_LINE_BREAK = re.compile(r'(\r\n|\r|\n)')
# sub-delims browsers leave unescaped in a query component
_UNRESERVED = "!*'()"


def base_directory(origin_url):
    if origin_url.endswith('/'):
        return origin_url
    return origin_url[:origin_url.rfind('/') + 1]


def proxy_base_url(headers, scheme='http'):
    """Externally visible scheme+host of this proxy for one request.

    ``headers`` is the inbound request's header mapping and ``scheme`` the
    protocol of the connection itself, used when no proxy in front of us
    sent ``X-Forwarded-Proto``.
    """
    forwarded_proto = headers.get('X-Forwarded-Proto', '')
    proto = forwarded_proto.split(',')[0].strip() or scheme
    forwarded_host = headers.get('X-Forwarded-Host', '')
    host = forwarded_host.split(',')[0].strip() or headers.get('Host', 'localhost')
    return f"{proto}://{host}"


def is_absolute(ref):
    return ref.lower().startswith(('http://', 'https://'))


def proxy_url(proxy_base, origin_url, ref):
    # nested playlists go back through the stream route, everything else is relayed
    endpoint = STREAM_PATH if '.m3u8' in ref else SEGMENT_PATH
    return f"{proxy_base}{endpoint}?url={quote(origin_url, safe=_UNRESERVED)}"


def rewrite_line(line, base, proxy_base, rewrite_absolute=False):
    if line.startswith('#') or not line.strip():
        return line
    ref = line.strip()
    if is_absolute(ref):
        if not rewrite_absolute:
            return line
        return proxy_url(proxy_base, ref, ref)
    return proxy_url(proxy_base, base + ref, ref)


def rewrite_manifest(content, origin_url, proxy_base, rewrite_absolute=False):
    base = base_directory(origin_url)
    proxy_base = proxy_base.rstrip('/')
    parts = _LINE_BREAK.split(content)
    # parts alternates line, terminator, line, ... and always ends with a line
    for i in range(0, len(parts), 2):
        parts[i] = rewrite_line(parts[i], base, proxy_base, rewrite_absolute)
    return ''.join(parts)
