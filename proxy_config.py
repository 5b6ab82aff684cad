import os

DEFAULT_USER_AGENT = (
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
    '(KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36'
)

_TRUTHY = ('1', 'true', 'yes', 'on')


class ProxyConfig:
    """Settings for one running proxy. Read-only once the app is created."""

    def __init__(self, host='0.0.0.0', port=4000, api_domain='https://phimapi.com',
                 manifest_timeout=10, segment_timeout=30, api_timeout=15,
                 chunk_size=65536, user_agent=DEFAULT_USER_AGENT,
                 rewrite_absolute_uris=False, log_level='INFO'):
        self.host = host
        self.port = port
        self.api_domain = api_domain.rstrip('/')
        self.manifest_timeout = manifest_timeout
        self.segment_timeout = segment_timeout
        self.api_timeout = api_timeout
        self.chunk_size = chunk_size
        self.user_agent = user_agent
        self.rewrite_absolute_uris = rewrite_absolute_uris
        self.log_level = log_level

    @classmethod
    def from_env(cls, environ=None):
        env = os.environ if environ is None else environ
        return cls(
            host=env.get('HOST', '0.0.0.0'),
            port=int(env.get('PORT', 4000)),
            api_domain=env.get('API_DOMAIN', 'https://phimapi.com'),
            manifest_timeout=float(env.get('MANIFEST_TIMEOUT', 10)),
            segment_timeout=float(env.get('SEGMENT_TIMEOUT', 30)),
            api_timeout=float(env.get('API_TIMEOUT', 15)),
            chunk_size=int(env.get('CHUNK_SIZE', 65536)),
            user_agent=env.get('USER_AGENT', DEFAULT_USER_AGENT),
            rewrite_absolute_uris=env.get('REWRITE_ABSOLUTE_URIS', '').lower() in _TRUTHY,
            log_level=env.get('LOG_LEVEL', 'INFO').upper(),
        )

    def __repr__(self):
        return f"ProxyConfig(host={self.host!r}, port={self.port}, api_domain={self.api_domain!r})"
