class ProxyError(Exception):
    status_code = 500

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class MissingParameter(ProxyError):
    status_code = 400

    def __init__(self, name, message=None):
        super().__init__(message or f"{name} is required")
        self.name = name


class FetchError(ProxyError):
    """Outbound call failed: timeout, connection error or non-2xx upstream.

    ``upstream_status`` is None when no response was received at all.
    """

    def __init__(self, message, url, upstream_status=None):
        super().__init__(message, upstream_status)
        self.url = url
        self.upstream_status = upstream_status
