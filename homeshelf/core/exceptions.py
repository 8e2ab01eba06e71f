class TVDBError(Exception):
    """Base error for anything that goes wrong talking to TheTVDB."""


class TVDBAuthError(TVDBError):
    """Missing API key, or TVDB refused to hand out a token."""


class TVDBTimeoutError(TVDBError, TimeoutError):
    """A TVDB call ran past its deadline and was aborted."""

    def __init__(self, path: str, timeout: float):
        self.path = path
        self.timeout = timeout
        super().__init__(f"TVDB request timed out after {timeout}s ({path})")


class TVDBHTTPError(TVDBError):
    """TVDB answered with a non-success status."""

    def __init__(self, status_code: int, path: str):
        self.status_code = status_code
        self.path = path
        super().__init__(f"TVDB request failed ({status_code}) for {path}")
