"""
Error taxonomy delivered to request error handlers.

These are values, not control flow: the client hands them to the handlers
registered on a request instead of raising them. The only place one is
raised is ``Request.url`` / ``Client.build_call``, where ``InvalidURL`` is
caught again by the client before anything reaches the transport.
"""

from __future__ import annotations

from typing import Any, Optional, Tuple


class NetworkingError(Exception):
    """Base class for every outcome the client reports as an error."""

    def _key(self) -> Tuple[Any, ...]:
        return ()

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash((type(self).__name__,) + self._key())

    def __repr__(self) -> str:
        args = ", ".join(repr(v) for v in self._key())
        return f"{type(self).__name__}({args})"


class InvalidURL(NetworkingError):
    """The request URL could not be assembled from the base URL and path."""

    def __init__(self, reason: str = ""):
        super().__init__(reason or "invalid URL")
        self.reason = reason


class TransportFailure(NetworkingError):
    """The transport reported an error instead of an HTTP response."""

    def __init__(self, cause: Optional[BaseException]):
        super().__init__(f"transport failure: {cause!r}")
        self.cause = cause

    def _key(self) -> Tuple[Any, ...]:
        return (self.cause,)


class ClientError(NetworkingError):
    """4xx status code."""

    def __init__(self, status_code: int):
        super().__init__(f"client error: HTTP {status_code}")
        self.status_code = status_code

    def _key(self) -> Tuple[Any, ...]:
        return (self.status_code,)


class ServerError(NetworkingError):
    """5xx status code."""

    def __init__(self, status_code: int):
        super().__init__(f"server error: HTTP {status_code}")
        self.status_code = status_code

    def _key(self) -> Tuple[Any, ...]:
        return (self.status_code,)


class InvalidResponse(NetworkingError):
    """Unclassifiable status code, missing response, or body not matching the accepted type."""

    def __init__(self, reason: str = ""):
        super().__init__(reason or "invalid response")
        self.reason = reason
