from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, Type, TypeVar

from pydantic import TypeAdapter, ValidationError

from simple_networking.core.errors import ClientError, InvalidResponse, NetworkingError, ServerError
from simple_networking.core.models import ContentType, TransportResponse

T = TypeVar("T")

_UNSET = object()


def classify(status_code: int) -> Tuple[bool, Optional[NetworkingError]]:
    """Map an HTTP status code to ``(success, error)``."""
    if 100 <= status_code < 400:
        return True, None
    if 400 <= status_code < 500:
        return False, ClientError(status_code)
    if 500 <= status_code < 600:
        return False, ServerError(status_code)
    return False, InvalidResponse(f"unexpected status code {status_code}")


def _decode_text(body: Optional[bytes]) -> Optional[str]:
    if not body:
        return None
    try:
        return body.decode("utf-8")
    except UnicodeDecodeError:
        return None


def _decode_json(body: Optional[bytes]) -> Any:
    if not body:
        return _UNSET
    try:
        return json.loads(body)
    except (UnicodeDecodeError, ValueError):
        return _UNSET


@dataclass(frozen=True)
class Response:
    """
    Immutable snapshot of a completed HTTP exchange.

    ``success``, ``error``, ``text`` and ``json`` are derived from the status
    code and the raw body at construction and never change afterwards.
    """

    status_code: int
    body: Optional[bytes] = None
    headers: Dict[str, str] = field(default_factory=dict)
    url: str = ""

    success: bool = field(init=False)
    error: Optional[NetworkingError] = field(init=False)
    text: Optional[str] = field(init=False, repr=False)
    json: Any = field(init=False, repr=False)
    is_json: bool = field(init=False, repr=False)

    def __post_init__(self) -> None:
        success, error = classify(self.status_code)
        parsed = _decode_json(self.body)
        # frozen dataclass: derived fields are set once here
        object.__setattr__(self, "success", success)
        object.__setattr__(self, "error", error)
        object.__setattr__(self, "text", _decode_text(self.body))
        object.__setattr__(self, "is_json", parsed is not _UNSET)
        object.__setattr__(self, "json", None if parsed is _UNSET else parsed)

    @classmethod
    def from_transport(
        cls, body: Optional[bytes], transport_response: Optional[TransportResponse]
    ) -> Optional["Response"]:
        """Build a response, or return None when there is no transport response."""
        if transport_response is None:
            return None
        return cls(
            status_code=transport_response.status_code,
            body=body,
            headers=dict(transport_response.headers),
            url=transport_response.url,
        )

    def valid_for(self, content_type: ContentType) -> bool:
        """Whether the body can be read as ``content_type``. An empty body always can."""
        if not self.body:
            return True
        if content_type is ContentType.JSON:
            return self.is_json
        return self.text is not None

    def decode(
        self,
        model: Type[T],
        *,
        strict: bool = False,
        adapter: Optional[TypeAdapter] = None,
    ) -> Optional[T]:
        """
        Validate the JSON body into ``model``; None if absent or invalid.

        ``adapter`` replaces the ``TypeAdapter`` built for ``model``, e.g. one
        created with a custom config and reused across calls.
        """
        if not self.body:
            return None
        try:
            return (adapter or TypeAdapter(model)).validate_json(self.body, strict=strict)
        except ValidationError:
            return None

    def __repr__(self) -> str:
        return f"Response<status: {self.status_code}, body: {self.text!r}>"
