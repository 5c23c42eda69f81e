from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict


class HTTPMethod(str, Enum):
    """HTTP methods a request can be issued with."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


class ContentType(str, Enum):
    """Content types used for request bodies and response negotiation."""

    JSON = "application/json"
    TEXT = "text/plain"
    HTML = "text/html"

    def header(self) -> Dict[str, str]:
        return {"Content-Type": self.value}

    def accept_header(self) -> Dict[str, str]:
        return {"Accept": self.value}


@dataclass(frozen=True)
class TransportResponse:
    """Status line and headers of a completed transport-level exchange."""

    status_code: int
    headers: Dict[str, str] = field(default_factory=dict)
    url: str = ""
