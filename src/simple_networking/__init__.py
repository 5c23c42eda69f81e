__version__ = "0.1.0"

from simple_networking.core.errors import (
    ClientError,
    InvalidResponse,
    InvalidURL,
    NetworkingError,
    ServerError,
    TransportFailure,
)
from simple_networking.core.models import ContentType, HTTPMethod, TransportResponse
from simple_networking.http.client import Client
from simple_networking.http.request import Request
from simple_networking.http.response import Response
from simple_networking.http.transport import RequestsTransport, Transport

__all__ = [
    "Client",
    "ClientError",
    "ContentType",
    "HTTPMethod",
    "InvalidResponse",
    "InvalidURL",
    "NetworkingError",
    "Request",
    "RequestsTransport",
    "Response",
    "ServerError",
    "Transport",
    "TransportFailure",
    "TransportResponse",
]
