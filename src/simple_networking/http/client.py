from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Dict, Mapping, Optional, Tuple

from simple_networking.core.errors import InvalidResponse, InvalidURL, TransportFailure
from simple_networking.core.models import HTTPMethod, TransportResponse
from simple_networking.http.headers import HeaderStore, merge_headers
from simple_networking.http.request import QueryParams, Request
from simple_networking.http.response import Response
from simple_networking.http.transport import RequestsTransport, Transport
from simple_networking.utils.auth import DEFAULT_AUTH_HEADER, basic_auth_value
from simple_networking.utils.logging import get_logger

if TYPE_CHECKING:
    from simple_networking.config_models import ClientConfig

RequestBuilder = Callable[[Request], Request]

DEFAULT_MAX_RETRIES = 3


class Client:
    """
    Shared configuration for dispatching requests against one base URL.

    ``execute`` never waits: it hands the call to the transport and all
    handler dispatch happens in the transport's completion callback.
    """

    def __init__(
        self,
        base_url: str,
        default_headers: Optional[Mapping[str, str]] = None,
        max_retries: Optional[int] = None,
        transport: Optional[Transport] = None,
    ):
        """
        Args:
            base_url: Absolute URL that request paths are appended to.
            default_headers: Headers sent with every request.
            max_retries: How many times a single request may be retried (default 3).
            transport: HTTP engine; a RequestsTransport is created when omitted.
        """
        self.base_url = base_url
        self.default_headers = HeaderStore(default_headers)
        self._max_retries = DEFAULT_MAX_RETRIES if max_retries is None else max_retries
        self.transport: Transport = transport or RequestsTransport()
        self.log = get_logger("simple_networking.client")

    @classmethod
    def from_config(cls, config: "ClientConfig", transport: Optional[Transport] = None) -> "Client":
        """Create a client from a validated ClientConfig."""
        client = cls(
            base_url=config.base_url,
            max_retries=config.max_retries,
            transport=transport or RequestsTransport(timeout_s=config.timeout_s, max_workers=config.max_workers),
        )
        client.default_headers.add_defaults(config.default_headers)
        client.default_headers.add_defaults({"User-Agent": config.user_agent})
        return client

    @property
    def max_retries(self) -> int:
        return self._max_retries

    def authenticate(self, user: str, password: str) -> None:
        """Send Basic credentials with every request issued from now on."""
        self.default_headers[DEFAULT_AUTH_HEADER] = basic_auth_value(user, password)

    def build_call(self, request: Request) -> Tuple[str, str, Dict[str, str], Optional[bytes]]:
        """Resolve method, URL, headers and body for ``request``. Raises InvalidURL."""
        url = request.url(self.base_url)
        headers = merge_headers(self.default_headers.snapshot(), request.headers())
        return request.method.value, url, headers, request.body

    def execute(self, request: Request) -> None:
        """Dispatch ``request``; outcomes are delivered to its handlers."""
        try:
            method, url, headers, body = self.build_call(request)
        except InvalidURL as e:
            self.log.warning("Invalid URL for %r: %s", request, e)
            request.did_receive_error(e, None)
            return

        self.log.debug("Dispatching %s %s (retries=%s)", method, url, request.retries)

        def on_complete(
            data: Optional[bytes],
            transport_response: Optional[TransportResponse],
            error: Optional[BaseException],
        ) -> None:
            if error is not None:
                request.did_receive_error(TransportFailure(error), None)
                return
            response = Response.from_transport(data, transport_response)
            if response is None:
                self.log.warning("No response for %s %s", method, url)
                request.did_receive_error(InvalidResponse("no response"), None)
                return
            request.did_receive_response(response)

        self.transport.send(method, url, headers, body, on_complete)

    # builders

    def _build(self, request: Request, builder: Optional[RequestBuilder]) -> Request:
        if builder is None:
            return request
        built = builder(request)
        self.execute(built)
        return built

    def get(
        self,
        path: str,
        query_params: Optional[QueryParams] = None,
        headers: Optional[Mapping[str, str]] = None,
        builder: Optional[RequestBuilder] = None,
    ) -> Request:
        """
        Build a GET request. With ``builder`` the request is configured by it
        and dispatched; without, it is returned unsent.
        """
        return self._build(Request(path, HTTPMethod.GET, query_params=query_params, headers=headers), builder)

    def post(
        self,
        path: str,
        body: Optional[bytes] = None,
        query_params: Optional[QueryParams] = None,
        headers: Optional[Mapping[str, str]] = None,
        builder: Optional[RequestBuilder] = None,
    ) -> Request:
        return self._build(Request(path, HTTPMethod.POST, query_params=query_params, body=body, headers=headers), builder)

    def put(
        self,
        path: str,
        body: Optional[bytes] = None,
        query_params: Optional[QueryParams] = None,
        headers: Optional[Mapping[str, str]] = None,
        builder: Optional[RequestBuilder] = None,
    ) -> Request:
        return self._build(Request(path, HTTPMethod.PUT, query_params=query_params, body=body, headers=headers), builder)

    def delete(
        self,
        path: str,
        query_params: Optional[QueryParams] = None,
        headers: Optional[Mapping[str, str]] = None,
        builder: Optional[RequestBuilder] = None,
    ) -> Request:
        return self._build(Request(path, HTTPMethod.DELETE, query_params=query_params, headers=headers), builder)

    def close(self) -> None:
        self.transport.close()

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Client<base_url: {self.base_url!r}>"
