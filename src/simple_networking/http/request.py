from __future__ import annotations

import inspect
import json
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Mapping, Optional, Union
from urllib.parse import quote, urlsplit, urlunsplit

from simple_networking.core.errors import InvalidResponse, InvalidURL, NetworkingError
from simple_networking.core.models import ContentType, HTTPMethod
from simple_networking.http.headers import merge_headers
from simple_networking.http.response import Response
from simple_networking.utils.auth import DEFAULT_AUTH_HEADER, basic_auth_value
from simple_networking.utils.logging import get_logger

if TYPE_CHECKING:
    from simple_networking.http.client import Client

StatusHandler = Callable[["Request", Response], bool]
SuccessHandler = Callable[[Response], None]
ErrorHandler = Callable[[NetworkingError], None]
ErrorHandlerWithResponse = Callable[[NetworkingError, Optional[Response]], None]

QueryParams = Mapping[str, Optional[str]]

_PATH_SAFE = "/:@!$&'()*+,;=-._~%"


def _takes_response(handler: Callable[..., Any]) -> bool:
    """True when an error handler wants ``(error, response)`` rather than ``(error)``."""
    try:
        params = inspect.signature(handler).parameters.values()
    except (TypeError, ValueError):
        return False
    positional = 0
    for p in params:
        if p.kind is p.VAR_POSITIONAL:
            return True
        if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD):
            positional += 1
    return positional >= 2


def _encode_query(params: QueryParams) -> str:
    pairs = []
    for key, value in params.items():
        if value is None:
            pairs.append(quote(str(key), safe=""))
        else:
            pairs.append(f"{quote(str(key), safe='')}={quote(str(value), safe='')}")
    return "&".join(pairs)


class Request:
    """
    A single HTTP request plus the handlers interested in its outcome.

    Path and method are fixed at construction. Everything else, including
    the handler registry, can be changed through the chaining methods, each
    of which mutates the request and returns it. The same instance is
    dispatched again on ``retry``, so handlers survive retries.
    """

    def __init__(
        self,
        path: str,
        method: Union[HTTPMethod, str] = HTTPMethod.GET,
        query_params: Optional[QueryParams] = None,
        body: Optional[bytes] = None,
        headers: Optional[Mapping[str, str]] = None,
    ):
        self._path = path
        self._method = HTTPMethod(method.upper()) if isinstance(method, str) else method
        self.query_params: Optional[Dict[str, Optional[str]]] = dict(query_params) if query_params is not None else None
        self.body = body
        self.content_type = ContentType.JSON
        self.accept_content_type = ContentType.JSON
        self.additional_headers: Dict[str, str] = dict(headers or {})
        self.retries = 0
        self.log = get_logger("simple_networking.request")

        self.status_handlers: Dict[int, StatusHandler] = {}
        self.success_handlers: List[SuccessHandler] = []
        self.error_handlers: List[ErrorHandler] = []
        self.error_handlers_with_response: List[ErrorHandlerWithResponse] = []

    @property
    def path(self) -> str:
        return self._path

    @property
    def method(self) -> HTTPMethod:
        return self._method

    # static builders

    @classmethod
    def get(cls, path: str, query_params: Optional[QueryParams] = None, headers: Optional[Mapping[str, str]] = None) -> "Request":
        return cls(path, HTTPMethod.GET, query_params=query_params, headers=headers)

    @classmethod
    def post(
        cls,
        path: str,
        body: Optional[bytes] = None,
        query_params: Optional[QueryParams] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> "Request":
        return cls(path, HTTPMethod.POST, query_params=query_params, body=body, headers=headers)

    @classmethod
    def put(
        cls,
        path: str,
        body: Optional[bytes] = None,
        query_params: Optional[QueryParams] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> "Request":
        return cls(path, HTTPMethod.PUT, query_params=query_params, body=body, headers=headers)

    @classmethod
    def delete(cls, path: str, query_params: Optional[QueryParams] = None, headers: Optional[Mapping[str, str]] = None) -> "Request":
        return cls(path, HTTPMethod.DELETE, query_params=query_params, headers=headers)

    # configuration

    def accept(self, content_type: ContentType) -> "Request":
        self.accept_content_type = ContentType(content_type)
        return self

    def body_json(self, obj: Any) -> "Request":
        """Serialize ``obj`` as the JSON body. Unserializable objects leave no body."""
        try:
            data: Optional[bytes] = json.dumps(obj).encode("utf-8")
        except (TypeError, ValueError):
            self.log.warning("Could not serialize JSON body for %r", self)
            data = None
        return self.body_data(data, ContentType.JSON)

    def body_data(self, data: Union[bytes, str, None], content_type: ContentType) -> "Request":
        self.content_type = ContentType(content_type)
        self.body = data.encode("utf-8") if isinstance(data, str) else data
        return self

    def authenticate_basic(self, user: str, password: str, header_name: Optional[str] = None) -> "Request":
        return self.authenticate(basic_auth_value(user, password), header_name)

    def authenticate(self, value: str, header_name: Optional[str] = None) -> "Request":
        self.additional_headers[header_name or DEFAULT_AUTH_HEADER] = value
        return self

    def headers(self) -> Dict[str, str]:
        """Headers contributed by this request; ``additional_headers`` win over derived ones."""
        derived: Dict[str, str] = {}
        if self.body is not None:
            derived.update(self.content_type.header())
        derived.update(self.accept_content_type.accept_header())
        return merge_headers(derived, self.additional_headers)

    def url(self, base_url: str) -> str:
        """Append path and query parameters to ``base_url``. Raises InvalidURL."""
        try:
            base = urlsplit(base_url)
            base.port  # raises ValueError for a malformed or out-of-range port
        except ValueError as e:
            raise InvalidURL(str(e)) from e
        if base.scheme not in ("http", "https") or not base.netloc or base.hostname is None:
            raise InvalidURL(f"base URL must be an absolute http(s) URL: {base_url!r}")
        if any(ch.isspace() or ord(ch) < 0x20 or ord(ch) == 0x7F for ch in base.netloc):
            raise InvalidURL(f"invalid character in host: {base.netloc!r}")
        if any(ord(ch) < 0x20 or ord(ch) == 0x7F for ch in self.path):
            raise InvalidURL(f"control character in path: {self.path!r}")

        path = base.path + quote(self.path, safe=_PATH_SAFE)
        if path and not path.startswith("/"):
            raise InvalidURL(f"path must start with '/': {self.path!r}")

        query = base.query
        if self.query_params:
            encoded = _encode_query(self.query_params)
            query = f"{query}&{encoded}" if query else encoded
        return urlunsplit((base.scheme, base.netloc, path, query, ""))

    # execution

    def execute(self, client: "Client") -> None:
        client.execute(self)

    def retry(self, client: "Client") -> None:
        """Dispatch again on ``client`` unless the retry budget is spent."""
        if self.retries >= client.max_retries:
            self.log.debug("Retry budget exhausted for %r (retries=%s)", self, self.retries)
            return
        self.retries += 1
        self.log.debug("Retrying %r (attempt=%s)", self, self.retries)
        client.execute(self)

    # handler registry

    def on_status(self, status_code: int, handler: StatusHandler) -> "Request":
        """Register the override for ``status_code``, replacing any previous one."""
        self.status_handlers[int(status_code)] = handler
        return self

    def handles(self, status_code: int) -> bool:
        return status_code in self.status_handlers

    def on_error(self, handler: Union[ErrorHandler, ErrorHandlerWithResponse]) -> "Request":
        """Register an error handler taking ``(error)`` or ``(error, response)``."""
        if _takes_response(handler):
            return self.on_error_with_response(handler)
        self.error_handlers.append(handler)
        return self

    def on_error_with_response(self, handler: ErrorHandlerWithResponse) -> "Request":
        self.error_handlers_with_response.append(handler)
        return self

    def on_success(self, handler: SuccessHandler) -> "Request":
        self.success_handlers.append(handler)
        return self

    # dispatch

    def did_receive_response(self, response: Response) -> None:
        if not self._should_continue(response):
            return

        error = response.error
        if error is None and not response.valid_for(self.accept_content_type):
            error = InvalidResponse(f"body is not valid for {self.accept_content_type.value}")

        if error is not None:
            self.did_receive_error(error, response)
        elif response.success:
            self.did_receive_success(response)

    def did_receive_error(self, error: NetworkingError, response: Optional[Response] = None) -> None:
        for handler in list(self.error_handlers):
            handler(error)
        for handler in list(self.error_handlers_with_response):
            handler(error, response)

    def did_receive_success(self, response: Response) -> None:
        for handler in list(self.success_handlers):
            handler(response)

    def _should_continue(self, response: Response) -> bool:
        handler = self.status_handlers.get(response.status_code)
        if handler is None:
            return True
        return bool(handler(self, response))

    def __repr__(self) -> str:
        return f"Request<{self.method.value} {self.path!r}>"
