from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Dict, Optional, Protocol

import requests

from simple_networking.core.models import TransportResponse
from simple_networking.utils.logging import get_logger

CompletionHandler = Callable[[Optional[bytes], Optional[TransportResponse], Optional[BaseException]], None]


class Transport(Protocol):
    """
    Protocol for the HTTP engine underneath a client.

    ``send`` must return without waiting for the exchange and call
    ``on_complete`` exactly once, with either an error or a response.
    """

    def send(
        self,
        method: str,
        url: str,
        headers: Dict[str, str],
        body: Optional[bytes],
        on_complete: CompletionHandler,
    ) -> None: ...

    def close(self) -> None: ...


class RequestsTransport:
    """Transport running ``requests`` calls on a small worker pool."""

    def __init__(self, timeout_s: float = 30, max_workers: int = 4, session: requests.Session | None = None):
        self.session = session or requests.Session()
        self.timeout_s = timeout_s
        self.executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="simple-networking")
        self.log = get_logger("simple_networking.transport")

    def send(
        self,
        method: str,
        url: str,
        headers: Dict[str, str],
        body: Optional[bytes],
        on_complete: CompletionHandler,
    ) -> None:
        """Submit the exchange and return immediately."""
        try:
            future = self.executor.submit(self._perform, method, url, headers, body, on_complete)
        except RuntimeError as e:
            # pool already shut down
            self.log.warning("%s %s not sent (transport closed)", method, url)
            on_complete(None, None, e)
            return
        future.add_done_callback(self._report_handler_failure)

    def _perform(
        self,
        method: str,
        url: str,
        headers: Dict[str, str],
        body: Optional[bytes],
        on_complete: CompletionHandler,
    ) -> None:
        try:
            r = self.session.request(
                method=method,
                url=url,
                headers=headers,
                data=body,
                timeout=self.timeout_s,
                allow_redirects=True,
            )
        except Exception as e:
            self.log.warning("%s %s failed (exception=%s)", method, url, type(e).__name__)
            on_complete(None, None, e)
            return

        self.log.debug("%s %s -> %s", method, url, r.status_code)
        resp = TransportResponse(status_code=r.status_code, headers=dict(r.headers), url=r.url or url)
        on_complete(r.content or None, resp, None)

    def _report_handler_failure(self, future: Future) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            self.log.error("Completion handler raised", exc_info=exc)

    def close(self) -> None:
        """Wait for in-flight exchanges, then release the pool and session."""
        self.executor.shutdown(wait=True)
        self.session.close()
