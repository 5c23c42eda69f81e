from __future__ import annotations

import threading
from typing import Dict, Iterator, Mapping, MutableMapping, Optional

from requests.structures import CaseInsensitiveDict


def merge_headers(*sources: Optional[Mapping[str, str]]) -> Dict[str, str]:
    """Merge header mappings case-insensitively; later sources win."""
    merged: CaseInsensitiveDict = CaseInsensitiveDict()
    for source in sources:
        if source:
            merged.update(source)
    return dict(merged.items())


class HeaderStore(MutableMapping[str, str]):
    """
    Case-insensitive header mapping shared between in-flight requests.

    Reads and writes go through a lock so a handler running on a transport
    worker thread can update it (e.g. re-authentication) while other
    requests are being dispatched. Dispatch works from ``snapshot()``.
    """

    def __init__(self, initial: Optional[Mapping[str, str]] = None):
        self._lock = threading.RLock()
        self._data: CaseInsensitiveDict = CaseInsensitiveDict(initial or {})

    def __getitem__(self, key: str) -> str:
        with self._lock:
            return self._data[key]

    def __setitem__(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def __delitem__(self, key: str) -> None:
        with self._lock:
            del self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self.snapshot())

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def snapshot(self) -> Dict[str, str]:
        """Return a plain copy of the current headers."""
        with self._lock:
            return dict(self._data.items())

    def add_defaults(self, headers: Optional[Mapping[str, str]]) -> None:
        """Merge ``headers`` without overwriting keys that are already present."""
        if not headers:
            return
        with self._lock:
            for key, value in headers.items():
                if key not in self._data:
                    self._data[key] = value

    def __repr__(self) -> str:
        return f"HeaderStore({self.snapshot()!r})"
