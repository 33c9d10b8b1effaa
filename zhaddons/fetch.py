"""Background HTTP fetching for cloud pinyin requests."""

from __future__ import annotations

import threading
import urllib.error
import urllib.request
from collections import deque
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import Any

MAX_HANDLE = 100
MAX_BUFFER_SIZE = 2048
REQUEST_TIMEOUT = 10
_CHUNK_SIZE = 4096


class FetchSlot:
    """One reusable request slot: URL, response body and bookkeeping."""

    def __init__(self) -> None:
        self.busy = False
        self.url = ""
        self.proxy: str | None = None
        self.pinyin = ""
        self.callback: Callable[[str, str], Any] | None = None
        self.http_code = 0
        self.data = bytearray()

    def write(self, chunk: bytes) -> int:
        """Append response bytes; return how many were taken, 0 when over the limit."""
        if len(self.data) + len(chunk) > MAX_BUFFER_SIZE:
            return 0
        self.data.extend(chunk)
        return len(chunk)

    def release(self) -> None:
        """Make the slot free for the next request."""
        self.busy = False
        self.data.clear()
        self.pinyin = ""
        self.callback = None
        self.http_code = 0


def _urllib_fetch(slot: FetchSlot) -> int:
    """Fetch ``slot.url`` into the slot and return the HTTP status code."""
    handlers = []
    if slot.proxy:
        handlers.append(
            urllib.request.ProxyHandler({"http": slot.proxy, "https": slot.proxy})
        )
    opener = urllib.request.build_opener(*handlers)
    try:
        with opener.open(slot.url, timeout=REQUEST_TIMEOUT) as response:
            status = response.status
            while chunk := response.read(_CHUNK_SIZE):
                if slot.write(chunk) < len(chunk):
                    break
            return status
    except urllib.error.HTTPError as exc:
        return exc.code
    except (urllib.error.URLError, OSError, ValueError):
        return 0


class FetchThread:
    """Runs requests in the background and queues the finished slots.

    ``notify`` is called from a worker thread each time a slot finishes.
    ``fetch`` performs one request, writing the body through
    :meth:`FetchSlot.write`, and returns the HTTP status code.
    """

    def __init__(
        self,
        notify: Callable[[], Any],
        fetch: Callable[[FetchSlot], int] | None = None,
        max_handles: int = MAX_HANDLE,
    ) -> None:
        self._notify = notify
        self._fetch = fetch if fetch is not None else _urllib_fetch
        self._slots = [FetchSlot() for _ in range(max_handles)]
        self._finished: deque[FetchSlot] = deque()
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(
            max_workers=max(1, max_handles), thread_name_prefix="fetch"
        )
        self._closed = False

    def add_request(self, setup: Callable[[FetchSlot], bool]) -> bool:
        """Set up a free slot with ``setup`` and start it.

        Returns False when every slot is busy, the thread is closed, or
        ``setup`` refuses the slot.
        """
        if self._closed:
            return False
        slot = next((s for s in self._slots if not s.busy), None)
        if slot is None:
            return False
        if not setup(slot):
            slot.release()
            return False
        slot.busy = True
        self._executor.submit(self._perform, slot)
        return True

    def _perform(self, slot: FetchSlot) -> None:
        try:
            code = self._fetch(slot)
        except Exception:
            code = 0
        slot.http_code = int(code or 0)
        with self._lock:
            self._finished.append(slot)
        self._notify()

    def pop_finished(self) -> FetchSlot | None:
        """Take the oldest finished slot, or None when there is none."""
        with self._lock:
            return self._finished.popleft() if self._finished else None

    def close(self) -> None:
        """Wait for running requests, then free every slot."""
        if self._closed:
            return
        self._closed = True
        self._executor.shutdown(wait=True)
        with self._lock:
            self._finished.clear()
        for slot in self._slots:
            slot.release()

    def __enter__(self) -> FetchThread:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()