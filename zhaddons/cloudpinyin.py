"""Fetch pinyin conversions from online input services."""

from __future__ import annotations

import abc
import logging
import threading
import urllib.parse
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from zhaddons.fetch import FetchSlot, FetchThread
from zhaddons.lrucache import LRUCache

_LOG = logging.getLogger(__name__)

GOOGLE_URL = "https://www.google.com/inputtools/request?ime=pinyin&text="
GOOGLE_CN_URL = "https://www.google.cn/inputtools/request?ime=pinyin&text="
BAIDU_URL = "https://olime.baidu.com/py?rn=0&pn=1&ol=1&py="

MAX_ERROR = 10
CACHE_SIZE = 2048
RESET_DELAY = 300.0

CloudPinyinCallback = Callable[[str, str], Any]


class CloudPinyinBackend(Enum):
    """Online services that can answer a request."""

    GOOGLE = "Google"
    GOOGLE_CN = "GoogleCN"
    BAIDU = "Baidu"


@dataclass
class CloudPinyinConfig:
    """Settings of the cloud pinyin addon."""

    toggle_key: list[str] = field(default_factory=lambda: ["Control+Alt+Shift+C"])
    minimum_length: int = 4
    backend: CloudPinyinBackend = CloudPinyinBackend.GOOGLE_CN
    proxy: str = ""


def _escape(text: str) -> str:
    return urllib.parse.quote(text, safe="")


def _text(data: bytes | str) -> str:
    if isinstance(data, str):
        return data
    return bytes(data).decode("utf-8", "replace")


def _between(text: str, start_marker: str, end_marker: str) -> str:
    start = text.find(start_marker)
    if start < 0:
        return ""
    start += len(start_marker)
    end = text.find(end_marker, start)
    if end <= start:
        return ""
    return text[start:end]


class Backend(abc.ABC):
    """Builds a request URL and extracts the answer from a response."""

    @abc.abstractmethod
    def prepare_request(self, slot: FetchSlot, pinyin: str) -> bool:
        """Set up ``slot`` for ``pinyin``; return False when that fails."""

    @abc.abstractmethod
    def parse_result(self, data: bytes | str) -> str:
        """The converted text in a response body, or '' when none."""


class GoogleBackend(Backend):
    """Google input tools service at a given base URL."""

    def __init__(self, url: str) -> None:
        self.url = url

    def prepare_request(self, slot: FetchSlot, pinyin: str) -> bool:
        slot.url = self.url + _escape(pinyin)
        _LOG.debug("Request URL: %s", slot.url)
        return True

    def parse_result(self, data: bytes | str) -> str:
        text = _text(data)
        _LOG.debug("Request result: %s", text)
        return _between(text, '",["', '"')


class BaiduBackend(Backend):
    """Baidu online input service."""

    def prepare_request(self, slot: FetchSlot, pinyin: str) -> bool:
        slot.url = BAIDU_URL + _escape(pinyin)
        _LOG.debug("Request URL: %s", slot.url)
        return True

    def parse_result(self, data: bytes | str) -> str:
        text = _text(data)
        _LOG.debug("Request result: %s", text)
        return _between(text, '[["', '",')


class CloudPinyin:
    """Answers pinyin requests from a cache or from the configured service.

    ``dispatch`` runs a function on the caller's main loop; by default the
    finished requests are handled directly on the fetching thread.
    """

    reset_delay = RESET_DELAY

    def __init__(
        self,
        config: CloudPinyinConfig | None = None,
        fetch: Callable[[FetchSlot], int] | None = None,
        dispatch: Callable[[Callable[[], Any]], Any] | None = None,
    ) -> None:
        self.config = config if config is not None else CloudPinyinConfig()
        self._dispatch = dispatch if dispatch is not None else (lambda func: func())
        self._backends: dict[CloudPinyinBackend, Backend] = {
            CloudPinyinBackend.GOOGLE: GoogleBackend(GOOGLE_URL),
            CloudPinyinBackend.GOOGLE_CN: GoogleBackend(GOOGLE_CN_URL),
            CloudPinyinBackend.BAIDU: BaiduBackend(),
        }
        self._cache: LRUCache[str, str] = LRUCache(CACHE_SIZE)
        self._lock = threading.RLock()
        self._error_count = 0
        self._reset_timer: threading.Timer | None = None
        self._thread = FetchThread(self.notify_finished, fetch)

    @property
    def error_count(self) -> int:
        """Failed requests since the last reset."""
        return self._error_count

    def request(self, pinyin: str, callback: CloudPinyinCallback) -> None:
        """Ask for the conversion of ``pinyin``; ``callback(pinyin, hanzi)`` gets it."""
        if len(pinyin) < self.config.minimum_length:
            callback(pinyin, "")
            return
        with self._lock:
            cached = self._cache.find(pinyin)
            error_count = self._error_count
        if cached is not None:
            callback(pinyin, cached)
            return
        backend = self._backends.get(self.config.backend)
        if backend is None or error_count >= MAX_ERROR:
            callback(pinyin, "")
            return
        proxy = self.config.proxy

        def setup(slot: FetchSlot) -> bool:
            if not backend.prepare_request(slot, pinyin):
                return False
            slot.proxy = proxy or None
            slot.pinyin = pinyin
            slot.callback = callback
            return True

        if not self._thread.add_request(setup):
            callback(pinyin, "")

    def notify_finished(self) -> None:
        """Schedule handling of the finished requests."""
        self._dispatch(self._process_finished)

    def _process_finished(self) -> None:
        backend = self._backends.get(self.config.backend)
        with self._lock:
            while (slot := self._thread.pop_finished()) is not None:
                if slot.http_code != 200:
                    self._error_count += 1
                    if self._error_count == MAX_ERROR:
                        _LOG.error("Cloud pinyin reaches max error. Retry in 5 minutes.")
                        self._start_reset_timer()
                hanzi = backend.parse_result(bytes(slot.data)) if backend else ""
                pinyin, callback = slot.pinyin, slot.callback
                if callback is not None:
                    callback(pinyin, hanzi)
                if hanzi:
                    self._cache.insert(pinyin, hanzi)
                slot.release()

    def _start_reset_timer(self) -> None:
        self._cancel_timer()
        timer = threading.Timer(self.reset_delay, self.reset_error)
        timer.daemon = True
        self._reset_timer = timer
        timer.start()

    def _cancel_timer(self) -> None:
        if self._reset_timer is not None:
            self._reset_timer.cancel()
            self._reset_timer = None

    def reset_error(self) -> None:
        """Forget earlier failures so requests are sent again."""
        with self._lock:
            self._error_count = 0
            self._cancel_timer()

    def toggle_key(self) -> list[str]:
        """Keys that toggle cloud pinyin."""
        return self.config.toggle_key

    def close(self) -> None:
        """Stop the reset timer and the fetching thread."""
        with self._lock:
            self._cancel_timer()
        self._thread.close()