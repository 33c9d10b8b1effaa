import queue
import threading

import pytest

from zhaddons.cloudpinyin import (
    BAIDU_URL,
    GOOGLE_CN_URL,
    GOOGLE_URL,
    MAX_ERROR,
    BaiduBackend,
    CloudPinyin,
    CloudPinyinBackend,
    CloudPinyinConfig,
    GoogleBackend,
)
from zhaddons.fetch import FetchSlot

GOOGLE_REPLY = '["SUCCESS",[["nihao",["你好","拟好"],[],{}]]]'.encode("utf-8")
BAIDU_REPLY = '{"0":[[["你好",5,{"pinyin":"ni\'hao"}]]],"1":"ni\'hao"}'.encode("utf-8")


class FakeFetch:
    def __init__(self, body=GOOGLE_REPLY, code=200):
        self.body = body
        self.code = code
        self.slots = []
        self.lock = threading.Lock()

    def __call__(self, slot):
        with self.lock:
            self.slots.append((slot.url, slot.proxy, slot.pinyin))
        slot.write(self.body)
        return self.code


@pytest.fixture
def results():
    return queue.Queue()


def collector(results):
    return lambda pinyin, hanzi: results.put((pinyin, hanzi))


def make(fetch, **kwargs):
    return CloudPinyin(CloudPinyinConfig(**kwargs), fetch)


def test_google_prepare_request_escapes():
    slot = FetchSlot()
    assert GoogleBackend(GOOGLE_URL).prepare_request(slot, "ni'hao")
    assert slot.url == GOOGLE_URL + "ni%27hao"


def test_google_parse_result():
    assert GoogleBackend(GOOGLE_URL).parse_result(GOOGLE_REPLY) == "你好"


def test_google_parse_result_without_match():
    backend = GoogleBackend(GOOGLE_URL)
    assert backend.parse_result(b"garbage") == ""
    assert backend.parse_result(b'["SUCCESS",[["x",[""]]]]') == ""


def test_baidu_prepare_and_parse():
    slot = FetchSlot()
    backend = BaiduBackend()
    assert backend.prepare_request(slot, "nihao")
    assert slot.url == BAIDU_URL + "nihao"
    assert backend.parse_result(BAIDU_REPLY) == "你好"
    assert backend.parse_result(b"{}") == ""


def test_short_pinyin_answers_empty_without_fetch(results):
    fetch = FakeFetch()
    cloud = make(fetch)
    try:
        cloud.request("ni", collector(results))
        assert results.get_nowait() == ("ni", "")
        assert fetch.slots == []
    finally:
        cloud.close()


def test_request_fetches_and_caches(results):
    fetch = FakeFetch()
    cloud = make(fetch)
    try:
        cloud.request("nihao", collector(results))
        assert results.get(timeout=5) == ("nihao", "你好")
        assert fetch.slots == [(GOOGLE_CN_URL + "nihao", None, "nihao")]
        cloud.request("nihao", collector(results))
        assert results.get_nowait() == ("nihao", "你好")
        assert len(fetch.slots) == 1
    finally:
        cloud.close()


def test_proxy_and_baidu_backend(results):
    fetch = FakeFetch(body=BAIDU_REPLY)
    cloud = make(fetch, backend=CloudPinyinBackend.BAIDU, proxy="http://localhost:1080")
    try:
        cloud.request("nihao", collector(results))
        assert results.get(timeout=5) == ("nihao", "你好")
        assert fetch.slots == [(BAIDU_URL + "nihao", "http://localhost:1080", "nihao")]
    finally:
        cloud.close()


def test_errors_stop_requests_until_reset(results):
    fetch = FakeFetch(body=b"", code=500)
    cloud = make(fetch)
    try:
        for i in range(MAX_ERROR):
            cloud.request(f"pinyin{i}", collector(results))
            assert results.get(timeout=5) == (f"pinyin{i}", "")
        assert cloud.error_count == MAX_ERROR
        cloud.request("another", collector(results))
        assert results.get_nowait() == ("another", "")
        assert len(fetch.slots) == MAX_ERROR

        cloud.reset_error()
        assert cloud.error_count == 0
        fetch.code = 200
        fetch.body = GOOGLE_REPLY
        cloud.request("another", collector(results))
        assert results.get(timeout=5) == ("another", "你好")
        assert len(fetch.slots) == MAX_ERROR + 1
    finally:
        cloud.close()


def test_empty_result_is_not_cached(results):
    fetch = FakeFetch(body=b"nothing")
    cloud = make(fetch)
    try:
        cloud.request("nihao", collector(results))
        assert results.get(timeout=5) == ("nihao", "")
        cloud.request("nihao", collector(results))
        assert results.get(timeout=5) == ("nihao", "")
        assert len(fetch.slots) == 2
    finally:
        cloud.close()


def test_custom_dispatch_defers_processing(results):
    scheduled = queue.Queue()
    fetch = FakeFetch()
    cloud = CloudPinyin(CloudPinyinConfig(), fetch, scheduled.put)
    try:
        cloud.request("nihao", collector(results))
        job = scheduled.get(timeout=5)
        assert results.empty()
        job()
        assert results.get_nowait() == ("nihao", "你好")
    finally:
        cloud.close()


def test_toggle_key_default():
    cloud = make(FakeFetch())
    try:
        assert cloud.toggle_key() == ["Control+Alt+Shift+C"]
    finally:
        cloud.close()