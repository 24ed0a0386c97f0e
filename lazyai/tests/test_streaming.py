import io
import json
import time

import httpx
import pytest

from lazyai.domain.exceptions import AuthError, DecodeError, UpstreamError
from lazyai.domain.models import Credentials
from lazyai.providers.skydeck_client import SkyDeckSessionClient


class SettingsStub:
    skydeck_base_url = "https://admin.skydeck.ai"
    skydeck_referrer_url = "https://eastagile.skydeck.ai/"
    skydeck_model_id = 4094
    streaming_contract = "query"
    stream_format = "raw"
    attach_refresh_cookie = False
    http_timeout = 1.0


class MemoryStore:
    def __init__(self):
        self.saved_tokens = []

    def save_access_token(self, access_token):
        self.saved_tokens.append(access_token)


def make_client(handler, **overrides):
    settings = SettingsStub()
    for key, value in overrides.items():
        setattr(settings, key, value)
    store = MemoryStore()
    client = SkyDeckSessionClient(
        settings,
        Credentials(access_token="old-access", refresh_token="refresh-tok"),
        store,
        transport=httpx.MockTransport(handler),
    )
    return client, store


class SlowStream(httpx.SyncByteStream):
    """逐块产出响应体，每块之间停顿一下，并记录产出时间。"""

    def __init__(self, chunks, events, delay=0.05):
        self._chunks = chunks
        self._events = events
        self._delay = delay

    def __iter__(self):
        for i, chunk in enumerate(self._chunks):
            if i:
                time.sleep(self._delay)
            self._events.append(("produced", chunk, time.monotonic()))
            yield chunk


class RecordingSink:
    def __init__(self, events):
        self._events = events
        self._pending = b""
        self.data = b""

    def write(self, data):
        self._pending += data
        self.data += data
        return len(data)

    def flush(self):
        if self._pending:
            self._events.append(("flushed", self._pending, time.monotonic()))
            self._pending = b""


def test_stream_reply_uses_query_parameter():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, content=b"Hi there")

    client, _ = make_client(handler)
    sink = io.BytesIO()
    written = client.copy_reply(99, sink)

    assert sink.getvalue() == b"Hi there"
    assert written == len(b"Hi there")
    req = seen[0]
    assert req.method == "GET"
    assert req.url.path == "/api/v1/conversations/streaming/"
    assert req.url.params["message_id"] == "99"
    assert req.headers["cookie"] == "eastagile_access=old-access"


def test_stream_reply_json_contract():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, content=b"ok")

    client, _ = make_client(handler, streaming_contract="json")
    assert b"".join(client.stream_reply(99)) == b"ok"
    assert seen[0].method == "POST"
    assert json.loads(seen[0].content) == {"message_id": 99}


def test_copy_reply_flushes_each_chunk():
    events = []
    chunks = [b"Hi ", b"there", b"!"]

    def handler(request):
        return httpx.Response(200, stream=SlowStream(chunks, events))

    client, _ = make_client(handler)
    sink = RecordingSink(events)
    client.copy_reply(99, sink)

    assert sink.data == b"Hi there!"
    assert [(kind, data) for kind, data, _ in events] == [
        ("produced", b"Hi "),
        ("flushed", b"Hi "),
        ("produced", b"there"),
        ("flushed", b"there"),
        ("produced", b"!"),
        ("flushed", b"!"),
    ]
    # 每块在下一块产出之前就已经 flush
    for (_, _, flushed_at), (_, _, next_produced_at) in zip(events[1::2], events[2::2]):
        assert flushed_at <= next_produced_at


def test_stream_reply_renews_on_401():
    calls = []

    def handler(request):
        calls.append(request.url.path)
        if request.url.path.endswith("/token/refresh/"):
            return httpx.Response(204, headers={"set-cookie": "eastagile_access=new-access; Path=/"})
        if request.headers["cookie"] == "eastagile_access=old-access":
            return httpx.Response(401)
        return httpx.Response(200, content=b"Hi there")

    client, store = make_client(handler)
    sink = io.BytesIO()
    client.copy_reply(99, sink)

    assert sink.getvalue() == b"Hi there"
    assert store.saved_tokens == ["new-access"]
    assert calls == [
        "/api/v1/conversations/streaming/",
        "/api/v1/authentication/token/refresh/",
        "/api/v1/conversations/streaming/",
    ]


def test_stream_reply_second_401_fails():
    def handler(request):
        if request.url.path.endswith("/token/refresh/"):
            return httpx.Response(204, headers={"set-cookie": "eastagile_access=new-access; Path=/"})
        return httpx.Response(401)

    client, _ = make_client(handler)
    with pytest.raises(AuthError):
        client.copy_reply(99, io.BytesIO())
    assert client.renewal_count == 1


def test_stream_reply_upstream_error():
    client, _ = make_client(lambda request: httpx.Response(404, text="no such message"))
    with pytest.raises(UpstreamError) as exc:
        list(client.stream_reply(99))
    assert exc.value.http_status == 404
    assert exc.value.body == "no such message"


def test_envelope_format_prints_assistant_content():
    body = {
        "data": {
            "conversation_id": 42,
            "messages": [
                {"id": 98, "type": "user", "content": "Hello", "streaming": False},
                {"id": 99, "type": "assistant", "content": "Hi there", "streaming": True},
            ],
        }
    }
    client, _ = make_client(lambda request: httpx.Response(200, json=body), stream_format="envelope")
    sink = io.BytesIO()
    client.copy_reply(99, sink)
    assert sink.getvalue() == b"Hi there"


def test_envelope_format_falls_back_to_raw_text():
    client, _ = make_client(lambda request: httpx.Response(200, content=b"plain text"), stream_format="envelope")
    sink = io.BytesIO()
    client.copy_reply(99, sink)
    assert sink.getvalue() == b"plain text"


def test_envelope_without_assistant_message():
    body = {"data": {"conversation_id": 42, "messages": []}}
    client, _ = make_client(lambda request: httpx.Response(200, json=body), stream_format="envelope")
    with pytest.raises(DecodeError):
        client.copy_reply(99, io.BytesIO())
