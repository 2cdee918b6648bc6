import httpx
import trio

from pytest import raises

from chirpwire.auth import Credentials, Signer
from chirpwire.execute import ExecutorConfig, RequestExecutor
from chirpwire.execute.config import DEFAULT_USER_AGENT
from chirpwire.http import (
    AuthorizationError,
    ConnectivityError,
    RemoteProtocolError,
    RemoteUnstructuredError,
    Request,
    RequestTimeoutError,
)

CREDENTIALS = Credentials("key", "secret", "token", "token-secret")
URL = "https://api.example/1.1/statuses/show.json"


class RecordingSigner(Signer):
    def __init__(self, token: str = "OAuth token=abc"):
        self.token = token
        self.calls = []

    def sign(self, method, url, parameters, credentials):
        self.calls.append((method, url, list(parameters), credentials))
        return self.token


class RejectingSigner(Signer):
    def sign(self, method, url, parameters, credentials):
        raise AuthorizationError("invalid consumer key")


def create_executor(handler, signer=None, **kwds) -> RequestExecutor:
    return RequestExecutor(
        kwds.pop("credentials", CREDENTIALS),
        signer=signer or RecordingSigner(),
        transport=httpx.MockTransport(handler),
        **kwds,
    )


def test_get():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200, content=b'{"id":42}', headers={"x-rate-limit-remaining": "899"}
        )

    signer = RecordingSigner()
    executor = create_executor(handler, signer=signer)
    request = Request(URL, {"id": "42"})

    body = trio.run(executor.get, request)

    assert body == '{"id":42}'
    assert executor.last_url == URL
    assert executor.last_response.status_code == 200
    assert executor.response_headers["x-rate-limit-remaining"] == "899"

    assert len(seen) == 1
    assert seen[0].method == "GET"
    assert seen[0].headers["Authorization"] == "OAuth token=abc"
    assert seen[0].headers["User-Agent"] == DEFAULT_USER_AGENT

    assert signer.calls == [("GET", URL, [("id", "42")], CREDENTIALS)]


def test_get_sends_query_string():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, content=b"[]")

    executor = create_executor(handler)
    request = Request.build("https://api.example/1.1/search.json", {"q": "trio"})

    assert trio.run(executor.get, request) == "[]"
    assert seen[0].url.params["q"] == "trio"
    assert executor.last_url == "https://api.example/1.1/search.json?q=trio"


def test_repeated_headers_are_joined():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200, content=b"{}", headers=[("x-tag", "a"), ("x-other", "b"), ("x-tag", "c")]
        )

    executor = create_executor(handler)
    trio.run(executor.get, Request(URL))

    headers = executor.response_headers
    assert headers["x-tag"] == "a, c"
    assert list(headers).index("x-tag") < list(headers).index("x-other")


def test_last_response_is_replaced_by_each_call():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=request.url.path.encode("ascii"))

    executor = create_executor(handler)
    assert executor.last_response is None
    assert executor.last_url is None
    assert executor.response_headers == {}

    trio.run(executor.get, Request("https://api.example/first"))
    assert executor.last_url == "https://api.example/first"

    trio.run(executor.get, Request("https://api.example/second"))
    assert executor.last_url == "https://api.example/second"
    assert executor.last_response.body == "/second"


def test_structured_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            404,
            content=b'{"errors":[{"code":144,"message":"No status found with that ID."}]}',
        )

    executor = create_executor(handler)

    with raises(RemoteProtocolError) as info:
        trio.run(executor.get, Request(URL, {"id": "42"}))

    assert info.value.status_code == 404
    assert info.value.code == 144
    assert info.value.message == "No status found with that ID."

    # the envelope is recorded even for failed requests
    assert executor.last_response.status_code == 404
    assert executor.last_url == URL


def test_unstructured_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, content=b"Service Unavailable")

    executor = create_executor(handler)

    with raises(RemoteUnstructuredError) as info:
        trio.run(executor.get, Request(URL))

    assert info.value.body == "Service Unavailable"


def test_missing_credentials_prevent_network_io():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200)

    executor = create_executor(handler, credentials=None)

    with raises(AuthorizationError):
        trio.run(executor.get, Request(URL))
    with raises(AuthorizationError):
        trio.run(executor.post, URL, {"status": "hello"})

    assert seen == []
    assert executor.last_response is None


def test_signer_failure_prevents_network_io():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200)

    executor = create_executor(handler, signer=RejectingSigner())

    with raises(AuthorizationError):
        trio.run(executor.get, Request(URL))

    assert seen == []


def test_timeout():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    executor = create_executor(handler, config=ExecutorConfig(timeout=1))

    with raises(RequestTimeoutError):
        trio.run(executor.get, Request(URL))


def test_transport_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    executor = create_executor(handler)

    with raises(ConnectivityError) as info:
        trio.run(executor.get, Request(URL))

    assert not isinstance(info.value, RequestTimeoutError)
    assert isinstance(info.value.__cause__, httpx.ConnectError)


def test_post():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, content=b'{"id":1}')

    signer = RecordingSigner()
    executor = create_executor(handler, signer=signer)
    url = "https://api.example/1.1/statuses/update.json"

    body = trio.run(
        executor.post, url, {"status": "hello world", "in_reply_to": None, "lat": "1"}
    )

    assert body == '{"id":1}'
    assert seen[0].method == "POST"
    assert seen[0].headers["Content-Type"] == "application/x-www-form-urlencoded"
    assert seen[0].content == b"status=hello+world&lat=1"
    assert signer.calls == [
        ("POST", url, [("status", "hello world"), ("lat", "1")], CREDENTIALS)
    ]
    assert executor.last_url == url


def test_post_multipart():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, content=b'{"media_id":7}')

    signer = RecordingSigner()
    executor = create_executor(handler, signer=signer)
    url = "https://upload.example/1.1/media/upload.json"
    payload = b"\x89PNG\r\n\x1a\nfake image data"

    body = trio.run(
        executor.post_multipart,
        url,
        {"status": "look", "skipped": None, "possibly_sensitive": "false"},
        payload,
        "media",
        "picture.png",
        "image/png",
    )

    assert body == '{"media_id":7}'

    request = seen[0]
    assert request.headers["Content-Type"].startswith("multipart/form-data")
    assert request.headers["Authorization"] == "OAuth token=abc"

    content = request.content
    assert content.count(b'name="status"') == 1
    assert content.count(b'name="possibly_sensitive"') == 1
    assert b'name="skipped"' not in content
    assert b'name="media"; filename="picture.png"' in content
    assert b"Content-Type: image/png" in content
    assert payload in content

    assert signer.calls == [
        (
            "POST",
            url,
            [("status", "look"), ("possibly_sensitive", "false")],
            CREDENTIALS,
        )
    ]


def test_log_sink_and_user_agent():
    logged = []
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, content=b"{}")

    config = ExecutorConfig(
        log_sink=lambda target, label: logged.append((target, label))
    ).with_user_agent("MyApp/2.0")
    executor = create_executor(handler, config=config)

    trio.run(executor.get, Request(URL))
    trio.run(executor.post, URL, {})

    assert logged == [(URL, "get"), (URL, "post")]
    assert seen[0].headers["User-Agent"] == "MyApp/2.0, " + DEFAULT_USER_AGENT


def test_concurrent_calls():
    async def handler(request: httpx.Request) -> httpx.Response:
        await trio.sleep(0.01 if request.url.path == "/slow" else 0)
        return httpx.Response(200, content=request.url.path.encode("ascii"))

    executor = create_executor(handler)
    results = {}

    async def fetch(path):
        results[path] = await executor.get(Request("https://api.example" + path))

    async def main():
        async with trio.open_nursery() as nursery:
            nursery.start_soon(fetch, "/slow")
            nursery.start_soon(fetch, "/fast")

    trio.run(main)

    assert results == {"/slow": "/slow", "/fast": "/fast"}
    assert executor.last_url == "https://api.example/slow"


def record_timeouts(timeouts):
    def handler(request: httpx.Request) -> httpx.Response:
        timeouts.append(request.extensions["timeout"])
        return httpx.Response(200, content=b"{}")

    return handler


def test_configured_timeout_is_applied():
    timeouts = []
    executor = create_executor(
        record_timeouts(timeouts), config=ExecutorConfig(timeout=5)
    )

    trio.run(executor.get, Request(URL))
    trio.run(executor.post, URL, {"status": "hello"})

    assert len(timeouts) == 2
    for timeout in timeouts:
        assert set(timeout.values()) == {5}


def test_zero_timeout_means_no_timeout():
    timeouts = []
    executor = create_executor(
        record_timeouts(timeouts), config=ExecutorConfig(timeout=0)
    )

    trio.run(executor.get, Request(URL))

    assert set(timeouts[0].values()) == {None}


def test_corrupt_compressed_body():
    def handler(request: httpx.Request) -> httpx.Response:
        async def body():
            yield b"not gzip at all"

        return httpx.Response(
            200, headers={"Content-Encoding": "gzip"}, content=body()
        )

    executor = create_executor(handler)

    with raises(ConnectivityError) as info:
        trio.run(executor.get, Request(URL))

    assert not isinstance(info.value, RequestTimeoutError)
    assert isinstance(info.value.__cause__, httpx.DecodingError)
