import asyncio
import collections.abc
import dataclasses
import gzip
import json
import logging
import pathlib
import socket
import ssl
from collections.abc import AsyncIterator, Callable

import aiohttp.web
import aiohttp.web_request
import aiohttp.web_response
import multidict
import pytest
import yarl
from _pytest.fixtures import SubRequest
from aiohttp.test_utils import TestServer

import aio_fetch

logging.basicConfig(level="DEBUG")

LOOP_HITS = aiohttp.web.AppKey("loop_hits", int)


class FakeExchange(aio_fetch.Exchange):
    def __init__(
        self,
        status: int = 200,
        *,
        reason: str = "OK",
        headers: collections.abc.Iterable[tuple[str, str]] = (("Content-Type", "text/plain"),),
        body: bytes = b"",
        url: yarl.URL | None = None,
        chunk_size: int = 7,
    ) -> None:
        self._status = status
        self._reason = reason
        self._headers = list(headers)
        self._body = body
        self._url = url or yarl.URL("http://test.com/")
        self._chunk_size = chunk_size
        self.closed = False

    def for_url(self, url: yarl.URL) -> "FakeExchange":
        return FakeExchange(
            self._status,
            reason=self._reason,
            headers=self._headers,
            body=self._body,
            url=url,
            chunk_size=self._chunk_size,
        )

    @property
    def url(self) -> yarl.URL:
        return self._url

    @property
    def status(self) -> int:
        return self._status

    @property
    def reason(self) -> str:
        return self._reason

    @property
    def headers(self) -> list[tuple[str, str]]:
        return self._headers

    @property
    def content_length(self) -> int | None:
        for name, value in self._headers:
            if name.lower() == "content-length":
                return int(value)
        return None

    async def iter_chunks(self) -> collections.abc.AsyncIterator[bytes]:
        for i in range(0, len(self._body), self._chunk_size):
            yield self._body[i : i + self._chunk_size]

    async def close(self) -> None:
        self.closed = True


@dataclasses.dataclass(frozen=True)
class SentRequest:
    method: aio_fetch.Method
    url: yarl.URL
    headers: multidict.CIMultiDict[str]
    cookies: dict[str, str]
    data: list[aio_fetch.KeyValue]
    body: bytes | None


class FakeTransport(aio_fetch.Transport):
    """Replays exchanges in order; with repeat=True the last one is served forever"""

    def __init__(self, *exchanges: FakeExchange | Exception, repeat: bool = False) -> None:
        self._exchanges = list(reversed(exchanges))
        self._repeat = repeat
        self.sent: list[SentRequest] = []
        self.served: list[FakeExchange] = []

    async def send(self, request: aio_fetch.Request, body: bytes | None) -> aio_fetch.Exchange:
        self.sent.append(
            SentRequest(
                method=request.method,
                url=request.url,
                headers=multidict.CIMultiDict[str](request.headers),
                cookies=dict(request.cookies),
                data=list(request.data),
                body=body,
            )
        )
        if not self._exchanges:
            raise RuntimeError("No response left")

        exchange = self._exchanges[-1] if self._repeat and len(self._exchanges) == 1 else self._exchanges.pop()
        if isinstance(exchange, Exception):
            raise exchange
        served = exchange.for_url(request.url)
        self.served.append(served)
        return served


@pytest.fixture(scope="session")
def unused_port() -> Callable[[], int]:
    def f() -> int:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.bind(("127.0.0.1", 0))
            return s.getsockname()[1]

    return f


@pytest.fixture(params=("aiohttp", "httpx"))
async def transport(request: SubRequest) -> AsyncIterator[aio_fetch.Transport]:
    if request.param == "aiohttp":
        async with aio_fetch.create_client_session() as client_session:
            yield aio_fetch.AioHttpTransport(client_session)
    elif request.param == "httpx":
        yield aio_fetch.HttpxTransport()
    else:
        raise ValueError(f"Unknown transport {request.param}")


@pytest.fixture
async def client(transport: aio_fetch.Transport) -> aio_fetch.Client:
    return aio_fetch.setup(transport=transport)


def _text(payload: object, status: int = 200) -> aiohttp.web_response.Response:
    return aiohttp.web_response.Response(status=status, text=json.dumps(payload), content_type="text/plain")


async def _echo(request: aiohttp.web_request.Request) -> aiohttp.web_response.Response:
    payload: dict[str, object] = {
        "method": request.method,
        "path": request.path,
        "query": dict(request.query),
        "cookie": request.headers.get("Cookie"),
        "content_type": request.headers.get("Content-Type"),
        "proxy_authorization": request.headers.get("Proxy-Authorization"),
    }
    if request.content_type == "multipart/form-data":
        form: dict[str, object] = {}
        reader = await request.multipart()
        async for part in reader:
            content = await part.read()  # type: ignore[union-attr]
            if part.filename:  # type: ignore[union-attr]
                form[part.name] = {"filename": part.filename, "content": content.decode()}  # type: ignore
            else:
                form[part.name] = content.decode()  # type: ignore
        payload["form"] = form
    else:
        payload["body"] = (await request.read()).decode()
    return _text(payload)


async def _login(request: aiohttp.web_request.Request) -> aiohttp.web_response.Response:
    await request.read()
    return aiohttp.web_response.Response(
        status=302,
        headers={"Location": "/echo", "Set-Cookie": "sid=abc; Path=/; HttpOnly"},
    )


async def _temporary(request: aiohttp.web_request.Request) -> aiohttp.web_response.Response:
    await request.read()
    return aiohttp.web_response.Response(status=307, headers={"Location": "/echo"})


async def _loop(request: aiohttp.web_request.Request) -> aiohttp.web_response.Response:
    request.app[LOOP_HITS] += 1
    return aiohttp.web_response.Response(status=302, headers={"Location": "/loop"})


async def _gzip(request: aiohttp.web_request.Request) -> aiohttp.web_response.Response:
    return aiohttp.web_response.Response(
        body=gzip.compress("Hello, gzip! Привет".encode()),
        headers={"Content-Encoding": "gzip", "Content-Type": "text/plain; charset=utf-8"},
    )


async def _bytes(request: aiohttp.web_request.Request) -> aiohttp.web_response.Response:
    size = int(request.match_info["size"])
    return aiohttp.web_response.Response(body=b"x" * size, content_type="text/plain")


async def _image(request: aiohttp.web_request.Request) -> aiohttp.web_response.Response:
    return aiohttp.web_response.Response(body=b"\x89PNG\r\n\x1a\n", content_type="image/png")


async def _status(request: aiohttp.web_request.Request) -> aiohttp.web_response.Response:
    return aiohttp.web_response.Response(status=int(request.match_info["status"]), text="status")


async def _slow(request: aiohttp.web_request.Request) -> aiohttp.web_response.Response:
    response = aiohttp.web_response.StreamResponse(headers={"Content-Type": "text/plain"})
    await response.prepare(request)
    await asyncio.sleep(float(request.query.get("delay", "1")))
    await response.write(b"late")
    return response


async def _latin1(request: aiohttp.web_request.Request) -> aiohttp.web_response.Response:
    return aiohttp.web_response.Response(
        body="café".encode("latin-1"),
        headers={"Content-Type": 'text/html; charset="ISO-8859-1"'},
    )


@pytest.fixture
async def server(aiohttp_server: Callable[..., collections.abc.Awaitable[TestServer]]) -> TestServer:
    app = aiohttp.web.Application()
    app[LOOP_HITS] = 0
    app.router.add_route("*", "/echo", _echo)
    app.router.add_post("/login", _login)
    app.router.add_post("/temporary", _temporary)
    app.router.add_get("/loop", _loop)
    app.router.add_get("/gzip", _gzip)
    app.router.add_get("/bytes/{size}", _bytes)
    app.router.add_get("/image", _image)
    app.router.add_get("/status/{status}", _status)
    app.router.add_get("/slow", _slow)
    app.router.add_get("/latin1", _latin1)
    return await aiohttp_server(app)


@pytest.fixture
async def tls_server(aiohttp_server: Callable[..., collections.abc.Awaitable[TestServer]]) -> TestServer:
    certs = pathlib.Path(__file__).parent / "certs"
    ssl_context = ssl.create_default_context(ssl.Purpose.CLIENT_AUTH)
    ssl_context.load_cert_chain(certs / "localhost.crt", certs / "localhost.key")

    app = aiohttp.web.Application()
    app.router.add_route("*", "/echo", _echo)
    return await aiohttp_server(app, ssl=ssl_context)
