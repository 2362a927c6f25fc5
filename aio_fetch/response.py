import collections.abc
import contextlib
import zlib

import multidict
import yarl

from .base import DEFAULT_CHARSET, MAX_REDIRECTS, Header, Method, NotExecutedError, TooManyRedirectsError, TransportError
from .holder import HeaderCookieHolder
from .request import Request
from .transport import Exchange
from .utils import charset_from_content_type


class Response:
    """Materialized response of one hop.

    Headers and cookies are available as soon as the instance is built from
    an exchange; the body only after :meth:`read_body` has completed.
    """

    __slots__ = (
        "__holder",
        "__url",
        "__method",
        "__status",
        "__reason",
        "__content_type",
        "__charset",
        "__content",
        "__redirect_count",
        "__executed",
    )

    def __init__(
        self,
        *,
        url: yarl.URL,
        method: Method,
        status: int,
        reason: str = "",
        previous: "Response | None" = None,
    ) -> None:
        self.__redirect_count = 0
        if previous is not None:
            self.__redirect_count = previous.redirect_count + 1
            if self.__redirect_count >= MAX_REDIRECTS:
                raise TooManyRedirectsError(previous.url)

        self.__holder = HeaderCookieHolder()
        self.__url = url
        self.__method = method
        self.__status = status
        self.__reason = reason
        self.__content_type: str | None = None
        self.__charset: str | None = None
        self.__content = b""
        self.__executed = False

    @staticmethod
    def from_exchange(exchange: Exchange, request: Request, previous: "Response | None" = None) -> "Response":
        response = Response(
            url=exchange.url,
            method=request.method,
            status=exchange.status,
            reason=exchange.reason,
            previous=previous,
        )
        response.process_headers(exchange.headers)
        response.__content_type = response.header(Header.CONTENT_TYPE)
        response.__charset = charset_from_content_type(response.__content_type)

        if previous is not None:
            for name, value in previous.cookies.items():
                if not response.has_cookie(name):
                    response.set_cookie(name, value)
        return response

    def process_headers(self, headers: collections.abc.Iterable[tuple[str, str]]) -> None:
        grouped: dict[str, tuple[str, list[str]]] = {}
        for name, value in headers:
            if not name or value is None:
                continue
            grouped.setdefault(name.lower(), (name, []))[1].append(value)

        for name, values in grouped.values():
            if name.lower() == Header.SET_COOKIE.lower():
                for value in values:
                    self.__parse_cookie(value)
            else:
                self.set_header(name, ", ".join(values))

    def __parse_cookie(self, value: str) -> None:
        name, separator, rest = value.partition("=")
        cookie_value = rest.partition(";")[0] if separator else ""
        name = name.strip()
        if name:
            self.set_cookie(name, cookie_value.strip())

    async def read_body(self, exchange: Exchange, request: Request) -> None:
        if exchange.content_length != 0 and request.method != Method.HEAD:
            chunks = exchange.iter_chunks()
            if self.has_header_with_value(Header.CONTENT_ENCODING, "gzip"):
                chunks = _gunzip(chunks, request.max_body_size)
            async with contextlib.aclosing(chunks):  # type: ignore[type-var]
                self.__content = await _read_capped(chunks, request.max_body_size)
        else:
            self.__content = b""

        self.__executed = True

    @property
    def url(self) -> yarl.URL:
        return self.__url

    @property
    def method(self) -> Method:
        return self.__method

    @property
    def status(self) -> int:
        return self.__status

    @property
    def reason(self) -> str:
        return self.__reason

    @property
    def content_type(self) -> str | None:
        return self.__content_type

    @property
    def charset(self) -> str | None:
        return self.__charset

    @property
    def redirect_count(self) -> int:
        return self.__redirect_count

    @property
    def executed(self) -> bool:
        return self.__executed

    @property
    def content(self) -> bytes:
        if not self.__executed:
            raise NotExecutedError("Request must be executed before getting response body")
        return self.__content

    def read(self) -> bytes:
        return self.content

    def text(self, encoding: str | None = None) -> str:
        return self.content.decode(encoding or self.__charset or DEFAULT_CHARSET, errors="replace")

    @property
    def headers(self) -> multidict.CIMultiDictProxy[str]:
        return self.__holder.headers

    @property
    def cookies(self) -> collections.abc.Mapping[str, str]:
        return self.__holder.cookies

    def header(self, name: str) -> str | None:
        return self.__holder.header(name)

    def set_header(self, name: str, value: str) -> None:
        self.__holder.set_header(name, value)

    def has_header(self, name: str) -> bool:
        return self.__holder.has_header(name)

    def has_header_with_value(self, name: str, value: str) -> bool:
        return self.__holder.has_header_with_value(name, value)

    def remove_header(self, name: str) -> None:
        self.__holder.remove_header(name)

    def cookie(self, name: str) -> str | None:
        return self.__holder.cookie(name)

    def set_cookie(self, name: str, value: str) -> None:
        self.__holder.set_cookie(name, value)

    def has_cookie(self, name: str) -> bool:
        return self.__holder.has_cookie(name)

    def remove_cookie(self, name: str) -> None:
        self.__holder.remove_cookie(name)

    def is_informational(self) -> bool:
        return 100 <= self.status < 200

    def is_successful(self) -> bool:
        return 200 <= self.status < 300

    def is_redirection(self) -> bool:
        return 300 <= self.status < 400

    def is_client_error(self) -> bool:
        return 400 <= self.status < 500

    def is_server_error(self) -> bool:
        return 500 <= self.status < 600

    def __repr__(self) -> str:
        return f"<Response [{self.status}]>"


async def _gunzip(chunks: collections.abc.AsyncIterator[bytes], max_size: int) -> collections.abc.AsyncIterator[bytes]:
    """Inflate a gzip stream, never producing more than max_size bytes (0 means unlimited)"""
    decompressor = zlib.decompressobj(16 + zlib.MAX_WBITS)
    produced = 0
    try:
        async for chunk in chunks:
            data = chunk
            while data:
                budget = max_size - produced if max_size > 0 else 0
                inflated = decompressor.decompress(data, budget)
                produced += len(inflated)
                if inflated:
                    yield inflated
                if max_size > 0 and produced >= max_size:
                    return
                data = decompressor.unconsumed_tail
        inflated = decompressor.flush()
        if max_size > 0:
            inflated = inflated[: max_size - produced]
        if inflated:
            yield inflated
    except zlib.error as e:
        raise TransportError(f"Malformed gzip response body: {e}") from e


async def _read_capped(chunks: collections.abc.AsyncIterator[bytes], max_size: int) -> bytes:
    buffer = bytearray()
    async for chunk in chunks:
        if max_size > 0:
            remaining = max_size - len(buffer)
            if len(chunk) >= remaining:
                buffer.extend(chunk[:remaining])
                break
        buffer.extend(chunk)
    return bytes(buffer)
