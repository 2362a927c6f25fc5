import collections.abc
import logging
from typing import Any

import aiohttp
import multidict
import yarl

from .base import Header, TransportError
from .request import Request
from .tls import trust_all_ssl_context
from .transport import Exchange, Transport
from .utils import try_parse_int

logger = logging.getLogger(__package__)


def create_client_session(**kwargs: Any) -> aiohttp.ClientSession:
    """Session suitable for AioHttpTransport: no cookie jar, no transparent decompression"""
    kwargs.setdefault("cookie_jar", aiohttp.DummyCookieJar())
    kwargs.setdefault("auto_decompress", False)
    return aiohttp.ClientSession(**kwargs)


class AioHttpTransport(Transport):
    __slots__ = ("__client_session",)

    def __init__(self, client_session: aiohttp.ClientSession) -> None:
        self.__client_session = client_session

    async def send(self, request: Request, body: bytes | None) -> Exchange:
        method = str(request.method)
        url = request.url

        headers = multidict.CIMultiDict[str](request.headers)
        if request.cookies:
            headers[Header.COOKIE] = request.cookie_header()

        options: dict[str, Any] = {}
        if request.proxy is not None:
            options["proxy"] = request.proxy.url
            proxy_authorization = headers.get(Header.PROXY_AUTHORIZATION)
            if proxy_authorization is not None:
                options["proxy_headers"] = {Header.PROXY_AUTHORIZATION: proxy_authorization}
        if url.scheme == "https" and not request.validate_tls_certificates:
            options["ssl"] = trust_all_ssl_context()

        logger.debug(
            "Sending request %s %s",
            method,
            url,
            extra={
                "request_method": method,
                "request_url": url,
            },
        )
        try:
            response = await self.__client_session.request(
                method,
                url,
                headers=headers,
                data=body,
                allow_redirects=False,
                auto_decompress=False,
                timeout=aiohttp.ClientTimeout(
                    total=None,
                    sock_connect=request.connect_timeout or None,
                    sock_read=request.read_timeout or None,
                ),
                **options,
            )
        except (aiohttp.ClientError, TimeoutError) as e:
            logger.warning(
                "Request %s %s has failed: network error",
                method,
                url,
                exc_info=True,
                extra={
                    "request_method": method,
                    "request_url": url,
                },
            )
            raise TransportError(f"Request {method} {url} has failed: {e!r}") from e

        return _AioHttpExchange(response)


class _AioHttpExchange(Exchange):
    __slots__ = ("__response",)

    def __init__(self, response: aiohttp.ClientResponse) -> None:
        self.__response = response

    @property
    def url(self) -> yarl.URL:
        return self.__response.url

    @property
    def status(self) -> int:
        return self.__response.status

    @property
    def reason(self) -> str:
        return self.__response.reason or ""

    @property
    def headers(self) -> list[tuple[str, str]]:
        return list(self.__response.headers.items())

    @property
    def content_length(self) -> int | None:
        return try_parse_int(self.__response.headers.get(Header.CONTENT_LENGTH))

    async def iter_chunks(self) -> collections.abc.AsyncIterator[bytes]:
        try:
            async for chunk in self.__response.content.iter_any():
                yield chunk
        except (aiohttp.ClientError, TimeoutError) as e:
            logger.warning(
                "Reading response of %s has failed",
                self.__response.url,
                exc_info=True,
                extra={"request_url": self.__response.url},
            )
            raise TransportError(f"Reading response of {self.__response.url} has failed: {e!r}") from e

    async def close(self) -> None:
        await self.__response.release()
