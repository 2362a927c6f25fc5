import collections.abc
import logging
from typing import Any

import httpx
import yarl

from .base import Header, TransportError
from .request import Request
from .tls import trust_all_ssl_context
from .transport import Exchange, Transport
from .utils import try_parse_int

logger = logging.getLogger(__package__)

ClientFactory = collections.abc.Callable[..., httpx.AsyncClient]


class HttpxTransport(Transport):
    """Transport running every exchange on its own short-lived httpx client.

    httpx binds proxy, TLS verification and cookie persistence to the client,
    so a fresh client per exchange keeps those under the request's control.
    """

    __slots__ = ("__client_factory",)

    def __init__(self, client_factory: ClientFactory = httpx.AsyncClient) -> None:
        self.__client_factory = client_factory

    async def send(self, request: Request, body: bytes | None) -> Exchange:
        method = str(request.method)
        url = request.url

        headers = list(request.headers.items())
        if request.cookies:
            headers.append((Header.COOKIE, request.cookie_header()))

        client = self.__client_factory(**self.__client_options(request))
        try:
            client_request = client.build_request(
                method=method,
                url=httpx.URL(str(url)),
                content=body,
                headers=headers,
                timeout=httpx.Timeout(
                    None,
                    connect=request.connect_timeout or None,
                    read=request.read_timeout or None,
                ),
            )

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
                response = await client.send(client_request, follow_redirects=False, stream=True)
            except httpx.HTTPError as e:
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
        except BaseException:
            await client.aclose()
            raise

        return _HttpxExchange(response, client)

    @staticmethod
    def __client_options(request: Request) -> dict[str, Any]:
        options: dict[str, Any] = {"follow_redirects": False}
        if request.proxy is not None:
            proxy_headers = {}
            proxy_authorization = request.header(Header.PROXY_AUTHORIZATION)
            if proxy_authorization is not None:
                proxy_headers[Header.PROXY_AUTHORIZATION] = proxy_authorization
            options["proxy"] = httpx.Proxy(str(request.proxy.url), headers=proxy_headers)
        if request.url.scheme == "https" and not request.validate_tls_certificates:
            options["verify"] = trust_all_ssl_context()
        return options


class _HttpxExchange(Exchange):
    __slots__ = ("__response", "__client")

    def __init__(self, response: httpx.Response, client: httpx.AsyncClient) -> None:
        self.__response = response
        self.__client = client

    @property
    def url(self) -> yarl.URL:
        return yarl.URL(str(self.__response.url), encoded=True)

    @property
    def status(self) -> int:
        return self.__response.status_code

    @property
    def reason(self) -> str:
        return self.__response.reason_phrase

    @property
    def headers(self) -> list[tuple[str, str]]:
        return self.__response.headers.multi_items()

    @property
    def content_length(self) -> int | None:
        return try_parse_int(self.__response.headers.get(Header.CONTENT_LENGTH))

    async def iter_chunks(self) -> collections.abc.AsyncIterator[bytes]:
        try:
            async for chunk in self.__response.aiter_raw():
                yield chunk
        except httpx.HTTPError as e:
            logger.warning(
                "Reading response of %s has failed",
                self.__response.url,
                exc_info=True,
                extra={"request_url": self.__response.url},
            )
            raise TransportError(f"Reading response of {self.__response.url} has failed: {e!r}") from e

    async def close(self) -> None:
        try:
            await self.__response.aclose()
        finally:
            await self.__client.aclose()
