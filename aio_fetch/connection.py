import collections.abc
from typing import BinaryIO

import yarl

from .base import Method
from .client import Client
from .request import KeyValue, Request
from .response import Response


class Connection:
    """Chainable configuration of a single request::

        response = await connect("https://example.com/login").data("user", "me").cookie("a", "b").post(client)
    """

    __slots__ = ("__request", "__response")

    def __init__(self, url: str | yarl.URL) -> None:
        self.__request = Request(url)
        self.__response: Response | None = None

    @property
    def request(self) -> Request:
        return self.__request

    @property
    def response(self) -> Response | None:
        return self.__response

    def url(self, url: str | yarl.URL) -> "Connection":
        self.__request.url = url
        return self

    def method(self, method: Method | str) -> "Connection":
        self.__request.method = method
        return self

    def proxy(
        self, host: str, port: int, username: str | None = None, password: str | None = None
    ) -> "Connection":
        self.__request.set_proxy(host, port, username, password)
        return self

    def no_proxy(self) -> "Connection":
        self.__request.proxy = None
        return self

    def user_agent(self, user_agent: str) -> "Connection":
        self.__request.user_agent(user_agent)
        return self

    def referrer(self, referrer: str) -> "Connection":
        self.__request.referrer(referrer)
        return self

    def connect_timeout(self, seconds: float) -> "Connection":
        self.__request.connect_timeout = seconds
        return self

    def read_timeout(self, seconds: float) -> "Connection":
        self.__request.read_timeout = seconds
        return self

    def timeout(self, seconds: float) -> "Connection":
        self.__request.connect_timeout = seconds
        self.__request.read_timeout = seconds
        return self

    def max_body_size(self, size: int) -> "Connection":
        self.__request.max_body_size = size
        return self

    def follow_redirects(self, follow_redirects: bool) -> "Connection":
        self.__request.follow_redirects = follow_redirects
        return self

    def ignore_http_errors(self, ignore_http_errors: bool) -> "Connection":
        self.__request.ignore_http_errors = ignore_http_errors
        return self

    def ignore_content_type(self, ignore_content_type: bool) -> "Connection":
        self.__request.ignore_content_type = ignore_content_type
        return self

    def validate_tls_certificates(self, validate: bool) -> "Connection":
        self.__request.validate_tls_certificates = validate
        return self

    def data(
        self,
        key: str | collections.abc.Mapping[str, str] | collections.abc.Iterable[KeyValue],
        value: str | None = None,
        stream: BinaryIO | None = None,
    ) -> "Connection":
        if isinstance(key, str):
            self.__request.add_data(key, value, stream)  # type: ignore[arg-type]
        elif isinstance(key, collections.abc.Mapping):
            for k, v in key.items():
                self.__request.add_data(k, v)
        else:
            self.__request.data.extend(key)
        return self

    def body(self, body: str) -> "Connection":
        self.__request.body = body
        return self

    def header(self, name: str, value: str) -> "Connection":
        self.__request.set_header(name, value)
        return self

    def cookie(self, name: str, value: str) -> "Connection":
        self.__request.set_cookie(name, value)
        return self

    def cookies(self, cookies: collections.abc.Mapping[str, str]) -> "Connection":
        for name, value in cookies.items():
            self.__request.set_cookie(name, value)
        return self

    def post_data_charset(self, charset: str) -> "Connection":
        self.__request.post_data_charset = charset
        return self

    async def execute(self, client: Client) -> Response:
        self.__response = await client.execute(self.__request)
        return self.__response

    async def get(self, client: Client) -> Response:
        self.__request.method = Method.GET
        return await self.execute(client)

    async def post(self, client: Client) -> Response:
        self.__request.method = Method.POST
        return await self.execute(client)


def connect(url: str | yarl.URL) -> Connection:
    return Connection(url)
