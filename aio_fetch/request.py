import base64
import collections.abc
import dataclasses
from typing import BinaryIO

import multidict
import yarl

from .base import (
    DEFAULT_CHARSET,
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_MAX_BODY_SIZE,
    DEFAULT_READ_TIMEOUT,
    ConfigurationError,
    Header,
    Method,
)
from .holder import HeaderCookieHolder
from .utils import encode_url_spaces, is_supported_charset


@dataclasses.dataclass(frozen=True, slots=True)
class KeyValue:
    """Single form field; a stream turns the value into a filename"""

    key: str
    value: str
    stream: BinaryIO | None = None

    def __post_init__(self) -> None:
        if not self.key:
            raise ValueError("Data key must not be empty")
        if self.value is None:
            raise ValueError("Data value must not be None")

    @property
    def has_stream(self) -> bool:
        return self.stream is not None

    def __repr__(self) -> str:
        if self.stream is not None:
            return f"<KeyValue [{self.key}={{stream}}]>"
        return f"<KeyValue [{self.key}={self.value}]>"


@dataclasses.dataclass(frozen=True, slots=True)
class Proxy:
    host: str
    port: int

    @property
    def url(self) -> yarl.URL:
        return yarl.URL.build(scheme="http", host=self.host, port=self.port)


def parse_url(url: str | yarl.URL) -> yarl.URL:
    if isinstance(url, yarl.URL):
        return url
    if not url:
        raise ConfigurationError("Must supply a valid URL")
    try:
        return yarl.URL(encode_url_spaces(url))
    except ValueError as e:
        raise ConfigurationError(f"Malformed URL: {url}") from e


class Request:
    __slots__ = (
        "__url",
        "__method",
        "__holder",
        "__proxy",
        "__connect_timeout",
        "__read_timeout",
        "__max_body_size",
        "__post_data_charset",
        "data",
        "body",
        "follow_redirects",
        "ignore_http_errors",
        "ignore_content_type",
        "validate_tls_certificates",
    )

    def __init__(
        self,
        url: str | yarl.URL,
        *,
        method: Method | str = Method.GET,
        headers: collections.abc.Mapping[str, str] | None = None,
        cookies: collections.abc.Mapping[str, str] | None = None,
        data: collections.abc.Iterable[KeyValue] | collections.abc.Mapping[str, str] | None = None,
        body: str | None = None,
        proxy: Proxy | None = None,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        read_timeout: float = DEFAULT_READ_TIMEOUT,
        max_body_size: int = DEFAULT_MAX_BODY_SIZE,
        follow_redirects: bool = True,
        ignore_http_errors: bool = False,
        ignore_content_type: bool = False,
        validate_tls_certificates: bool = True,
        post_data_charset: str = DEFAULT_CHARSET,
    ) -> None:
        self.__holder = HeaderCookieHolder()
        self.__holder.set_header(Header.ACCEPT_ENCODING, "gzip")

        self.url = url  # type: ignore[assignment]
        self.method = method  # type: ignore[assignment]
        self.proxy = proxy
        self.connect_timeout = connect_timeout
        self.read_timeout = read_timeout
        self.max_body_size = max_body_size
        self.post_data_charset = post_data_charset
        self.data: list[KeyValue] = []
        self.body = body
        self.follow_redirects = follow_redirects
        self.ignore_http_errors = ignore_http_errors
        self.ignore_content_type = ignore_content_type
        self.validate_tls_certificates = validate_tls_certificates

        for name, value in (headers or {}).items():
            self.set_header(name, value)
        for name, value in (cookies or {}).items():
            self.set_cookie(name, value)
        if isinstance(data, collections.abc.Mapping):
            self.data.extend(KeyValue(key, value) for key, value in data.items())
        elif data is not None:
            self.data.extend(data)

    @property
    def url(self) -> yarl.URL:
        return self.__url

    @url.setter
    def url(self, value: str | yarl.URL) -> None:
        self.__url = parse_url(value)

    @property
    def method(self) -> Method:
        return self.__method

    @method.setter
    def method(self, value: Method | str) -> None:
        self.__method = Method.parse(value)

    @property
    def proxy(self) -> Proxy | None:
        return self.__proxy

    @proxy.setter
    def proxy(self, value: Proxy | None) -> None:
        self.__proxy = value

    def set_proxy(self, host: str, port: int, username: str | None = None, password: str | None = None) -> None:
        self.__proxy = Proxy(host, port)
        if username is not None and password is not None:
            credentials = base64.b64encode(f"{username}:{password}".encode()).decode("ascii")
            self.set_header(Header.PROXY_AUTHORIZATION, f"Basic {credentials}")

    @property
    def connect_timeout(self) -> float:
        return self.__connect_timeout

    @connect_timeout.setter
    def connect_timeout(self, seconds: float) -> None:
        if seconds < 0:
            raise ConfigurationError("Timeout must be 0 (infinite) or greater")
        self.__connect_timeout = seconds

    @property
    def read_timeout(self) -> float:
        return self.__read_timeout

    @read_timeout.setter
    def read_timeout(self, seconds: float) -> None:
        if seconds < 0:
            raise ConfigurationError("Timeout must be 0 (infinite) or greater")
        self.__read_timeout = seconds

    @property
    def max_body_size(self) -> int:
        return self.__max_body_size

    @max_body_size.setter
    def max_body_size(self, size: int) -> None:
        if size < 0:
            raise ConfigurationError("Max body size must be 0 (unlimited) or larger")
        self.__max_body_size = size

    @property
    def post_data_charset(self) -> str:
        return self.__post_data_charset

    @post_data_charset.setter
    def post_data_charset(self, charset: str) -> None:
        if charset is None or not is_supported_charset(charset):
            raise ConfigurationError(f"Unsupported charset {charset}")
        self.__post_data_charset = charset

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

    def cookie_header(self) -> str:
        return self.__holder.cookie_header()

    def add_data(self, key: str, value: str, stream: BinaryIO | None = None) -> None:
        self.data.append(KeyValue(key, value, stream))

    def data_by_key(self, key: str) -> KeyValue | None:
        if not key:
            raise ValueError("Data key must not be empty")
        for key_value in self.data:
            if key_value.key == key:
                return key_value
        return None

    def user_agent(self, value: str) -> None:
        self.set_header(Header.USER_AGENT, value)

    def referrer(self, value: str) -> None:
        self.set_header(Header.REFERER, value)

    def __repr__(self) -> str:
        return f"<Request [{self.method} {self.url}]>"


def get(
    url: str | yarl.URL,
    *,
    headers: collections.abc.Mapping[str, str] | None = None,
    cookies: collections.abc.Mapping[str, str] | None = None,
    data: collections.abc.Iterable[KeyValue] | collections.abc.Mapping[str, str] | None = None,
    follow_redirects: bool = True,
) -> Request:
    return request(
        Method.GET, url, headers=headers, cookies=cookies, data=data, follow_redirects=follow_redirects
    )


def head(
    url: str | yarl.URL,
    *,
    headers: collections.abc.Mapping[str, str] | None = None,
    cookies: collections.abc.Mapping[str, str] | None = None,
    follow_redirects: bool = True,
) -> Request:
    return request(Method.HEAD, url, headers=headers, cookies=cookies, follow_redirects=follow_redirects)


def delete(
    url: str | yarl.URL,
    *,
    headers: collections.abc.Mapping[str, str] | None = None,
    cookies: collections.abc.Mapping[str, str] | None = None,
    follow_redirects: bool = True,
) -> Request:
    return request(Method.DELETE, url, headers=headers, cookies=cookies, follow_redirects=follow_redirects)


def options(
    url: str | yarl.URL,
    *,
    headers: collections.abc.Mapping[str, str] | None = None,
    cookies: collections.abc.Mapping[str, str] | None = None,
    follow_redirects: bool = True,
) -> Request:
    return request(Method.OPTIONS, url, headers=headers, cookies=cookies, follow_redirects=follow_redirects)


def trace(
    url: str | yarl.URL,
    *,
    headers: collections.abc.Mapping[str, str] | None = None,
    cookies: collections.abc.Mapping[str, str] | None = None,
    follow_redirects: bool = True,
) -> Request:
    return request(Method.TRACE, url, headers=headers, cookies=cookies, follow_redirects=follow_redirects)


def post(
    url: str | yarl.URL,
    data: collections.abc.Iterable[KeyValue] | collections.abc.Mapping[str, str] | None = None,
    *,
    body: str | None = None,
    headers: collections.abc.Mapping[str, str] | None = None,
    cookies: collections.abc.Mapping[str, str] | None = None,
    follow_redirects: bool = True,
) -> Request:
    return request(
        Method.POST,
        url,
        headers=headers,
        cookies=cookies,
        data=data,
        body=body,
        follow_redirects=follow_redirects,
    )


def put(
    url: str | yarl.URL,
    data: collections.abc.Iterable[KeyValue] | collections.abc.Mapping[str, str] | None = None,
    *,
    body: str | None = None,
    headers: collections.abc.Mapping[str, str] | None = None,
    cookies: collections.abc.Mapping[str, str] | None = None,
    follow_redirects: bool = True,
) -> Request:
    return request(
        Method.PUT,
        url,
        headers=headers,
        cookies=cookies,
        data=data,
        body=body,
        follow_redirects=follow_redirects,
    )


def patch(
    url: str | yarl.URL,
    data: collections.abc.Iterable[KeyValue] | collections.abc.Mapping[str, str] | None = None,
    *,
    body: str | None = None,
    headers: collections.abc.Mapping[str, str] | None = None,
    cookies: collections.abc.Mapping[str, str] | None = None,
    follow_redirects: bool = True,
) -> Request:
    return request(
        Method.PATCH,
        url,
        headers=headers,
        cookies=cookies,
        data=data,
        body=body,
        follow_redirects=follow_redirects,
    )


def request(
    method: Method | str,
    url: str | yarl.URL,
    *,
    headers: collections.abc.Mapping[str, str] | None = None,
    cookies: collections.abc.Mapping[str, str] | None = None,
    data: collections.abc.Iterable[KeyValue] | collections.abc.Mapping[str, str] | None = None,
    body: str | None = None,
    follow_redirects: bool = True,
) -> Request:
    return Request(
        url,
        method=method,
        headers=headers,
        cookies=cookies,
        data=data,
        body=body,
        follow_redirects=follow_redirects,
    )
