import enum
import re
from typing import TYPE_CHECKING

import multidict
import yarl

if TYPE_CHECKING:
    from .response import Response

MAX_REDIRECTS = 20
TEMPORARY_REDIRECT_STATUS = 307

DEFAULT_CONNECT_TIMEOUT = 3.0
DEFAULT_READ_TIMEOUT = 30.0
DEFAULT_MAX_BODY_SIZE = 1024 * 1024
DEFAULT_CHARSET = "UTF-8"

FORM_URL_ENCODED = "application/x-www-form-urlencoded"
MULTIPART_FORM_DATA = "multipart/form-data"
OCTET_STREAM = "application/octet-stream"

xml_content_type_re = re.compile(r"(application|text)/\w*\+?xml.*")


class Method(enum.Enum):
    GET = ("GET", False)
    POST = ("POST", True)
    PUT = ("PUT", True)
    DELETE = ("DELETE", False)
    PATCH = ("PATCH", True)
    HEAD = ("HEAD", False)
    OPTIONS = ("OPTIONS", False)
    TRACE = ("TRACE", False)

    def __init__(self, verb: str, has_body: bool) -> None:
        self.verb = verb
        self.has_body = has_body

    @staticmethod
    def parse(value: "str | Method") -> "Method":
        if isinstance(value, Method):
            return value
        try:
            return Method[value.upper()]
        except KeyError:
            raise ConfigurationError(f"Unsupported HTTP method {value}") from None

    def __str__(self) -> str:
        return self.verb


class Header:
    ACCEPT_ENCODING = multidict.istr("Accept-Encoding")
    CONTENT_ENCODING = multidict.istr("Content-Encoding")
    CONTENT_LENGTH = multidict.istr("Content-Length")
    CONTENT_TYPE = multidict.istr("Content-Type")
    COOKIE = multidict.istr("Cookie")
    LOCATION = multidict.istr("Location")
    PROXY_AUTHORIZATION = multidict.istr("Proxy-Authorization")
    REFERER = multidict.istr("Referer")
    SET_COOKIE = multidict.istr("Set-Cookie")
    USER_AGENT = multidict.istr("User-Agent")


class FetchError(Exception):
    """Base class of every error raised while fetching"""


class ConfigurationError(FetchError, ValueError):
    """Request is misconfigured, detected before any network I/O"""


class TransportError(FetchError):
    """Exchange with the remote server has failed"""


class TooManyRedirectsError(TransportError):
    def __init__(self, url: yarl.URL) -> None:
        super().__init__(f"Too many redirects occurred trying to load URL {url}")
        self.url = url


class PolicyError(FetchError):
    """Response was received but rejected by a request policy"""

    def __init__(self, message: str, *, response: "Response") -> None:
        super().__init__(message)
        self.response = response


class HttpStatusError(PolicyError):
    def __init__(self, *, status: int, url: yarl.URL, response: "Response") -> None:
        super().__init__(f"HTTP error fetching URL {status} {url}", response=response)
        self.status = status
        self.url = url


class UnhandledContentTypeError(PolicyError):
    def __init__(self, *, content_type: str, url: yarl.URL, response: "Response") -> None:
        super().__init__(
            f"Unhandled content type [{content_type}]. Must be text/*, application/xml, or application/xhtml+xml {url}",
            response=response,
        )
        self.content_type = content_type
        self.url = url


class NotExecutedError(RuntimeError):
    """Response body is accessed before the request has been executed"""
