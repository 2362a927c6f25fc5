import re
import sys
from typing import NamedTuple

from .aiohttp import AioHttpTransport, create_client_session
from .base import (
    DEFAULT_CHARSET,
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_MAX_BODY_SIZE,
    DEFAULT_READ_TIMEOUT,
    MAX_REDIRECTS,
    ConfigurationError,
    FetchError,
    Header,
    HttpStatusError,
    Method,
    NotExecutedError,
    PolicyError,
    TooManyRedirectsError,
    TransportError,
    UnhandledContentTypeError,
)
from .client import Client
from .connection import Connection, connect
from .holder import HeaderCookieHolder
from .httpx import HttpxTransport
from .request import (
    KeyValue,
    Proxy,
    Request,
    delete,
    get,
    head,
    options,
    patch,
    post,
    put,
    request,
    trace,
)
from .response import Response
from .response_classifier import (
    DefaultResponseClassifier,
    HttpError,
    Outcome,
    Redirect,
    ResponseClassifier,
    Success,
    TransportFailure,
    UnhandledContentType,
)
from .setup import setup
from .tls import trust_all_ssl_context
from .transport import Exchange, Transport

__all__: tuple[str, ...] = (
    "AioHttpTransport",
    "Client",
    "ConfigurationError",
    "Connection",
    "DEFAULT_CHARSET",
    "DEFAULT_CONNECT_TIMEOUT",
    "DEFAULT_MAX_BODY_SIZE",
    "DEFAULT_READ_TIMEOUT",
    "DefaultResponseClassifier",
    "Exchange",
    "FetchError",
    "Header",
    "HeaderCookieHolder",
    "HttpError",
    "HttpStatusError",
    "HttpxTransport",
    "KeyValue",
    "MAX_REDIRECTS",
    "Method",
    "NotExecutedError",
    "Outcome",
    "PolicyError",
    "Proxy",
    "Redirect",
    "Request",
    "Response",
    "ResponseClassifier",
    "Success",
    "TooManyRedirectsError",
    "Transport",
    "TransportError",
    "TransportFailure",
    "UnhandledContentType",
    "UnhandledContentTypeError",
    "connect",
    "create_client_session",
    "delete",
    "get",
    "head",
    "options",
    "patch",
    "post",
    "put",
    "request",
    "setup",
    "trace",
    "trust_all_ssl_context",
)

__version__ = "0.1.0"

version = f"{__version__}, Python {sys.version}"


class VersionInfo(NamedTuple):
    major: int
    minor: int
    micro: int
    release_level: str
    serial: int


def _parse_version(v: str) -> VersionInfo:
    version_re = r"^(?P<major>\d+)\.(?P<minor>\d+)\.(?P<micro>\d+)((?P<release_level>[a-z]+)(?P<serial>\d+)?)?$"
    match = re.match(version_re, v)
    if not match:
        raise ImportError(f"Invalid package version {v}")
    try:
        major = int(match.group("major"))
        minor = int(match.group("minor"))
        micro = int(match.group("micro"))
        levels = {"rc": "candidate", "a": "alpha", "b": "beta", None: "final"}
        release_level = levels[match.group("release_level")]
        serial = int(match.group("serial")) if match.group("serial") else 0
        return VersionInfo(major, minor, micro, release_level, serial)
    except Exception as e:
        raise ImportError(f"Invalid package version {v}") from e


version_info = _parse_version(__version__)
