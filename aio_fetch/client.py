import logging

import prometheus_client as prom
import yarl

from .base import (
    TEMPORARY_REDIRECT_STATUS,
    ConfigurationError,
    HttpStatusError,
    Method,
    TransportError,
    UnhandledContentTypeError,
)
from .body import encode_body
from .request import Request
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
from .transport import Transport
from .utils import encode_url_spaces, perf_counter, perf_counter_elapsed

logger = logging.getLogger(__package__)

latency_histogram = prom.Histogram(
    "aio_fetch_hop_latency",
    "Duration of a single request/response exchange.",
    labelnames=(
        "request_method",
        "request_host",
        "response_status",
    ),
    buckets=(
        0.005,
        0.01,
        0.025,
        0.05,
        0.075,
        0.1,
        0.15,
        0.2,
        0.25,
        0.3,
        0.35,
        0.4,
        0.45,
        0.5,
        0.75,
        1.0,
        5.0,
        10.0,
        15.0,
        20.0,
    ),
)


def capture_metrics(*, request: Request, status: int, elapsed: float) -> None:
    label_values = (
        str(request.method),
        request.url.host or "",
        str(status),
    )
    latency_histogram.labels(*label_values).observe(elapsed)


class Client:
    __slots__ = ("__response_classifier", "__transport")

    def __init__(self, transport: Transport, *, response_classifier: ResponseClassifier | None = None) -> None:
        self.__transport = transport
        self.__response_classifier = response_classifier or DefaultResponseClassifier()

    async def execute(self, request: Request) -> Response:
        """Run the request, following redirects, until a final response is produced.

        The request is mutated along the way: redirected hops rewrite its url,
        method, data and cookies.
        """
        previous: Response | None = None
        while True:
            hop = await self.__hop(request, previous)
            if isinstance(hop, TransportFailure):
                raise hop.error

            response, outcome = hop
            match outcome:
                case Success():
                    return response
                case Redirect(location=location):
                    follow_redirect(request, response, location)
                    previous = response
                case HttpError(status=status):
                    raise HttpStatusError(status=status, url=request.url, response=response)
                case UnhandledContentType(content_type=content_type):
                    raise UnhandledContentTypeError(content_type=content_type, url=request.url, response=response)
                case TransportFailure(error=error):
                    raise error

    async def __hop(self, request: Request, previous: Response | None) -> tuple[Response, Outcome] | TransportFailure:
        if request.url.scheme not in ("http", "https"):
            raise ConfigurationError("Only http & https protocols supported")

        body = encode_body(request)
        started_at = perf_counter()
        try:
            exchange = await self.__transport.send(request, body)
        except TransportError as e:
            return TransportFailure(e)

        try:
            response = Response.from_exchange(exchange, request, previous)
            capture_metrics(request=request, status=response.status, elapsed=perf_counter_elapsed(started_at))

            outcome = self.__response_classifier.classify(request, response)
            if isinstance(outcome, Success):
                await response.read_body(exchange, request)
            return response, outcome
        except TransportError as e:
            return TransportFailure(e)
        finally:
            await exchange.close()


def follow_redirect(request: Request, response: Response, location: str) -> None:
    if response.status != TEMPORARY_REDIRECT_STATUS:
        request.method = Method.GET
        request.data.clear()
        request.body = None

    # repairs "http:/path", a Location some servers send with a slash missing
    if location.startswith("http:/") and len(location) > 6 and location[6] != "/":
        location = location[6:]

    url = resolve(request.url, encode_url_spaces(location))
    logger.debug(
        "Following redirect %s from %s to %s",
        response.status,
        request.url,
        url,
        extra={
            "request_url": request.url,
            "response_status": response.status,
            "redirect_count": response.redirect_count,
        },
    )
    request.url = url

    for name, value in response.cookies.items():
        request.set_cookie(name, value)


def resolve(base: yarl.URL, relative: str) -> yarl.URL:
    # a bare query replaces the query of the current document, not its last path segment
    if relative.startswith("?"):
        relative = base.raw_path + relative
    if relative.startswith(".") and not base.raw_path.startswith("/"):
        base = base.with_path("/" + base.raw_path, encoded=True)
    return base.join(yarl.URL(relative))
