import abc
import dataclasses

from .base import Header, xml_content_type_re
from .request import Request
from .response import Response


@dataclasses.dataclass(frozen=True, slots=True)
class Success:
    pass


@dataclasses.dataclass(frozen=True, slots=True)
class Redirect:
    location: str


@dataclasses.dataclass(frozen=True, slots=True)
class HttpError:
    status: int


@dataclasses.dataclass(frozen=True, slots=True)
class UnhandledContentType:
    content_type: str


@dataclasses.dataclass(frozen=True, slots=True)
class TransportFailure:
    error: Exception


Outcome = Success | Redirect | HttpError | UnhandledContentType | TransportFailure


class ResponseClassifier(abc.ABC):
    __slots__ = ()

    @abc.abstractmethod
    def classify(self, request: Request, response: Response) -> Outcome: ...


class DefaultResponseClassifier(ResponseClassifier):
    """Redirect first, then status code, then content type"""

    __slots__ = ()

    def classify(self, request: Request, response: Response) -> Outcome:
        location = response.header(Header.LOCATION)
        if location is not None and request.follow_redirects:
            return Redirect(location)

        if (response.status < 200 or response.status >= 400) and not request.ignore_http_errors:
            return HttpError(response.status)

        content_type = response.content_type
        if (
            content_type is not None
            and not request.ignore_content_type
            and not content_type.startswith("text/")
            and not xml_content_type_re.fullmatch(content_type)
        ):
            return UnhandledContentType(content_type)

        return Success()
