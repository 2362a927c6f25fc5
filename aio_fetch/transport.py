import abc
import collections.abc

import yarl

from .request import Request
from .utils import Closable


class Exchange(Closable):
    """Status, headers and raw body stream of a single request/response exchange"""

    __slots__ = ()

    @property
    @abc.abstractmethod
    def url(self) -> yarl.URL: ...

    @property
    @abc.abstractmethod
    def status(self) -> int: ...

    @property
    @abc.abstractmethod
    def reason(self) -> str: ...

    @property
    @abc.abstractmethod
    def headers(self) -> list[tuple[str, str]]: ...

    @property
    @abc.abstractmethod
    def content_length(self) -> int | None: ...

    @abc.abstractmethod
    def iter_chunks(self) -> collections.abc.AsyncIterator[bytes]:
        """Body as sent by the server, without any content decoding"""

    def __repr__(self) -> str:
        return f"<Exchange [{self.status} {self.url}]>"


class Transport(abc.ABC):
    __slots__ = ()

    @abc.abstractmethod
    async def send(self, request: Request, body: bytes | None) -> Exchange: ...
