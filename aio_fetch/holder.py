import collections.abc

import multidict


class HeaderCookieHolder:
    """Headers and cookies shared by requests and responses.

    Header names are case-insensitive: setting a header drops every stored
    variant of the name first, so at most one entry per logical header is
    kept, under the casing of the last assignment. Cookie names are kept
    as-is.
    """

    __slots__ = ("__headers", "__cookies")

    def __init__(self) -> None:
        self.__headers = multidict.CIMultiDict[str]()
        self.__cookies: dict[str, str] = {}

    @property
    def headers(self) -> multidict.CIMultiDictProxy[str]:
        return multidict.CIMultiDictProxy[str](self.__headers)

    @property
    def cookies(self) -> collections.abc.Mapping[str, str]:
        return self.__cookies

    def header(self, name: str) -> str | None:
        if name is None:
            raise ValueError("Header name must not be None")
        return self.__headers.get(name)

    def set_header(self, name: str, value: str) -> None:
        if not name:
            raise ValueError("Header name must not be empty")
        if value is None:
            raise ValueError("Header value must not be None")
        self.__headers.popall(name, None)
        self.__headers.add(name, value)

    def has_header(self, name: str) -> bool:
        if not name:
            raise ValueError("Header name must not be empty")
        return name in self.__headers

    def has_header_with_value(self, name: str, value: str) -> bool:
        actual = self.header(name)
        return actual is not None and actual.lower() == value.lower()

    def remove_header(self, name: str) -> None:
        if not name:
            raise ValueError("Header name must not be empty")
        self.__headers.popall(name, None)

    def cookie(self, name: str) -> str | None:
        if not name:
            raise ValueError("Cookie name must not be empty")
        return self.__cookies.get(name)

    def set_cookie(self, name: str, value: str) -> None:
        if not name:
            raise ValueError("Cookie name must not be empty")
        if value is None:
            raise ValueError("Cookie value must not be None")
        self.__cookies[name] = value

    def has_cookie(self, name: str) -> bool:
        if not name:
            raise ValueError("Cookie name must not be empty")
        return name in self.__cookies

    def remove_cookie(self, name: str) -> None:
        if not name:
            raise ValueError("Cookie name must not be empty")
        self.__cookies.pop(name, None)

    def cookie_header(self) -> str:
        return "; ".join(f"{name}={value}" for name, value in self.__cookies.items())
