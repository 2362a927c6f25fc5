import abc
import codecs
import re
import secrets
import string
import time

charset_re = re.compile(r"\bcharset=\s*(?:\"|')?([^\s,;\"']*)", re.RegexFlag.IGNORECASE)

MIME_BOUNDARY_LENGTH = 32
MIME_BOUNDARY_CHARS = "-_" + string.digits + string.ascii_letters


class Closable(abc.ABC):
    __slots__ = ()

    @abc.abstractmethod
    async def close(self) -> None: ...


def perf_counter() -> float:
    return time.perf_counter()


def perf_counter_elapsed(started_at: float) -> float:
    return max(0.0, time.perf_counter() - started_at)


def try_parse_int(value: str | None) -> int | None:
    if value is None:
        return None

    try:
        return int(value)
    except ValueError:
        return None


def is_supported_charset(charset: str) -> bool:
    try:
        codecs.lookup(charset)
    except (LookupError, ValueError):
        return False
    return True


def charset_from_content_type(content_type: str | None) -> str | None:
    """Extract a supported charset name from a Content-Type value, if any"""
    if content_type is None:
        return None

    match = charset_re.search(content_type)
    if match is None:
        return None

    charset = match.group(1).strip().replace("charset=", "")
    charset = re.sub(r"[\"']", "", charset.strip())
    if not charset:
        return None
    if is_supported_charset(charset):
        return charset
    charset = charset.upper()
    if is_supported_charset(charset):
        return charset
    return None


def encode_url_spaces(url: str) -> str:
    return url.replace(" ", "%20")


def encode_mime_name(value: str) -> str:
    return value.replace('"', "%22")


def mime_boundary() -> str:
    return "".join(secrets.choice(MIME_BOUNDARY_CHARS) for _ in range(MIME_BOUNDARY_LENGTH))
