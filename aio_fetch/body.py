import io
import shutil
import urllib.parse
from typing import BinaryIO

import yarl

from .base import DEFAULT_CHARSET, FORM_URL_ENCODED, MULTIPART_FORM_DATA, OCTET_STREAM, ConfigurationError, Header
from .request import KeyValue, Request
from .utils import encode_mime_name, mime_boundary


def encode_body(request: Request) -> bytes | None:
    """Choose how the request data travels and render the outgoing body.

    Body-less methods get their data appended to the query string. Methods
    with a body send either the raw string body, an urlencoded form or a
    multipart form when any entry carries a stream. Returns ``None`` when
    there is nothing to write.
    """
    method_has_body = request.method.has_body
    has_raw_body = request.body is not None
    if not method_has_body and has_raw_body:
        raise ConfigurationError(f"Cannot set a request body for HTTP method {request.method}")

    if request.data and (not method_has_body or has_raw_body):
        serialise_request_url(request)

    if not method_has_body:
        return None

    if has_raw_body:
        if not request.has_header(Header.CONTENT_TYPE):
            request.set_header(Header.CONTENT_TYPE, f"{FORM_URL_ENCODED}; charset={request.post_data_charset}")
        return request.body.encode(request.post_data_charset)  # type: ignore[union-attr]

    boundary = set_output_content_type(request)
    sink = io.BytesIO()
    if boundary is not None:
        write_multipart(request.data, sink, boundary, request.post_data_charset)
    else:
        sink.write(urlencode(request.data, request.post_data_charset).encode(request.post_data_charset))
    return sink.getvalue()


def needs_multipart(request: Request) -> bool:
    return any(key_value.has_stream for key_value in request.data)


def set_output_content_type(request: Request) -> str | None:
    if needs_multipart(request):
        boundary = mime_boundary()
        request.set_header(Header.CONTENT_TYPE, f"{MULTIPART_FORM_DATA}; boundary={boundary}")
        return boundary

    request.set_header(Header.CONTENT_TYPE, f"{FORM_URL_ENCODED}; charset={request.post_data_charset}")
    return None


def serialise_request_url(request: Request) -> None:
    for key_value in request.data:
        if key_value.has_stream:
            raise ConfigurationError("Stream data is not supported in URL query string")

    url = request.url
    query = urlencode(request.data, DEFAULT_CHARSET)
    if url.raw_query_string:
        query = f"{url.raw_query_string}&{query}"

    base = url.with_query(None).with_fragment(None)
    request.url = yarl.URL(f"{base}?{query}", encoded=True)
    request.data.clear()


def urlencode(data: list[KeyValue], charset: str) -> str:
    return "&".join(
        f"{urllib.parse.quote_plus(key_value.key, safe='*', encoding=charset)}"
        f"={urllib.parse.quote_plus(key_value.value, safe='*', encoding=charset)}"
        for key_value in data
    )


def write_multipart(data: list[KeyValue], sink: BinaryIO, boundary: str, charset: str) -> None:
    def write(text: str) -> None:
        sink.write(text.encode(charset))

    for key_value in data:
        write(f"--{boundary}\r\n")
        write(f'Content-Disposition: form-data; name="{encode_mime_name(key_value.key)}"')
        if key_value.stream is not None:
            write(f'; filename="{encode_mime_name(key_value.value)}"\r\n')
            write(f"Content-Type: {OCTET_STREAM}\r\n\r\n")
            shutil.copyfileobj(key_value.stream, sink)
        else:
            write("\r\n\r\n")
            write(key_value.value)
        write("\r\n")
    write(f"--{boundary}--")
