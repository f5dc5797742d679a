"""
Reading the response header.

The header is `<status><space><meta>\\r\\n`, where the status is two ASCII digits
and meta is at most 1024 bytes of UTF-8. The readers consume exactly the header and
leave the stream at the first byte of the body.
"""

import logging
from dataclasses import dataclass

from . import constants, exceptions
from .constants import StatusCode


logger = logging.getLogger(constants.LOGGER_NAME)

# Meta plus CRLF.
_META_LINE_LIMIT = constants.MAX_META_LENGTH + 2


@dataclass(frozen=True)
class ResponseHeader:
    """
    The Gemini response header defines the result of the Gemini request.

    The meaning of `meta` depends on the status band: a MIME type for success, the
    target URI for redirects, a prompt for input and an explanation otherwise.
    """

    status: StatusCode
    meta: str

    def __str__(self) -> str:
        return f"{self.status.value} {self.meta}"


def parse_status(raw: bytes) -> StatusCode:
    """
    Parse the two status bytes.

    >>> parse_status(b"20")
    <StatusCode.SUCCESS: 20>

    >>> parse_status(b"2")
    Traceback (most recent call last):
        ...
    gemclient.client.exceptions.TruncatedHeaderError: header ended before the status code

    >>> parse_status(b"ab")
    Traceback (most recent call last):
        ...
    gemclient.client.exceptions.MalformedStatusError: status code b'ab' is not two digits

    :param raw: the first two bytes of the response.
    :return: the decoded status code.
    :raises TruncatedHeaderError: fewer than two bytes were received.
    :raises MalformedStatusError: the bytes are not ASCII digits.
    :raises UnknownStatusError: the digits are not a defined status code.
    """
    if len(raw) < 2:
        raise exceptions.TruncatedHeaderError("header ended before the status code")

    # bytes.isdigit() is ASCII only.
    if not raw.isdigit():
        raise exceptions.MalformedStatusError(f"status code {raw!r} is not two digits")

    return StatusCode.decode(int(raw))


def check_separator(raw: bytes) -> None:
    """
    Check that the status code is followed by a single space.

    :raises MalformedHeaderError: the byte is missing or not a space.
    """
    if raw != b" ":
        raise exceptions.MalformedHeaderError(
            f"expected a space after the status code, got {raw!r}"
        )


def parse_meta(line: bytes) -> str:
    """
    Parse the meta line, as read up to and including the newline.

    >>> parse_meta(b"text/gemini; lang=en\\r\\n")
    'text/gemini; lang=en'

    >>> parse_meta(b"text/gemini\\n")
    'text/gemini'

    :param line: the rest of the header line.
    :return: the decoded meta without the line terminator.
    :raises TruncatedHeaderError: the line has no newline; the stream ended early.
    :raises HeaderTooLongError: meta exceeds the maximum length.
    :raises MalformedHeaderError: meta is not valid UTF-8.
    """
    if not line.endswith(b"\n"):
        if len(line) >= _META_LINE_LIMIT:
            raise exceptions.HeaderTooLongError(
                f"meta exceeds {constants.MAX_META_LENGTH} bytes"
            )
        raise exceptions.TruncatedHeaderError("header ended before the line terminator")

    meta = line[:-1]
    if meta.endswith(b"\r"):
        meta = meta[:-1]

    if len(meta) > constants.MAX_META_LENGTH:
        raise exceptions.HeaderTooLongError(
            f"meta exceeds {constants.MAX_META_LENGTH} bytes"
        )

    try:
        return meta.decode("utf-8")
    except UnicodeDecodeError as error:
        raise exceptions.MalformedHeaderError("meta is not valid UTF-8") from error


def read_header(stream) -> ResponseHeader:
    """
    Read the response header from a blocking stream.

    I/O errors are reported as a truncated header; a timeout propagates as
    `RequestTimeoutError`.

    :param stream: a stream positioned at the start of the response.
    :return: the parsed header.
    """
    try:
        status = parse_status(stream.read(2))
        check_separator(stream.read(1))
        meta = parse_meta(stream.read_line(_META_LINE_LIMIT))
    except OSError as error:
        raise exceptions.TruncatedHeaderError(
            f"connection failed while reading header: {error}"
        ) from error

    header = ResponseHeader(status, meta)
    logger.debug("received header %s", header)
    return header


async def async_read_header(stream) -> ResponseHeader:
    """Asynchronous version of `read_header`."""
    try:
        status = parse_status(await stream.read(2))
        check_separator(await stream.read(1))
        meta = parse_meta(await stream.read_line(_META_LINE_LIMIT))
    except OSError as error:
        raise exceptions.TruncatedHeaderError(
            f"connection failed while reading header: {error}"
        ) from error

    header = ResponseHeader(status, meta)
    logger.debug("received header %s", header)
    return header
