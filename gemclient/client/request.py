"""
Request line formatting.
"""

from . import constants, exceptions


def build_request(host: str, resource: str) -> str:
    """
    Format the request line for a resource on a host.

    >>> build_request("example.org", "/foo")
    'gemini://example.org/foo\\r\\n'

    >>> build_request("gemini://example.org", "/foo")
    'gemini://example.org/foo\\r\\n'

    :param host: the host, optionally prefixed with the gemini scheme.
    :param resource: path and query of the resource. Not validated any further.
    :return: the request line including the CRLF terminator.
    :raises MalformedRequestError: the host is empty or either part contains a line break.
    """

    if not host:
        raise exceptions.MalformedRequestError("host is required")
    for name, value in (("host", host), ("resource", resource)):
        if "\r" in value or "\n" in value:
            raise exceptions.MalformedRequestError(
                f"{name} cannot contain line breaks: {value!r}"
            )

    scheme = "" if host.startswith(constants.GEMINI_SCHEME) else constants.GEMINI_SCHEME
    return f"{scheme}{host}{resource}\r\n"


def encode_request(line: str) -> bytes:
    """
    Encode a request line for the wire.

    >>> encode_request("gemini://example.org/\\r\\n")
    b'gemini://example.org/\\r\\n'

    :param line: a request line built by `build_request`.
    :return: the UTF-8 encoded request.
    :raises MalformedRequestError: the URL is longer than servers accept, or is
        not encodable as UTF-8.
    """
    try:
        data = line.encode("utf-8")
    except UnicodeEncodeError as error:
        raise exceptions.MalformedRequestError(
            f"request cannot be encoded as UTF-8: {error.reason}"
        ) from error
    if len(data) - 2 > constants.MAX_REQUEST_LENGTH:
        raise exceptions.MalformedRequestError(
            f"request URL exceeds {constants.MAX_REQUEST_LENGTH} bytes"
        )
    return data
