"""
Exceptions thrown by the Gemini client library.

Well-defined protocol results (redirects, failures, input requests, unsupported
media types) are not errors: they are returned as dispatch outcomes.
"""


class ClientError(Exception):
    """Base Gemini client error."""


class InvalidURLError(ClientError):
    """Raised when an invalid URL is requested."""


class UnknownProtocolError(ClientError):
    """Raised when a URL is requested with an unsupported protocol."""


class MalformedRequestError(ClientError):
    """Raised when a request line cannot be built from the host and resource."""


class ConnectionFailedError(ClientError):
    """Raised when the encrypted connection to the server could not be established."""


class RequestTimeoutError(ClientError):
    """
    Raised when connecting, writing or reading took longer than the configured timeout.

    Data received before the timeout is discarded, never decoded.
    """


class ParseError(ClientError):
    """Base error for any parsing errors."""


class HeaderParseError(ParseError):
    """
    Raised when the header line could not be parsed.

    This error could indicate:
        * The server of the host is buggy.
        * There's been a network error somehow.
    """


class TruncatedHeaderError(HeaderParseError):
    """Raised when the stream ended before the complete header was received."""


class MalformedStatusError(HeaderParseError):
    """Raised when the status code is not two ASCII digits."""


class UnknownStatusError(HeaderParseError):
    """Raised when the status code is two digits but not a defined status."""

    def __init__(self, message: str, status: int) -> None:
        super().__init__(message)
        self.status = status


class MalformedHeaderError(HeaderParseError):
    """Raised when the status is not followed by a space or the meta is not UTF-8."""


class HeaderTooLongError(HeaderParseError):
    """Raised when the meta field exceeds the maximum length."""


class BodyError(ClientError):
    """Base error for failures while reading the response body."""


class BodyReadError(BodyError):
    """Raised when the stream failed before the end of the body."""


class InvalidEncodingError(BodyError):
    """Raised when the body is not valid text in its declared charset."""
