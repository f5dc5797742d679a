import enum

from . import exceptions

LOGGER_NAME = "gemclient"

GEMINI_SCHEME = "gemini://"

GEMINI_DEFAULT_PORT = 1965

# Longest meta field accepted in a response header, in bytes.
MAX_META_LENGTH = 1024

# Longest request URL accepted by servers, in bytes, excluding CRLF.
MAX_REQUEST_LENGTH = 1024

DEFAULT_CHARSET = "utf-8"

SSL_SELF_SIGNED_CERT_ERROR_CODE = 18


class Category(enum.Enum):
    """Status band, named after the leading digit of the status code."""

    INPUT = 1
    SUCCESS = 2
    REDIRECT = 3
    TEMPORARY_FAILURE = 4
    PERMANENT_FAILURE = 5
    CERTIFICATE_REQUIRED = 6


class StatusCode(enum.IntEnum):
    """
    Closed set of response status codes.

    Raw integers become status codes only through `StatusCode.decode`, which refuses
    anything that is not listed here.

    >>> StatusCode.decode(51)
    <StatusCode.NOT_FOUND: 51>
    >>> StatusCode.NOT_FOUND.category
    <Category.PERMANENT_FAILURE: 5>
    >>> StatusCode.decode(25)
    Traceback (most recent call last):
        ...
    gemclient.client.exceptions.UnknownStatusError: unknown status code 25
    """

    # Input.
    INPUT = 10
    SENSITIVE_INPUT = 11

    # Success.
    SUCCESS = 20

    # Redirect.
    REDIRECT_TEMPORARY = 30
    REDIRECT_PERMANENT = 31

    # Temporary failure.
    TEMPORARY_FAILURE = 40
    SERVER_UNAVAILABLE = 41
    CGI_ERROR = 42
    PROXY_ERROR = 43
    SLOW_DOWN = 44

    # Permanent failure.
    PERMANENT_FAILURE = 50
    NOT_FOUND = 51
    GONE = 52
    PROXY_REQUEST_REFUSED = 53
    BAD_REQUEST = 59

    # Client certificate required.
    CLIENT_CERTIFICATE_REQUIRED = 60
    CERTIFICATE_NOT_AUTHORISED = 61
    CERTIFICATE_NOT_VALID = 62

    @classmethod
    def decode(cls, raw: int) -> "StatusCode":
        """
        Map a two-digit integer onto a status code.

        :param raw: the status as received from the server.
        :return: the matching status code.
        :raises UnknownStatusError: raw is not one of the defined status codes.
        """
        try:
            return cls(raw)
        except ValueError:
            raise exceptions.UnknownStatusError(
                f"unknown status code {raw}", raw
            ) from None

    @property
    def category(self) -> Category:
        """The status band of this code."""
        return Category(self.value // 10)

    def is_input_required(self) -> bool:
        return self.category == Category.INPUT

    def is_success(self) -> bool:
        return self.category == Category.SUCCESS

    def is_redirect(self) -> bool:
        return self.category == Category.REDIRECT

    def is_temporary_failure(self) -> bool:
        return self.category == Category.TEMPORARY_FAILURE

    def is_permanent_failure(self) -> bool:
        return self.category == Category.PERMANENT_FAILURE

    def is_cert_error(self) -> bool:
        return self.category == Category.CERTIFICATE_REQUIRED
