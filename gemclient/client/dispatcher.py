"""
Turning a response header into an outcome, reading the body when there is one.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple, Union

from . import constants, exceptions
from .constants import StatusCode
from .header import ResponseHeader


logger = logging.getLogger(constants.LOGGER_NAME)


@dataclass(frozen=True)
class Body:
    """Text body of a successful response."""

    text: str


@dataclass(frozen=True)
class UnsupportedMediaType:
    """Successful response whose body is not text. The body is left unread."""

    meta: str


@dataclass(frozen=True)
class Redirect:
    """The resource lives at `target`; following it is up to the caller."""

    target: str
    permanent: bool


@dataclass(frozen=True)
class InputRequested:
    """The server wants user input, to be sent as the query of a new request."""

    prompt: str
    sensitive: bool


@dataclass(frozen=True)
class Failure:
    """Temporary, permanent or client certificate failure."""

    status: StatusCode
    detail: str


@dataclass(frozen=True)
class UnhandledStatus:
    status: StatusCode


DispatchOutcome = Union[
    Body, UnsupportedMediaType, Redirect, InputRequested, Failure, UnhandledStatus
]


def parse_media_type(meta: str) -> Tuple[str, Dict[str, str]]:
    """
    Split a MIME type into the lower-cased type and its parameters.

    >>> parse_media_type("text/gemini; charset=ISO-8859-1; lang=en")
    ('text/gemini', {'charset': 'ISO-8859-1', 'lang': 'en'})

    >>> parse_media_type("")
    ('', {})
    """
    media_type, *raw_params = meta.split(";")
    params = {}
    for param in raw_params:
        name, _, value = param.partition("=")
        if name.strip():
            params[name.strip().lower()] = value.strip().strip('"')
    return media_type.strip().lower(), params


def _outcome_without_body(header: ResponseHeader) -> Optional[DispatchOutcome]:
    """
    Outcome of the header when no body needs to be read.

    :return: the outcome, or None when the body should be read.
    """
    status = header.status
    if status.is_success():
        media_type, _ = parse_media_type(header.meta)
        # Lowercased by parse_media_type, so TEXT/Gemini matches too.
        if media_type.startswith("text/"):
            return None
        logger.debug("not reading body of media type %s", header.meta)
        return UnsupportedMediaType(header.meta)
    if status.is_redirect():
        return Redirect(header.meta, status == StatusCode.REDIRECT_PERMANENT)
    if status.is_input_required():
        return InputRequested(header.meta, status == StatusCode.SENSITIVE_INPUT)
    if (
        status.is_temporary_failure()
        or status.is_permanent_failure()
        or status.is_cert_error()
    ):
        return Failure(status, header.meta)
    return UnhandledStatus(status)


def _decode_body(header: ResponseHeader, blob: bytes) -> Body:
    _, params = parse_media_type(header.meta)
    charset = params.get("charset", constants.DEFAULT_CHARSET)
    try:
        text = blob.decode(charset)
    except LookupError as error:
        raise exceptions.InvalidEncodingError(f"unknown charset {charset}") from error
    except UnicodeError as error:
        raise exceptions.InvalidEncodingError(
            f"body is not valid {charset}: {error}"
        ) from error

    logger.debug("received %d bytes of %s", len(blob), header.meta)
    return Body(text)


def dispatch(header: ResponseHeader, stream) -> DispatchOutcome:
    """
    Handle the response according to its status.

    Only a successful text response has its body read, up to the end of the stream.
    The stream cannot be used for anything else afterwards.

    :param header: the header read from the stream.
    :param stream: the stream positioned at the start of the body.
    :return: the outcome of the exchange.
    :raises BodyReadError: the stream failed before the end of the body.
    :raises InvalidEncodingError: the body is not valid text.
    """
    outcome = _outcome_without_body(header)
    if outcome is not None:
        return outcome

    try:
        blob = stream.read_to_end()
    except OSError as error:
        raise exceptions.BodyReadError(f"failed to read body: {error}") from error
    return _decode_body(header, blob)


async def async_dispatch(header: ResponseHeader, stream) -> DispatchOutcome:
    """Asynchronous version of `dispatch`."""
    outcome = _outcome_without_body(header)
    if outcome is not None:
        return outcome

    try:
        blob = await stream.read_to_end()
    except OSError as error:
        raise exceptions.BodyReadError(f"failed to read body: {error}") from error
    return _decode_body(header, blob)
