"""
Gemini client library for Python.

One call is one exchange: connect, send the request line, read the header and, for
successful text responses, the body. Connections are never reused.
"""

import logging
from typing import Optional, Tuple
from urllib.parse import urlparse

from . import constants, exceptions, tofu
from .dispatcher import DispatchOutcome, async_dispatch, dispatch
from .header import async_read_header, read_header
from .request import build_request, encode_request
from .transport import async_connect, connect


logger = logging.getLogger(constants.LOGGER_NAME)


def _connect_host(host: str) -> str:
    """
    The host to open a connection to, without the scheme.

    >>> _connect_host("gemini://foo.dev")
    'foo.dev'
    >>> _connect_host("foo.dev")
    'foo.dev'
    """
    if host.startswith(constants.GEMINI_SCHEME):
        return host[len(constants.GEMINI_SCHEME) :]
    return host


def _parse_url(url: str) -> Tuple[str, int, str, str]:
    """
    Parse a Gemini URL for lower-level network communication.

    >>> _parse_url("gemini://foo.dev/users/matt/index.gmi")
    ('foo.dev', 1965, 'foo.dev', '/users/matt/index.gmi')

    >>> _parse_url("//foo.dev:4242/foo/bar?baz")
    ('foo.dev', 4242, 'foo.dev:4242', '/foo/bar?baz')

    :param url: a Gemini URL.
    :return: a tuple of the host and port to connect to, and the authority and resource
        to request. The port defaults to the default Gemini port.
    """

    parsed_url = urlparse(url)

    if not parsed_url.hostname:
        raise exceptions.InvalidURLError(f"Invalid URL: {url}")
    if parsed_url.scheme and parsed_url.scheme.lower() != "gemini":
        raise exceptions.UnknownProtocolError(f"Unknown protocol: {parsed_url.scheme}")

    try:
        port = parsed_url.port or constants.GEMINI_DEFAULT_PORT
    except ValueError:
        raise exceptions.InvalidURLError(f"Invalid port in URL: {url}") from None

    resource = parsed_url.path
    if parsed_url.query:
        resource += "?" + parsed_url.query
    return parsed_url.hostname, port, parsed_url.netloc, resource


def _exchange(
    host: str,
    port: int,
    request: bytes,
    cert_store: Optional[tofu.SelfSignedCertStore],
    verify: bool,
    timeout: Optional[float],
) -> DispatchOutcome:
    logger.debug("requesting %r from %s:%d", request, host, port)
    with connect(host, port, cert_store, verify, timeout) as stream:
        stream.write(request)
        header = read_header(stream)
        return dispatch(header, stream)


async def _async_exchange(
    host: str,
    port: int,
    request: bytes,
    cert_store: Optional[tofu.SelfSignedCertStore],
    verify: bool,
    timeout: Optional[float],
) -> DispatchOutcome:
    logger.debug("requesting %r from %s:%d", request, host, port)
    async with async_connect(host, port, cert_store, verify, timeout) as stream:
        await stream.write(request)
        header = await async_read_header(stream)
        return await async_dispatch(header, stream)


def perform_request(
    host: str,
    port: int,
    resource: str,
    *,
    cert_store: Optional[tofu.SelfSignedCertStore] = None,
    verify: bool = True,
    timeout: Optional[float] = None,
) -> DispatchOutcome:
    """
    Make a synchronous Gemini request.

    Certificates are checked by the transport only: see `transport.connect` for the
    meaning of `cert_store`, `verify` and `timeout`.

    :param host: the host, optionally prefixed with the gemini scheme.
    :param port: the port the server listens on.
    :param resource: path and query of the resource.
    :return: the outcome of the exchange.
    :raises ClientError: the exchange failed.
    """
    request = encode_request(build_request(host, resource))
    return _exchange(_connect_host(host), port, request, cert_store, verify, timeout)


async def async_perform_request(
    host: str,
    port: int,
    resource: str,
    *,
    cert_store: Optional[tofu.SelfSignedCertStore] = None,
    verify: bool = True,
    timeout: Optional[float] = None,
) -> DispatchOutcome:
    """Make an asynchronous Gemini request."""
    request = encode_request(build_request(host, resource))
    return await _async_exchange(
        _connect_host(host), port, request, cert_store, verify, timeout
    )


def fetch(
    url: str,
    *,
    cert_store: Optional[tofu.SelfSignedCertStore] = None,
    verify: bool = True,
    timeout: Optional[float] = None,
) -> DispatchOutcome:
    """Make a synchronous Gemini request for a URL."""
    host, port, authority, resource = _parse_url(url)
    request = encode_request(build_request(authority, resource))
    return _exchange(host, port, request, cert_store, verify, timeout)


async def async_fetch(
    url: str,
    *,
    cert_store: Optional[tofu.SelfSignedCertStore] = None,
    verify: bool = True,
    timeout: Optional[float] = None,
) -> DispatchOutcome:
    """Make an asynchronous Gemini request for a URL."""
    host, port, authority, resource = _parse_url(url)
    request = encode_request(build_request(authority, resource))
    return await _async_exchange(host, port, request, cert_store, verify, timeout)
