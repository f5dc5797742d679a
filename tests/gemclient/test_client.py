"""
Tests for complete exchanges with the transport replaced by local streams.
"""
import asyncio
from contextlib import asynccontextmanager, contextmanager
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from gemclient.client import (
    Body,
    Failure,
    Redirect,
    StatusCode,
    UnsupportedMediaType,
    async_fetch,
    async_perform_request,
    fetch,
    perform_request,
)
from gemclient.client.exceptions import (
    InvalidURLError,
    MalformedRequestError,
    TruncatedHeaderError,
    UnknownProtocolError,
)


def _fake_connect(stream, calls):
    @contextmanager
    def _connect(*args):
        calls.append(args)
        yield stream

    return _connect


def _fake_async_connect(stream, calls):
    @asynccontextmanager
    async def _connect(*args):
        calls.append(args)
        yield stream

    return _connect


def test_perform_request(socket_stream):
    """The request line is sent and the response dispatched."""
    stream, server = socket_stream(b"20 text/gemini\r\n# Hello\n")
    calls = []

    with patch("gemclient.client.client.connect", _fake_connect(stream, calls)):
        outcome = perform_request("example.org", 1965, "/hello")

    assert outcome == Body("# Hello\n")
    assert server.recv(1024) == b"gemini://example.org/hello\r\n"
    assert calls == [("example.org", 1965, None, True, None)]


def test_perform_request_host_with_scheme(socket_stream):
    """The scheme is part of the request but not of the host connected to."""
    stream, server = socket_stream(b"51 nope\r\n")
    calls = []

    with patch("gemclient.client.client.connect", _fake_connect(stream, calls)):
        outcome = perform_request("gemini://example.org", 1966, "/", timeout=5)

    assert outcome == Failure(StatusCode.NOT_FOUND, "nope")
    assert server.recv(1024) == b"gemini://example.org/\r\n"
    assert calls == [("example.org", 1966, None, True, 5)]


def test_perform_request_refuses_bad_resource():
    """Invalid requests fail before any connection is made."""
    connect = MagicMock()
    with patch("gemclient.client.client.connect", connect):
        with pytest.raises(MalformedRequestError):
            perform_request("example.org", 1965, "/\r\nsecond line")
    connect.assert_not_called()


def test_perform_request_refuses_unencodable_resource():
    connect = MagicMock()
    with patch("gemclient.client.client.connect", connect):
        with pytest.raises(MalformedRequestError, match="UTF-8"):
            perform_request("example.org", 1965, "/caf\udce9")
    connect.assert_not_called()


def test_perform_request_truncated(socket_stream):
    stream, _ = socket_stream(b"2")
    with patch("gemclient.client.client.connect", _fake_connect(stream, [])):
        with pytest.raises(TruncatedHeaderError):
            perform_request("example.org", 1965, "/")


def test_fetch_url(socket_stream):
    stream, server = socket_stream(b"31 gemini://foo.dev/new\r\n")
    calls = []

    with patch("gemclient.client.client.connect", _fake_connect(stream, calls)):
        outcome = fetch("gemini://foo.dev:4242/old?q=1#fragment")

    assert outcome == Redirect("gemini://foo.dev/new", True)
    assert server.recv(1024) == b"gemini://foo.dev:4242/old?q=1\r\n"
    assert calls == [("foo.dev", 4242, None, True, None)]


@pytest.mark.parametrize(
    "url, error",
    [
        ("/relative/path", InvalidURLError),
        ("https://foo.dev/", UnknownProtocolError),
        ("gemini://foo.dev:notaport/", InvalidURLError),
    ],
)
def test_fetch_invalid_url(url: str, error):
    with pytest.raises(error):
        fetch(url)


def _async_writer() -> MagicMock:
    writer = MagicMock()
    writer.drain = AsyncMock()
    writer.wait_closed = AsyncMock()
    return writer


def test_async_perform_request(async_stream):
    writer = _async_writer()
    calls = []

    async def _request():
        stream = async_stream(b"20 image/png\r\n\x89PNG", writer)
        with patch(
            "gemclient.client.client.async_connect", _fake_async_connect(stream, calls)
        ):
            return await async_perform_request("example.org", 1965, "/cat.png")

    assert asyncio.run(_request()) == UnsupportedMediaType("image/png")
    writer.write.assert_called_once_with(b"gemini://example.org/cat.png\r\n")
    assert calls == [("example.org", 1965, None, True, None)]


def test_async_fetch(async_stream):
    writer = _async_writer()
    calls = []

    async def _request():
        stream = async_stream(b"20 text/plain\r\nplain text", writer)
        with patch(
            "gemclient.client.client.async_connect", _fake_async_connect(stream, calls)
        ):
            return await async_fetch("gemini://foo.dev/", verify=False)

    assert asyncio.run(_request()) == Body("plain text")
    writer.write.assert_called_once_with(b"gemini://foo.dev/\r\n")
    assert calls == [("foo.dev", 1965, None, False, None)]
