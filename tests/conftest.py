"""
Shared fixtures: in-process streams standing in for a server connection.
"""
import asyncio
import socket
from typing import Callable, List, Tuple
from unittest.mock import AsyncMock, MagicMock

import pytest

from gemclient.client.transport import AsyncStream, SocketStream


@pytest.fixture
def socket_stream() -> Callable[..., Tuple[SocketStream, socket.socket]]:
    """
    Create a stream whose server side has already sent `response`.

    The server side stops sending once the response is written, unless `finished` is
    False, and stays open to receive the request.
    """
    opened: List[socket.socket] = []

    def _socket_stream(
        response: bytes, finished: bool = True
    ) -> Tuple[SocketStream, socket.socket]:
        ours, theirs = socket.socketpair()
        opened.extend([ours, theirs])
        theirs.sendall(response)
        if finished:
            theirs.shutdown(socket.SHUT_WR)
        return SocketStream(ours), theirs

    yield _socket_stream

    for sock in opened:
        sock.close()


def async_writer() -> MagicMock:
    """Writer side of an asyncio connection that accepts anything."""
    writer = MagicMock()
    writer.drain = AsyncMock()
    writer.wait_closed = AsyncMock()
    return writer


@pytest.fixture
def async_stream() -> Callable[..., AsyncStream]:
    """Create a stream over a reader holding `response`, from inside a running loop."""

    def _async_stream(response: bytes, writer=None) -> AsyncStream:
        reader = asyncio.StreamReader()
        reader.feed_data(response)
        reader.feed_eof()
        return AsyncStream(reader, writer or async_writer())

    return _async_stream
