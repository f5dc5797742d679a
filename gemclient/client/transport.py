"""
Encrypted byte streams to Gemini servers.

This module owns the TLS configuration of a connection. The exchange itself does no
hostname or certificate validation: whatever the `ssl.SSLContext` built here accepts
is trusted.
"""

import asyncio
import logging
import socket
import ssl
from contextlib import asynccontextmanager, contextmanager
from typing import AsyncIterator, Iterator, Optional, Tuple

from . import constants, exceptions, tofu


logger = logging.getLogger(constants.LOGGER_NAME)

# Bytes per read while receiving the body.
_CHUNK_SIZE = 4096


def tls_context(verify: bool = True) -> ssl.SSLContext:
    """
    Create an SSL/TLS context that matches Gemini requirements:
        * TLS 1.2 or better.
        * Self-signed certificates are accepted through the certificate store, or
          unconditionally when verification is disabled.

    :param verify: check the server certificate and hostname.
    """
    context = ssl.create_default_context()
    context.minimum_version = ssl.TLSVersion.TLSv1_2
    if not verify:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE

    return context


@contextmanager
def _timeouts(action: str) -> Iterator[None]:
    try:
        yield
    except socket.timeout as error:
        raise exceptions.RequestTimeoutError(f"timed out while {action}") from error


class SocketStream:
    """
    Blocking stream over a connected socket, usually wrapped in TLS.

    Reads go through a buffered file so the header can be consumed piecemeal
    without losing the body bytes that arrived in the same packet.
    """

    def __init__(self, sock: socket.socket) -> None:
        super().__init__()
        self._sock = sock
        self._file = sock.makefile("rb")

    def write(self, data: bytes) -> None:
        with _timeouts("sending request"):
            self._sock.sendall(data)

    def read(self, size: int) -> bytes:
        """Read `size` bytes, or fewer only when the stream has ended."""
        data = b""
        with _timeouts("reading response"):
            while len(data) < size:
                chunk = self._file.read(size - len(data))
                if not chunk:
                    break
                data += chunk
        return data

    def read_line(self, limit: int) -> bytes:
        """Read up to and including a newline, but no more than `limit` bytes."""
        with _timeouts("reading response"):
            return self._file.readline(limit)

    def read_to_end(self) -> bytes:
        with _timeouts("reading response"):
            return self._file.read()

    def close(self) -> None:
        self._file.close()
        self._sock.close()


class AsyncStream:
    """
    asyncio counterpart of `SocketStream`.

    The timeout applies to each read or write, as it does for the socket timeout.
    """

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        timeout: Optional[float] = None,
    ) -> None:
        super().__init__()
        self._reader = reader
        self._writer = writer
        self._timeout = timeout

    async def _wait(self, awaitable, action: str):
        try:
            return await asyncio.wait_for(awaitable, self._timeout)
        except asyncio.TimeoutError as error:
            raise exceptions.RequestTimeoutError(f"timed out while {action}") from error

    async def write(self, data: bytes) -> None:
        self._writer.write(data)
        await self._wait(self._writer.drain(), "sending request")

    async def read(self, size: int) -> bytes:
        """Read `size` bytes, or fewer only when the stream has ended."""
        try:
            return await self._wait(self._reader.readexactly(size), "reading response")
        except asyncio.IncompleteReadError as error:
            return error.partial

    async def read_line(self, limit: int) -> bytes:
        """Read up to and including a newline, but no more than `limit` bytes."""
        line = b""
        while len(line) < limit and not line.endswith(b"\n"):
            byte = await self._wait(self._reader.read(1), "reading response")
            if not byte:
                break
            line += byte
        return line

    async def read_to_end(self) -> bytes:
        body = b""
        chunk = await self._wait(self._reader.read(_CHUNK_SIZE), "reading response")
        while chunk:
            body += chunk
            chunk = await self._wait(self._reader.read(_CHUNK_SIZE), "reading response")
        return body

    async def close(self) -> None:
        self._writer.close()
        await self._writer.wait_closed()


def _can_trust_on_first_use(
    cert_error: ssl.SSLCertVerificationError,
    cert_store: Optional[tofu.SelfSignedCertStore],
) -> bool:
    return (
        cert_store is not None
        and cert_error.verify_code == constants.SSL_SELF_SIGNED_CERT_ERROR_CODE
    )


def _store_server_cert(host: str, port: int, cert_store: tofu.SelfSignedCertStore):
    try:
        certificate = ssl.get_server_certificate((host, port))
    except OSError as error:
        raise exceptions.ConnectionFailedError(
            f"could not fetch certificate of {host}:{port}: {error}"
        ) from error
    cert_store.store_cert(host, certificate)


def _open_tls_socket(
    host: str,
    port: int,
    cert_store: Optional[tofu.SelfSignedCertStore],
    verify: bool,
    timeout: Optional[float],
    retry: bool = True,
) -> ssl.SSLSocket:
    context = tls_context(verify)
    if verify and cert_store is not None:
        cert_store.load_cert(context, host)

    try:
        sock = socket.create_connection((host, port), timeout=timeout)
    except socket.timeout as error:
        raise exceptions.RequestTimeoutError(
            f"timed out connecting to {host}:{port}"
        ) from error
    except OSError as error:
        raise exceptions.ConnectionFailedError(
            f"could not connect to {host}:{port}: {error}"
        ) from error

    try:
        return context.wrap_socket(sock, server_hostname=host)
    except ssl.SSLCertVerificationError as cert_error:
        sock.close()
        if retry and _can_trust_on_first_use(cert_error, cert_store):
            logger.debug(
                "request to %s:%d failed due to self-signed certificate", host, port
            )
            _store_server_cert(host, port, cert_store)
            logger.warning("trusting self-signed certificate of %s", host)
            return _open_tls_socket(host, port, cert_store, verify, timeout, False)
        raise exceptions.ConnectionFailedError(
            f"certificate of {host}:{port} rejected: {cert_error.verify_message}"
        ) from cert_error
    except socket.timeout as error:
        sock.close()
        raise exceptions.RequestTimeoutError(
            f"timed out during TLS handshake with {host}:{port}"
        ) from error
    except OSError as error:
        sock.close()
        raise exceptions.ConnectionFailedError(
            f"TLS handshake with {host}:{port} failed: {error}"
        ) from error


@contextmanager
def connect(
    host: str,
    port: int,
    cert_store: Optional[tofu.SelfSignedCertStore] = None,
    verify: bool = True,
    timeout: Optional[float] = None,
) -> Iterator[SocketStream]:
    """
    Open a TLS connection and close it when the block exits.

    :param host: hostname, without scheme.
    :param port: TCP port.
    :param cert_store: store for self-signed certificates. Without a store, only
        certificates trusted by the system are accepted.
    :param verify: set to False to accept any certificate.
    :param timeout: seconds allowed for connecting and for each read or write.
    :raises ConnectionFailedError: the connection or TLS handshake failed.
    :raises RequestTimeoutError: the connection timed out.
    """
    logger.debug("connecting to %s:%d", host, port)
    stream = SocketStream(_open_tls_socket(host, port, cert_store, verify, timeout))
    try:
        yield stream
    finally:
        stream.close()


async def _async_open_tls_connection(
    host: str,
    port: int,
    cert_store: Optional[tofu.SelfSignedCertStore],
    verify: bool,
    timeout: Optional[float],
    retry: bool = True,
) -> Tuple[asyncio.StreamReader, asyncio.StreamWriter]:
    context = tls_context(verify)
    if verify and cert_store is not None:
        cert_store.load_cert(context, host)

    try:
        return await asyncio.wait_for(
            asyncio.open_connection(
                host=host, port=port, ssl=context, ssl_handshake_timeout=timeout
            ),
            timeout,
        )
    except ssl.SSLCertVerificationError as cert_error:
        if retry and _can_trust_on_first_use(cert_error, cert_store):
            logger.debug(
                "request to %s:%d failed due to self-signed certificate", host, port
            )
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(
                None, _store_server_cert, host, port, cert_store
            )
            logger.warning("trusting self-signed certificate of %s", host)
            return await _async_open_tls_connection(
                host, port, cert_store, verify, timeout, False
            )
        raise exceptions.ConnectionFailedError(
            f"certificate of {host}:{port} rejected: {cert_error.verify_message}"
        ) from cert_error
    except asyncio.TimeoutError as error:
        raise exceptions.RequestTimeoutError(
            f"timed out connecting to {host}:{port}"
        ) from error
    except OSError as error:
        raise exceptions.ConnectionFailedError(
            f"could not connect to {host}:{port}: {error}"
        ) from error


@asynccontextmanager
async def async_connect(
    host: str,
    port: int,
    cert_store: Optional[tofu.SelfSignedCertStore] = None,
    verify: bool = True,
    timeout: Optional[float] = None,
) -> AsyncIterator[AsyncStream]:
    """Asynchronous version of `connect`."""
    logger.debug("connecting to %s:%d", host, port)
    reader, writer = await _async_open_tls_connection(
        host, port, cert_store, verify, timeout
    )
    stream = AsyncStream(reader, writer, timeout)
    try:
        yield stream
    finally:
        await stream.close()
