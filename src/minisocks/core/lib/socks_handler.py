"""SOCKS protocol handler implementation for the proxy server.

This module implements the subset of SOCKS5 (RFC 1928) the proxy speaks:
- Method negotiation, always answering "no authentication required"
- CONNECT requests for IPv4 and domain name destinations
- Bi-directional data forwarding with one thread per direction

Each connection goes through negotiate -> resolve -> relay. A failure in the
first two stages closes the client stream; the relay closes both streams once
either direction finishes.

Example:
    # The handler is automatically used by the SocksProxy server class
    server = SocksProxy((host, port), SocksHandler)
    server.serve_forever()
"""

import socket
import socketserver
import struct
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from loguru import logger

from minisocks.core.exceptions import (
    DialError,
    SocksError,
    UnsupportedAddressTypeError,
    UnsupportedCommandError,
    VersionMismatchError,
    WriteError,
)

from .stream import BUFFER_SIZE, SocketStream, dial

if TYPE_CHECKING:
    from loguru import Logger

# SOCKS protocol constants
SOCKS_VERSION: Final = 5
CONNECT_CMD: Final = 1
ADDR_TYPE_IPV4: Final = 1
ADDR_TYPE_DOMAIN: Final = 3
ADDR_TYPE_IPV6: Final = 4
METHOD_NO_AUTH: Final = 0

# Response codes
RESP_SUCCESS: Final = 0

NO_AUTH_REPLY: Final = struct.pack("!BB", SOCKS_VERSION, METHOD_NO_AUTH)
# Bound address and port are always reported as zero
SUCCESS_REPLY: Final = struct.pack("!BBBB4sH", SOCKS_VERSION, RESP_SUCCESS, 0, ADDR_TYPE_IPV4, bytes(4), 0)

Dialer = Callable[[str, int], SocketStream]


@dataclass(frozen=True)
class Request:
    """A parsed SOCKS5 request.

    Attributes:
        command: Requested command, always CONNECT once parsed
        address_type: ADDR_TYPE_IPV4 or ADDR_TYPE_DOMAIN
        host: Dotted-decimal IPv4 address or the literal domain name
        port: Destination port
    """

    command: int
    address_type: int
    host: str
    port: int

    def __str__(self) -> str:
        # undecodable domain bytes are shown escaped
        host = self.host.encode("utf-8", "surrogateescape").decode("utf-8", "backslashreplace")
        return f"{host}:{self.port}"


def negotiate(stream: SocketStream) -> None:
    """Perform SOCKS5 method negotiation.

    The offered methods are read but never inspected; the reply always selects
    "no authentication", even if the client did not offer it.

    Raises:
        ProtocolError: If the greeting is truncated
        VersionMismatchError: If the greeting is not SOCKS5
        WriteError: If the method selection cannot be sent
    """
    version, nmethods = struct.unpack("!BB", stream.read_exact(2))
    if version != SOCKS_VERSION:
        raise VersionMismatchError(version)

    stream.read_exact(nmethods)

    try:
        stream.write(NO_AUTH_REPLY)
    except OSError as e:
        msg = f"write method selection: {e}"
        raise WriteError(msg) from e


def read_request(stream: SocketStream) -> Request:
    """Read and parse a SOCKS5 request frame.

    IPv6 and unknown address types are rejected right after the header, so no
    address bytes are consumed for them.
    """
    version, command, _, addr_type = struct.unpack("!BBBB", stream.read_exact(4))
    if version != SOCKS_VERSION:
        raise VersionMismatchError(version)
    if command != CONNECT_CMD:
        raise UnsupportedCommandError(command)

    if addr_type == ADDR_TYPE_IPV4:
        host = socket.inet_ntoa(stream.read_exact(4))
    elif addr_type == ADDR_TYPE_DOMAIN:
        (domain_len,) = struct.unpack("!B", stream.read_exact(1))
        # Bytes that are not UTF-8 are kept as is and fail later at dial time
        host = stream.read_exact(domain_len).decode("utf-8", "surrogateescape")
    else:
        # ADDR_TYPE_IPV6 included
        raise UnsupportedAddressTypeError(addr_type)

    (port,) = struct.unpack("!H", stream.read_exact(2))
    return Request(command, addr_type, host, port)


def resolve(stream: SocketStream, dial: Dialer = dial, log: "Logger" = logger) -> SocketStream:
    """Handle the CONNECT request and return the connected destination stream.

    Args:
        stream: Client stream, already past negotiation
        dial: Opens a TCP stream to ``(host, port)``, raising ``OSError`` on failure, or
            ``UnicodeError`` for names the IDNA codec rejects
        log: Logger bound to the client connection

    Returns:
        SocketStream: The destination stream, returned only after the success
        reply reached the client

    Raises:
        ProtocolError: If the request is truncated
        VersionMismatchError: If the request is not SOCKS5
        UnsupportedCommandError: For anything but CONNECT
        UnsupportedAddressTypeError: For IPv6 or unknown address types
        DialError: If the destination cannot be reached
        WriteError: If the reply cannot be sent
    """
    request = read_request(stream)
    log.debug(f"CONNECT {request}")

    try:
        remote = dial(request.host, request.port)
    except (OSError, UnicodeError) as e:
        raise DialError(request.host, request.port, e) from e

    try:
        stream.write(SUCCESS_REPLY)
    except OSError as e:
        remote.close()
        msg = f"write reply: {e}"
        raise WriteError(msg) from e

    log.info(f"Connected to {request}")
    return remote


def _pipe(src: SocketStream, dst: SocketStream, direction: str, log: "Logger") -> None:
    """Copy ``src`` into ``dst`` until either side ends, then close both."""
    transferred = 0
    try:
        while data := src.read(BUFFER_SIZE):
            dst.write(data)
            transferred += len(data)
    except OSError as e:
        log.debug(f"{direction} stopped: {e}")
    finally:
        src.close()
        dst.close()
        log.debug(f"{direction} closed after {transferred} bytes")


def relay(client: SocketStream, remote: SocketStream, log: "Logger" = logger) -> tuple[threading.Thread, threading.Thread]:
    """Start forwarding data between ``client`` and ``remote``.

    Returns immediately with the two started copy threads. Whichever direction
    finishes first closes both streams, which ends the other direction too.
    """
    threads = (
        threading.Thread(
            target=_pipe,
            args=(client, remote, f"{client.peer} -> {remote.peer}", log),
            name=f"relay-up-{client.peer}",
            daemon=True,
        ),
        threading.Thread(
            target=_pipe,
            args=(remote, client, f"{remote.peer} -> {client.peer}", log),
            name=f"relay-down-{client.peer}",
            daemon=True,
        ),
    )
    for thread in threads:
        thread.start()
    return threads


class SocksHandler(socketserver.BaseRequestHandler):
    """Handle incoming SOCKS5 connections."""

    def handle(self) -> None:
        """Handle incoming SOCKS5 connection."""
        client = SocketStream(self.request)
        log = logger.bind(client=client.peer)
        log.info(f"Connection from {client.peer}")

        try:
            negotiate(client)
            remote = resolve(client, dial=getattr(self.server, "dial", dial), log=log)
        except SocksError as e:
            log.warning(f"Handshake failed: {e}")
            client.close()
            return
        except Exception:
            log.exception("Error handling SOCKS connection")
            client.close()
            return

        # Keep the server thread alive for as long as the connection is
        for thread in relay(client, remote, log=log):
            thread.join()
        log.info(f"Connection from {client.peer} closed")
