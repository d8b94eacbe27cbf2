"""Byte streams over TCP sockets.

``SocketStream`` is the duplex stream every stage of a connection works on:
exact-length reads for frame parsing, plain reads and full writes for the
relay, and a close that is safe to call from both relay threads.
"""

import contextlib
import socket
import threading
from typing import Final

from minisocks.core.exceptions import ProtocolError

BUFFER_SIZE: Final = 32 * 1024


def format_address(address: tuple | str) -> str:
    """Render a socket address as ``host:port``."""
    if isinstance(address, tuple):
        return f"{address[0]}:{address[1]}"
    # AF_UNIX peers, e.g. the unnamed ends of a socketpair()
    return address or "unknown"


class SocketStream:
    """Duplex byte stream backed by a connected socket."""

    def __init__(self, sock: socket.socket) -> None:
        self._sock = sock
        self._lock = threading.Lock()
        self._closed = False
        try:
            self.peer = format_address(sock.getpeername())
        except OSError:
            self.peer = "unknown"

    @property
    def closed(self) -> bool:
        return self._closed

    def read_exact(self, size: int) -> bytes:
        """Read exactly ``size`` bytes.

        Raises:
            ProtocolError: If the stream ends or fails before ``size`` bytes arrived
        """
        buf = bytearray()
        while len(buf) < size:
            try:
                chunk = self._sock.recv(size - len(buf))
            except OSError as e:
                msg = f"short read: got {len(buf)} of {size} bytes ({e})"
                raise ProtocolError(msg) from e
            if not chunk:
                msg = f"short read: got {len(buf)} of {size} bytes"
                raise ProtocolError(msg)
            buf += chunk
        return bytes(buf)

    def read(self, size: int = BUFFER_SIZE) -> bytes:
        """Read up to ``size`` bytes, ``b""`` at end of stream."""
        return self._sock.recv(size)

    def write(self, data: bytes) -> None:
        """Write all of ``data``, raising ``OSError`` on failure."""
        self._sock.sendall(data)

    def close(self) -> None:
        """Shut down and close the socket. Later calls do nothing."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
        # shutdown wakes up a recv() blocked on this socket in another thread
        with contextlib.suppress(OSError):
            self._sock.shutdown(socket.SHUT_RDWR)
        self._sock.close()


def dial(host: str, port: int) -> SocketStream:
    """Open a TCP connection to ``host:port``.

    Raises:
        OSError: If the name cannot be resolved or the connection fails
        UnicodeError: If ``host`` cannot be encoded as an IDNA name
    """
    return SocketStream(socket.create_connection((host, port)))
