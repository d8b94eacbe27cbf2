"""SOCKS proxy server implementation.

This module implements the listening side of the proxy:
- A threading TCP server, one thread per accepted connection
- Address reuse so restarts do not wait for TIME_WAIT
- Logging of per-connection errors without stopping the accept loop
- Clean shutdown handling

Example:
    # Listen on all interfaces, port 8888
    run_server("0.0.0.0", 8888)
"""

import contextlib
import socketserver
from typing import Final

from loguru import logger

from .socks_handler import Dialer, SocksHandler
from .stream import dial as default_dial

DEFAULT_HOST: Final = "0.0.0.0"
DEFAULT_PORT: Final = 8888


class SocksProxy(socketserver.ThreadingMixIn, socketserver.TCPServer):
    """SOCKS proxy server implementation."""

    allow_reuse_address = True
    daemon_threads = True
    request_queue_size = 100

    def __init__(
        self,
        server_address: tuple[str, int],
        handler_class: type[socketserver.BaseRequestHandler] = SocksHandler,
        dial: Dialer = default_dial,
    ) -> None:
        """Bind the server.

        Args:
            server_address: ``(host, port)`` to listen on, port 0 picks a free one
            handler_class: Per-connection request handler
            dial: Used by the handler to open destination connections
        """
        self.dial = dial
        super().__init__(server_address, handler_class)

    def handle_error(self, request, client_address) -> None:
        """Log errors escaping a handler; the server keeps accepting."""
        logger.opt(exception=True).error(f"Error processing connection from {client_address}")


def run_server(host: str = DEFAULT_HOST, port: int = DEFAULT_PORT) -> None:
    """Serve until interrupted.

    Args:
        host: Host address to bind to
        port: Port number to listen on

    Raises:
        OSError: If the listening socket cannot be bound
    """
    server: SocksProxy | None = None
    try:
        server = SocksProxy((host, port))
        logger.info(f"SOCKS5 proxy listening on {host}:{server.server_address[1]}")
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Server stopping")
    finally:
        if server:
            with contextlib.suppress(OSError):
                server.server_close()
            logger.info("Server closed")
