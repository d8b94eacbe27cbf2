"""Core proxy library components."""

from .proxy_server import SocksProxy, run_server
from .socks_handler import Request, SocksHandler, negotiate, read_request, relay, resolve
from .stream import SocketStream, dial

__all__ = [
    "dial",
    "negotiate",
    "read_request",
    "relay",
    "Request",
    "resolve",
    "run_server",
    "SocketStream",
    "SocksHandler",
    "SocksProxy",
]
