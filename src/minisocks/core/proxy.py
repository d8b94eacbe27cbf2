"""Main entry point for the SOCKS proxy server functionality.

It exposes the pieces other code needs: the three connection stages and the
server that drives them.

Example:
    from minisocks.core.proxy import run_server

    # Start a SOCKS proxy server on localhost:1080
    run_server("127.0.0.1", 1080)

Attributes:
    __all__ (list): List of public components exposed by this module
"""

from .lib import SocksProxy, negotiate, relay, resolve, run_server

__all__ = ["negotiate", "relay", "resolve", "run_server", "SocksProxy"]
