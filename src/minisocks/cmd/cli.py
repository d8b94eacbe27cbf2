"""Command-line interface for the SOCKS proxy server.

This module provides the main command-line interface for the proxy server, handling:
- Command-line argument parsing
- Logging setup
- Server startup and shutdown
- Error reporting

Every option can also be given through an environment variable, which is the
only configuration the proxy reads.

Example:
    # Run from command line:
    $ minisocks serve --host 127.0.0.1 --port 1080 --debug
"""

import sys

import typer
from loguru import logger
from rich.console import Console

from minisocks import __version__
from minisocks.core.lib.proxy_server import DEFAULT_HOST, DEFAULT_PORT
from minisocks.core.proxy import run_server
from minisocks.core.utils.log_config import LOG_DIR, setup_logging

console = Console()
app = typer.Typer(help="Minimal SOCKS5 proxy server")


@app.callback(invoke_without_command=True)
def version_callback():
    """Show version information."""
    console.print(f"[cyan]minisocks v{__version__}[/cyan]")


@app.command(name="serve")
def serve(
    host: str = typer.Option(DEFAULT_HOST, "--host", envvar="MINISOCKS_HOST", help="Address to listen on"),
    port: int = typer.Option(DEFAULT_PORT, "--port", "-p", envvar="MINISOCKS_PORT", help="Port to listen on"),
    debug: bool = typer.Option(
        False,
        "--debug",
        envvar="MINISOCKS_DEBUG",
        help="Enable debug logging",
    ),
    log_file: bool = typer.Option(
        True,
        "--log-file/--no-log-file",
        envvar="MINISOCKS_LOG_FILE",
        help=f"Also log to {LOG_DIR / 'proxy.log'}",
    ),
):
    """Start the SOCKS proxy server."""
    setup_logging(debug=debug, log_file=log_file)
    logger.info("Starting SOCKS proxy server")

    try:
        run_server(host, port)
    except OSError as e:
        logger.error(f"Cannot listen on {host}:{port}: {e}")
        console.print(f"[red]Error: cannot listen on {host}:{port}: {e}")
        sys.exit(1)


if __name__ == "__main__":
    app()
