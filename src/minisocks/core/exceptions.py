"""Custom exceptions for the proxy server.

Every failure of the SOCKS5 handshake maps to one of the exceptions below.
They are all local to a single connection: the connection handler logs them
and closes the client stream, and nothing is retried.

Example:
    try:
        negotiate(client)
    except SocksError as e:
        log.warning(f"Handshake failed: {e}")
        client.close()
"""


class ProxyError(Exception):
    """Base exception for proxy errors."""


class SocksError(ProxyError):
    """Base exception for failures while handling one SOCKS5 connection."""


class ProtocolError(SocksError):
    """Raised when the stream ends before a complete frame was read."""


class VersionMismatchError(SocksError):
    """Raised when a frame carries a version byte other than 5."""

    def __init__(self, version: int) -> None:
        super().__init__(f"unsupported SOCKS version {version}")
        self.version = version


class UnsupportedCommandError(SocksError):
    """Raised for any command other than CONNECT."""

    def __init__(self, command: int) -> None:
        super().__init__(f"unsupported command {command:#04x}")
        self.command = command


class UnsupportedAddressTypeError(SocksError):
    """Raised for IPv6 or unknown address types."""

    def __init__(self, address_type: int) -> None:
        super().__init__(f"unsupported address type {address_type:#04x}")
        self.address_type = address_type


class DialError(SocksError):
    """Raised when the destination cannot be reached."""

    def __init__(self, host: str, port: int, reason: Exception) -> None:
        printable = host.encode("utf-8", "surrogateescape").decode("utf-8", "backslashreplace")
        super().__init__(f"dial {printable}:{port}: {reason}")
        self.host = host
        self.port = port
        self.reason = reason


class WriteError(SocksError):
    """Raised when a reply frame cannot be written to the client."""
