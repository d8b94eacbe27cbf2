"""Core proxy server implementation.

This package contains the core components of the SOCKS proxy server:
- The SOCKS5 negotiation, request and relay stages
- The socket stream they operate on
- The threading TCP server
- Exception handling
- Logging configuration
"""
