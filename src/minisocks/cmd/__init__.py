"""Command line interface modules.

This package provides the ``minisocks`` command, which starts the proxy
server and sets up logging for it.
"""
