"""Allow ``python -m minisocks``."""

from minisocks.cmd.cli import app

if __name__ == "__main__":
    app()
