"""blueprintx command line interface."""

from blueprintx.cli.app import app

__all__ = ["app"]
