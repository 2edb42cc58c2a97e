"""Allow ``python -m blueprintx``."""

from blueprintx.cli.app import app

if __name__ == "__main__":
    app()
