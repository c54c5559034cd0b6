"""Entry point for ``python -m choresync``."""

from choresync.cli.typer_app import app

if __name__ == "__main__":
    app()
