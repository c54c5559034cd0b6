"""Command-line interface for ChoreSync."""

from .typer_app import app

__all__ = ["app"]
