"""Command-line interface module for htmlview."""

from .main import main

__all__ = ["main"]
