"""Logging setup for the interpreter and its command-line front end."""

from .logging import configure_logging, get_logger

__all__ = [
    "configure_logging",
    "get_logger",
]
