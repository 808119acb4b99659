"""
Utilities Module - Helper functions and classes.

This module provides logging setup and the string collation used to
order Turtle output.
"""

from .collation import collation_key, compare
from .logging import add_file_handler, remove_file_handler, setup_colored_logging

__all__ = [
    "collation_key",
    "compare",
    "setup_colored_logging",
    "add_file_handler",
    "remove_file_handler",
]
