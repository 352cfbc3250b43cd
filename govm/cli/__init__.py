"""
govm CLI module.

This module provides the `govm` management command.
"""

from .parser import CLI, main
from . import utils

__all__ = ["CLI", "main", "utils"]
