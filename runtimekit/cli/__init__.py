"""
RuntimeKit command-line interface.

Usage: runtimekit [command] [options]
"""

from .parser import CLI, main

__all__ = ["CLI", "main"]
