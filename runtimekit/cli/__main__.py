"""
Entry point for running RuntimeKit CLI as a module.

Usage: python -m runtimekit.cli [command] [options]
"""

from .parser import main

if __name__ == "__main__":
    main()
