"""
Entry point for running RuntimeKit CLI as a module.

Usage: python -m runtimekit [command] [options]
"""

from runtimekit.cli.parser import main

if __name__ == "__main__":
    main()
