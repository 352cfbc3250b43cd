"""
Entry point for running govm as a module.

Usage: python -m govm [command] [options]
"""

from govm.cli.parser import main

if __name__ == "__main__":
    main()
