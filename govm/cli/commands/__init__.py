"""
Command implementations for the govm CLI.

Each module exposes ``run(args) -> int``.
"""
