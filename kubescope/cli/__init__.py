"""kubescope command-line interface.

Exposes:
    cli -- Click group entry point (registered as ``kubescope`` script).
"""

from kubescope.cli.main import cli

__all__ = ["cli"]
