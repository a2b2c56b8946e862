"""pkgpush command line interface.

Example:
    $ pkgpush push ./my-package
"""

from __future__ import annotations

from pkgpush.cli.main import cli, main

__all__ = ["cli", "main"]
