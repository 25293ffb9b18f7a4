"""
CLI layer for resque-status.

Provides a Typer application for operators to inspect and reset the
registry records of a running cluster. All logic lives in
``resque_status.registry``; this package handles only terminal transport:
argument parsing, coloured output, and table formatting.

Entry point::

    resque-status --help
"""

from resque_status.cli.app import app

__all__ = ["app"]
