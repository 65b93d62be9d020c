"""
cli - Command line interface for tinyrdbms.
"""

from tinyrdbms.cli.main import app

__all__ = ["app"]
