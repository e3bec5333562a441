"""statespine command line interface."""

from statespine.cli.app import app

__all__ = ["app"]
