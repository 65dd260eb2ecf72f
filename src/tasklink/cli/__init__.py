"""Command-line interface for tasklink."""

from tasklink.cli.app import main
from tasklink.cli.parser import build_parser

__all__ = ["build_parser", "main"]
