"""
CLI command modules.
"""

from spv_cli.commands import build, convert, verify

__all__ = ["build", "convert", "verify"]
