"""CLI package."""

from invoicechat.cli.app import app

__all__ = ["app"]
