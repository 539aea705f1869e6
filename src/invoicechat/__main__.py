"""invoicechat CLI entry point."""

from invoicechat.cli import app

if __name__ == "__main__":
    app()
