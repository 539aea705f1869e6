"""invoicechat - chat with your invoices."""

from .core import SessionController, Transcript
from .transport import HttpChatTransport, ReplayTransport

__version__ = "0.1.0"

__all__ = ["HttpChatTransport", "ReplayTransport", "SessionController", "Transcript"]
