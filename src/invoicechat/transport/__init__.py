"""Response stream transports."""

from invoicechat.transport.base import ChatTransport
from invoicechat.transport.http import HttpChatTransport
from invoicechat.transport.replay import ReplayTransport

__all__ = ["ChatTransport", "HttpChatTransport", "ReplayTransport"]
