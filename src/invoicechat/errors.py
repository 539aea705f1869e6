"""Application-level exception types for invoicechat."""

from __future__ import annotations


class InvoiceChatError(Exception):
    """Base exception for invoicechat."""


class ConfigurationError(InvoiceChatError):
    """Raised when settings are missing or invalid."""


class TransportFailure(InvoiceChatError):
    """Raised when the response stream cannot be opened or read."""


class SessionBusyError(InvoiceChatError):
    """Raised when a turn is submitted while another one is still loading."""


class RevealInProgressError(InvoiceChatError):
    """Raised when a reveal starts while another reveal is still animating."""


class TranscriptInvariantError(InvoiceChatError):
    """Raised when a transcript mutation would break the single in-progress rule."""
