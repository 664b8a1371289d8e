"""
Push transport adapters for envalert.
"""

from .expo import ExpoPushTransport, is_expo_token, split_tokens
from .log_transport import LogPushTransport

__all__ = ["ExpoPushTransport", "LogPushTransport", "is_expo_token", "split_tokens"]
