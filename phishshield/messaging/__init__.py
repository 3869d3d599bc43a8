"""Inbound messaging: RPC routing and the native messaging transport."""

from .native import (
    FramingError,
    NativeMessagingChannel,
    NativeMessagingHost,
    NativeShell,
    encode_message,
)
from .router import MessageRouter, RouterError, Sender

__all__ = [
    "FramingError",
    "MessageRouter",
    "NativeMessagingChannel",
    "NativeMessagingHost",
    "NativeShell",
    "RouterError",
    "Sender",
    "encode_message",
]
