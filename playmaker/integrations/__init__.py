"""Voice, chat and SMS integrations behind capability interfaces."""

from .base import CallReceipt, ChatOracle, MessageReceipt, MessageSender, VoiceCallInitiator

__all__ = ["CallReceipt", "ChatOracle", "MessageReceipt", "MessageSender", "VoiceCallInitiator"]
