"""
Decoded stream events: models, protobuf decoder and receive loops.
"""

from thor_streamer.stream.models import (
    AccountUpdateEvent,
    CompiledInstruction,
    DecodedTransaction,
    LoadedAddresses,
    SlotEvent,
    StreamEvent,
    StreamType,
    TransactionEvent,
    TransactionMessage,
    TransactionStatus,
)

__all__ = [
    "AccountUpdateEvent",
    "CompiledInstruction",
    "DecodedTransaction",
    "LoadedAddresses",
    "SlotEvent",
    "StreamEvent",
    "StreamType",
    "TransactionEvent",
    "TransactionMessage",
    "TransactionStatus",
]
