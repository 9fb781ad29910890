"""
Data models for decoded stream events.

Responsibilities:
- Define immutable dataclasses for the three event kinds the publisher emits
  (transactions, slot status, account updates).
- Keep raw keys and signatures as bytes; base58 encoding happens at the edges
  (filter keys, signature log, display).
- StreamEvent is the tagged union handed from the decoder to the receive loops;
  only TransactionEvent is inspected by the filter and the signature log.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Union

import base58

VERSION_LEGACY = 0
VERSION_V0 = 1


def encode_key(raw: bytes) -> str:
    """Base58-encode a public key or signature."""
    return base58.b58encode(bytes(raw)).decode("ascii")


class StreamType(IntEnum):
    UNSPECIFIED = 0
    FILTERED = 1
    WALLET = 2
    ACCOUNT = 3


class SlotCommitment(IntEnum):
    PROCESSED = 0
    CONFIRMED = 1
    ROOTED = 2
    FIRST_SHRED_RECEIVED = 3
    COMPLETED = 4
    CREATED_BANK = 5
    DEAD = 6


@dataclass(frozen=True)
class CompiledInstruction:
    program_id_index: int
    """Index into the message's account-key list."""
    data: bytes = b""
    accounts: tuple[int, ...] = ()


@dataclass(frozen=True)
class LoadedAddresses:
    """Address-table lookups resolved by the server (v0 messages only)."""

    writable: tuple[bytes, ...] = ()
    readonly: tuple[bytes, ...] = ()


@dataclass(frozen=True)
class TransactionMessage:
    account_keys: tuple[bytes, ...] = ()
    instructions: tuple[CompiledInstruction, ...] = ()
    loaded_addresses: LoadedAddresses | None = None
    """Set only for the extended (v0) message form."""
    version: int = VERSION_LEGACY
    recent_block_hash: bytes = b""


@dataclass(frozen=True)
class TransactionStatus:
    is_err: bool = False
    error_info: str | None = None
    fee: int = 0
    pre_balances: tuple[int, ...] = ()
    post_balances: tuple[int, ...] = ()


@dataclass(frozen=True)
class DecodedTransaction:
    """
    A transaction as delivered by the publisher.

    status is None when the server sent no status metadata; such a
    transaction is neither failed nor confirmed successful.
    """

    signature: bytes
    slot: int
    is_vote: bool = False
    status: TransactionStatus | None = None
    log_messages: tuple[str, ...] = ()
    message: TransactionMessage | None = None
    index: int = 0

    @property
    def failed(self) -> bool:
        return self.status is not None and self.status.is_err

    @property
    def succeeded(self) -> bool:
        return self.status is not None and not self.status.is_err

    @property
    def signature_str(self) -> str:
        return encode_key(self.signature)


@dataclass(frozen=True)
class TransactionEvent:
    transaction: DecodedTransaction
    stream_type: StreamType = StreamType.UNSPECIFIED


@dataclass(frozen=True)
class SlotEvent:
    slot: int
    parent: int = 0
    status: int = SlotCommitment.PROCESSED
    block_hash: bytes = b""
    block_height: int = 0

    @property
    def status_name(self) -> str:
        try:
            return SlotCommitment(self.status).name
        except ValueError:
            return "UNKNOWN"


@dataclass(frozen=True)
class AccountUpdateEvent:
    pubkey: bytes
    owner: bytes
    lamports: int = 0
    executable: bool = False
    rent_epoch: int = 0
    data: bytes = field(default=b"", repr=False)
    write_version: int = 0
    txn_signature: bytes | None = None
    slot: SlotEvent | None = None


StreamEvent = Union[TransactionEvent, SlotEvent, AccountUpdateEvent]
