"""
Payload decoder: MessageWrapper protobuf -> thor_streamer.stream.models.

The MessageWrapper schema belongs to the server (events.proto). Generate the
module with grpcio-tools and point events_module at it, e.g.:

    python -m grpc_tools.protoc -I proto --python_out=. proto/events.proto

make_decoder() wraps the generated class into decode(bytes) -> StreamEvent;
parse failures raise DecodeError so the receive loop can skip the message.
"""

from __future__ import annotations

import importlib
from typing import Any, Callable

from google.protobuf.message import DecodeError as ProtoDecodeError

from thor_streamer.core.exceptions import ConfigError, DecodeError
from thor_streamer.stream.models import (
    VERSION_V0,
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
from thor_streamer.streamer_logging import get_logger

logger = get_logger(__name__)

EVENT_ONEOF = "event_message"
WRAPPER_CLASS_NAME = "MessageWrapper"

Decoder = Callable[[bytes], "StreamEvent | None"]


def _message_from_proto(msg: Any) -> TransactionMessage:
    loaded = None
    if msg.version == VERSION_V0 and msg.HasField("loaded_addresses"):
        loaded = LoadedAddresses(
            writable=tuple(bytes(k) for k in msg.loaded_addresses.writable),
            readonly=tuple(bytes(k) for k in msg.loaded_addresses.readonly),
        )
    return TransactionMessage(
        account_keys=tuple(bytes(k) for k in msg.account_keys),
        instructions=tuple(
            CompiledInstruction(
                program_id_index=int(ix.program_id_index),
                data=bytes(ix.data),
                accounts=tuple(int(a) for a in ix.accounts),
            )
            for ix in msg.instructions
        ),
        loaded_addresses=loaded,
        version=int(msg.version),
        recent_block_hash=bytes(msg.recent_block_hash),
    )


def transaction_from_proto(ev: Any) -> DecodedTransaction:
    """Map a TransactionEvent protobuf onto DecodedTransaction."""
    status = None
    logs: tuple[str, ...] = ()
    if ev.HasField("transaction_status_meta"):
        meta = ev.transaction_status_meta
        status = TransactionStatus(
            is_err=bool(meta.is_status_err),
            error_info=meta.error_info or None,
            fee=int(meta.fee),
            pre_balances=tuple(int(b) for b in meta.pre_balances),
            post_balances=tuple(int(b) for b in meta.post_balances),
        )
        logs = tuple(meta.log_messages)
    message = None
    if ev.HasField("transaction") and ev.transaction.HasField("message"):
        message = _message_from_proto(ev.transaction.message)
    return DecodedTransaction(
        signature=bytes(ev.signature),
        slot=int(ev.slot),
        is_vote=bool(ev.is_vote),
        status=status,
        log_messages=logs,
        message=message,
        index=int(ev.index),
    )


def slot_from_proto(slot: Any) -> SlotEvent:
    return SlotEvent(
        slot=int(slot.slot),
        parent=int(slot.parent),
        status=int(slot.status),
        block_hash=bytes(slot.block_hash),
        block_height=int(slot.block_height),
    )


def account_from_proto(acc: Any) -> AccountUpdateEvent:
    return AccountUpdateEvent(
        pubkey=bytes(acc.pubkey),
        owner=bytes(acc.owner),
        lamports=int(acc.lamports),
        executable=bool(acc.executable),
        rent_epoch=int(acc.rent_epoch),
        data=bytes(acc.data),
        write_version=int(acc.write_version),
        txn_signature=bytes(acc.txn_signature) or None,
        slot=slot_from_proto(acc.slot) if acc.HasField("slot") else None,
    )


def event_from_wrapper(wrapper: Any) -> StreamEvent | None:
    """Dispatch on the event_message oneof; None for an unset or empty case."""
    case = wrapper.WhichOneof(EVENT_ONEOF)
    if case == "transaction":
        tx_wrapper = wrapper.transaction
        if not tx_wrapper.HasField("transaction"):
            return None
        try:
            stream_type = StreamType(int(tx_wrapper.stream_type))
        except ValueError:
            stream_type = StreamType.UNSPECIFIED
        return TransactionEvent(
            transaction=transaction_from_proto(tx_wrapper.transaction),
            stream_type=stream_type,
        )
    if case == "slot":
        return slot_from_proto(wrapper.slot)
    if case == "account_update":
        return account_from_proto(wrapper.account_update)
    return None


def make_decoder(wrapper_cls: Any) -> Decoder:
    """Return decode(payload) for the generated MessageWrapper class."""

    def decode(payload: bytes) -> StreamEvent | None:
        try:
            wrapper = wrapper_cls.FromString(payload)
        except ProtoDecodeError as e:
            raise DecodeError(f"failed to unmarshal MessageWrapper: {e}") from e
        return event_from_wrapper(wrapper)

    return decode


def load_wrapper_class(module_path: str) -> Any:
    """Import the generated events module and return its MessageWrapper class."""
    try:
        module = importlib.import_module(module_path)
    except ImportError as e:
        raise ConfigError(
            f"cannot import events module {module_path!r}; generate it from events.proto"
        ) from e
    cls = getattr(module, WRAPPER_CLASS_NAME, None)
    if cls is None:
        raise ConfigError(f"module {module_path!r} has no {WRAPPER_CLASS_NAME}")
    logger.info("events_module_loaded", module=module_path)
    return cls
