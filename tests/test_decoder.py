"""
Tests for the MessageWrapper -> model mapping in thor_streamer.stream.decoder.

Generated protobuf classes are stood in for by SimpleNamespace objects that
answer HasField / WhichOneof the way proto3 messages do.
"""

from __future__ import annotations

import sys
import types

import pytest
from google.protobuf.message import DecodeError as ProtoDecodeError

from thor_streamer.core.exceptions import ConfigError, DecodeError
from thor_streamer.stream.decoder import (
    event_from_wrapper,
    load_wrapper_class,
    make_decoder,
    transaction_from_proto,
)
from thor_streamer.stream.models import (
    VERSION_V0,
    AccountUpdateEvent,
    SlotEvent,
    StreamType,
    TransactionEvent,
)


class FakeMsg(types.SimpleNamespace):
    """Fields set to None count as unset submessages."""

    def HasField(self, name):
        return getattr(self, name, None) is not None

    def WhichOneof(self, group):
        for case in ("transaction", "slot", "account_update"):
            if getattr(self, case, None) is not None:
                return case
        return None


def _slot(**kw):
    defaults = dict(slot=10, parent=9, status=1, block_hash=b"\x01" * 32, block_height=8)
    defaults.update(kw)
    return FakeMsg(**defaults)


def _tx_proto(*, version=0, loaded=None, meta=True, message=True):
    msg = None
    if message:
        msg = FakeMsg(
            account_keys=[b"\x01" * 32, b"\x02" * 32],
            instructions=[FakeMsg(program_id_index=1, data=b"\x03", accounts=[0])],
            loaded_addresses=loaded,
            version=version,
            recent_block_hash=b"\x04" * 32,
        )
    status_meta = None
    if meta:
        status_meta = FakeMsg(
            is_status_err=True,
            error_info="InstructionError",
            fee=5000,
            pre_balances=[10, 20],
            post_balances=[5, 25],
            log_messages=["Program X invoke [1]"],
        )
    return FakeMsg(
        signature=b"\x09" * 64,
        slot=42,
        is_vote=False,
        index=3,
        transaction_status_meta=status_meta,
        transaction=FakeMsg(message=msg),
    )


def test_transaction_mapping_full():
    tx = transaction_from_proto(_tx_proto())
    assert tx.signature == b"\x09" * 64
    assert tx.slot == 42 and tx.index == 3
    assert tx.failed is True
    assert tx.status.fee == 5000
    assert tx.status.pre_balances == (10, 20)
    assert tx.log_messages == ("Program X invoke [1]",)
    assert tx.message.account_keys == (b"\x01" * 32, b"\x02" * 32)
    assert tx.message.instructions[0].program_id_index == 1
    assert tx.message.instructions[0].accounts == (0,)
    assert tx.message.loaded_addresses is None


def test_transaction_without_meta_has_no_status():
    tx = transaction_from_proto(_tx_proto(meta=False, message=False))
    assert tx.status is None
    assert tx.failed is False and tx.succeeded is False
    assert tx.message is None
    assert tx.log_messages == ()


def test_loaded_addresses_only_for_v0():
    loaded = FakeMsg(writable=[b"\x05" * 32], readonly=[b"\x06" * 32])
    v0 = transaction_from_proto(_tx_proto(version=VERSION_V0, loaded=loaded))
    legacy = transaction_from_proto(_tx_proto(version=0, loaded=loaded))
    assert v0.message.loaded_addresses.writable == (b"\x05" * 32,)
    assert v0.message.loaded_addresses.readonly == (b"\x06" * 32,)
    assert legacy.message.loaded_addresses is None


def test_event_dispatch():
    tx_wrapper = FakeMsg(transaction=FakeMsg(transaction=_tx_proto(), stream_type=2))
    event = event_from_wrapper(tx_wrapper)
    assert isinstance(event, TransactionEvent)
    assert event.stream_type == StreamType.WALLET

    slot = event_from_wrapper(FakeMsg(slot=_slot()))
    assert isinstance(slot, SlotEvent)
    assert slot.status_name == "CONFIRMED"

    account = event_from_wrapper(
        FakeMsg(
            account_update=FakeMsg(
                pubkey=b"\x01" * 32, owner=b"\x02" * 32, lamports=7, executable=True,
                rent_epoch=1, data=b"", write_version=3, txn_signature=b"", slot=_slot(slot=11),
            )
        )
    )
    assert isinstance(account, AccountUpdateEvent)
    assert account.txn_signature is None
    assert account.slot.slot == 11


def test_unknown_stream_type_and_empty_cases():
    odd = event_from_wrapper(FakeMsg(transaction=FakeMsg(transaction=_tx_proto(), stream_type=99)))
    assert odd.stream_type == StreamType.UNSPECIFIED
    assert event_from_wrapper(FakeMsg(transaction=FakeMsg(transaction=None, stream_type=1))) is None
    assert event_from_wrapper(FakeMsg()) is None


def test_make_decoder_maps_parse_errors():
    class Wrapper:
        @staticmethod
        def FromString(payload):
            if payload == b"bad":
                raise ProtoDecodeError("truncated message")
            return FakeMsg(slot=_slot())

    decode = make_decoder(Wrapper)
    assert isinstance(decode(b"ok"), SlotEvent)
    with pytest.raises(DecodeError, match="truncated"):
        decode(b"bad")


def test_load_wrapper_class(monkeypatch):
    module = types.ModuleType("fake_events_pb2")
    module.MessageWrapper = object
    monkeypatch.setitem(sys.modules, "fake_events_pb2", module)
    assert load_wrapper_class("fake_events_pb2") is object

    monkeypatch.setitem(sys.modules, "empty_events_pb2", types.ModuleType("empty_events_pb2"))
    with pytest.raises(ConfigError, match="no MessageWrapper"):
        load_wrapper_class("empty_events_pb2")

    with pytest.raises(ConfigError, match="cannot import"):
        load_wrapper_class("definitely_not_a_module_pb2")
