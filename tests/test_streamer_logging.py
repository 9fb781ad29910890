"""
Tests for the structlog processors and logger helpers in streamer_logging.
"""

from __future__ import annotations

import structlog

from thor_streamer.streamer_logging import bind_subscription, get_logger
from thor_streamer.streamer_logging.logger import _add_timestamp, _normalize_event


def test_normalize_event_renames_event_key():
    out = _normalize_event(None, "info", {"event": "connect_succeeded", "attempt": 1})
    assert out == {"event_type": "connect_succeeded", "attempt": 1}


def test_normalize_event_keeps_explicit_event_type():
    out = _normalize_event(None, "info", {"event": "x", "event_type": "connect_backoff"})
    assert out["event_type"] == "connect_backoff"
    assert out["event"] == "x"


def test_add_timestamp_only_when_missing():
    assert _add_timestamp(None, "info", {"timestamp": "fixed"}) == {"timestamp": "fixed"}
    stamped = _add_timestamp(None, "info", {})
    assert stamped["timestamp"].endswith("+00:00")


def test_loggers_carry_module_and_subscription_names():
    assert structlog.get_context(get_logger("thor_streamer.client.connector"))["logger"] == (
        "thor_streamer.client.connector"
    )
    ctx = structlog.get_context(bind_subscription("slot_status"))
    assert ctx["subscription"] == "slot_status"
    assert ctx["logger"] == "thor_streamer.stream"
    # Emitting through the configured chain must not raise.
    bind_subscription("slot_status").warning("message_decode_failed", error="truncated")
