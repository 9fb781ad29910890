"""
Receive loops for each subscription kind.

Each run_* coroutine opens one subscription on the session and consumes it
until the stream ends (StreamEndedError), fails (transport error) or the token
fires (OperationCancelledError). All three propagate to the supervisor for
classification. Undecodable payloads are skipped with a warning; the loop
keeps going.
"""

from __future__ import annotations

import functools
from typing import Callable, Iterable

from thor_streamer.client.connector import Session
from thor_streamer.client.publisher import Subscription
from thor_streamer.core.cancellation import CancelToken
from thor_streamer.core.exceptions import ConfigError, DecodeError, SignatureLogError
from thor_streamer.display.printer import print_event
from thor_streamer.filters.transaction_filter import TransactionFilter
from thor_streamer.signature_log.logger import SignatureLogger
from thor_streamer.stream.decoder import Decoder
from thor_streamer.stream.models import (
    AccountUpdateEvent,
    SlotEvent,
    StreamEvent,
    StreamType,
    TransactionEvent,
)
from thor_streamer.streamer_logging import bind_subscription, get_logger

logger = get_logger(__name__)

EventSink = Callable[[StreamEvent], None]


async def consume(
    subscription: Subscription,
    token: CancelToken,
    decoder: Decoder,
    handle: EventSink,
) -> None:
    """Receive, decode and hand off events in arrival order until the stream stops."""
    log = bind_subscription(subscription.name)
    log.info("subscription_started")
    received = 0
    try:
        while True:
            payload = await token.run(subscription.recv())
            received += 1
            try:
                event = decoder(payload)
            except DecodeError as e:
                log.warning("message_decode_failed", error=str(e))
                continue
            if event is None:
                continue
            handle(event)
    finally:
        subscription.cancel()
        log.info("subscription_stopped", received=received)


class TransactionProcessor:
    """Filter -> signature log -> display, for the filtered transaction stream."""

    def __init__(
        self,
        tx_filter: TransactionFilter,
        sig_logger: SignatureLogger | None = None,
        sink: EventSink = print_event,
    ) -> None:
        self._filter = tx_filter
        self._sig_logger = sig_logger
        self._sink = sink
        self.accepted = 0
        self.log_failures = 0

    def __call__(self, event: StreamEvent) -> None:
        if not isinstance(event, TransactionEvent):
            return
        tx = event.transaction
        if not self._filter.wants_transaction(tx):
            return
        self.accepted += 1
        if self._sig_logger is not None:
            program_id = self._filter.primary_program_id(tx)
            try:
                self._sig_logger.log_signature(tx.signature, tx.slot, program_id, tx.succeeded)
            except SignatureLogError as e:
                self.log_failures += 1
                logger.warning(
                    "signature_log_failed",
                    signature=tx.signature_str,
                    slot=tx.slot,
                    error=str(e),
                )
        self._sink(event)


async def run_filtered_transactions(
    session: Session,
    token: CancelToken,
    decoder: Decoder,
    tx_filter: TransactionFilter,
    sig_logger: SignatureLogger | None = None,
    sink: EventSink = print_event,
) -> None:
    logger.info(
        "filtered_transactions_subscribing",
        program_filters=sorted(tx_filter.config.program_ids),
        signature_log=str(sig_logger.path) if sig_logger else None,
    )
    subscription = session.publisher.subscribe_transactions()
    await consume(subscription, token, decoder, TransactionProcessor(tx_filter, sig_logger, sink))


async def run_wallet_transactions(
    session: Session,
    token: CancelToken,
    decoder: Decoder,
    wallets: Iterable[str],
    sink: EventSink = functools.partial(print_event, detailed=True),
) -> None:
    wallet_list = [w.strip() for w in wallets if w and w.strip()]
    if not wallet_list:
        raise ConfigError("no wallet addresses provided")

    def handle(event: StreamEvent) -> None:
        if isinstance(event, TransactionEvent) and event.stream_type == StreamType.WALLET:
            sink(event)

    logger.info("wallet_transactions_subscribing", wallet_count=len(wallet_list))
    subscription = session.publisher.subscribe_wallet_transactions(wallet_list)
    await consume(subscription, token, decoder, handle)


async def run_account_updates(
    session: Session,
    token: CancelToken,
    decoder: Decoder,
    accounts: Iterable[str] = (),
    owners: Iterable[str] = (),
    sink: EventSink = print_event,
) -> None:
    account_list = [a.strip() for a in accounts if a and a.strip()]
    owner_list = [o.strip() for o in owners if o and o.strip()]
    if not account_list and not owner_list:
        raise ConfigError("at least one account or owner address is required")

    def handle(event: StreamEvent) -> None:
        if isinstance(event, AccountUpdateEvent):
            sink(event)

    logger.info(
        "account_updates_subscribing",
        account_count=len(account_list),
        owner_count=len(owner_list),
    )
    subscription = session.publisher.subscribe_account_updates(account_list, owner_list)
    await consume(subscription, token, decoder, handle)


async def run_slot_status(
    session: Session,
    token: CancelToken,
    decoder: Decoder,
    sink: EventSink = print_event,
) -> None:
    def handle(event: StreamEvent) -> None:
        if isinstance(event, SlotEvent):
            sink(event)

    logger.info("slot_status_subscribing")
    subscription = session.publisher.subscribe_slot_status()
    await consume(subscription, token, decoder, handle)
