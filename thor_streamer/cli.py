"""
Command-line entrypoint: connect once, run one or more supervised subscriptions.

Usage:
    thor-streamer [--config config.json] transactions
    thor-streamer wallets --wallet ADDR [--wallet ADDR ...]
    thor-streamer accounts [--account ADDR ...] [--owner ADDR ...]
    thor-streamer slots
    thor-streamer all [--account ADDR ...] [--owner ADDR ...]

SIGINT/SIGTERM cancel the root token; every retry sleep and receive loop
unwinds, then the session and signature log are closed.
"""

from __future__ import annotations

import argparse
import asyncio
import signal
import sys
from typing import Sequence

from thor_streamer.client.connector import Session, connect_with_retry
from thor_streamer.client.supervisor import SubscriptionFn, SubscriptionSupervisor
from thor_streamer.config.settings import StreamerSettings, load_settings
from thor_streamer.core.cancellation import CancelToken
from thor_streamer.core.exceptions import (
    ConfigError,
    OperationCancelledError,
    RetriesExhaustedError,
    SignatureLogError,
)
from thor_streamer.filters.transaction_filter import TransactionFilter
from thor_streamer.signature_log.logger import SignatureLogger
from thor_streamer.stream import handlers
from thor_streamer.stream.decoder import Decoder, load_wrapper_class, make_decoder
from thor_streamer.streamer_logging import get_logger

logger = get_logger("thor_streamer.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="thor-streamer",
        description="Stream Solana transactions, account updates and slot status from a ThorStreamer publisher.",
    )
    parser.add_argument("--config", default=None, help="Path to JSON config file (THOR_* env vars override it)")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("transactions", help="Program-filtered transactions, logged to the signature log")
    wallets = sub.add_parser("wallets", help="Transactions for specific wallets")
    wallets.add_argument("--wallet", action="append", default=[], required=True, help="Wallet address (repeatable)")
    for name, help_text in (
        ("accounts", "Account updates for addresses and/or owners"),
        ("all", "Transactions and slot status concurrently, plus account updates if addresses are given"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("--account", action="append", default=[], help="Account address (repeatable)")
        p.add_argument("--owner", action="append", default=[], help="Owner address (repeatable)")
    sub.add_parser("slots", help="Slot status updates")
    return parser


def _install_signal_handlers(token: CancelToken) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, token.cancel)
        except (NotImplementedError, RuntimeError, ValueError):
            # Not supported on this platform / not in main thread
            pass


def _jobs(
    args: argparse.Namespace,
    settings: StreamerSettings,
    session: Session,
    decoder: Decoder,
    sig_logger: SignatureLogger | None,
) -> list[tuple[str, SubscriptionFn]]:
    """One (name, subscription function) per stream the command asks for."""
    jobs: list[tuple[str, SubscriptionFn]] = []
    command = args.command
    accounts = getattr(args, "account", [])
    owners = getattr(args, "owner", [])

    if command in ("transactions", "all"):
        tx_filter = TransactionFilter(settings.filter_config())

        async def transactions(token: CancelToken) -> None:
            await handlers.run_filtered_transactions(session, token, decoder, tx_filter, sig_logger)

        jobs.append(("transactions", transactions))

    if command == "wallets":
        async def wallets(token: CancelToken) -> None:
            await handlers.run_wallet_transactions(session, token, decoder, args.wallet)

        jobs.append(("wallet_transactions", wallets))

    if command == "accounts" or (command == "all" and (accounts or owners)):
        async def account_updates(token: CancelToken) -> None:
            await handlers.run_account_updates(session, token, decoder, accounts, owners)

        jobs.append(("account_updates", account_updates))

    if command in ("slots", "all"):
        async def slots(token: CancelToken) -> None:
            await handlers.run_slot_status(session, token, decoder)

        jobs.append(("slot_status", slots))
    return jobs


async def run(args: argparse.Namespace, settings: StreamerSettings, decoder: Decoder) -> int:
    token = CancelToken()
    _install_signal_handlers(token)

    sig_logger: SignatureLogger | None = None
    if args.command in ("transactions", "all"):
        try:
            sig_logger = SignatureLogger(settings.signature_log_path())
        except SignatureLogError as e:
            logger.error("signature_log_open_failed", error=str(e))
            return 1

    try:
        try:
            session = await connect_with_retry(settings.endpoint(), token)
        except OperationCancelledError:
            return 0
        except RetriesExhaustedError as e:
            logger.error("main_connect_failed", attempts=e.attempts, error=str(e))
            return 1

        try:
            jobs = _jobs(args, settings, session, decoder, sig_logger)
            results = await asyncio.gather(
                *(
                    SubscriptionSupervisor(name).run(token, fn)
                    for name, fn in jobs
                )
            )
        finally:
            await session.close()
    finally:
        if sig_logger is not None:
            sig_logger.close()

    failures = [r for r in results if r is not None]
    logger.info("main_stopped", subscriptions=len(jobs), failures=len(failures), shutdown=token.cancelled)
    return 1 if failures and not token.cancelled else 0


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = load_settings(args.config).validate()
        decoder = make_decoder(load_wrapper_class(settings.events_module))
    except ConfigError as e:
        logger.error("main_config_error", error=str(e))
        return 1
    logger.info(
        "main_starting",
        command=args.command,
        server_address=settings.server_address,
        max_retries=settings.max_retries,
    )
    try:
        return asyncio.run(run(args, settings, decoder))
    except KeyboardInterrupt:
        logger.info("main_keyboard_interrupt")
        return 0


if __name__ == "__main__":
    sys.exit(main())
