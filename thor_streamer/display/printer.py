"""
Human-readable rendering of decoded events for the terminal.

Formatters return strings so callers (and tests) can route them anywhere;
print_event() writes to stdout.
"""

from __future__ import annotations

import sys
from typing import TextIO

from thor_streamer.stream.models import (
    VERSION_LEGACY,
    VERSION_V0,
    AccountUpdateEvent,
    DecodedTransaction,
    SlotEvent,
    StreamEvent,
    TransactionEvent,
    encode_key,
)

LAMPORTS_PER_SOL = 1_000_000_000


def lamports_to_sol(lamports: int) -> str:
    return f"{lamports / LAMPORTS_PER_SOL:.9f}"


def format_status(is_err: bool, error_info: str | None = None) -> str:
    if is_err:
        return f"Failed ({error_info})" if error_info else "Failed"
    return "Success"


def transaction_version_string(version: int) -> str:
    if version == VERSION_LEGACY:
        return "Legacy"
    if version == VERSION_V0:
        return "V0"
    return f"Unknown Version({version})"


def format_transaction(tx: DecodedTransaction) -> str:
    lines = [
        f"Transaction: {tx.signature_str}",
        f"├─ Slot: {tx.slot}",
    ]
    if tx.message is not None:
        lines.append(f"├─ Version: {transaction_version_string(tx.message.version)}")
    lines.append(f"├─ Success: {tx.succeeded}")
    if tx.log_messages:
        lines.append("├─ Log Messages:")
        lines.extend(f"│  └─ {msg}" for msg in tx.log_messages)
    lines.append("└─ End Transaction")
    return "\n".join(lines)


def format_detailed_transaction(tx: DecodedTransaction) -> str:
    lines = [
        "Wallet Transaction Details:",
        f"├─ Signature: {tx.signature_str}",
        f"├─ Slot: {tx.slot}",
        f"├─ Is Vote Transaction: {tx.is_vote}",
    ]
    msg = tx.message
    if msg is not None:
        lines.append(f"├─ Transaction Version: {transaction_version_string(msg.version)}")
        lines.append(f"├─ Account Keys: {len(msg.account_keys)}")
        for i, key in enumerate(msg.account_keys):
            lines.append(f"│  ├─ [{i}] {encode_key(key)}")
        lines.append(f"├─ Instructions: {len(msg.instructions)}")
        for i, ix in enumerate(msg.instructions):
            lines.append(f"│  ├─ Instruction {i}:")
            lines.append(f"│  │  ├─ Program ID Index: {ix.program_id_index}")
            lines.append(f"│  │  ├─ Account Indexes: {list(ix.accounts)}")
            lines.append(f"│  │  └─ Data: {encode_key(ix.data)}")
    status = tx.status
    if status is not None:
        lines.append("├─ Status Metadata:")
        lines.append(f"│  ├─ Status: {format_status(status.is_err, status.error_info)}")
        lines.append(f"│  ├─ Fee: {lamports_to_sol(status.fee)} SOL")
        changes = [
            (i, pre, post)
            for i, (pre, post) in enumerate(zip(status.pre_balances, status.post_balances))
            if post != pre
        ]
        if changes:
            lines.append("│  ├─ Balance Changes:")
            for i, pre, post in changes:
                lines.append(
                    f"│  │  ├─ Account {i}: {lamports_to_sol(pre)} SOL → "
                    f"{lamports_to_sol(post)} SOL (Δ {lamports_to_sol(abs(post - pre))} SOL)"
                )
    if tx.log_messages:
        lines.append("│  ├─ Log Messages:")
        lines.extend(f"│  │  ├─ [{i}] {m}" for i, m in enumerate(tx.log_messages))
    lines.append("└─ End Transaction")
    return "\n".join(lines)


def format_slot_status(slot: SlotEvent) -> str:
    lines = [
        "Slot Status:",
        f"├─ Slot: {slot.slot}",
        f"├─ Parent: {slot.parent}",
        f"├─ Status: {slot.status_name}",
    ]
    if slot.block_hash:
        lines.append(f"├─ Block Hash: {encode_key(slot.block_hash)}")
    lines.append(f"└─ Block Height: {slot.block_height}")
    return "\n".join(lines)


def format_account_update(acc: AccountUpdateEvent) -> str:
    lines = [
        "Account Update:",
        f"├─ Address: {encode_key(acc.pubkey)}",
        f"├─ Owner: {encode_key(acc.owner)}",
        f"├─ Balance: {lamports_to_sol(acc.lamports)} SOL",
        f"├─ Executable: {acc.executable}",
        f"├─ Rent Epoch: {acc.rent_epoch}",
        f"├─ Write Version: {acc.write_version}",
    ]
    if acc.txn_signature:
        lines.append(f"├─ Transaction Signature: {encode_key(acc.txn_signature)}")
    if acc.slot is not None:
        lines.append(f"├─ Slot: {acc.slot.slot}")
        lines.append(f"├─ Parent: {acc.slot.parent}")
        lines.append(f"├─ Status: {acc.slot.status_name}")
        lines.append(f"└─ Block Height: {acc.slot.block_height}")
    else:
        lines.append("└─ Slot: N/A")
    return "\n".join(lines)


def format_event(event: StreamEvent, *, detailed: bool = False) -> str:
    if isinstance(event, TransactionEvent):
        if detailed:
            return format_detailed_transaction(event.transaction)
        return format_transaction(event.transaction)
    if isinstance(event, SlotEvent):
        return format_slot_status(event)
    return format_account_update(event)


def print_event(event: StreamEvent, *, detailed: bool = False, out: TextIO | None = None) -> None:
    stream = out or sys.stdout
    stream.write(format_event(event, detailed=detailed) + "\n\n")
    stream.flush()
