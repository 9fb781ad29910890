"""
Program id extraction from decoded transactions.

Merges every encoding of "which programs did this transaction touch" into
one set of base58 strings:

1. every account key of the message (broad: non-program accounts match too,
   kept for compatibility with existing filter lists);
2. every instruction's program index resolved against the account keys;
3. loaded addresses of v0 messages (writable and readonly);
4. ``Program <id> invoke [n]`` log lines, which also cover programs invoked
   via CPI that never appear in the account keys.

Purely structural; no network or logging.
"""

from __future__ import annotations

from thor_streamer.stream.models import DecodedTransaction, TransactionMessage, encode_key

LOG_PROGRAM_PREFIX = "Program "
LOG_INVOKE_MARKER = "invoke ["


def _instruction_program_ids(message: TransactionMessage) -> list[str]:
    """Resolve programIdIndex -> account key; out-of-range indices are skipped."""
    keys = message.account_keys
    out: list[str] = []
    for ix in message.instructions:
        idx = ix.program_id_index
        if 0 <= idx < len(keys):
            out.append(encode_key(keys[idx]))
    return out


def program_id_from_log(line: str) -> str | None:
    """
    Return the invoked program id from one log line, or None.

    The line must contain "Program " followed later by "invoke ["; the id is
    the token right after "Program " up to the next space.
    """
    start = line.find(LOG_PROGRAM_PREFIX)
    if start < 0:
        return None
    rest = line[start + len(LOG_PROGRAM_PREFIX):]
    if LOG_INVOKE_MARKER not in rest:
        return None
    token = rest.split(" ", 1)[0]
    return token or None


def instruction_program_ids(tx: DecodedTransaction) -> list[str]:
    """Program ids referenced by the top-level instructions, in instruction order."""
    if tx.message is None:
        return []
    return _instruction_program_ids(tx.message)


def extract_program_ids(tx: DecodedTransaction) -> frozenset[str]:
    """Return every program id the transaction references (see module docstring)."""
    ids: set[str] = set()
    msg = tx.message
    if msg is not None:
        ids.update(encode_key(k) for k in msg.account_keys)
        ids.update(_instruction_program_ids(msg))
        if msg.loaded_addresses is not None:
            ids.update(encode_key(k) for k in msg.loaded_addresses.writable)
            ids.update(encode_key(k) for k in msg.loaded_addresses.readonly)
    for line in tx.log_messages:
        pid = program_id_from_log(line)
        if pid is not None:
            ids.add(pid)
    return frozenset(ids)
