"""
Tests for program id extraction (program_ids.extract_program_ids).

Transactions are built directly from the frozen models: account keys,
compiled instructions, v0 loaded addresses and log lines.
"""

from __future__ import annotations

from thor_streamer.filters.program_ids import (
    extract_program_ids,
    instruction_program_ids,
    program_id_from_log,
)
from thor_streamer.stream.models import (
    VERSION_V0,
    CompiledInstruction,
    DecodedTransaction,
    LoadedAddresses,
    TransactionMessage,
    encode_key,
)

KEY_A = bytes([1]) * 32
KEY_B = bytes([2]) * 32
KEY_C = bytes([3]) * 32
KEY_D = bytes([4]) * 32
KEY_E = bytes([5]) * 32
A, B, C, D, E = (encode_key(k) for k in (KEY_A, KEY_B, KEY_C, KEY_D, KEY_E))
SIG = bytes([9]) * 64


def _tx(
    keys: list[bytes],
    program_indexes: list[int] = (),
    loaded: LoadedAddresses | None = None,
    logs: list[str] = (),
    version: int = 0,
) -> DecodedTransaction:
    msg = TransactionMessage(
        account_keys=tuple(keys),
        instructions=tuple(CompiledInstruction(program_id_index=i) for i in program_indexes),
        loaded_addresses=loaded,
        version=version,
    )
    return DecodedTransaction(signature=SIG, slot=1, message=msg, log_messages=tuple(logs))


def test_extract_merges_keys_instructions_loaded_and_logs():
    """[A, B, C] + ix index 1 + writable [D] + 'Program E invoke [1]' -> {A, B, C, D, E}."""
    tx = _tx(
        [KEY_A, KEY_B, KEY_C],
        program_indexes=[1],
        loaded=LoadedAddresses(writable=(KEY_D,)),
        logs=[f"Program {E} invoke [1]"],
        version=VERSION_V0,
    )
    assert extract_program_ids(tx) == {A, B, C, D, E}


def test_extract_includes_readonly_loaded_addresses():
    tx = _tx([KEY_A], loaded=LoadedAddresses(readonly=(KEY_E,)), version=VERSION_V0)
    assert extract_program_ids(tx) == {A, E}


def test_out_of_range_program_index_is_skipped():
    """Index 99 with 3 keys: no error and nothing added for that instruction."""
    tx = _tx([KEY_A, KEY_B, KEY_C], program_indexes=[99])
    assert extract_program_ids(tx) == {A, B, C}
    assert instruction_program_ids(tx) == []


def test_extract_is_order_independent():
    """Permuting account keys and re-indexing instructions gives the same set."""
    original = _tx([KEY_A, KEY_B, KEY_C], program_indexes=[2, 0])
    permuted = _tx([KEY_C, KEY_A, KEY_B], program_indexes=[0, 1])
    assert extract_program_ids(original) == extract_program_ids(permuted)


def test_empty_transaction_yields_empty_set():
    tx = DecodedTransaction(signature=SIG, slot=1)
    assert extract_program_ids(tx) == frozenset()


def test_logs_only_transaction():
    tx = DecodedTransaction(
        signature=SIG,
        slot=1,
        log_messages=(
            f"Program {D} invoke [1]",
            "Program log: Instruction: Transfer",
            f"Program {D} consumed 2000 of 200000 compute units",
            f"Program {D} success",
        ),
    )
    assert extract_program_ids(tx) == {D}


def test_account_keys_over_match_non_program_accounts():
    """Step 1 is broad on purpose: a plain wallet key is reported as a 'program id'."""
    wallet = bytes([42]) * 32
    tx = _tx([wallet, KEY_A], program_indexes=[1])
    assert encode_key(wallet) in extract_program_ids(tx)


def test_program_id_from_log_variants():
    assert program_id_from_log("Program Abc invoke [2]") == "Abc"
    assert program_id_from_log("> Program Xyz invoke [1]") == "Xyz"
    assert program_id_from_log("Program log: hello") is None
    assert program_id_from_log("Program Abc success") is None
    assert program_id_from_log("invoke [1] before Program Abc") is None
    assert program_id_from_log("Program  invoke [1]") is None
