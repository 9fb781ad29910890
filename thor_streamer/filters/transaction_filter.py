"""
Transaction filter: vote / failure gates plus a program-id allow-list.

FilterConfig is frozen and its program-id set is a frozenset, so one
TransactionFilter can be shared by every receive loop without locking.
Changing the allow-list means building a new filter.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from thor_streamer.filters.program_ids import extract_program_ids, instruction_program_ids
from thor_streamer.stream.models import DecodedTransaction

UNKNOWN_PROGRAM_ID = "unknown"


@dataclass(frozen=True)
class FilterConfig:
    """
    Interest set for the filtered transaction stream.

    program_ids: base58 program ids; empty accepts every program.
    include_vote: keep vote transactions.
    include_failed: keep transactions whose status is an error.
    """

    program_ids: frozenset[str] = field(default_factory=frozenset)
    include_vote: bool = False
    include_failed: bool = False

    def __post_init__(self) -> None:
        # Any iterable is accepted; the stored value is always a private frozenset.
        object.__setattr__(self, "program_ids", frozenset(self.program_ids))

    @classmethod
    def build(
        cls,
        program_ids: Iterable[str] = (),
        *,
        include_vote: bool = False,
        include_failed: bool = False,
    ) -> FilterConfig:
        """Strip whitespace and drop empty entries before freezing the set."""
        ids = frozenset(p.strip() for p in program_ids if p and p.strip())
        return cls(program_ids=ids, include_vote=include_vote, include_failed=include_failed)


class TransactionFilter:
    """Accept/reject decisions for decoded transactions. Read-only after construction."""

    def __init__(self, config: FilterConfig) -> None:
        self._config = config

    @property
    def config(self) -> FilterConfig:
        return self._config

    def wants_transaction(self, tx: DecodedTransaction) -> bool:
        cfg = self._config
        if tx.is_vote and not cfg.include_vote:
            return False
        if tx.failed and not cfg.include_failed:
            return False
        if not cfg.program_ids:
            return True
        return not cfg.program_ids.isdisjoint(extract_program_ids(tx))

    def primary_program_id(self, tx: DecodedTransaction) -> str:
        """
        Program id recorded for an accepted transaction in the signature log.

        Prefers the first top-level instruction whose program is in the
        allow-list, then the smallest matched id; without an allow-list the
        first instruction's program. Falls back to "unknown".
        """
        wanted = self._config.program_ids
        ix_programs = instruction_program_ids(tx)
        if wanted:
            for pid in ix_programs:
                if pid in wanted:
                    return pid
            matched = wanted.intersection(extract_program_ids(tx))
            if matched:
                return min(matched)
            return UNKNOWN_PROGRAM_ID
        if ix_programs:
            return ix_programs[0]
        return UNKNOWN_PROGRAM_ID
