"""
Transaction filtering: program id extraction and the accept/reject filter.
"""

from thor_streamer.filters.program_ids import extract_program_ids, program_id_from_log
from thor_streamer.filters.transaction_filter import FilterConfig, TransactionFilter

__all__ = [
    "FilterConfig",
    "TransactionFilter",
    "extract_program_ids",
    "program_id_from_log",
]
