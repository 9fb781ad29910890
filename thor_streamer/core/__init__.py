"""
Core utilities shared by the connector, supervisor and receive loops.

Provides the exception taxonomy and the CancelToken shutdown signal.
"""

from thor_streamer.core.cancellation import CancelToken
from thor_streamer.core.exceptions import (
    ConfigError,
    DecodeError,
    OperationCancelledError,
    RetriesExhaustedError,
    SignatureLogError,
    SignatureLoggerClosedError,
    StreamEndedError,
    ThorStreamerError,
)

__all__ = [
    "CancelToken",
    "ConfigError",
    "DecodeError",
    "OperationCancelledError",
    "RetriesExhaustedError",
    "SignatureLogError",
    "SignatureLoggerClosedError",
    "StreamEndedError",
    "ThorStreamerError",
]
