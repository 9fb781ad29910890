"""
Application-level exceptions.

Every error the client raises derives from ThorStreamerError so callers can
separate client failures from programming errors. Cancellation has its own
type because it is never reported as a failure.
"""

from __future__ import annotations


class ThorStreamerError(Exception):
    """Base class for client errors."""


class ConfigError(ThorStreamerError):
    """Missing or invalid configuration."""


class OperationCancelledError(ThorStreamerError):
    """The shutdown signal fired before the operation completed."""


class RetriesExhaustedError(ThorStreamerError):
    """Every connect attempt failed."""

    def __init__(self, attempts: int, last_error: BaseException | None = None) -> None:
        self.attempts = attempts
        self.last_error = last_error
        msg = f"failed to connect after {attempts} attempts"
        if last_error is not None:
            msg += f": {last_error}"
        super().__init__(msg)


class StreamEndedError(ThorStreamerError):
    """The server closed a subscription stream."""


class DecodeError(ThorStreamerError):
    """A stream payload could not be decoded; the message is skipped."""


class SignatureLogError(ThorStreamerError):
    """Writing to or closing the signature log failed."""


class SignatureLoggerClosedError(SignatureLogError):
    """log_signature() was called after close()."""
