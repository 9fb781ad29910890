"""
Structured logging for thor_streamer.

JSON logs with timestamp, event_type and per-call fields.
Use get_logger() in every module.
"""

from thor_streamer.streamer_logging.logger import bind_subscription, get_logger

__all__ = ["bind_subscription", "get_logger"]
