"""
thor_streamer: resilient streaming client for a ThorStreamer Solana event publisher.

Keeps long-lived gRPC subscriptions (transactions, wallet transactions,
account updates, slot status) open with retrying connects and supervised
receive loops, filters transactions by program id and records accepted
signatures to an append-only JSON lines log.
"""

__version__ = "0.1.0"
