"""
Transport client: connector, publisher surface and subscription supervisor.
"""

from thor_streamer.client.connector import (
    EndpointConfig,
    RetryState,
    Session,
    connect_with_retry,
    open_grpc_session,
)
from thor_streamer.client.publisher import EventPublisher, Subscription
from thor_streamer.client.supervisor import SubscriptionSupervisor, is_cancellation

__all__ = [
    "EndpointConfig",
    "EventPublisher",
    "RetryState",
    "Session",
    "Subscription",
    "SubscriptionSupervisor",
    "connect_with_retry",
    "is_cancellation",
    "open_grpc_session",
]
