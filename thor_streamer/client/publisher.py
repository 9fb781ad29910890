"""
EventPublisher wire surface: request/response messages and streaming calls.

The publisher exposes four server-streaming RPCs. Each response is a
StreamResponse whose `data` field holds an encoded MessageWrapper; decoding
that payload is the decoder's job (thor_streamer.stream.decoder).

The three small publisher messages are built at import time from a
FileDescriptorProto so no generated module is needed for the transport.
"""

from __future__ import annotations

from typing import Any, Iterable

import grpc
from google.protobuf import descriptor_pb2, descriptor_pool, empty_pb2, message_factory

from thor_streamer.core.exceptions import StreamEndedError

SERVICE = "publisher.EventPublisher"
SUBSCRIBE_TRANSACTIONS = f"/{SERVICE}/SubscribeToTransactions"
SUBSCRIBE_SLOT_STATUS = f"/{SERVICE}/SubscribeToSlotStatus"
SUBSCRIBE_WALLET_TRANSACTIONS = f"/{SERVICE}/SubscribeToWalletTransactions"
SUBSCRIBE_ACCOUNT_UPDATES = f"/{SERVICE}/SubscribeToAccountUpdates"

AUTH_METADATA_KEY = "authorization"

_F = descriptor_pb2.FieldDescriptorProto


def _publisher_file() -> descriptor_pb2.FileDescriptorProto:
    fdp = descriptor_pb2.FileDescriptorProto(
        name="thor_streamer/publisher.proto",
        package="publisher",
        syntax="proto3",
    )
    resp = fdp.message_type.add(name="StreamResponse")
    resp.field.add(name="data", json_name="data", number=1, type=_F.TYPE_BYTES, label=_F.LABEL_OPTIONAL)

    wallet = fdp.message_type.add(name="SubscribeWalletRequest")
    wallet.field.add(
        name="wallet_address", json_name="walletAddress", number=1,
        type=_F.TYPE_STRING, label=_F.LABEL_REPEATED,
    )

    accounts = fdp.message_type.add(name="SubscribeAccountsRequest")
    accounts.field.add(
        name="account_address", json_name="accountAddress", number=1,
        type=_F.TYPE_STRING, label=_F.LABEL_REPEATED,
    )
    accounts.field.add(
        name="owner_address", json_name="ownerAddress", number=2,
        type=_F.TYPE_STRING, label=_F.LABEL_REPEATED,
    )
    return fdp


_POOL = descriptor_pool.DescriptorPool()
_POOL.AddSerializedFile(_publisher_file().SerializeToString())

StreamResponse = message_factory.GetMessageClass(
    _POOL.FindMessageTypeByName("publisher.StreamResponse")
)
SubscribeWalletRequest = message_factory.GetMessageClass(
    _POOL.FindMessageTypeByName("publisher.SubscribeWalletRequest")
)
SubscribeAccountsRequest = message_factory.GetMessageClass(
    _POOL.FindMessageTypeByName("publisher.SubscribeAccountsRequest")
)


class Subscription:
    """
    One server-streaming call. Exactly one reader at a time.

    recv() returns the raw MessageWrapper payload of the next response and
    raises StreamEndedError once the server closes the stream.
    """

    def __init__(self, call: Any, name: str) -> None:
        self._call = call
        self._name = name
        self._reading = False

    @property
    def name(self) -> str:
        return self._name

    async def recv(self) -> bytes:
        if self._reading:
            raise RuntimeError(f"subscription {self._name} already has an active reader")
        self._reading = True
        try:
            resp = await self._call.read()
        finally:
            self._reading = False
        if resp is grpc.aio.EOF:
            raise StreamEndedError(f"{self._name} stream ended")
        return bytes(resp.data)

    def cancel(self) -> None:
        self._call.cancel()


class EventPublisher:
    """Client for publisher.EventPublisher bound to one channel and auth token."""

    def __init__(self, channel: grpc.aio.Channel, auth_token: str) -> None:
        self._metadata = ((AUTH_METADATA_KEY, auth_token),)
        deserialize = StreamResponse.FromString
        self._transactions = channel.unary_stream(
            SUBSCRIBE_TRANSACTIONS,
            request_serializer=empty_pb2.Empty.SerializeToString,
            response_deserializer=deserialize,
        )
        self._slots = channel.unary_stream(
            SUBSCRIBE_SLOT_STATUS,
            request_serializer=empty_pb2.Empty.SerializeToString,
            response_deserializer=deserialize,
        )
        self._wallets = channel.unary_stream(
            SUBSCRIBE_WALLET_TRANSACTIONS,
            request_serializer=SubscribeWalletRequest.SerializeToString,
            response_deserializer=deserialize,
        )
        self._accounts = channel.unary_stream(
            SUBSCRIBE_ACCOUNT_UPDATES,
            request_serializer=SubscribeAccountsRequest.SerializeToString,
            response_deserializer=deserialize,
        )

    def subscribe_transactions(self) -> Subscription:
        call = self._transactions(empty_pb2.Empty(), metadata=self._metadata)
        return Subscription(call, "transactions")

    def subscribe_slot_status(self) -> Subscription:
        call = self._slots(empty_pb2.Empty(), metadata=self._metadata)
        return Subscription(call, "slot_status")

    def subscribe_wallet_transactions(self, wallets: Iterable[str]) -> Subscription:
        req = SubscribeWalletRequest(wallet_address=list(wallets))
        call = self._wallets(req, metadata=self._metadata)
        return Subscription(call, "wallet_transactions")

    def subscribe_account_updates(
        self,
        accounts: Iterable[str] = (),
        owners: Iterable[str] = (),
    ) -> Subscription:
        req = SubscribeAccountsRequest(account_address=list(accounts), owner_address=list(owners))
        call = self._accounts(req, metadata=self._metadata)
        return Subscription(call, "account_updates")
