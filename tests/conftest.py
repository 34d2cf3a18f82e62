"""Shared test fixtures."""

import asyncio
from collections.abc import Callable

import pytest

from dlt645_client.core.exceptions import NotConnectedError
from dlt645_client.protocol.constants import ControlCode
from dlt645_client.protocol.frames import Frame
from dlt645_client.transport.base import Transport

# Address used by all tests
DEVICE_ADDRESS = "202204080026"
TOTAL_ENERGY = b"\x00\x01\x00\x00"  # DI3..DI0 of the total active energy item


def make_reply(
    identifier: bytes = TOTAL_ENERGY,
    payload: bytes = b"",
    control: int = ControlCode.READ_DATA_REPLY,
    address: str = DEVICE_ADDRESS,
) -> bytes:
    """Serialized reply frame as a meter would send it."""
    return Frame(address=address, control=control, identifier=identifier, payload=payload).to_bytes()


def echo_reply(request: bytes) -> bytes:
    """Answer any read request with its own identifier and payload."""
    frame = Frame.from_bytes(request)
    return make_reply(identifier=frame.identifier, payload=frame.payload, address=frame.address)


class FakeTransport(Transport):
    """In-memory transport exposing connection-state probes.

    ``responder`` maps request bytes to reply bytes; returning an exception
    instance raises it from ``send``.
    """

    def __init__(self, responder: Callable[[bytes], bytes | Exception] = echo_reply, delay: float = 0.0):
        self.responder = responder
        self.delay = delay
        self.sent: list[bytes] = []
        self.connect_count = 0
        self.close_count = 0
        self.in_flight = 0
        self.max_in_flight = 0
        self._connected = False

    @property
    def connected(self) -> bool:
        return self._connected

    async def connect(self) -> None:
        if self._connected:
            return
        self._connected = True
        self.connect_count += 1

    async def close(self) -> None:
        if not self._connected:
            return
        self._connected = False
        self.close_count += 1

    async def send(self, data: bytes) -> bytes:
        if not self._connected:
            raise NotConnectedError("fake transport not connected")

        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            self.sent.append(data)
            await asyncio.sleep(self.delay)
            result = self.responder(data)
            if isinstance(result, Exception):
                raise result
            return result
        finally:
            self.in_flight -= 1


@pytest.fixture
def fake_transport() -> FakeTransport:
    """Connected-on-demand transport that echoes read requests."""
    return FakeTransport()
