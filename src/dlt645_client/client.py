"""DL/T 645 client.

Builds request frames for one meter, runs them through a Connection and
decodes the replies.
"""

import logging

from dlt645_client.core.config import Settings, TransportType
from dlt645_client.core.exceptions import ProtocolError
from dlt645_client.protocol.address import encode_address
from dlt645_client.protocol.constants import MAX_FOLLOW_UP_FRAMES, ControlCode
from dlt645_client.protocol.frames import Frame
from dlt645_client.transport.base import Transport
from dlt645_client.transport.connection import Connection
from dlt645_client.transport.serial_port import SerialTransport
from dlt645_client.transport.tcp import TcpTransport

logger = logging.getLogger(__name__)


def create_transport(settings: Settings) -> Transport:
    """Create the backend selected by ``settings.transport``."""
    if settings.transport == TransportType.TCP:
        return TcpTransport(settings.endpoint, timeout=settings.timeout)

    return SerialTransport(
        port=settings.endpoint,
        baudrate=settings.baud_rate,
        bytesize=settings.data_bits,
        parity=settings.parity,
        stopbits=settings.stop_bits,
        timeout=settings.timeout,
        rs485=settings.rs485,
    )


class Client:
    """Reads data items from a single meter."""

    def __init__(self, connection: Connection, device_address: str):
        """
        Initialize client.

        Args:
            connection: Connection to the meter's bus or socket
            device_address: 12-digit meter address

        Raises:
            InvalidAddressError: If the address is not 12 decimal digits
        """
        encode_address(device_address)
        self.connection = connection
        self.device_address = device_address

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "Client":
        """Create a client and its transport from settings (environment defaults if omitted)."""
        settings = settings or Settings()
        connection = Connection(create_transport(settings), idle_timeout=settings.idle_timeout)
        return cls(connection, settings.device_address)

    async def read(self, control: int, identifier: bytes, payload: bytes = b"") -> Frame:
        """
        Send one request frame and return the decoded reply.

        Args:
            control: Request control code
            identifier: Data identifier in caller order (e.g. b'\\x00\\x01\\x00\\x00')
            payload: Optional request data

        Returns:
            Decoded reply frame

        Raises:
            DLT645Error: Any codec, protocol or transport error
        """
        request = Frame.build(self.device_address, control, identifier, payload)
        response = await self.connection.send(request.to_bytes())
        frame = Frame.from_bytes(response)

        if frame.address != self.device_address:
            logger.warning("Reply from %s, expected %s", frame.address, self.device_address)

        return frame

    async def read_data(self, identifier: bytes) -> Frame:
        """Read one data item (control code 0x11)."""
        return await self.read(ControlCode.READ_DATA, identifier)

    async def read_follow_up(self, identifier: bytes, sequence: int) -> Frame:
        """Request follow-up frame ``sequence`` of a data item (control code 0x12)."""
        return await self.read(ControlCode.READ_FOLLOW_UP, identifier, bytes([sequence & 0xFF]))

    async def read_all(self, identifier: bytes, max_frames: int = MAX_FOLLOW_UP_FRAMES) -> list[Frame]:
        """
        Read a data item including all follow-up frames.

        Args:
            identifier: Data identifier in caller order
            max_frames: Upper bound on the number of replies collected

        Returns:
            Reply frames in the order received

        Raises:
            ProtocolError: If the meter still reports more data after ``max_frames``
        """
        frames = [await self.read_data(identifier)]
        while frames[-1].has_more:
            if len(frames) >= max_frames:
                raise ProtocolError(
                    control=frames[-1].control,
                    message=f"meter still has data after {max_frames} frames for {identifier.hex()}",
                )
            frames.append(await self.read_follow_up(identifier, len(frames)))

        return frames

    async def connect(self) -> None:
        """Open the channel eagerly."""
        await self.connection.connect()

    async def close(self) -> None:
        """Release the connection. Safe to call repeatedly."""
        await self.connection.close()

    async def __aenter__(self):
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
