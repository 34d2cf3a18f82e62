"""Transport interface and the shared asyncio-stream implementation."""

import asyncio
import logging
from abc import ABC, abstractmethod

from dlt645_client.core.exceptions import NotConnectedError, TransportError, TransportTimeoutError
from dlt645_client.protocol.constants import DEFAULT_TIMEOUT
from dlt645_client.transport.reader import FrameReader

logger = logging.getLogger(__name__)


class Transport(ABC):
    """Exclusive byte channel to a meter: write one request, read one reply frame."""

    @property
    @abstractmethod
    def connected(self) -> bool:
        """Check if the channel is open."""

    @abstractmethod
    async def connect(self) -> None:
        """Open the channel. No-op if already open."""

    @abstractmethod
    async def close(self) -> None:
        """Release the channel. No-op if already closed."""

    @abstractmethod
    async def send(self, data: bytes) -> bytes:
        """Write a request and return the raw bytes of the reply frame."""


class StreamTransport(Transport):
    """Transport over an asyncio StreamReader/StreamWriter pair.

    Subclasses only provide ``_open()``; request/response handling,
    deadlines and teardown are shared between the serial and TCP backends.
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT):
        """
        Initialize stream transport.

        Args:
            timeout: Deadline in seconds for connecting and for each reply
                (0 or negative waits indefinitely)
        """
        self.timeout = timeout

        self._reader: FrameReader | None = None
        self._writer: asyncio.StreamWriter | None = None

    @property
    def name(self) -> str:
        """Human-readable endpoint for log messages."""
        return self.__class__.__name__

    @property
    def connected(self) -> bool:
        """Check if currently connected."""
        return self._writer is not None and not self._writer.is_closing()

    @property
    def _deadline(self) -> float | None:
        return self.timeout if self.timeout > 0 else None

    @abstractmethod
    async def _open(self) -> tuple[asyncio.StreamReader, asyncio.StreamWriter]:
        """Open the underlying channel.

        Raises:
            ConnectError: If the channel cannot be established
        """

    async def connect(self) -> None:
        """
        Open the channel.

        Raises:
            ConnectError: If the channel cannot be established
        """
        if self.connected:
            logger.debug("Already connected to %s", self.name)
            return

        stream, self._writer = await self._open()
        self._reader = FrameReader(stream)
        logger.info("Connected to %s", self.name)

    async def close(self) -> None:
        """Close the channel."""
        if self._writer is None:
            return

        logger.info("Disconnecting from %s", self.name)
        writer = self._writer
        self._writer = None
        self._reader = None

        try:
            writer.close()
            await writer.wait_closed()
        except OSError as e:
            logger.warning("Error closing %s: %s", self.name, e)

    async def send(self, data: bytes) -> bytes:
        """
        Write a request and wait for one complete reply frame.

        Args:
            data: Serialized request frame

        Returns:
            Raw reply frame bytes

        Raises:
            NotConnectedError: If the channel is not open
            TransportTimeoutError: If no complete frame arrives within ``timeout``
            TransportError: On any other I/O failure
        """
        reader, writer = self._reader, self._writer
        if not self.connected or reader is None or writer is None:
            raise NotConnectedError(f"Not connected to {self.name}")

        # Leftovers belong to an earlier exchange
        reader.reset_buffer()

        try:
            reply = await asyncio.wait_for(self._exchange(reader, writer, data), timeout=self._deadline)
        except TimeoutError:
            logger.warning("No reply from %s within %ss", self.name, self.timeout)
            await self.close()
            raise TransportTimeoutError(f"no reply from {self.name} within {self.timeout}s") from None
        except TransportError as e:
            logger.error("Read error on %s: %s", self.name, e)
            await self.close()
            raise
        except OSError as e:
            logger.error("I/O error on %s: %s", self.name, e)
            await self.close()
            raise TransportError(str(e)) from e

        return reply

    async def _exchange(self, reader: FrameReader, writer: asyncio.StreamWriter, data: bytes) -> bytes:
        logger.debug("dlt645: sending %s", data.hex(" "))
        writer.write(data)
        await writer.drain()

        reply = await reader.read_frame()
        logger.debug("dlt645: received %s", reply.hex(" "))
        return reply
