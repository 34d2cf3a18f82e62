"""Connection lifecycle: exclusive access, lazy connect and idle disconnect."""

import asyncio
import logging

from dlt645_client.core.exceptions import NotConnectedError
from dlt645_client.protocol.constants import DEFAULT_IDLE_TIMEOUT
from dlt645_client.transport.base import Transport

logger = logging.getLogger(__name__)


class Connection:
    """Serializes request/response cycles over one Transport.

    The channel is opened on the first send and closed again by a background
    timer once it has been idle for ``idle_timeout`` seconds. Both paths take
    the same lock, so an idle close can never interrupt an exchange.
    """

    def __init__(self, transport: Transport, idle_timeout: float = DEFAULT_IDLE_TIMEOUT):
        """
        Initialize connection.

        Args:
            transport: Backend that performs the actual I/O
            idle_timeout: Seconds of inactivity before the channel is closed
                (0 or negative keeps it open until ``close()``)
        """
        self.transport = transport
        self.idle_timeout = idle_timeout

        self._lock = asyncio.Lock()
        self._idle_task: asyncio.Task | None = None
        self._last_activity = 0.0
        self._closed = False

    @property
    def connected(self) -> bool:
        """Check if the underlying channel is open."""
        return self.transport.connected

    @property
    def closed(self) -> bool:
        """True once ``close()`` has been called."""
        return self._closed

    async def connect(self) -> None:
        """
        Open the channel now instead of on the first send.

        Raises:
            NotConnectedError: If the connection has been closed
            ConnectError: If the channel cannot be established
        """
        async with self._lock:
            await self._ensure_connected()
            self._touch()

    async def send(self, data: bytes) -> bytes:
        """
        Run one request/response cycle.

        Args:
            data: Serialized request frame

        Returns:
            Raw reply frame bytes

        Raises:
            NotConnectedError: If the connection has been closed
            ConnectError: If the channel cannot be established
            TransportError: On I/O failure or timeout (not retried)
        """
        async with self._lock:
            await self._ensure_connected()
            self._touch()
            try:
                return await self.transport.send(data)
            finally:
                # A slow exchange must not count towards idle time
                self._last_activity = asyncio.get_running_loop().time()

    async def close(self) -> None:
        """Close the channel and stop the idle timer. Safe to call repeatedly."""
        async with self._lock:
            self._closed = True
            self._cancel_idle_timer()
            await self.transport.close()

    async def _ensure_connected(self) -> None:
        if self._closed:
            raise NotConnectedError("Connection has been closed")
        if not self.transport.connected:
            await self.transport.connect()

    def _touch(self) -> None:
        """Record activity and re-arm the idle timer."""
        self._last_activity = asyncio.get_running_loop().time()
        if self.idle_timeout <= 0:
            return
        self._cancel_idle_timer()
        self._idle_task = asyncio.create_task(self._idle_watch())

    def _cancel_idle_timer(self) -> None:
        if self._idle_task is not None:
            self._idle_task.cancel()
            self._idle_task = None

    async def _idle_watch(self) -> None:
        """Close the channel once it has been idle for ``idle_timeout``."""
        loop = asyncio.get_running_loop()
        delay = self.idle_timeout
        while True:
            await asyncio.sleep(delay)
            async with self._lock:
                # Activity may have happened while waiting for the lock
                idle = loop.time() - self._last_activity
                if idle < self.idle_timeout:
                    delay = self.idle_timeout - idle
                    continue

                self._idle_task = None
                if self.transport.connected:
                    logger.info("Closing connection due to idle timeout: %.3fs", idle)
                    await self.transport.close()
                return

    async def __aenter__(self):
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
