"""Async frame reader for DL/T 645 byte streams."""

import asyncio
import logging

from dlt645_client.core.exceptions import TransportError
from dlt645_client.protocol.constants import (
    CONTROL_OFFSET,
    END_FRAME,
    FRAME_MIN_LEN,
    LENGTH_OFFSET,
    READ_CHUNK_SIZE,
    REPLY_FLAG,
    SECOND_START_OFFSET,
    START_FRAME,
)

logger = logging.getLogger(__name__)


class FrameReader:
    """Reassembles complete raw frames from a stream that may deliver them in pieces."""

    def __init__(self, stream: asyncio.StreamReader, chunk_size: int = READ_CHUNK_SIZE):
        """
        Initialize frame reader.

        Args:
            stream: Stream to read from
            chunk_size: Maximum bytes requested per read call
        """
        self.stream = stream
        self.chunk_size = chunk_size
        self._buffer = bytearray()
        self._stats = {
            "frames_read": 0,
            "echoes_skipped": 0,
            "bytes_read": 0,
            "bytes_discarded": 0,
        }

    @property
    def stats(self) -> dict:
        """Get reader statistics."""
        return self._stats.copy()

    async def read_frame(self) -> bytes:
        """
        Read one complete frame from the stream.

        Does not apply a timeout; callers bound the call with ``asyncio.wait_for``.

        Returns:
            Raw bytes of the next reply frame (direction bit set); request
            frames echoed by the line are skipped. The checksum is not
            validated here.

        Raises:
            TransportError: If the peer closes the stream
        """
        while True:
            frame = self._extract_frame_from_buffer()
            if frame is not None:
                return frame

            chunk = await self.stream.read(self.chunk_size)
            if not chunk:
                raise TransportError(f"stream closed with {len(self._buffer)} bytes of partial frame buffered")

            self._buffer.extend(chunk)
            self._stats["bytes_read"] += len(chunk)

    def _extract_frame_from_buffer(self) -> bytes | None:
        """
        Try to extract a complete frame from buffer.

        Returns:
            Raw frame bytes if found, None if more data is needed
        """
        while len(self._buffer) >= FRAME_MIN_LEN:
            # Find START marker (skips FE wake-up preamble and line noise)
            start_idx = self._buffer.find(START_FRAME)
            if start_idx == -1:
                self._discard(len(self._buffer))
                return None

            if start_idx > 0:
                self._discard(start_idx)
                continue

            if self._buffer[SECOND_START_OFFSET] != START_FRAME:
                logger.debug("No second START marker, discarding first byte")
                self._discard(1)
                continue

            frame_length = FRAME_MIN_LEN + self._buffer[LENGTH_OFFSET]

            # Wait for complete frame
            if len(self._buffer) < frame_length:
                return None

            if self._buffer[frame_length - 1] != END_FRAME:
                logger.warning("Invalid END marker 0x%02X, discarding START marker", self._buffer[frame_length - 1])
                self._discard(1)
                continue

            # Half-duplex lines hand our own request back before the reply
            if not self._buffer[CONTROL_OFFSET] & REPLY_FLAG:
                logger.debug("Skipping echoed request (control 0x%02X)", self._buffer[CONTROL_OFFSET])
                self._discard(frame_length)
                self._stats["echoes_skipped"] += 1
                continue

            frame = bytes(self._buffer[:frame_length])
            del self._buffer[:frame_length]
            self._stats["frames_read"] += 1
            return frame

        # Too short for a frame; leading garbage can go already
        start_idx = self._buffer.find(START_FRAME)
        self._discard(len(self._buffer) if start_idx == -1 else start_idx)
        return None

    def _discard(self, count: int) -> None:
        if count:
            logger.debug("Discarding %d bytes: %s", count, self._buffer[:count].hex(" "))
            del self._buffer[:count]
            self._stats["bytes_discarded"] += count

    def reset_buffer(self) -> None:
        """Clear the read buffer."""
        self._buffer.clear()
