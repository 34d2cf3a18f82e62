"""Serial line backend using pyserial-asyncio."""

import asyncio
import logging

import serial
import serial_asyncio
from serial import SerialException
from serial.rs485 import RS485Settings

from dlt645_client.core.config import RS485Config
from dlt645_client.core.exceptions import ConnectError
from dlt645_client.protocol.constants import DEFAULT_BAUD_RATE, DEFAULT_TIMEOUT
from dlt645_client.transport.base import StreamTransport

logger = logging.getLogger(__name__)

PARITIES = {
    "N": serial.PARITY_NONE,
    "E": serial.PARITY_EVEN,
    "O": serial.PARITY_ODD,
}


class SerialTransport(StreamTransport):
    """DL/T 645 over an RS-485/RS-232 serial line.

    Line parameters are fixed at construction and applied on every (re)connect.
    """

    def __init__(
        self,
        port: str,
        baudrate: int = DEFAULT_BAUD_RATE,
        bytesize: int = serial.EIGHTBITS,
        parity: str = "E",
        stopbits: float = serial.STOPBITS_ONE,
        timeout: float = DEFAULT_TIMEOUT,
        rs485: RS485Config | None = None,
    ):
        """
        Initialize serial transport.

        Args:
            port: Serial port path (e.g., '/dev/ttyUSB0')
            baudrate: Communication speed (default: 19200)
            bytesize: Data bits, 5-8 (default: 8)
            parity: 'N', 'E' or 'O' (default: 'E')
            stopbits: 1, 1.5 or 2 (default: 1)
            timeout: Connect and reply deadline in seconds
            rs485: Optional RS-485 line control settings
        """
        super().__init__(timeout=timeout)
        if parity not in PARITIES:
            raise ValueError(f"Unsupported parity {parity!r}, expected one of {sorted(PARITIES)}")

        self.port = port
        self.baudrate = baudrate
        self.bytesize = bytesize
        self.parity = parity
        self.stopbits = stopbits
        self.rs485 = rs485 or RS485Config()

    @property
    def name(self) -> str:
        return self.port

    async def _open(self) -> tuple[asyncio.StreamReader, asyncio.StreamWriter]:
        logger.info(
            "Connecting to serial port %s at %d baud (%d%s%s)",
            self.port,
            self.baudrate,
            self.bytesize,
            self.parity,
            self.stopbits,
        )
        try:
            reader, writer = await serial_asyncio.open_serial_connection(
                url=self.port,
                baudrate=self.baudrate,
                bytesize=self.bytesize,
                parity=PARITIES[self.parity],
                stopbits=self.stopbits,
            )
        except (OSError, SerialException) as e:
            logger.error("Failed to connect to %s: %s", self.port, e)
            raise ConnectError(f"Failed to open {self.port}: {e}") from e

        if self.rs485.enabled:
            try:
                self._apply_rs485(writer)
            except (ValueError, OSError, SerialException) as e:
                logger.error("Failed to enable RS-485 mode on %s: %s", self.port, e)
                writer.close()
                raise ConnectError(f"Failed to enable RS-485 mode on {self.port}: {e}") from e

        return reader, writer

    def _apply_rs485(self, writer: asyncio.StreamWriter) -> None:
        """Switch the opened port into kernel RS-485 mode."""
        port = writer.transport.serial
        port.rs485_mode = RS485Settings(
            rts_level_for_tx=self.rs485.rts_high_during_send,
            rts_level_for_rx=self.rs485.rts_high_after_send,
            loopback=self.rs485.rx_during_tx,
            delay_before_tx=self.rs485.delay_rts_before_send,
            delay_before_rx=self.rs485.delay_rts_after_send,
        )
        logger.debug("RS-485 mode enabled on %s", self.port)
