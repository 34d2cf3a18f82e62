"""TCP backend for meters behind serial-to-Ethernet converters."""

import asyncio
import logging

from dlt645_client.core.exceptions import ConnectError
from dlt645_client.protocol.constants import DEFAULT_TIMEOUT
from dlt645_client.transport.base import StreamTransport

logger = logging.getLogger(__name__)


def parse_endpoint(endpoint: str) -> tuple[str, int]:
    """Split a ``host:port`` endpoint.

    IPv6 hosts may be bracketed (``[::1]:8899``).

    Raises:
        ValueError: If the endpoint has no valid port
    """
    host, sep, port = endpoint.rpartition(":")
    host = host.strip("[]")
    if not sep or not host or not port.isdigit() or not 0 < int(port) < 65536:
        raise ValueError(f"Invalid TCP endpoint {endpoint!r}, expected host:port")
    return host, int(port)


class TcpTransport(StreamTransport):
    """DL/T 645 over a TCP socket."""

    def __init__(self, endpoint: str, timeout: float = DEFAULT_TIMEOUT):
        """
        Initialize TCP transport.

        Args:
            endpoint: Remote address as ``host:port``
            timeout: Dial and reply deadline in seconds
        """
        super().__init__(timeout=timeout)
        self.host, self.port = parse_endpoint(endpoint)

    @property
    def name(self) -> str:
        return f"{self.host}:{self.port}"

    async def _open(self) -> tuple[asyncio.StreamReader, asyncio.StreamWriter]:
        logger.info("Connecting to %s", self.name)
        try:
            return await asyncio.wait_for(asyncio.open_connection(self.host, self.port), timeout=self._deadline)
        except (OSError, TimeoutError) as e:
            logger.error("Failed to connect to %s: %s", self.name, e)
            raise ConnectError(f"Failed to connect to {self.name}: {e or 'timed out'}") from e
