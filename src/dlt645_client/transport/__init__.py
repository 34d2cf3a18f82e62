"""Transport layer: serial/TCP backends and the shared connection lifecycle."""

from dlt645_client.transport.base import StreamTransport, Transport
from dlt645_client.transport.connection import Connection
from dlt645_client.transport.reader import FrameReader
from dlt645_client.transport.serial_port import SerialTransport
from dlt645_client.transport.tcp import TcpTransport, parse_endpoint

__all__ = [
    "Transport",
    "StreamTransport",
    "SerialTransport",
    "TcpTransport",
    "Connection",
    "FrameReader",
    "parse_endpoint",
]
