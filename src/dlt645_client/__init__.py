"""DL/T 645 meter client: frame codec, serial/TCP transports and connection lifecycle."""

__version__ = "0.1.0"

from dlt645_client.client import Client
from dlt645_client.core.exceptions import (
    ChecksumError,
    ConnectError,
    DLT645Error,
    FrameError,
    FrameTooShortError,
    InvalidAddressError,
    InvalidFrameError,
    InvalidLengthError,
    NotConnectedError,
    ProtocolError,
    TransportError,
    TransportTimeoutError,
)
from dlt645_client.protocol.constants import ControlCode
from dlt645_client.protocol.frames import Frame

__all__ = [
    "__version__",
    "Client",
    "ControlCode",
    "Frame",
    "DLT645Error",
    "InvalidAddressError",
    "InvalidLengthError",
    "FrameError",
    "FrameTooShortError",
    "InvalidFrameError",
    "ChecksumError",
    "ProtocolError",
    "TransportError",
    "ConnectError",
    "NotConnectedError",
    "TransportTimeoutError",
]
