"""DL/T 645 protocol implementation."""

from dlt645_client.protocol.address import decode_address, encode_address
from dlt645_client.protocol.checksum import calculate_checksum, verify_checksum
from dlt645_client.protocol.constants import (
    END_FRAME,
    ERROR_CONTROL_CODES,
    START_FRAME,
    ControlCode,
)
from dlt645_client.protocol.frames import Frame

__all__ = [
    "Frame",
    "encode_address",
    "decode_address",
    "calculate_checksum",
    "verify_checksum",
    "START_FRAME",
    "END_FRAME",
    "ERROR_CONTROL_CODES",
    "ControlCode",
]
