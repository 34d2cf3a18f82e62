"""Frame construction and parsing for DL/T 645 protocol."""

from dlt645_client.core.exceptions import (
    ChecksumError,
    FrameTooShortError,
    InvalidFrameError,
    ProtocolError,
)
from dlt645_client.protocol.address import decode_address, encode_address
from dlt645_client.protocol.checksum import calculate_checksum
from dlt645_client.protocol.constants import (
    CONTROL_OFFSET,
    DATA_BIAS,
    DATA_OFFSET,
    END_FRAME,
    ERROR_CONTROL_CODES,
    FOLLOW_UP_FLAG,
    FRAME_MIN_LEN,
    IDENTIFIER_LEN,
    LENGTH_OFFSET,
    MAX_DATA_LEN,
    REPLY_FLAG,
    SECOND_START_OFFSET,
    START_FRAME,
)


def apply_bias(data: bytes) -> bytes:
    """Reverse byte order and add the +0x33 transmission bias."""
    return bytes((b + DATA_BIAS) & 0xFF for b in reversed(data))


def remove_bias(data: bytes) -> bytes:
    """Undo ``apply_bias``: subtract 0x33 and restore caller byte order."""
    return bytes((b - DATA_BIAS) & 0xFF for b in reversed(data))


class Frame:
    """
    Represents a DL/T 645 protocol frame.

    Frame structure:
    [START][A0..A5][START][CTRL][LEN][DI0..DI3][DATA...][CS][END]

    Identifier and payload are held in caller order without the transmission
    bias; ``to_bytes`` and ``from_bytes`` translate to and from the wire form.

    Attributes:
        address: 12-digit decimal device address
        control: Control code byte
        identifier: Data identifier (DI3..DI0 as written by the caller)
        payload: Data bytes following the identifier
        checksum: Checksum byte (0 until serialized or parsed)
    """

    def __init__(self, address: str, control: int, identifier: bytes = b"", payload: bytes = b"", checksum: int = 0):
        self.address = address
        self.control = control
        self.identifier = bytes(identifier)
        self.payload = bytes(payload)
        self.checksum = checksum

    @classmethod
    def build(cls, address: str, control: int, identifier: bytes, payload: bytes = b"") -> "Frame":
        """
        Build a request frame.

        Args:
            address: 12-digit decimal device address
            control: Control code (e.g. ControlCode.READ_DATA)
            identifier: Data identifier, usually 4 bytes
            payload: Optional data bytes

        Returns:
            New Frame with checksum 0 (finalized by ``to_bytes``)

        Raises:
            InvalidAddressError: If the address is not 12 decimal digits
            InvalidFrameError: If the control code is not one byte or
                identifier and payload exceed 255 bytes
        """
        encode_address(address)

        if not 0 <= control <= 0xFF:
            raise InvalidFrameError(f"control code out of range: {control:#x}")

        if len(identifier) + len(payload) > MAX_DATA_LEN:
            raise InvalidFrameError(f"data too long: {len(identifier) + len(payload)} bytes (max {MAX_DATA_LEN})")

        return cls(address=address, control=control, identifier=identifier, payload=payload)

    @property
    def data_length(self) -> int:
        """Value of the LEN field: identifier plus payload byte count."""
        return len(self.identifier) + len(self.payload)

    @property
    def is_reply(self) -> bool:
        """True for frames sent by the meter."""
        return bool(self.control & REPLY_FLAG)

    @property
    def has_more(self) -> bool:
        """True when the meter signals follow-up data."""
        return bool(self.control & FOLLOW_UP_FLAG)

    def to_bytes(self) -> bytes:
        """
        Convert frame to bytes for transmission.

        Returns:
            Complete frame as bytes

        Example:
            >>> frame = Frame.build("202204080026", 0x11, b'\\x00\\x01\\x00\\x00')
            >>> frame.to_bytes().hex(" ")
            '68 26 00 08 04 22 20 68 11 04 33 33 34 33 26 16'
        """
        frame = bytearray()
        frame.append(START_FRAME)
        frame.extend(encode_address(self.address))
        frame.append(START_FRAME)
        frame.append(self.control)
        frame.append(self.data_length)
        frame.extend(apply_bias(self.identifier))
        frame.extend(apply_bias(self.payload))

        # Checksum covers everything before it
        self.checksum = calculate_checksum(frame)
        frame.append(self.checksum)
        frame.append(END_FRAME)

        return bytes(frame)

    @classmethod
    def from_bytes(cls, data: bytes) -> "Frame":
        """
        Parse a frame from received bytes.

        Args:
            data: Raw frame bytes, starting at the first start marker

        Returns:
            Parsed Frame object

        Raises:
            FrameTooShortError: If fewer than 12 bytes
            InvalidFrameError: If markers or the length field are wrong
            ChecksumError: If the checksum does not match
            ProtocolError: If the meter replied with an error control code
            InvalidAddressError: If the address bytes are not valid BCD
        """
        if len(data) < FRAME_MIN_LEN:
            raise FrameTooShortError(f"frame too short: {len(data)} bytes (min {FRAME_MIN_LEN})")

        if data[0] != START_FRAME or data[SECOND_START_OFFSET] != START_FRAME or data[-1] != END_FRAME:
            raise InvalidFrameError(f"invalid frame markers: {bytes(data).hex()}")

        expected = calculate_checksum(data[:-2])
        if expected != data[-2]:
            raise ChecksumError(expected=expected, received=data[-2])

        control = data[CONTROL_OFFSET]
        data_length = data[LENGTH_OFFSET]
        if len(data) != FRAME_MIN_LEN + data_length:
            raise InvalidFrameError(f"length field {data_length} does not match frame size {len(data)}")

        body = data[DATA_OFFSET : DATA_OFFSET + data_length]

        if control in ERROR_CONTROL_CODES:
            error_code = (body[0] - DATA_BIAS) & 0xFF if body else None
            raise ProtocolError(control=control, error_code=error_code)

        identifier = b""
        payload = b""
        if data_length >= IDENTIFIER_LEN:
            identifier = remove_bias(body[:IDENTIFIER_LEN])
            payload = remove_bias(body[IDENTIFIER_LEN:])

        return cls(
            address=decode_address(data[1:SECOND_START_OFFSET]),
            control=control,
            identifier=identifier,
            payload=payload,
            checksum=data[-2],
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Frame):
            return NotImplemented
        return (
            self.address == other.address
            and self.control == other.control
            and self.identifier == other.identifier
            and self.payload == other.payload
        )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"Frame(addr={self.address}, ctrl=0x{self.control:02X}, "
            f"di={self.identifier.hex()}, data_len={len(self.payload)})"
        )
