"""Unit tests for frame construction and parsing."""

import pytest

from dlt645_client.core.exceptions import (
    ChecksumError,
    FrameTooShortError,
    InvalidAddressError,
    InvalidFrameError,
    ProtocolError,
)
from dlt645_client.protocol.constants import END_FRAME, START_FRAME, ControlCode
from dlt645_client.protocol.frames import Frame, apply_bias, remove_bias

ADDRESS = "202204080026"
TOTAL_ENERGY = b"\x00\x01\x00\x00"

# Read request for total active energy, as sent on the wire
READ_REQUEST = bytes.fromhex("68 26 00 08 04 22 20 68 11 04 33 33 34 33 26 16")


def raw_frame(control: int, body: bytes, address: bytes = bytes.fromhex("260008042220")) -> bytes:
    """Assemble wire bytes by hand with a correct checksum."""
    frame = bytearray([START_FRAME, *address, START_FRAME, control, len(body), *body])
    frame.append(sum(frame) & 0xFF)
    frame.append(END_FRAME)
    return bytes(frame)


class TestBias:
    """Tests for the +0x33 transmission bias."""

    def test_apply_bias_reverses_and_offsets(self):
        """Bytes are reversed and shifted by 0x33."""
        assert apply_bias(b"\x00\x01\x00\x00") == b"\x33\x33\x34\x33"

    def test_apply_bias_wraps(self):
        """Bias wraps around at 0xFF."""
        assert apply_bias(b"\xcd\xff") == b"\x32\x00"

    def test_remove_bias_inverse(self):
        """remove_bias undoes apply_bias."""
        data = bytes(range(256))
        assert remove_bias(apply_bias(data)) == data


class TestFrameConstruction:
    """Tests for frame construction (build / to_bytes)."""

    def test_build_read_request(self):
        """Test serialized read request matches the wire example."""
        frame = Frame.build(ADDRESS, ControlCode.READ_DATA, TOTAL_ENERGY)

        assert frame.to_bytes() == READ_REQUEST

    def test_build_checksum_zero_until_serialized(self):
        """Checksum is finalized by to_bytes."""
        frame = Frame.build(ADDRESS, ControlCode.READ_DATA, TOTAL_ENERGY)
        assert frame.checksum == 0

        frame_bytes = frame.to_bytes()
        assert frame.checksum == frame_bytes[-2] == 0x26

    def test_frame_basic_structure(self):
        """Test markers, control and length positions."""
        frame_bytes = Frame.build(ADDRESS, 0x11, TOTAL_ENERGY, b"\x01\x02").to_bytes()

        assert frame_bytes[0] == START_FRAME
        assert frame_bytes[7] == START_FRAME
        assert frame_bytes[8] == 0x11
        assert frame_bytes[9] == 6
        assert frame_bytes[-1] == END_FRAME
        assert len(frame_bytes) == 12 + 6

    def test_payload_reversed_and_biased(self):
        """Payload follows the identifier, reversed, +0x33 per byte."""
        frame_bytes = Frame.build(ADDRESS, 0x11, TOTAL_ENERGY, b"\x01\x02\x03").to_bytes()

        assert frame_bytes[14:17] == b"\x36\x35\x34"

    def test_data_length(self):
        """data_length counts identifier and payload."""
        frame = Frame.build(ADDRESS, 0x11, TOTAL_ENERGY, b"\x00" * 10)
        assert frame.data_length == 14

    def test_build_invalid_address(self):
        """Bad address fails at build time."""
        with pytest.raises(InvalidAddressError):
            Frame.build("12345", 0x11, TOTAL_ENERGY)

    def test_build_data_too_long(self):
        """Identifier plus payload must fit the 1-byte length field."""
        with pytest.raises(InvalidFrameError):
            Frame.build(ADDRESS, 0x11, TOTAL_ENERGY, bytes(252))

    @pytest.mark.parametrize("control", [-1, 0x100, 0x1FF])
    def test_build_control_out_of_range(self, control):
        """Control code must fit in one byte."""
        with pytest.raises(InvalidFrameError, match="control"):
            Frame.build(ADDRESS, control, TOTAL_ENERGY)

    def test_build_max_data(self):
        """255 data bytes is the largest frame."""
        frame_bytes = Frame.build(ADDRESS, 0x11, TOTAL_ENERGY, bytes(251)).to_bytes()
        assert frame_bytes[9] == 0xFF
        assert len(frame_bytes) == 12 + 255

    def test_flags(self):
        """is_reply and has_more reflect the control code bits."""
        assert not Frame(ADDRESS, ControlCode.READ_DATA).is_reply
        assert Frame(ADDRESS, ControlCode.READ_DATA_REPLY).is_reply
        assert not Frame(ADDRESS, ControlCode.READ_DATA_REPLY).has_more
        assert Frame(ADDRESS, ControlCode.READ_DATA_REPLY_MORE).has_more
        assert Frame(ADDRESS, ControlCode.READ_FOLLOW_UP_REPLY_MORE).has_more


class TestFrameParsing:
    """Tests for frame parsing (from_bytes)."""

    def test_parse_read_reply(self):
        """Test parsing a meter reply with energy data."""
        # 0x91 reply, DI 00 01 00 00, payload 00 12 34 56 (kWh as BCD XXXXXX.XX)
        data = raw_frame(0x91, bytes.fromhex("33 33 34 33 89 67 45 33"))

        frame = Frame.from_bytes(data)

        assert frame.address == ADDRESS
        assert frame.control == 0x91
        assert frame.identifier == TOTAL_ENERGY
        assert frame.payload == bytes.fromhex("00123456")
        assert frame.checksum == data[-2]
        assert frame.is_reply

    def test_parse_request(self):
        """A request frame parses back to its fields."""
        frame = Frame.from_bytes(READ_REQUEST)

        assert frame.address == ADDRESS
        assert frame.control == ControlCode.READ_DATA
        assert frame.identifier == TOTAL_ENERGY
        assert frame.payload == b""

    @pytest.mark.parametrize("length", [0, 1, 11])
    def test_parse_too_short(self, length):
        """Fewer than 12 bytes is always too short."""
        with pytest.raises(FrameTooShortError):
            Frame.from_bytes(READ_REQUEST[:length])

    @pytest.mark.parametrize("offset", [0, 7, -1])
    def test_parse_invalid_marker(self, offset):
        """Wrong start, second start or end marker is rejected."""
        data = bytearray(READ_REQUEST)
        data[offset] = 0x00

        with pytest.raises(InvalidFrameError):
            Frame.from_bytes(bytes(data))

    def test_parse_invalid_checksum(self):
        """Corrupted checksum byte is detected."""
        data = bytearray(READ_REQUEST)
        data[-2] ^= 0xFF

        with pytest.raises(ChecksumError) as exc_info:
            Frame.from_bytes(bytes(data))

        assert exc_info.value.expected == 0x26
        assert exc_info.value.received == 0x26 ^ 0xFF

    def test_single_bit_flip_detected(self):
        """Flipping any bit outside markers and checksum fails the checksum."""
        original = Frame.build(ADDRESS, 0x11, TOTAL_ENERGY, b"\x10\x20\x30").to_bytes()
        positions = [i for i in range(1, len(original) - 2) if i != 7]

        for pos in positions:
            for bit in range(8):
                data = bytearray(original)
                data[pos] ^= 1 << bit
                with pytest.raises(ChecksumError):
                    Frame.from_bytes(bytes(data))

    def test_parse_length_mismatch(self):
        """Length field that disagrees with the buffer size is rejected."""
        data = raw_frame(0x91, bytes.fromhex("33 33 34 33"))
        # Drop one data byte but keep the length field and fix the checksum
        body = bytearray(data[:13])
        body.append(sum(body) & 0xFF)
        body.append(END_FRAME)

        with pytest.raises(InvalidFrameError, match="length"):
            Frame.from_bytes(bytes(body))

    def test_parse_length_overruns_buffer(self):
        """Length field larger than the buffer does not index out of range."""
        data = bytearray(READ_REQUEST)
        data[9] = 0xFF
        data[-2] = sum(data[:-2]) & 0xFF

        with pytest.raises(InvalidFrameError):
            Frame.from_bytes(bytes(data))

    @pytest.mark.parametrize("control", [ControlCode.READ_DATA_ERROR, ControlCode.READ_FOLLOW_UP_ERROR])
    def test_parse_error_reply(self, control):
        """Error control codes raise ProtocolError with the status byte."""
        data = raw_frame(control, bytes([0x02 + 0x33]))

        with pytest.raises(ProtocolError) as exc_info:
            Frame.from_bytes(data)

        assert exc_info.value.control == control
        assert exc_info.value.error_code == 0x02

    def test_parse_error_reply_without_status(self):
        """Error reply with no data still raises ProtocolError."""
        with pytest.raises(ProtocolError) as exc_info:
            Frame.from_bytes(raw_frame(0xD1, b""))

        assert exc_info.value.error_code is None

    def test_checksum_checked_before_error_control(self):
        """A corrupted error reply reports the checksum failure."""
        data = bytearray(raw_frame(0xD1, b"\x35"))
        data[-2] ^= 0x01

        with pytest.raises(ChecksumError):
            Frame.from_bytes(bytes(data))

    @pytest.mark.parametrize("body", [b"", b"\x33", b"\x33\x34\x35"])
    def test_parse_short_data(self, body):
        """Data length below 4 yields empty identifier and payload."""
        frame = Frame.from_bytes(raw_frame(0x91, body))

        assert frame.identifier == b""
        assert frame.payload == b""

    def test_parse_invalid_address_bcd(self):
        """Address bytes that are not BCD are rejected."""
        data = raw_frame(0x91, bytes.fromhex("33 33 34 33"), address=bytes.fromhex("2600080422FF"))

        with pytest.raises(InvalidAddressError):
            Frame.from_bytes(data)


class TestFrameRoundTrip:
    """Tests for encoding then parsing frames."""

    @pytest.mark.parametrize(
        "address,control,identifier,payload",
        [
            (ADDRESS, 0x11, TOTAL_ENERGY, b""),
            ("000000000001", 0x91, b"\x02\x01\x01\x00", b"\x22\x01"),
            ("999999999999", 0xB1, b"\x00\x00\x00\x00", b"\xff" * 8),
            (ADDRESS, 0x12, b"\x04\x00\x04\x01", b"\x01"),
            ("123456789012", 0x92, b"\xcc\xcd\xce\xcf", bytes(range(250))),
        ],
    )
    def test_roundtrip(self, address, control, identifier, payload):
        """Test encoding then parsing returns equivalent frame."""
        original = Frame.build(address, control, identifier, payload)
        parsed = Frame.from_bytes(original.to_bytes())

        assert parsed.address == address
        assert parsed.control == control
        assert parsed.identifier == identifier
        assert parsed.payload == payload
        assert parsed == original


class TestFrameRepr:
    """Tests for frame string representation."""

    def test_repr(self):
        """Test __repr__ returns useful debug string."""
        repr_str = repr(Frame(ADDRESS, 0x91, TOTAL_ENERGY, b"\x01\x02"))

        assert "Frame" in repr_str
        assert "addr=202204080026" in repr_str
        assert "ctrl=0x91" in repr_str
        assert "di=00010000" in repr_str
        assert "data_len=2" in repr_str
